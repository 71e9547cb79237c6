"""
Nozzle Configuration
====================
Delivery settings for the batch sender, read from the environment.
"""

import os
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError


class BackoffKind(str, Enum):
    """Supported wait strategies between delivery attempts."""
    LINEAR = "linear"
    RANDOM = "random"
    EXPONENTIAL = "exponential"


# Environment variable suffix -> field name
_ENV_FIELDS = {
    "MAX_RETRIES": "max_retries",
    "BACKOFF_POLICY": "backoff_policy",
    "MIN_BACKOFF": "min_backoff",
    "MAX_BACKOFF": "max_backoff",
    "DB_NAME": "db_name",
    "INFLUXDB_HOST": "influxdb_host",
    "HTTP_TIMEOUT": "http_timeout",
}


class NozzleProperties(BaseModel):
    """
    Settings for delivering batches to InfluxDB.

    Durations are in seconds. ``max_retries`` is the total number of
    attempts, the first one included.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=1)
    backoff_policy: BackoffKind = BackoffKind.EXPONENTIAL
    min_backoff: float = Field(default=0.1, ge=0)
    max_backoff: float = Field(default=30.0, ge=0)
    db_name: str = "metrics"
    influxdb_host: Optional[str] = None
    http_timeout: float = Field(default=10.0, gt=0)

    @field_validator("backoff_policy", mode="before")
    @classmethod
    def _normalize_policy(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("db_name")
    @classmethod
    def _require_db_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("db_name must not be blank")
        return value.strip()

    @model_validator(mode="after")
    def _check_backoff_range(self) -> "NozzleProperties":
        if self.max_backoff < self.min_backoff:
            raise ValueError(
                f"max_backoff ({self.max_backoff}) is lower than min_backoff ({self.min_backoff})"
            )
        return self

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = "NOZZLE_",
    ) -> "NozzleProperties":
        """
        Build properties from environment variables.

        Unset variables fall back to the field defaults.

        Raises:
            ConfigurationError: If a value is present but invalid
        """
        env = os.environ if environ is None else environ
        values: Dict[str, str] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            raw = env.get(prefix + suffix)
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError("Invalid nozzle configuration", details=str(e)) from e
