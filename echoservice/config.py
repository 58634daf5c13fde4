# echoservice/config.py
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# env var -> Settings field
ENV_FIELDS = {
    "ECHO_HOST": "host",
    "ECHO_PORT": "port",
    "ECHO_EXCLUDED_PREFIX": "excluded_prefix",
    "ECHO_WATCHDOG": "watchdog_enabled",
    "ECHO_GRACEFUL_SHUTDOWN": "graceful_shutdown",
    "ECHO_METRICS_ENABLED": "metrics_enabled",
    "ECHO_LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    host: str | None = Field(None, description="Bind host; skips interface selection when set")
    port: int = Field(8080, ge=1, le=65535)
    excluded_prefix: str = Field("10.", description="Interface addresses with this prefix are skipped")
    watchdog_enabled: bool = True
    graceful_shutdown: bool = True
    metrics_enabled: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        values = {field: env[var] for var, field in ENV_FIELDS.items() if env.get(var, "").strip()}
        return cls(**values)


settings = Settings.from_env()
