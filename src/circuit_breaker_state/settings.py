from __future__ import annotations

from collections.abc import Mapping
from typing import TextIO

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from circuit_breaker_state.breaker import CircuitBreakerConfig
from circuit_breaker_state.logging import (
    StructuredLogger,
    configure_structlog,
    resolve_log_level,
)

ENV_PREFIX = "CIRCUIT_BREAKER_"


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class BreakerSettings(BaseSettings):
    """Environment-driven breaker settings (``CIRCUIT_BREAKER_*``)."""

    model_config = prefixed_settings_config(ENV_PREFIX)

    max_failures: int = 3
    reset_delay_ms: int = 10_000
    log_level: str = "INFO"
    service_name: str | None = None

    @field_validator("max_failures")
    @classmethod
    def _validate_max_failures(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_failures must be >= 1")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        resolve_log_level(value)
        return value.strip().upper()

    def to_config(self) -> CircuitBreakerConfig:
        """Build the breaker configuration these settings describe."""
        return CircuitBreakerConfig(
            max_failures=self.max_failures,
            reset_delay_ms=self.reset_delay_ms,
        )


def configure_logging(
    settings: BreakerSettings,
    *,
    context: Mapping[str, object] | None = None,
    stream: TextIO | None = None,
) -> StructuredLogger:
    """Configure structlog at ``settings.log_level``.

    ``settings.service_name``, when set, is added to every event as
    ``service`` alongside any fields in ``context``.
    """
    fields: dict[str, object] = {}
    if settings.service_name:
        fields["service"] = settings.service_name
    fields.update(context or {})
    return configure_structlog(
        log_level=settings.log_level,
        context=fields,
        stream=stream,
    )
