"""Configuration management for RegionCast.

A frozen pydantic ``Config`` carries every tunable of the resolver,
cache, time axis and classification defaults. Components capture a
``Config`` when they are created, so later ``configure()`` calls never
affect objects that already exist.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

logger = logging.getLogger(__name__)

_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


class Config(BaseModel):
    """Library configuration model.

    Args:
        provider: Registered weather provider name.
        timezone: IANA time zone used for naive timestamps and sent to the
            weather API.
        request_timeout: Seconds before a remote weather query is abandoned.
        max_retries: Number of attempts made for each remote query.
        cache_ttl_seconds: Maximum age of a cache entry returned as fresh.
        cache_retention_seconds: Age after which the sweep purges an entry.
        sweep_interval_seconds: Cadence of the background cache sweep.
        coordinate_precision: Decimal places used when keying the cache.
        window_days: Days before and after the reference day on the axis.
        neutral_color: Color returned when no rule matches or data is missing.

    Example:
        >>> cfg = Config(timezone="Asia/Kolkata")
        >>> cfg.cache_ttl_seconds
        300.0
    """

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    provider: str = "open-meteo-archive"
    timezone: str = "UTC"
    request_timeout: float = 10.0
    max_retries: int = 1
    cache_ttl_seconds: float = 300.0
    cache_retention_seconds: float = 1800.0
    sweep_interval_seconds: float = 600.0
    coordinate_precision: int = 3
    window_days: int = 15
    neutral_color: str = "#95a5a6"

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, v: str) -> str:
        """Ensure the time zone is a known IANA name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            msg = f"unknown time zone {v!r}"
            raise ValueError(msg) from None
        return v

    @field_validator(
        "request_timeout",
        "cache_ttl_seconds",
        "cache_retention_seconds",
        "sweep_interval_seconds",
    )
    @classmethod
    def _validate_positive(cls, v: float) -> float:
        """Ensure durations are positive."""
        if v <= 0:
            msg = "durations must be greater than 0"
            raise ValueError(msg)
        return v

    @field_validator("max_retries", "window_days")
    @classmethod
    def _validate_at_least_one(cls, v: int) -> int:
        if v < 1:
            msg = "value must be at least 1"
            raise ValueError(msg)
        return v

    @field_validator("coordinate_precision")
    @classmethod
    def _validate_precision(cls, v: int) -> int:
        if not 0 <= v <= 8:
            msg = "coordinate_precision must be between 0 and 8"
            raise ValueError(msg)
        return v

    @field_validator("neutral_color")
    @classmethod
    def _validate_color(cls, v: str) -> str:
        """Ensure the neutral color is a ``#rrggbb`` hex string."""
        if not _HEX_COLOR_RE.match(v):
            msg = "neutral_color must match '#rrggbb' format"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _validate_retention(self) -> Config:
        """Retention shorter than the TTL would purge fresh entries."""
        if self.cache_retention_seconds < self.cache_ttl_seconds:
            msg = "cache_retention_seconds must be >= cache_ttl_seconds"
            raise ValueError(msg)
        return self

    @property
    def zone(self) -> ZoneInfo:
        """The configured time zone as a ``ZoneInfo``."""
        return ZoneInfo(self.timezone)


_default_config = Config()


def configure(**kwargs: Any) -> None:
    """Set module-level default configuration.

    Creates a new ``Config`` from the current defaults merged with
    the provided keyword arguments.

    Args:
        **kwargs: Any ``Config`` field (e.g. ``timezone``,
            ``request_timeout``, ``cache_ttl_seconds``).

    Raises:
        ValidationError: If a provided value fails pydantic validation.

    Example:
        >>> configure(timezone="Asia/Kolkata", request_timeout=5)
    """
    global _default_config  # noqa: PLW0603
    current = _default_config.model_dump()
    current.update(kwargs)
    _default_config = Config(**current)
    logger.debug("Default configuration updated: %s", sorted(kwargs))


def get_default_config() -> Config:
    """Return the current module-level default configuration."""
    return _default_config
