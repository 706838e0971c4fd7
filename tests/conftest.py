"""Shared test fixtures for RegionCast test suite."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable
from unittest.mock import MagicMock

import pandas as pd
import pytest

from regioncast.config import Config
from regioncast.providers.base import DataProvider


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _hourly_payload(
    start: datetime,
    hours: int,
    **overrides: list[Any] | None,
) -> dict[str, Any]:
    """Build an Open-Meteo style ``hourly`` payload.

    Each field defaults to a simple ramp; pass ``field=None`` to omit it
    or a list to replace it.
    """
    times = [(start + timedelta(hours=h)).strftime("%Y-%m-%dT%H:%M") for h in range(hours)]
    hourly: dict[str, Any] = {
        "time": times,
        "temperature_2m": [20.0 + h for h in range(hours)],
        "relative_humidity_2m": [60.0 + h for h in range(hours)],
        "precipitation": [0.0 for _ in range(hours)],
        "surface_pressure": [1000.0 + h for h in range(hours)],
        "wind_speed_10m": [5.0 + h for h in range(hours)],
    }
    for name, values in overrides.items():
        if values is None:
            hourly.pop(name, None)
        else:
            hourly[name] = values
    return {"latitude": 20.0, "longitude": 78.0, "hourly": hourly}


def _frame_from_payload(payload: dict[str, Any]) -> pd.DataFrame:
    hourly = payload["hourly"]
    frame = pd.DataFrame({"time": pd.to_datetime(pd.Series(hourly["time"]))})
    for name, values in hourly.items():
        if name != "time":
            frame[name] = pd.to_numeric(pd.Series(values), errors="coerce").astype(
                "float64"
            )
    return frame


@pytest.fixture
def test_config() -> Config:
    """Return a fresh default Config instance for test isolation."""
    return Config()


@pytest.fixture
def clock() -> FakeClock:
    """Return a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def hourly_payload() -> Callable[..., dict[str, Any]]:
    """Factory for Open-Meteo hourly payloads."""
    return _hourly_payload


@pytest.fixture
def hourly_frame() -> Callable[..., pd.DataFrame]:
    """Factory for provider DataFrames, same arguments as ``hourly_payload``."""

    def _make(start: datetime, hours: int, **overrides: Any) -> pd.DataFrame:
        return _frame_from_payload(_hourly_payload(start, hours, **overrides))

    return _make


@pytest.fixture
def fake_provider() -> MagicMock:
    """A DataProvider mock; set ``fetch_hourly.return_value`` or ``side_effect``."""
    provider = MagicMock(spec=DataProvider)
    provider.name = "fake"
    return provider
