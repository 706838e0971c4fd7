"""Deterministic synthetic weather values.

Used by the resolver whenever the remote source is unavailable or a
field is missing from its response. Values depend only on the field
kind and the coordinate, so degraded results are reproducible.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING

from regioncast.results import FIELD_KINDS, Observation

if TYPE_CHECKING:
    from regioncast.location import Coordinate

_TROPIC_LATITUDE = 23.5


def _seed(lat: float, lng: float) -> float:
    return abs(math.sin(lat * lng)) * 1000


def fallback(kind: str, lat: float, lng: float) -> float:
    """Return a synthetic value for one field kind at ``(lat, lng)``.

    Args:
        kind: One of ``"temperature"``, ``"humidity"``, ``"precipitation"``,
            ``"pressure"``, ``"wind"``. Unknown kinds yield ``0.0``.
        lat: Latitude in degrees.
        lng: Longitude in degrees.

    Example:
        >>> fallback("temperature", 12.34, 56.78) == fallback("temperature", 12.34, 56.78)
        True
    """
    seed = _seed(lat, lng)
    if kind == "temperature":
        # colder away from the equator
        base = 35 - abs(lat) * 0.8
        return round(base + (seed % 20) - 10, 1)
    if kind == "humidity":
        base = 70 if abs(lat) < _TROPIC_LATITUDE else 50
        return float(round(base + (seed % 30)))
    if kind == "precipitation":
        return round(seed % 5, 1)
    if kind == "pressure":
        return round(1013 + (seed % 40) - 20, 1)
    if kind == "wind":
        return round(seed % 15, 1)
    return 0.0


def fallback_field(field_name: str, lat: float, lng: float) -> float:
    """Synthetic value for an observation field name such as ``temperature_2m``."""
    return fallback(FIELD_KINDS.get(field_name, ""), lat, lng)


def fallback_observation(coordinate: Coordinate, timestamp: datetime) -> Observation:
    """Build an observation made entirely of synthetic values."""
    values = {
        name: fallback(kind, coordinate.lat, coordinate.lon)
        for name, kind in FIELD_KINDS.items()
    }
    return Observation(
        values=values,
        timestamp=timestamp,
        coordinate=coordinate,
        fallback=True,
        synthesized=frozenset(values),
    )
