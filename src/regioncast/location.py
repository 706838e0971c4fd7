"""Coordinates and drawn regions.

A region is a polygon drawn by the user; the core only needs its
representative coordinate, the arithmetic centroid of its vertices.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np

from regioncast.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_MIN_LAT = -90.0
_MAX_LAT = 90.0
_MIN_LON = -180.0
_MAX_LON = 180.0


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 ``(lat, lon)`` pair in degrees.

    Use :func:`coordinate` to build one from untrusted input; the
    constructor itself performs the same bounds check.

    Example:
        >>> Coordinate(20.0, 78.0).rounded(3)
        (20.0, 78.0)
    """

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (_MIN_LAT <= self.lat <= _MAX_LAT):
            raise ConfigurationError(
                what=f"Invalid latitude: {self.lat}",
                cause=f"Latitude must be between {_MIN_LAT} and {_MAX_LAT}",
                fix="Provide a valid WGS84 latitude value",
            )
        if not (_MIN_LON <= self.lon <= _MAX_LON):
            raise ConfigurationError(
                what=f"Invalid longitude: {self.lon}",
                cause=f"Longitude must be between {_MIN_LON} and {_MAX_LON}",
                fix="Provide a valid WGS84 longitude value",
            )

    def rounded(self, precision: int) -> tuple[float, float]:
        """Return ``(lat, lon)`` rounded to *precision* decimal places."""
        return (round(self.lat, precision), round(self.lon, precision))


def coordinate(lat: float, lon: float) -> Coordinate:
    """Create a validated coordinate.

    Raises:
        ConfigurationError: If the values are outside WGS84 bounds.
    """
    return Coordinate(lat=float(lat), lon=float(lon))


def centroid(vertices: Sequence[Sequence[float]]) -> Coordinate:
    """Return the arithmetic mean of a polygon's ``(lat, lon)`` vertices.

    Args:
        vertices: Polygon ring as ``[(lat, lon), ...]``. A closing vertex
            equal to the first one is counted like any other vertex.

    Raises:
        ConfigurationError: If *vertices* is empty or not ``(lat, lon)`` pairs.

    Example:
        >>> centroid([(0.0, 0.0), (0.0, 2.0), (2.0, 2.0), (2.0, 0.0)])
        Coordinate(lat=1.0, lon=1.0)
    """
    points = np.asarray(vertices, dtype=np.float64)
    if points.size == 0 or points.ndim != 2 or points.shape[1] != 2:
        raise ConfigurationError(
            what="Cannot compute region centroid",
            cause=f"Expected a non-empty list of (lat, lon) pairs, got shape {points.shape}",
            fix="Pass the polygon vertices as [(lat, lon), ...]",
        )
    lat, lon = points.mean(axis=0)
    return coordinate(float(lat), float(lon))


@dataclass
class Region:
    """A user-drawn polygon.

    Args:
        region_id: Caller-assigned identifier.
        vertices: Polygon ring as ``[(lat, lon), ...]``.
        name: Display name.
        data_source: Key of the rule set applied to this region.
    """

    region_id: str
    vertices: list[tuple[float, float]]
    name: str = ""
    data_source: str = "openmeteo"
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def center(self) -> Coordinate:
        """Representative coordinate used for weather lookups."""
        return centroid(self.vertices)
