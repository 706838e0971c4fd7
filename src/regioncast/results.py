"""Observation records produced by the resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from regioncast.location import Coordinate

# Open-Meteo hourly variable -> observation field name
HOURLY_FIELDS: dict[str, str] = {
    "temperature_2m": "temperature_2m",
    "relative_humidity_2m": "humidity_2m",
    "precipitation": "precipitation",
    "surface_pressure": "surface_pressure",
    "wind_speed_10m": "wind_speed_10m",
}

# Observation field name -> fallback generator kind
FIELD_KINDS: dict[str, str] = {
    "temperature_2m": "temperature",
    "humidity_2m": "humidity",
    "precipitation": "precipitation",
    "surface_pressure": "pressure",
    "wind_speed_10m": "wind",
}

FIELD_UNITS: dict[str, str] = {
    "temperature_2m": "°C",
    "humidity_2m": "%",
    "precipitation": "mm",
    "surface_pressure": "hPa",
    "wind_speed_10m": "km/h",
}


@dataclass(frozen=True)
class Observation:
    """Weather values resolved for one coordinate and instant.

    Observations are read-only: ``values`` is exposed as a mapping proxy.

    Args:
        values: Field name to numeric value.
        timestamp: Target instant the values were resolved for.
        coordinate: Coordinate the values were resolved for.
        fallback: ``True`` when the remote source failed and every value
            is synthetic.
        synthesized: Names of fields filled by the fallback generator.

    Example:
        >>> obs = Observation(values={"temperature_2m": 21.5}, timestamp=ts,
        ...                   coordinate=Coordinate(20.0, 78.0))
        >>> obs["temperature_2m"]
        21.5
    """

    values: Mapping[str, float]
    timestamp: datetime
    coordinate: Coordinate
    fallback: bool = False
    synthesized: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, name: str) -> float:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def get(self, name: str, default: float | None = None) -> float | None:
        return self.values.get(name, default)

    @property
    def degraded(self) -> bool:
        """``True`` if any value did not come from the remote source."""
        return self.fallback or bool(self.synthesized)

    def matches(
        self,
        coordinate: Coordinate,
        timestamp: datetime,
        precision: int = 3,
    ) -> bool:
        """Check that this observation answers the given request.

        Callers use this before applying a late-arriving result, so a
        resolution started for an older selection is never shown for the
        current one.
        """
        return (
            self.coordinate.rounded(precision) == coordinate.rounded(precision)
            and self.timestamp == timestamp
        )

    def display_value(self, name: str) -> str:
        """Format one field with its unit, or ``"No data"``."""
        value = self.values.get(name)
        if value is None:
            return "No data"
        return f"{value:g}{FIELD_UNITS.get(name, '')}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        return {
            **self.values,
            "timestamp": self.timestamp.isoformat(),
            "location": {
                "latitude": self.coordinate.lat,
                "longitude": self.coordinate.lon,
            },
            "fallback": self.fallback,
        }
