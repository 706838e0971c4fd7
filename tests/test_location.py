"""Tests for coordinates, centroids and regions."""

from __future__ import annotations

import pytest

from regioncast.exceptions import ConfigurationError
from regioncast.location import Coordinate, Region, centroid, coordinate


@pytest.mark.unit
class TestCoordinate:
    """Coordinate creation and validation."""

    def test_valid_coordinate(self) -> None:
        point = coordinate(20, 78)
        assert point == Coordinate(20.0, 78.0)
        assert isinstance(point.lat, float)

    @pytest.mark.parametrize(("lat", "lon"), [(90.1, 0.0), (-91.0, 0.0)])
    def test_invalid_latitude(self, lat: float, lon: float) -> None:
        with pytest.raises(ConfigurationError, match="Invalid latitude"):
            coordinate(lat, lon)

    def test_invalid_longitude(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid longitude"):
            coordinate(0.0, 180.5)

    def test_boundaries_accepted(self) -> None:
        assert coordinate(-90, 180).lat == -90.0

    def test_rounded(self) -> None:
        assert Coordinate(20.12345, 78.98765).rounded(3) == (20.123, 78.988)

    def test_hashable(self) -> None:
        assert len({Coordinate(1.0, 2.0), Coordinate(1.0, 2.0)}) == 1


@pytest.mark.unit
class TestCentroid:
    """Arithmetic mean of polygon vertices."""

    def test_square(self) -> None:
        square = [(0.0, 0.0), (0.0, 2.0), (2.0, 2.0), (2.0, 0.0)]
        assert centroid(square) == Coordinate(1.0, 1.0)

    def test_triangle(self) -> None:
        center = centroid([(20.0, 78.0), (20.6, 78.0), (20.0, 78.9)])
        assert center.lat == pytest.approx(20.2)
        assert center.lon == pytest.approx(78.3)

    def test_empty_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="centroid"):
            centroid([])

    def test_wrong_shape_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            centroid([(1.0, 2.0, 3.0)])


@pytest.mark.unit
class TestRegion:
    """Region defaults and representative coordinate."""

    def test_defaults(self) -> None:
        region = Region("r1", [(1.0, 1.0)])
        assert region.data_source == "openmeteo"
        assert region.properties == {}

    def test_center_is_centroid(self) -> None:
        region = Region("r1", [(10.0, 10.0), (12.0, 14.0)])
        assert region.center == Coordinate(11.0, 12.0)
