"""End-to-end tests: axis, playback, resolver and rules together."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from unittest.mock import MagicMock

import pandas as pd
import pytest

from regioncast.api import colorize_regions
from regioncast.cache import ObservationCache
from regioncast.config import Config
from regioncast.exceptions import ProviderError
from regioncast.fallback import fallback
from regioncast.location import Region
from regioncast.playback import PlaybackController
from regioncast.resolver import WeatherResolver
from regioncast.results import Observation
from regioncast.rules import NEUTRAL_COLOR, ClassificationRule, RuleSet
from regioncast.timeline import TimeAxis

_REFERENCE = datetime(2025, 8, 5, 12, 0)

# centroid is exactly (20.0, 78.0)
_INDIA = Region(
    "india",
    [(19.0, 77.0), (19.0, 79.0), (21.0, 79.0), (21.0, 77.0)],
    name="Central India",
)


@pytest.fixture
def resolver(
    test_config: Config, fake_provider: MagicMock, clock: Any
) -> WeatherResolver:
    return WeatherResolver(
        config=test_config,
        provider=fake_provider,
        cache=ObservationCache(test_config, clock=clock),
    )


@pytest.mark.unit
class TestUnreachableSource:
    """A session whose weather source is down still colors every region."""

    def test_fallback_colors_region(
        self, resolver: WeatherResolver, fake_provider: MagicMock
    ) -> None:
        fake_provider.fetch_hourly.side_effect = ProviderError(
            what="Open-Meteo request failed", cause="Connection refused"
        )
        axis = TimeAxis.build(_REFERENCE)
        ctrl = PlaybackController.from_axis(axis)
        selection = ctrl.selector.times(axis)
        assert selection == _REFERENCE

        colors = asyncio.run(colorize_regions([_INDIA], selection, resolver=resolver))

        result = colors["india"]
        assert result.observation is not None
        assert result.observation.fallback
        assert result.observation["temperature_2m"] == fallback("temperature", 20.0, 78.0)
        assert result.color == "#ff4444"
        assert result.classification.status == "matched"


@pytest.mark.unit
class TestColorizeRegions:
    """Concurrent resolution and per-region rule sets."""

    def test_colors_from_live_data(
        self,
        resolver: WeatherResolver,
        fake_provider: MagicMock,
        hourly_frame: Callable[..., pd.DataFrame],
    ) -> None:
        fake_provider.fetch_hourly.return_value = hourly_frame(datetime(2025, 8, 5), 24)
        colors = asyncio.run(colorize_regions([_INDIA], _REFERENCE, resolver=resolver))
        # 32 degrees at noon
        assert colors["india"].color == "#44ff44"
        assert not colors["india"].observation.fallback  # type: ignore[union-attr]

    def test_region_rule_set_by_source(
        self,
        resolver: WeatherResolver,
        fake_provider: MagicMock,
        hourly_frame: Callable[..., pd.DataFrame],
    ) -> None:
        fake_provider.fetch_hourly.return_value = hourly_frame(datetime(2025, 8, 5), 24)
        humid = RuleSet(
            field="humidity_2m",
            rules=(ClassificationRule(operator=">", value=70, color="#0000ff"),),
        )
        region = Region("h", _INDIA.vertices, data_source="humidity")
        colors = asyncio.run(
            colorize_regions(
                [region], _REFERENCE, rule_sets={"humidity": humid}, resolver=resolver
            )
        )
        assert colors["h"].color == "#0000ff"

    def test_missing_rule_set_is_no_data(
        self,
        resolver: WeatherResolver,
        fake_provider: MagicMock,
        hourly_frame: Callable[..., pd.DataFrame],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        fake_provider.fetch_hourly.return_value = hourly_frame(datetime(2025, 8, 5), 24)
        region = Region("x", _INDIA.vertices, data_source="unknown")
        with caplog.at_level(logging.WARNING, logger="regioncast.api"):
            colors = asyncio.run(colorize_regions([region], _REFERENCE, resolver=resolver))
        assert colors["x"].color == NEUTRAL_COLOR
        assert colors["x"].classification.status == "no_data"
        assert "No rule set" in caplog.text

    def test_many_regions_resolved_together(
        self,
        resolver: WeatherResolver,
        fake_provider: MagicMock,
        hourly_frame: Callable[..., pd.DataFrame],
    ) -> None:
        fake_provider.fetch_hourly.return_value = hourly_frame(datetime(2025, 8, 5), 24)
        regions = [
            Region(f"r{i}", [(10.0 + i, 10.0), (11.0 + i, 11.0)]) for i in range(4)
        ]
        colors = asyncio.run(colorize_regions(regions, _REFERENCE, resolver=resolver))
        assert set(colors) == {"r0", "r1", "r2", "r3"}
        assert fake_provider.fetch_hourly.call_count == 4

    def test_range_selection(
        self,
        resolver: WeatherResolver,
        fake_provider: MagicMock,
        hourly_frame: Callable[..., pd.DataFrame],
    ) -> None:
        fake_provider.fetch_hourly.return_value = hourly_frame(datetime(2025, 8, 4), 72)
        start = datetime(2025, 8, 4, 12)
        selection = (start, start + timedelta(hours=24))
        colors = asyncio.run(colorize_regions([_INDIA], selection, resolver=resolver))
        assert colors["india"].observation.timestamp == datetime(2025, 8, 5)  # type: ignore[union-attr]

    def test_mixed_awareness_range_selection(
        self,
        resolver: WeatherResolver,
        fake_provider: MagicMock,
        hourly_frame: Callable[..., pd.DataFrame],
    ) -> None:
        fake_provider.fetch_hourly.return_value = hourly_frame(datetime(2025, 8, 5), 24)
        selection = (
            datetime(2025, 8, 5, 11),
            datetime(2025, 8, 5, 13, tzinfo=timezone.utc),
        )
        colors = asyncio.run(colorize_regions([_INDIA], selection, resolver=resolver))
        observation = colors["india"].observation
        assert observation is not None
        assert observation.timestamp == _REFERENCE
        assert colors["india"].classification.status != "no_data"

    def test_mismatched_observation_discarded(self, test_config: Config) -> None:
        stale = Observation(
            values={"temperature_2m": 5.0},
            timestamp=_REFERENCE - timedelta(hours=1),
            coordinate=_INDIA.center,
        )
        resolver = MagicMock(spec=WeatherResolver)
        resolver.config = test_config

        async def _resolve(*_args: Any) -> Observation:
            return stale

        resolver.resolve.side_effect = _resolve
        colors = asyncio.run(colorize_regions([_INDIA], _REFERENCE, resolver=resolver))
        assert colors["india"].observation is None
        assert colors["india"].color == NEUTRAL_COLOR
        assert colors["india"].classification.status == "no_data"
