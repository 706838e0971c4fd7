"""RegionCast: color map regions by the weather at a chosen time.

Example:
    >>> import asyncio
    >>> from datetime import datetime
    >>> import regioncast as rc
    >>>
    >>> axis = rc.TimeAxis.build(datetime.now())
    >>> ctrl = rc.PlaybackController.from_axis(axis)
    >>> resolver = rc.WeatherResolver()
    >>> obs = asyncio.run(
    ...     resolver.resolve(rc.coordinate(20.0, 78.0), ctrl.selector.times(axis))
    ... )
    >>> rc.classify(obs, rc.DEFAULT_TEMPERATURE_RULES)
    '#ff4444'
"""

from regioncast.__about__ import __version__
from regioncast.api import RegionColor, colorize_regions
from regioncast.cache import CacheStatus, ObservationCache
from regioncast.config import Config, configure
from regioncast.exceptions import (
    ConfigurationError,
    ProviderError,
    RegionCastError,
)
from regioncast.fallback import fallback
from regioncast.location import Coordinate, Region, centroid, coordinate
from regioncast.playback import (
    PlaybackController,
    PlaybackTimer,
    PointSelector,
    RangeSelector,
)
from regioncast.resolver import WeatherResolver
from regioncast.results import Observation
from regioncast.rules import (
    DEFAULT_RULE_SETS,
    DEFAULT_TEMPERATURE_RULES,
    NEUTRAL_COLOR,
    Classification,
    ClassificationRule,
    RuleSet,
    classify,
    evaluate,
    load_rule_sets,
)
from regioncast.timeline import TimeAxis

__all__ = [
    # Version
    "__version__",
    # End-to-end
    "RegionColor",
    "colorize_regions",
    # Time
    "TimeAxis",
    "PlaybackController",
    "PlaybackTimer",
    "PointSelector",
    "RangeSelector",
    # Locations
    "Coordinate",
    "Region",
    "centroid",
    "coordinate",
    # Resolution
    "CacheStatus",
    "Observation",
    "ObservationCache",
    "WeatherResolver",
    "fallback",
    # Classification
    "DEFAULT_RULE_SETS",
    "DEFAULT_TEMPERATURE_RULES",
    "NEUTRAL_COLOR",
    "Classification",
    "ClassificationRule",
    "RuleSet",
    "classify",
    "evaluate",
    "load_rule_sets",
    # Configuration
    "Config",
    "configure",
    # Exceptions
    "ConfigurationError",
    "ProviderError",
    "RegionCastError",
]
