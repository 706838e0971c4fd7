"""End-to-end region coloring.

Resolves every region's representative coordinate concurrently for one
time selection, then classifies each observation with the region's rule
set.

Example:
    >>> import regioncast as rc
    >>> axis = rc.TimeAxis.build(datetime.now())
    >>> regions = [rc.Region("a", [(20.0, 78.0), (20.5, 78.0), (20.5, 78.5)])]
    >>> colors = asyncio.run(rc.colorize_regions(regions, axis[axis.reference_index]))
    >>> colors["a"].color
    '#ff4444'
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Sequence

from regioncast.resolver import (
    WeatherResolver,
    normalize_selection,
    target_instant,
)
from regioncast.rules import DEFAULT_RULE_SETS, Classification, evaluate

if TYPE_CHECKING:
    from regioncast._types import TimeSelection
    from regioncast.location import Region
    from regioncast.results import Observation
    from regioncast.rules import RuleSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionColor:
    """Color decided for one region.

    Args:
        region_id: The region's identifier.
        color: Display color.
        classification: Full rule evaluation outcome.
        observation: Observation the color was derived from, or ``None``
            when the observation did not answer this request.
    """

    region_id: str
    color: str
    classification: Classification
    observation: Observation | None


async def colorize_regions(
    regions: Sequence[Region],
    selection: TimeSelection,
    rule_sets: Mapping[str, RuleSet] | None = None,
    resolver: WeatherResolver | None = None,
) -> dict[str, RegionColor]:
    """Resolve and classify every region for *selection*.

    Each region uses the rule set keyed by its ``data_source``. An
    observation whose coordinate or timestamp does not identify this
    request is discarded and the region gets the no-data color.

    Args:
        regions: Regions to color.
        selection: A timestamp or a ``(start, end)`` pair.
        rule_sets: Rule sets by data source; defaults to the temperature rules.
        resolver: Resolver to use; defaults to a new ``WeatherResolver``.

    Returns:
        Mapping of region id to its ``RegionColor``.
    """
    resolver = resolver if resolver is not None else WeatherResolver()
    rule_sets = rule_sets if rule_sets is not None else DEFAULT_RULE_SETS
    config = resolver.config
    selection = normalize_selection(selection, config.zone)
    target = target_instant(selection)

    centers = [region.center for region in regions]
    observations = await asyncio.gather(
        *(resolver.resolve(center, selection) for center in centers)
    )

    results: dict[str, RegionColor] = {}
    for region, center, observation in zip(regions, centers, observations):
        rule_set = rule_sets.get(region.data_source)
        if rule_set is None:
            logger.warning(
                "No rule set for data source %r (region %s)",
                region.data_source,
                region.region_id,
            )
        if not observation.matches(center, target, config.coordinate_precision):
            logger.debug("Discarding mismatched observation for %s", region.region_id)
            observation = None

        if rule_set is None or observation is None:
            classification = Classification(color=config.neutral_color, status="no_data")
        else:
            classification = evaluate(
                observation,
                rule_set,
                default_color=config.neutral_color,
                no_data_color=config.neutral_color,
            )
        results[region.region_id] = RegionColor(
            region_id=region.region_id,
            color=classification.color,
            classification=classification,
            observation=observation,
        )
    return results
