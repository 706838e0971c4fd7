"""Resolve a coordinate and time selection to a weather observation.

``WeatherResolver.resolve`` never raises for data-source problems: a
failed or timed-out remote query degrades to a fallback observation, and
individual missing fields are filled by the fallback generator. Callers
branch on ``Observation.fallback`` / ``Observation.synthesized`` instead
of catching exceptions.

Example:
    >>> resolver = WeatherResolver()
    >>> obs = asyncio.run(resolver.resolve(Coordinate(20.0, 78.0), datetime(2025, 8, 5, 12)))
    >>> obs.fallback
    False
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, Any

import pandas as pd
import requests

from regioncast.cache import ObservationCache
from regioncast.config import Config, get_default_config
from regioncast.exceptions import ProviderError
from regioncast.fallback import fallback_field, fallback_observation
from regioncast.providers import get_provider
from regioncast.results import HOURLY_FIELDS, Observation

if TYPE_CHECKING:
    from regioncast._types import DateRange, TimeSelection
    from regioncast.location import Coordinate
    from regioncast.providers.base import DataProvider

logger = logging.getLogger(__name__)

REQUEST_FIELDS: tuple[str, ...] = tuple(HOURLY_FIELDS)

_MATCH_TOLERANCE = pd.Timedelta(hours=1)

_ABSORBED_ERRORS = (
    ProviderError,
    asyncio.TimeoutError,
    requests.RequestException,
    ValueError,
    KeyError,
    TypeError,
    IndexError,
)


def target_instant(selection: TimeSelection) -> datetime:
    """Return the instant an observation is resolved for.

    A single timestamp is its own target; a range targets its midpoint.
    """
    if isinstance(selection, tuple):
        start, end = sorted(selection)
        return start + (end - start) / 2
    return selection


def _to_local(instant: datetime, zone: tzinfo) -> datetime:
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(zone).replace(tzinfo=None)


def normalize_selection(selection: TimeSelection, zone: tzinfo) -> TimeSelection:
    """Localize a range whose endpoints mix naive and aware timestamps.

    Both endpoints of such a range become naive wall-clock time in
    *zone*. Any other selection is returned unchanged.
    """
    if isinstance(selection, tuple):
        start, end = selection
        if (start.tzinfo is None) != (end.tzinfo is None):
            return (_to_local(start, zone), _to_local(end, zone))
    return selection


def date_range_for(selection: TimeSelection) -> DateRange:
    """Return the inclusive ISO date range to query for *selection*."""
    if isinstance(selection, tuple):
        start, end = sorted(selection)
    else:
        start = end = selection
    return (start.date().isoformat(), end.date().isoformat())


def select_row(frame: pd.DataFrame, target: datetime) -> int:
    """Return the position of the row nearest *target* within one hour.

    Ties resolve to the earlier row; with no row in tolerance the first
    row is used.
    """
    deltas = (frame["time"] - pd.Timestamp(target)).abs()
    within = deltas[deltas < _MATCH_TOLERANCE]
    if within.empty:
        logger.debug("No hourly row within 1h of %s, using first row", target)
        return 0
    return int(deltas.index.get_loc(within.idxmin()))


class WeatherResolver:
    """Resolve weather observations through a cache and a remote provider.

    Each resolver owns its cache, so a fresh resolver is a fresh cache.

    Args:
        config: Configuration snapshot; defaults to the module default.
        provider: Weather data source; defaults to ``config.provider``.
        cache: Observation cache; defaults to a new ``ObservationCache``.
    """

    def __init__(
        self,
        config: Config | None = None,
        provider: DataProvider | None = None,
        cache: ObservationCache | None = None,
    ) -> None:
        self._config = config if config is not None else get_default_config()
        self._provider = (
            provider
            if provider is not None
            else get_provider(self._config.provider, self._config)
        )
        self._cache = cache if cache is not None else ObservationCache(self._config)
        self._sweeper: asyncio.Task[None] | None = None

    @property
    def config(self) -> Config:
        return self._config

    @property
    def provider(self) -> DataProvider:
        return self._provider

    @property
    def cache(self) -> ObservationCache:
        return self._cache

    # -- cache maintenance ---------------------------------------------

    def start_sweeper(self) -> None:
        """Start the periodic cache purge; a no-op if already running."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(
            self._cache.sweep_forever(self._config.sweep_interval_seconds)
        )
        logger.debug(
            "Cache sweeper started (every %.0fs)", self._config.sweep_interval_seconds
        )

    async def stop_sweeper(self) -> None:
        """Cancel the periodic cache purge and wait for it to finish."""
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> WeatherResolver:
        self.start_sweeper()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop_sweeper()

    # -- resolution ----------------------------------------------------

    def _local(self, instant: datetime) -> datetime:
        """Express *instant* as naive wall-clock time in the configured zone."""
        return _to_local(instant, self._config.zone)

    async def resolve(
        self,
        coordinate: Coordinate,
        selection: TimeSelection | None = None,
    ) -> Observation:
        """Resolve the observation for *coordinate* at *selection*.

        Args:
            coordinate: Representative point of a region.
            selection: A timestamp, a ``(start, end)`` pair, or ``None``
                for the current instant.

        Returns:
            The observation. It is fallback-flagged if the remote source
            failed; it never raises for remote failures.
        """
        if selection is None:
            selection = datetime.now(self._config.zone).replace(tzinfo=None)
        selection = normalize_selection(selection, self._config.zone)
        target = target_instant(selection)
        if isinstance(selection, tuple):
            date_range = date_range_for(
                (self._local(selection[0]), self._local(selection[1]))
            )
        else:
            date_range = date_range_for(self._local(selection))
        cache_key = self._cache.build_key(coordinate, date_range, REQUEST_FIELDS)

        entry = self._cache.get_entry(cache_key)
        if entry is not None:
            if entry.observation.timestamp == target:
                return entry.observation
            # same query window, different hour: reuse the cached series
            observation = self._build_observation(entry.series, coordinate, target)
            self._cache.store(
                cache_key, observation, entry.series, created_at=entry.created_at
            )
            return observation

        try:
            frame = await asyncio.wait_for(
                asyncio.to_thread(
                    self._provider.fetch_hourly, coordinate, date_range, REQUEST_FIELDS
                ),
                timeout=self._config.request_timeout * self._config.max_retries,
            )
            observation = self._build_observation(frame, coordinate, target)
        except _ABSORBED_ERRORS as exc:
            logger.warning(
                "Weather query for (%.4f, %.4f) %s..%s failed, using fallback data: %s",
                coordinate.lat,
                coordinate.lon,
                date_range[0],
                date_range[1],
                str(exc) or type(exc).__name__,
            )
            return fallback_observation(coordinate, target)

        self._cache.store(cache_key, observation, frame)
        return observation

    def _build_observation(
        self,
        frame: pd.DataFrame,
        coordinate: Coordinate,
        target: datetime,
    ) -> Observation:
        """Pick the row for *target* and fill missing fields synthetically."""
        row = select_row(frame, self._local(target))
        values: dict[str, float] = {}
        synthesized: set[str] = set()
        for api_name, field_name in HOURLY_FIELDS.items():
            value = frame[api_name].iloc[row] if api_name in frame.columns else None
            if value is None or pd.isna(value):
                values[field_name] = fallback_field(
                    field_name, coordinate.lat, coordinate.lon
                )
                synthesized.add(field_name)
            else:
                values[field_name] = float(value)
        if synthesized:
            logger.debug(
                "Filled %s with fallback values for (%.4f, %.4f)",
                sorted(synthesized),
                coordinate.lat,
                coordinate.lon,
            )
        return Observation(
            values=values,
            timestamp=target,
            coordinate=coordinate,
            fallback=False,
            synthesized=frozenset(synthesized),
        )
