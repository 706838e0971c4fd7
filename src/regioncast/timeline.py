"""Discrete time axis around a reference instant.

The axis is anchored at midnight of the reference day and spans
``window_days`` before and after it at a fixed step, both bounds
inclusive. With the defaults (15 days, hourly) it holds 721 entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator

from regioncast.config import get_default_config

logger = logging.getLogger(__name__)

_DEFAULT_STEP = timedelta(hours=1)


def midnight(instant: datetime) -> datetime:
    """Return the start of *instant*'s calendar day, keeping its tzinfo."""
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class TimeAxis:
    """Immutable, evenly spaced sequence of timestamps.

    Build instances with :meth:`build`; the axis is never rebuilt during
    a session.

    Example:
        >>> axis = TimeAxis.build(datetime(2025, 8, 5, 12, 0))
        >>> len(axis)
        721
        >>> axis[0]
        datetime.datetime(2025, 7, 21, 0, 0)
    """

    timestamps: tuple[datetime, ...]
    reference: datetime
    step: timedelta = _DEFAULT_STEP

    @classmethod
    def build(
        cls,
        reference: datetime,
        window_days: int | None = None,
        step: timedelta = _DEFAULT_STEP,
    ) -> TimeAxis:
        """Build the axis around *reference*.

        Args:
            reference: The "now" instant of the session.
            window_days: Days before and after midnight of the reference day;
                defaults to ``Config.window_days``.
            step: Spacing between consecutive entries.
        """
        if window_days is None:
            window_days = get_default_config().window_days
        anchor = midnight(reference)
        start = anchor - timedelta(days=window_days)
        end = anchor + timedelta(days=window_days)
        count = int((end - start) / step) + 1
        stamps = tuple(start + i * step for i in range(count))
        logger.debug(
            "Built time axis %s .. %s (%d entries)", stamps[0], stamps[-1], count
        )
        return cls(timestamps=stamps, reference=reference, step=step)

    def __len__(self) -> int:
        return len(self.timestamps)

    def __getitem__(self, index: int) -> datetime:
        return self.timestamps[index]

    def __iter__(self) -> Iterator[datetime]:
        return iter(self.timestamps)

    @property
    def max_index(self) -> int:
        return len(self.timestamps) - 1

    @property
    def start(self) -> datetime:
        return self.timestamps[0]

    @property
    def end(self) -> datetime:
        return self.timestamps[-1]

    def index_of(self, timestamp: datetime) -> int | None:
        """Return the index of the entry nearest *timestamp* within one step.

        Ties resolve to the earlier entry.

        Returns:
            The matching index, or ``None`` when no entry is strictly
            closer than one step.
        """
        offset = (timestamp - self.start) // self.step
        best: int | None = None
        best_delta: timedelta | None = None
        for i in (offset, offset + 1):
            if not 0 <= i < len(self.timestamps):
                continue
            delta = abs(self.timestamps[i] - timestamp)
            if delta < self.step and (best_delta is None or delta < best_delta):
                best, best_delta = i, delta
        return best

    def index_or_zero(self, timestamp: datetime) -> int:
        """Like :meth:`index_of` but maps "not found" to index 0."""
        index = self.index_of(timestamp)
        return 0 if index is None else index

    @property
    def reference_index(self) -> int:
        """Index nearest the reference instant."""
        return self.index_or_zero(self.reference)

    def clamp(self, index: int) -> int:
        """Clamp *index* into ``[0, max_index]``."""
        return max(0, min(self.max_index, int(index)))

    def at(self, index: int) -> datetime:
        """Return the timestamp at *index*, clamped to the axis bounds."""
        return self.timestamps[self.clamp(index)]
