"""Time selection and timeline playback.

``PlaybackController`` is a plain state machine over axis indices: the
caller (or :class:`PlaybackTimer`) invokes :meth:`PlaybackController.tick`
on a fixed cadence, and the controller only decides where the selector
moves next. It knows the axis length but not its timestamps.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable, Union

from regioncast.exceptions import ConfigurationError

if TYPE_CHECKING:
    from regioncast.timeline import TimeAxis

logger = logging.getLogger(__name__)

# Speed multiplier -> milliseconds between ticks
SPEEDS: dict[float, int] = {0.5: 2000, 1.0: 1000, 2.0: 500, 4.0: 250}

_RANGE_MODE_HALF_WIDTH = 24
_JUMP_HALF_WIDTH = 12
_TICK_ADVANCE = 1


@dataclass(frozen=True)
class PointSelector:
    """A single axis index."""

    index: int

    def times(self, axis: TimeAxis) -> datetime:
        """Resolve the selector to its timestamp on *axis*."""
        return axis.at(self.index)


@dataclass(frozen=True)
class RangeSelector:
    """An inclusive pair of axis indices, ``start <= end``."""

    start: int
    end: int

    @property
    def width(self) -> int:
        return self.end - self.start

    def times(self, axis: TimeAxis) -> tuple[datetime, datetime]:
        """Resolve the selector to its ``(start, end)`` timestamps on *axis*."""
        return (axis.at(self.start), axis.at(self.end))


Selector = Union[PointSelector, RangeSelector]


class PlaybackController:
    """Selector state, play flag and speed for timeline animation.

    No operation raises on index input: every index is clamped silently
    into ``[0, max_index]``.

    Args:
        max_index: Last valid axis index.
        reference_index: Index of "now", used as the initial point and by
            :meth:`jump_to_reference`.
        speed: Initial speed multiplier, one of :data:`SPEEDS`.

    Example:
        >>> ctrl = PlaybackController(max_index=360, reference_index=360)
        >>> ctrl.play()
        >>> ctrl.tick()
        PointSelector(index=0)
    """

    def __init__(
        self,
        max_index: int,
        reference_index: int = 0,
        speed: float = 1.0,
    ) -> None:
        self._max_index = max(0, int(max_index))
        self._reference_index = self._clamp(reference_index)
        self._selector: Selector = PointSelector(self._reference_index)
        self._playing = False
        self._speed = 1.0
        self.set_speed(speed)

    @classmethod
    def from_axis(cls, axis: TimeAxis, speed: float = 1.0) -> PlaybackController:
        """Create a controller spanning *axis*, starting at its reference index."""
        return cls(
            max_index=axis.max_index,
            reference_index=axis.reference_index,
            speed=speed,
        )

    # -- state ---------------------------------------------------------

    @property
    def selector(self) -> Selector:
        return self._selector

    @property
    def range_mode(self) -> bool:
        return isinstance(self._selector, RangeSelector)

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def max_index(self) -> int:
        return self._max_index

    @property
    def reference_index(self) -> int:
        return self._reference_index

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def interval(self) -> float:
        """Seconds between ticks at the current speed."""
        return SPEEDS[self._speed] / 1000.0

    def _clamp(self, index: int) -> int:
        return max(0, min(self._max_index, int(index)))

    def _current_index(self) -> int:
        if isinstance(self._selector, RangeSelector):
            return self._selector.start
        return self._selector.index

    # -- user actions --------------------------------------------------

    def set_mode(self, range_mode: bool) -> Selector:
        """Switch between point and range mode.

        Entering range mode opens a window of 24 indices either side of
        the current point; leaving it collapses to the range start.
        Requesting the mode already active leaves the selector untouched.
        """
        if range_mode == self.range_mode:
            return self._selector
        current = self._current_index()
        if range_mode:
            self._selector = RangeSelector(
                self._clamp(current - _RANGE_MODE_HALF_WIDTH),
                self._clamp(current + _RANGE_MODE_HALF_WIDTH),
            )
        else:
            self._selector = PointSelector(current)
        logger.debug("Selection mode changed: %s", self._selector)
        return self._selector

    def jump_to_reference(self) -> Selector:
        """Return the selector to "now"."""
        ref = self._reference_index
        if self.range_mode:
            self._selector = RangeSelector(
                self._clamp(ref - _JUMP_HALF_WIDTH),
                self._clamp(ref + _JUMP_HALF_WIDTH),
            )
        else:
            self._selector = PointSelector(ref)
        return self._selector

    def select(self, index: int) -> Selector:
        """Scrub to a single index, switching to point mode."""
        self._selector = PointSelector(self._clamp(index))
        return self._selector

    def select_range(self, start: int, end: int) -> Selector:
        """Scrub to an index range, switching to range mode."""
        lo, hi = sorted((self._clamp(start), self._clamp(end)))
        self._selector = RangeSelector(lo, hi)
        return self._selector

    def play(self) -> None:
        """Start playback. The selector does not move until the next tick."""
        self._playing = True

    def pause(self) -> None:
        self._playing = False

    def toggle(self) -> bool:
        """Flip the play flag and return the new state."""
        self._playing = not self._playing
        return self._playing

    def set_speed(self, multiplier: float) -> None:
        """Change the tick cadence.

        Raises:
            ConfigurationError: If *multiplier* is not one of :data:`SPEEDS`.
        """
        key = float(multiplier)
        if key not in SPEEDS:
            valid = ", ".join(f"{s:g}x" for s in SPEEDS)
            raise ConfigurationError(
                what=f"Unsupported playback speed: {multiplier!r}",
                cause=f"Supported speeds are: {valid}",
                fix=f"Use one of: {valid}",
            )
        self._speed = key

    # -- transitions ---------------------------------------------------

    def tick(self) -> Selector:
        """Advance the selector by one index, wrapping at the axis end.

        A paused controller returns its selector unchanged.
        """
        if not self._playing:
            return self._selector
        sel = self._selector
        if isinstance(sel, RangeSelector):
            if sel.end + _TICK_ADVANCE > self._max_index:
                self._selector = RangeSelector(0, self._clamp(sel.width))
            else:
                self._selector = RangeSelector(
                    sel.start + _TICK_ADVANCE, sel.end + _TICK_ADVANCE
                )
        else:
            nxt = sel.index + _TICK_ADVANCE
            self._selector = PointSelector(0 if nxt > self._max_index else nxt)
        return self._selector


class PlaybackTimer:
    """Drive a controller's :meth:`~PlaybackController.tick` from asyncio.

    Exactly one timer task exists at a time. Changing speed through
    :meth:`set_speed` replaces the running task instead of adding one.
    An exception raised by ``on_tick`` is logged and playback continues.

    Args:
        controller: The state machine to advance.
        on_tick: Optional callback receiving each new selector.
        sleep: Awaitable sleep function, injectable for tests.
    """

    def __init__(
        self,
        controller: PlaybackController,
        on_tick: Callable[[Selector], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._controller = controller
        self._on_tick = on_tick
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start playing; a no-op when a timer task is already running.

        Must be called from inside a running event loop.
        """
        self._controller.play()
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Pause the controller and cancel the timer task."""
        self._controller.pause()
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def aclose(self) -> None:
        """Pause the controller, cancel the timer task and wait for it to end."""
        self._controller.pause()
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def set_speed(self, multiplier: float) -> None:
        """Change speed; a running timer restarts at the new cadence."""
        self._controller.set_speed(multiplier)
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self._controller.playing:
            await self._sleep(self._controller.interval)
            if not self._controller.playing:
                break
            selector = self._controller.tick()
            if self._on_tick is None:
                continue
            try:
                self._on_tick(selector)
            except Exception:
                logger.exception("Playback tick callback failed for %s", selector)
