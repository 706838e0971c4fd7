"""Tests for the playback state machine and its asyncio timer."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

import pytest

from regioncast.exceptions import ConfigurationError
from regioncast.playback import (
    SPEEDS,
    PlaybackController,
    PlaybackTimer,
    PointSelector,
    RangeSelector,
    Selector,
)
from regioncast.timeline import TimeAxis


@pytest.fixture
def ctrl() -> PlaybackController:
    """Controller over a 361-entry axis starting at index 100."""
    return PlaybackController(max_index=360, reference_index=100)


@pytest.mark.unit
class TestInitialState:
    """Controller construction."""

    def test_starts_paused_at_reference(self, ctrl: PlaybackController) -> None:
        assert ctrl.selector == PointSelector(100)
        assert not ctrl.playing
        assert not ctrl.range_mode
        assert ctrl.speed == 1.0
        assert ctrl.interval == 1.0

    def test_reference_clamped(self) -> None:
        assert PlaybackController(max_index=10, reference_index=50).selector == PointSelector(10)

    def test_from_axis(self) -> None:
        axis = TimeAxis.build(datetime(2025, 8, 5, 12, 0))
        ctrl = PlaybackController.from_axis(axis)
        assert ctrl.max_index == axis.max_index
        assert ctrl.selector == PointSelector(axis.reference_index)


@pytest.mark.unit
class TestTick:
    """Advancing and wrapping the selector."""

    def test_paused_tick_is_noop(self, ctrl: PlaybackController) -> None:
        assert ctrl.tick() == PointSelector(100)

    def test_play_does_not_advance_immediately(self, ctrl: PlaybackController) -> None:
        ctrl.play()
        assert ctrl.selector == PointSelector(100)
        assert ctrl.tick() == PointSelector(101)

    def test_point_wraps_to_zero(self, ctrl: PlaybackController) -> None:
        ctrl.select(360)
        ctrl.play()
        assert ctrl.tick() == PointSelector(0)

    def test_point_reaches_last_index(self, ctrl: PlaybackController) -> None:
        ctrl.select(359)
        ctrl.play()
        assert ctrl.tick() == PointSelector(360)

    def test_range_advances(self, ctrl: PlaybackController) -> None:
        ctrl.select_range(10, 20)
        ctrl.play()
        assert ctrl.tick() == RangeSelector(11, 21)

    def test_range_wraps_keeping_width(self, ctrl: PlaybackController) -> None:
        ctrl.select_range(349, 360)
        ctrl.play()
        assert ctrl.tick() == RangeSelector(0, 11)

    def test_range_reaches_last_index(self, ctrl: PlaybackController) -> None:
        ctrl.select_range(348, 359)
        ctrl.play()
        assert ctrl.tick() == RangeSelector(349, 360)

    def test_wraparound_full_cycle(self) -> None:
        ctrl = PlaybackController(max_index=3)
        ctrl.play()
        seen = [ctrl.tick().index for _ in range(5)]  # type: ignore[union-attr]
        assert seen == [1, 2, 3, 0, 1]


@pytest.mark.unit
class TestModes:
    """Point/range switching and jump to reference."""

    def test_enter_range_mode(self, ctrl: PlaybackController) -> None:
        assert ctrl.set_mode(True) == RangeSelector(76, 124)
        assert ctrl.range_mode

    def test_enter_range_mode_clamped(self, ctrl: PlaybackController) -> None:
        ctrl.select(5)
        assert ctrl.set_mode(True) == RangeSelector(0, 29)
        ctrl.select(350)
        assert ctrl.set_mode(True) == RangeSelector(326, 360)

    def test_leave_range_mode_uses_start(self, ctrl: PlaybackController) -> None:
        ctrl.select_range(40, 80)
        assert ctrl.set_mode(False) == PointSelector(40)

    def test_same_mode_is_noop(self, ctrl: PlaybackController) -> None:
        ctrl.select_range(40, 80)
        assert ctrl.set_mode(True) == RangeSelector(40, 80)

    def test_jump_point(self, ctrl: PlaybackController) -> None:
        ctrl.select(3)
        assert ctrl.jump_to_reference() == PointSelector(100)

    def test_jump_range(self, ctrl: PlaybackController) -> None:
        ctrl.select_range(0, 5)
        assert ctrl.jump_to_reference() == RangeSelector(88, 112)

    def test_jump_range_clamped(self) -> None:
        ctrl = PlaybackController(max_index=360, reference_index=355)
        ctrl.select_range(0, 5)
        assert ctrl.jump_to_reference() == RangeSelector(343, 360)

    def test_select_clamps(self, ctrl: PlaybackController) -> None:
        assert ctrl.select(-4) == PointSelector(0)
        assert ctrl.select(999) == PointSelector(360)

    def test_select_range_orders_and_clamps(self, ctrl: PlaybackController) -> None:
        assert ctrl.select_range(500, 300) == RangeSelector(300, 360)


@pytest.mark.unit
class TestSpeedAndFlags:
    """Speed table and play flag."""

    @pytest.mark.parametrize(("multiplier", "ms"), sorted(SPEEDS.items()))
    def test_speed_intervals(
        self, ctrl: PlaybackController, multiplier: float, ms: int
    ) -> None:
        ctrl.set_speed(multiplier)
        assert ctrl.interval == ms / 1000.0

    def test_unknown_speed_rejected(self, ctrl: PlaybackController) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported playback speed"):
            ctrl.set_speed(3)
        assert ctrl.speed == 1.0

    def test_toggle(self, ctrl: PlaybackController) -> None:
        assert ctrl.toggle() is True
        assert ctrl.toggle() is False

    def test_pause_stops_ticks(self, ctrl: PlaybackController) -> None:
        ctrl.play()
        ctrl.tick()
        ctrl.pause()
        assert ctrl.tick() == PointSelector(101)

    def test_selector_times(self) -> None:
        axis = TimeAxis.build(datetime(2025, 8, 5, 12, 0))
        assert PointSelector(0).times(axis) == axis.start
        assert RangeSelector(0, 2).times(axis) == (axis[0], axis[2])


class _FakeSleep:
    """Awaitable sleep that records intervals and yields to the loop."""

    def __init__(self) -> None:
        self.intervals: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.intervals.append(seconds)
        await asyncio.sleep(0)


@pytest.mark.unit
class TestPlaybackTimer:
    """Driving tick() from an asyncio task."""

    def test_timer_ticks_and_stops(self) -> None:
        ctrl = PlaybackController(max_index=360, reference_index=0)
        sleep = _FakeSleep()
        seen: list[Selector] = []
        timer = PlaybackTimer(ctrl, on_tick=seen.append, sleep=sleep)

        async def scenario() -> None:
            timer.start()
            while len(seen) < 3:
                await asyncio.sleep(0)
            timer.stop()

        asyncio.run(scenario())
        assert seen[:3] == [PointSelector(1), PointSelector(2), PointSelector(3)]
        assert not ctrl.playing
        assert not timer.running
        assert sleep.intervals[0] == 1.0

    def test_start_is_idempotent(self) -> None:
        ctrl = PlaybackController(max_index=360)
        timer = PlaybackTimer(ctrl, sleep=_FakeSleep())

        async def scenario() -> None:
            timer.start()
            first = timer._task
            timer.start()
            assert timer._task is first
            timer.stop()

        asyncio.run(scenario())

    def test_set_speed_replaces_task(self) -> None:
        ctrl = PlaybackController(max_index=360)
        sleep = _FakeSleep()
        timer = PlaybackTimer(ctrl, sleep=sleep)

        async def scenario() -> None:
            timer.start()
            first = timer._task
            await asyncio.sleep(0)
            timer.set_speed(4)
            assert timer._task is not first
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            assert first is not None and first.done()
            assert timer.running
            timer.stop()

        asyncio.run(scenario())
        assert 0.25 in sleep.intervals

    def test_set_speed_when_stopped_only_changes_speed(self) -> None:
        ctrl = PlaybackController(max_index=360)
        timer = PlaybackTimer(ctrl, sleep=_FakeSleep())
        timer.set_speed(2)
        assert ctrl.speed == 2.0
        assert not timer.running

    def test_failing_callback_keeps_ticking(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        ctrl = PlaybackController(max_index=360, reference_index=0)
        calls: list[Selector] = []

        def on_tick(selector: Selector) -> None:
            calls.append(selector)
            raise RuntimeError("render failed")

        timer = PlaybackTimer(ctrl, on_tick=on_tick, sleep=_FakeSleep())

        async def scenario() -> None:
            timer.start()
            while len(calls) < 3:
                await asyncio.sleep(0)
            assert timer.running
            assert ctrl.playing
            timer.stop()

        with caplog.at_level(logging.ERROR, logger="regioncast.playback"):
            asyncio.run(scenario())
        assert calls[:3] == [PointSelector(1), PointSelector(2), PointSelector(3)]
        assert "Playback tick callback failed" in caplog.text

    def test_aclose_waits_for_task(self) -> None:
        ctrl = PlaybackController(max_index=360)
        timer = PlaybackTimer(ctrl, sleep=_FakeSleep())

        async def scenario() -> None:
            timer.start()
            task = timer._task
            await asyncio.sleep(0)
            await timer.aclose()
            assert task is not None and task.cancelled()
            assert not timer.running
            assert not ctrl.playing
            await timer.aclose()

        asyncio.run(scenario())
