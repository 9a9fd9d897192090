"""
Unit tests for the virtual clock and periodic timer in geomapper.utils.timers.
"""
import asyncio
import pytest

from geomapper.utils.timers import AsyncioTimerScheduler, ManualTimerScheduler, PeriodicTimer


def test_manual_scheduler_fires_in_due_order():
    timers = ManualTimerScheduler()
    fired = []
    timers.call_later(30, lambda: fired.append("b"))
    timers.call_later(10, lambda: fired.append("a"))
    timers.call_later(30, lambda: fired.append("c"))

    assert timers.advance(29) == 1
    assert fired == ["a"]
    assert timers.advance(1) == 2
    assert fired == ["a", "b", "c"]
    assert timers.now_ms() == 30


def test_manual_scheduler_clock_reads_due_time_inside_callback():
    timers = ManualTimerScheduler(start_ms=100)
    seen = []
    timers.call_later(50, lambda: seen.append(timers.now_ms()))
    timers.advance(500)
    assert seen == [150]
    assert timers.now_ms() == 600


def test_manual_scheduler_cancelled_handle_does_not_fire():
    timers = ManualTimerScheduler()
    fired = []
    handle = timers.call_later(10, lambda: fired.append(1))
    handle.cancel()
    assert timers.pending_count == 0
    assert timers.advance(100) == 0
    assert fired == []


def test_manual_scheduler_runs_callbacks_scheduled_while_advancing():
    timers = ManualTimerScheduler()
    fired = []

    def first():
        fired.append(timers.now_ms())
        timers.call_later(10, lambda: fired.append(timers.now_ms()))

    timers.call_later(10, first)
    timers.advance(25)
    assert fired == [10, 20]


def test_manual_scheduler_rejects_negative_advance():
    with pytest.raises(ValueError):
        ManualTimerScheduler().advance(-1)


def test_periodic_timer_ticks_until_stopped():
    timers = ManualTimerScheduler()
    ticks = []
    ticker = PeriodicTimer(timers, 50, lambda: ticks.append(timers.now_ms()), name="test")
    ticker.start()
    assert ticker.is_running

    timers.advance(160)
    assert ticks == [50, 100, 150]

    ticker.stop()
    assert not ticker.is_running
    timers.advance(500)
    assert len(ticks) == 3


def test_periodic_timer_callback_may_stop_itself():
    timers = ManualTimerScheduler()
    ticks = []
    ticker = PeriodicTimer(timers, 10, lambda: (ticks.append(1), ticker.stop()))
    ticker.start()
    timers.advance(100)
    assert ticks == [1]


def test_periodic_timer_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        PeriodicTimer(ManualTimerScheduler(), 0, lambda: None)


@pytest.mark.asyncio
async def test_asyncio_scheduler_runs_callback_on_running_loop():
    timers = AsyncioTimerScheduler()
    done = asyncio.Event()
    start = timers.now_ms()
    timers.call_later(5, done.set)
    await asyncio.wait_for(done.wait(), timeout=1.0)
    assert timers.now_ms() >= start
