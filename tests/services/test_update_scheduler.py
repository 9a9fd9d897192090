"""
Unit tests for the UpdateScheduler throttle.
"""
import pytest

from geomapper.domains.location.entities.position import RawSample
from geomapper.domains.location.services.update_scheduler import ScheduleDecision, UpdateScheduler


def _sample(timers, lat=51.4918, lng=11.9565, accuracy=10.0):
    return RawSample(lat=lat, lng=lng, accuracy=accuracy, timestamp_ms=timers.now_ms())


@pytest.fixture
def processed():
    return []


@pytest.fixture
def scheduler(manual_timers, processed):
    return UpdateScheduler(
        timers=manual_timers,
        process=processed.append,
        is_valid=lambda s: s.lat != 0,
        interval_ms=500
    )


def test_first_sample_is_processed_immediately(scheduler, manual_timers, processed):
    assert scheduler.submit(_sample(manual_timers)) == ScheduleDecision.IMMEDIATE
    assert len(processed) == 1
    assert scheduler.last_accepted_ms == manual_timers.now_ms()


def test_burst_processes_first_and_latest_only(scheduler, manual_timers, processed):
    decisions = []
    for i in range(4):
        decisions.append(scheduler.submit(_sample(manual_timers, lat=51.4918 + i * 1e-5)))
        manual_timers.advance(100)

    assert decisions == [ScheduleDecision.IMMEDIATE] + [ScheduleDecision.QUEUED] * 3
    assert scheduler.pending_count == 3
    assert scheduler.is_flush_scheduled

    manual_timers.advance(500)

    assert len(processed) == 2
    assert processed[-1].lat == pytest.approx(51.4918 + 3e-5)
    assert scheduler.pending_count == 0
    assert not scheduler.is_flush_scheduled


def test_single_flush_timer_per_window(scheduler, manual_timers):
    scheduler.submit(_sample(manual_timers))
    manual_timers.advance(10)
    scheduler.submit(_sample(manual_timers))
    scheduler.submit(_sample(manual_timers))
    assert manual_timers.pending_count == 1


def test_flush_skips_invalid_samples(scheduler, manual_timers, processed):
    scheduler.submit(_sample(manual_timers))
    manual_timers.advance(50)
    scheduler.submit(_sample(manual_timers, lat=51.4919))
    scheduler.submit(_sample(manual_timers, lat=0.0))
    manual_timers.advance(500)
    assert processed[-1].lat == 51.4919


def test_flush_with_only_invalid_samples_processes_nothing(scheduler, manual_timers, processed):
    scheduler.submit(_sample(manual_timers))
    manual_timers.advance(50)
    scheduler.submit(_sample(manual_timers, lat=0.0))
    manual_timers.advance(500)
    assert len(processed) == 1


def test_flush_does_not_reset_throttle_window(scheduler, manual_timers, processed):
    scheduler.submit(_sample(manual_timers))
    first_accept = scheduler.last_accepted_ms
    manual_timers.advance(100)
    scheduler.submit(_sample(manual_timers, lat=51.4919))
    manual_timers.advance(500)
    assert scheduler.last_accepted_ms == first_accept
    # The window has elapsed, so the next sample goes straight through
    assert scheduler.submit(_sample(manual_timers, lat=51.4920)) == ScheduleDecision.IMMEDIATE


def test_sample_at_exact_interval_is_immediate(scheduler, manual_timers):
    scheduler.submit(_sample(manual_timers))
    manual_timers.advance(500)
    assert scheduler.submit(_sample(manual_timers)) == ScheduleDecision.IMMEDIATE


def test_flush_is_not_reentrant(manual_timers):
    calls = []

    def process(sample):
        calls.append(sample)
        assert scheduler.flush() is None

    scheduler = UpdateScheduler(manual_timers, process=process, is_valid=lambda s: True)
    scheduler.submit(_sample(manual_timers))
    manual_timers.advance(1)
    scheduler.submit(_sample(manual_timers))
    assert scheduler.flush() is not None
    assert len(calls) == 2
    assert not scheduler.is_flushing


def test_bypass_skips_throttle(manual_timers, processed):
    scheduler = UpdateScheduler(manual_timers, process=processed.append, is_valid=lambda s: True, bypass=lambda: True)
    for _ in range(5):
        assert scheduler.submit(_sample(manual_timers)) == ScheduleDecision.IMMEDIATE
    assert len(processed) == 5


def test_validate_immediate_rejects_invalid(manual_timers, processed):
    scheduler = UpdateScheduler(
        manual_timers, process=processed.append, is_valid=lambda s: s.lat != 0, validate_immediate=True
    )
    assert scheduler.submit(_sample(manual_timers, lat=0.0)) == ScheduleDecision.REJECTED
    assert processed == []
    assert scheduler.last_accepted_ms is None


def test_immediate_path_skips_validation_by_default(scheduler, manual_timers, processed):
    assert scheduler.submit(_sample(manual_timers, lat=0.0)) == ScheduleDecision.IMMEDIATE
    assert len(processed) == 1


def test_cancel_drops_pending_and_timer(scheduler, manual_timers, processed):
    scheduler.submit(_sample(manual_timers))
    manual_timers.advance(10)
    scheduler.submit(_sample(manual_timers))

    scheduler.cancel()
    manual_timers.advance(1000)

    assert len(processed) == 1
    assert scheduler.pending_count == 0
    assert scheduler.last_accepted_ms is None
