"""
Clock Scheduler Tests
=====================
Labels, re-arming and ordering of the minute and hourly timers.
"""
from datetime import datetime, timedelta, timezone

import pytest

from plantcare.workers.clock_scheduler import ClockScheduler


class _Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def fired():
    return []


@pytest.fixture
def make_scheduler(fired):
    def _make(now, on_minute=None, on_hour=None):
        clock = _Clock(now)
        scheduler = ClockScheduler(
            on_minute or (lambda m: fired.append(("minute", m))),
            on_hour or (lambda h: fired.append(("hour", h))),
            now_fn=clock,
        )
        return scheduler, clock

    return _make


def at(hour, minute=0, second=0, microsecond=0):
    return datetime(2024, 5, 1, hour, minute, second, microsecond, tzinfo=timezone.utc)


class TestArming:
    def test_first_ticks_on_next_boundaries(self, make_scheduler):
        scheduler, _ = make_scheduler(at(11, 42, 17))
        scheduler.arm()
        assert scheduler.next_minute == at(11, 43)
        assert scheduler.next_hour == at(12)

    def test_seconds_until_due(self, make_scheduler):
        scheduler, _ = make_scheduler(at(11, 42, 17))
        scheduler.arm()
        assert scheduler.seconds_until_due() == 43


class TestLabels:
    def test_early_hourly_firing_gets_upcoming_label(self, make_scheduler, fired):
        early = at(12) - timedelta(milliseconds=400)
        scheduler, _ = make_scheduler(early)
        assert scheduler.fire_hour(early) == 12
        assert fired == [("hour", 12)]
        assert scheduler.next_hour == at(13)

    def test_early_minute_firing_gets_upcoming_label(self, make_scheduler, fired):
        early = at(12, 5) - timedelta(milliseconds=400)
        scheduler, _ = make_scheduler(early)
        assert scheduler.fire_minute(early) == 5
        assert scheduler.next_minute == at(12, 6)

    def test_rearm_uses_time_after_callback(self, make_scheduler):
        scheduler, clock = make_scheduler(at(12))

        def slow_hour(_):
            clock.now = at(12, 59, 50)

        scheduler._on_hour = slow_hour
        scheduler.fire_hour(at(12))
        # The stalled callback skips forward rather than replaying 13:00
        assert scheduler.next_hour == at(14)


class TestRunPending:
    def test_minute_fires_before_hour(self, make_scheduler, fired):
        scheduler, clock = make_scheduler(at(11, 59, 30))
        scheduler.arm()
        clock.now = at(12)
        scheduler.run_pending()
        assert fired == [("minute", 0), ("hour", 12)]

    def test_nothing_due(self, make_scheduler, fired):
        scheduler, _ = make_scheduler(at(11, 30, 10))
        scheduler.arm()
        scheduler.run_pending()
        assert fired == []

    def test_within_tolerance_fires(self, make_scheduler, fired):
        scheduler, clock = make_scheduler(at(11, 30, 10))
        scheduler.arm()
        clock.now = at(11, 31) - timedelta(milliseconds=500)
        scheduler.run_pending()
        assert fired == [("minute", 31)]
        assert scheduler.next_minute == at(11, 32)

    def test_callback_errors_are_logged_and_timer_rearmed(self, make_scheduler, caplog):
        def broken(_):
            raise RuntimeError("sensor exploded")

        scheduler, clock = make_scheduler(at(11, 59, 30), on_minute=broken, on_hour=broken)
        scheduler.arm()
        clock.now = at(12)
        with caplog.at_level("ERROR", logger="plantcare.workers.clock_scheduler"):
            scheduler.run_pending()

        assert "sensor exploded" in caplog.text
        assert scheduler.next_minute == at(12, 1)
        assert scheduler.next_hour == at(13)


def test_start_and_stop(make_scheduler):
    scheduler, _ = make_scheduler(at(11, 30, 10))
    scheduler.start()
    try:
        assert scheduler.is_running()
    finally:
        scheduler.stop(timeout=5)
    assert not scheduler.is_running()
