"""
Clock Scheduler
===============

Two timers aligned to wall-clock boundaries, both driven from one
background thread so the minute and hourly callbacks never overlap.

Each firing is labelled with ``(now + 30 s).minute`` or
``(now + 30 min).hour`` and the timer is re-armed to
``floor(now + 90 s)`` / ``floor(now + 90 min)`` using a fresh ``now`` taken
after the callback. A slightly early firing therefore still gets the
upcoming label, and a long stall skips forward instead of replaying.

When both timers are due, the minute callback runs first so the hourly
median includes the sample of the boundary minute.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from plantcare.utils.time import (
    floor_hour,
    floor_minute,
    hour_label,
    local_now,
    minute_label,
    next_hour_boundary,
    next_minute_boundary,
)

logger = logging.getLogger(__name__)

# Fire a timer this early rather than sleeping again for a few milliseconds
EARLY_TOLERANCE = timedelta(seconds=1)


class ClockScheduler:
    """Minute and hour ticker running on a single thread."""

    def __init__(
        self,
        on_minute: Callable[[int], None],
        on_hour: Callable[[int], None],
        now_fn: Callable[[], datetime] = local_now,
    ) -> None:
        self._on_minute = on_minute
        self._on_hour = on_hour
        self._now = now_fn
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.next_minute: Optional[datetime] = None
        self.next_hour: Optional[datetime] = None

    # ==================== Arming ====================

    def arm(self) -> None:
        """Arm both timers at the next minute / hour boundary."""
        now = self._now()
        self.next_minute = floor_minute(now + timedelta(minutes=1))
        self.next_hour = floor_hour(now + timedelta(hours=1))
        logger.info("First minute tick at %s, first hourly tick at %s", self.next_minute, self.next_hour)

    def fire_minute(self, now: datetime) -> int:
        label = minute_label(now)
        try:
            self._on_minute(label)
        except Exception as e:
            logger.error("Error in minute tick %s: %s", label, e, exc_info=True)
        self.next_minute = next_minute_boundary(self._now())
        return label

    def fire_hour(self, now: datetime) -> int:
        label = hour_label(now)
        logger.info("Hourly tick %s", label)
        try:
            self._on_hour(label)
        except Exception as e:
            logger.error("Error in hourly tick %s: %s", label, e, exc_info=True)
        self.next_hour = next_hour_boundary(self._now())
        return label

    def run_pending(self) -> None:
        """Fire every timer that is due now, minute first."""
        now = self._now()
        if now + EARLY_TOLERANCE >= self.next_minute:
            self.fire_minute(now)
            now = self._now()
        if now + EARLY_TOLERANCE >= self.next_hour:
            self.fire_hour(now)

    def seconds_until_due(self) -> float:
        due = min(self.next_minute, self.next_hour)
        return (due - self._now()).total_seconds()

    # ==================== Scheduler Control ====================

    def start(self) -> None:
        """Start the scheduler background thread."""
        if self._thread is not None:
            logger.warning("Clock scheduler already running")
            return
        self._stop_event.clear()
        self.arm()
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="ClockScheduler")
        self._thread.start()
        logger.info("Clock scheduler started")

    def stop(self, timeout: float = 120.0) -> None:
        """Stop the scheduler, waiting for an in-flight tick to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Clock scheduler did not stop within %ss", timeout)
            self._thread = None
        logger.info("Clock scheduler stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            delay = self.seconds_until_due() - EARLY_TOLERANCE.total_seconds()
            if delay > 0:
                self._stop_event.wait(min(delay, 60.0))
                continue
            self.run_pending()
        logger.debug("Clock scheduler loop ended")
