from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

NEAR_GOAL_RATIO = 0.8
HALFWAY_RATIO = 0.5


class ReminderState(str, Enum):
    idle = "idle"
    armed = "armed"


def reminder_delay_minutes(progress_ratio: float, base_frequency_minutes: float) -> float:
    if progress_ratio >= NEAR_GOAL_RATIO:
        return base_frequency_minutes * 3
    if progress_ratio >= HALFWAY_RATIO:
        return base_frequency_minutes * 1.5
    return base_frequency_minutes


def banner_text(next_reminder_time: Optional[datetime], now: datetime) -> str:
    if next_reminder_time is None:
        return "Reminders active"

    minutes = int((next_reminder_time - now).total_seconds() // 60)
    if minutes > 60:
        return f"Next reminder in {minutes // 60}h {minutes % 60}m"
    return f"Next reminder in {minutes} minutes"


class ReminderScheduler:
    """Single one-shot timer that re-arms itself from current progress.

    States are idle and armed(next_reminder_time). ``arm`` always cancels the
    pending timer before scheduling a new one, so at most one timer is
    outstanding. All calls must come from the event loop thread.
    """

    def __init__(
        self,
        progress_ratio: Callable[[], float],
        base_frequency: Callable[[], float],
        on_fire: Callable[[], Any],
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.progress_ratio = progress_ratio
        self.base_frequency = base_frequency
        self.on_fire = on_fire
        self.clock = clock
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self.next_reminder_time: Optional[datetime] = None
        self.delay_minutes: Optional[float] = None

    @property
    def state(self) -> ReminderState:
        return ReminderState.armed if self._handle is not None else ReminderState.idle

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self.next_reminder_time = None
        self.delay_minutes = None

    def arm(self) -> datetime:
        self.cancel()

        delay = reminder_delay_minutes(self.progress_ratio(), self.base_frequency())
        loop = self._loop or asyncio.get_running_loop()

        self.delay_minutes = delay
        self.next_reminder_time = self.clock() + timedelta(minutes=delay)
        self._handle = loop.call_later(delay * 60, self.fire)
        logger.debug("Next reminder in %.1f minutes", delay)
        return self.next_reminder_time

    def fire(self) -> None:
        self._handle = None
        self.next_reminder_time = None
        try:
            self.on_fire()
        finally:
            self.arm()

    def banner_text(self) -> str:
        return banner_text(self.next_reminder_time, self.clock())
