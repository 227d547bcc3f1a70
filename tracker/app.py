from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from .dispatcher import Banner, NotificationDispatcher, SystemNotifier
from .progress import ActionResult, ProgressTracker, TrackerEvent
from .rewards import catalog_view
from .scheduler import ReminderScheduler
from .state import MAX_DAILY_GOAL, MIN_DAILY_GOAL, Settings, dump
from .store import StateStore

logger = logging.getLogger(__name__)

Subscriber = Callable[[ActionResult], Any]


class SettingsError(ValueError):
    pass


class HydrationApp:
    """One running app instance: state, reminder timer and dispatcher.

    Nothing is global, so several instances can live side by side. Every
    action returns an ActionResult which is also handed to subscribers.
    """

    def __init__(
        self,
        store: StateStore,
        notifier: Optional[SystemNotifier] = None,
        banner: Optional[Banner] = None,
        is_visible: Callable[[], bool] = lambda: True,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ):
        rng = rng or random.Random()
        self.tracker = ProgressTracker(store, clock=clock, rng=rng)
        self.dispatcher = NotificationDispatcher(
            notifier=notifier, banner=banner, is_visible=is_visible, loop=loop, clock=clock, rng=rng
        )
        self.scheduler = ReminderScheduler(
            progress_ratio=self.tracker.progress_ratio,
            base_frequency=lambda: self.tracker.settings.base_reminder_frequency_minutes,
            on_fire=self.remind,
            loop=loop,
            clock=clock,
        )
        self._subscribers: List[Subscriber] = []

    @property
    def settings(self) -> Settings:
        return self.tracker.settings

    def start(self) -> None:
        self.tracker.check_daily_reset()
        self.scheduler.arm()

    def stop(self) -> None:
        self.scheduler.cancel()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def _publish(self, result: ActionResult) -> ActionResult:
        for callback in list(self._subscribers):
            callback(result)
        return result

    def _finish(self, result: ActionResult, rearm: bool = True) -> ActionResult:
        if result.changed and rearm:
            self.scheduler.arm()
        return self._publish(result)

    def remind(self) -> str:
        message = self.dispatcher.dispatch(self.tracker.today_glasses(), self.settings.daily_goal)
        self._publish(ActionResult(changed=False, message=message, events=[TrackerEvent("reminder", {"message": message})]))
        return message

    # progress

    def log_glass(self) -> ActionResult:
        return self._finish(self.tracker.log_glass())

    def undo_glass(self) -> ActionResult:
        return self._finish(self.tracker.undo_glass())

    def reset_day(self) -> ActionResult:
        return self._finish(self.tracker.reset_day())

    def toggle_accessory(self, accessory_id: str) -> ActionResult:
        return self._finish(self.tracker.toggle_accessory(accessory_id), rearm=False)

    # settings

    def _update_settings(self, **changes: Any) -> Settings:
        try:
            settings = Settings.model_validate({**dump(self.settings), **changes})
        except ValidationError as e:
            raise SettingsError(str(e)) from e
        self.tracker.save_settings(settings)
        return settings

    def _settings_changed(self, rearm: bool, **payload: Any) -> ActionResult:
        return self._finish(
            ActionResult(changed=True, events=[TrackerEvent("settings_changed", payload)]),
            rearm=rearm,
        )

    def set_daily_goal(self, goal: int) -> ActionResult:
        if not MIN_DAILY_GOAL <= goal <= MAX_DAILY_GOAL:
            raise SettingsError(f"Daily goal must be between {MIN_DAILY_GOAL} and {MAX_DAILY_GOAL}")
        self._update_settings(dailyGoal=goal)
        return self._settings_changed(True, dailyGoal=goal)

    def adjust_daily_goal(self, delta: int) -> ActionResult:
        goal = self.settings.daily_goal + delta
        if not MIN_DAILY_GOAL <= goal <= MAX_DAILY_GOAL:
            return ActionResult(changed=False)
        return self.set_daily_goal(goal)

    def set_base_reminder_frequency(self, minutes: float) -> ActionResult:
        if minutes <= 0:
            raise SettingsError("Reminder frequency must be positive")
        self._update_settings(baseReminderFrequencyMinutes=minutes)
        return self._settings_changed(True, baseReminderFrequencyMinutes=minutes)

    def set_font_size(self, size: str) -> ActionResult:
        settings = self._update_settings(fontSize=size)
        return self._settings_changed(False, fontSize=settings.font_size.value, bodyClasses=self.body_classes())

    def set_high_contrast(self, enabled: bool) -> ActionResult:
        self._update_settings(highContrast=bool(enabled))
        return self._settings_changed(False, highContrast=bool(enabled), bodyClasses=self.body_classes())

    def body_classes(self) -> List[str]:
        classes = [f"font-{self.settings.font_size.value}"]
        if self.settings.high_contrast:
            classes.append("high-contrast")
        return classes

    # views

    def summary(self) -> Dict[str, Any]:
        progress = self.tracker.progress
        return {
            "glasses": self.tracker.today_glasses(),
            "dailyGoal": self.settings.daily_goal,
            "glassesLeft": self.tracker.glasses_left(),
            "percent": self.tracker.progress_percent(),
            "streakDays": progress.streak_days,
            "totalGlasses": progress.total_glasses,
            "totalDaysCompleted": progress.total_days_completed(),
            "currentAccessory": progress.current_accessory,
            "reminder": self.scheduler.banner_text(),
        }

    def rewards(self) -> Dict[str, List[Dict[str, Any]]]:
        return catalog_view(self.tracker.progress)
