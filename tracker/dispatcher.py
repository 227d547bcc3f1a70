from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from .scheduler import HALFWAY_RATIO, NEAR_GOAL_RATIO

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Aqua Buddy 💧"
NOTIFICATION_TAG = "aqua-buddy-reminder"
VIBRATE_PATTERN = [200, 100, 200]
BANNER_SECONDS = 5
SYSTEM_NOTIFICATION_SECONDS = 15
HISTORY_DISPLAY_LIMIT = 10
NOTIFICATION_ICON = "/icon-192.png"

REMINDERS_NEAR_GOAL = [
    "You're almost there! Just a little more! 💙",
    "So close to your goal! Keep it up! 🌟",
    "One more glass to go! You've got this! 💧",
]
REMINDERS_HALFWAY = [
    "You're halfway there! Great progress! 🎉",
    "Keep going! Your body will thank you! 💧",
    "Doing great! Time for another glass! 💙",
]
REMINDERS_START = [
    "Time to hydrate! Let's drink some water! 💧",
    "Your friend Aqua Buddy is waiting for you! 💙",
    "Remember to drink water! Stay healthy! 🌟",
    "It's water time! Let's do this together! 💧",
]


class Permission(str, Enum):
    granted = "granted"
    denied = "denied"
    default = "default"


class SystemNotifier(Protocol):
    @property
    def permission(self) -> Permission: ...

    def request_permission(self) -> Permission: ...

    def show(self, title: str, options: Dict[str, Any]) -> Any: ...


class Banner(Protocol):
    def show(self, message: str) -> None: ...

    def hide(self) -> None: ...


@dataclass
class NotificationRecord:
    time: str
    message: str


def reminder_pool(progress_ratio: float) -> List[str]:
    if progress_ratio >= NEAR_GOAL_RATIO:
        return REMINDERS_NEAR_GOAL
    if progress_ratio >= HALFWAY_RATIO:
        return REMINDERS_HALFWAY
    return REMINDERS_START


def notification_body(message: str, glasses: int, daily_goal: int) -> str:
    left = max(0, daily_goal - glasses)
    if left > 0:
        return f"{message}\n{glasses}/{daily_goal} glasses today - {left} to go!"
    return f"{message}\n🎉 Goal completed! Great job!"


def notification_options(message: str, glasses: int, daily_goal: int, now: datetime) -> Dict[str, Any]:
    return {
        "body": notification_body(message, glasses, daily_goal),
        "icon": NOTIFICATION_ICON,
        "badge": NOTIFICATION_ICON,
        "vibrate": list(VIBRATE_PATTERN),
        "tag": NOTIFICATION_TAG,
        "requireInteraction": False,
        "silent": False,
        "renotify": False,
        "data": {
            "dateTime": int(now.timestamp() * 1000),
            "progress": glasses / daily_goal,
            "glassesLeft": max(0, daily_goal - glasses),
        },
    }


class PlyerNotifier:
    """Desktop notifications through plyer; the desktop never asks for permission."""

    app_name = "Aqua Buddy"

    @property
    def permission(self) -> Permission:
        return Permission.granted

    def request_permission(self) -> Permission:
        return Permission.granted

    def show(self, title: str, options: Dict[str, Any]) -> None:
        from plyer import notification

        notification.notify(
            title=title,
            message=options.get("body", ""),
            app_name=self.app_name,
            timeout=SYSTEM_NOTIFICATION_SECONDS,
        )


class NotificationDispatcher:
    def __init__(
        self,
        notifier: Optional[SystemNotifier] = None,
        banner: Optional[Banner] = None,
        is_visible: Callable[[], bool] = lambda: True,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ):
        self.notifier = notifier
        self.banner = banner
        self.is_visible = is_visible
        self.clock = clock
        self.rng = rng or random.Random()
        self._loop = loop
        self._banner_handle: Optional[asyncio.TimerHandle] = None
        # session scoped, never trimmed
        self.history: List[NotificationRecord] = []

    def _call_later(self, seconds: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(seconds, callback)

    def dispatch(self, glasses: int, daily_goal: int) -> str:
        now = self.clock()
        message = self.rng.choice(reminder_pool(glasses / daily_goal))
        self.history.append(NotificationRecord(time=now.strftime("%H:%M:%S"), message=message))

        self.show_system_notification(message, glasses, daily_goal)

        if self.banner is not None and self.is_visible():
            self.show_banner(message)

        return message

    def _authorized(self) -> bool:
        if self.notifier is None:
            return False
        permission = self.notifier.permission
        if permission == Permission.default:
            permission = self.notifier.request_permission()
        return permission == Permission.granted

    def show_system_notification(self, message: str, glasses: int, daily_goal: int) -> bool:
        try:
            if not self._authorized():
                return False
            options = notification_options(message, glasses, daily_goal, self.clock())
            handle = self.notifier.show(NOTIFICATION_TITLE, options)
            if handle is not None and hasattr(handle, "close"):
                self._call_later(SYSTEM_NOTIFICATION_SECONDS, handle.close)
            return True
        except Exception:
            logger.exception("Error showing notification")
            return False

    def show_banner(self, message: str) -> None:
        if self._banner_handle is not None:
            self._banner_handle.cancel()
        self.banner.show(message)
        self._banner_handle = self._call_later(BANNER_SECONDS, self.close_banner)

    def close_banner(self) -> None:
        self._banner_handle = None
        if self.banner is not None:
            self.banner.hide()

    def recent_history(self, limit: int = HISTORY_DISPLAY_LIMIT) -> List[NotificationRecord]:
        return list(reversed(self.history[-limit:]))
