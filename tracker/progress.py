from __future__ import annotations

import calendar
import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from .rewards import evaluate_unlocks, find_accessory
from .state import (
    PROGRESS_KEY,
    SETTINGS_KEY,
    DailyLogEntry,
    Settings,
    UserProgress,
    dump,
    format_date,
)
from .store import StateStore

logger = logging.getLogger(__name__)

AFFIRMATIONS = [
    "Awesome! Stay hydrated! 💧",
    "Great job! Keep it up! 🌟",
    "You're doing amazing! 💙",
    "Way to go! 🎉",
    "Wonderful! Your body thanks you! 💧",
]

ALREADY_COMPLETE = "Great job! You've already reached your goal today! 🎉"
GOAL_COMPLETED = "🎉 You did it! Daily goal completed! You're a hydration superstar! 🌟"
NOTHING_TO_UNDO = "No glasses to undo today! 💙"
GLASS_UNDONE = "Last glass undone. No worries! 💙"
NOTHING_TO_RESET = "Today's count is already at zero! 💧"
DAY_RESET = "Today's progress has been reset. Let's start fresh! 💙"

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
CALENDAR_CELLS = 42


@dataclass
class TrackerEvent:
    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ActionResult:
    changed: bool
    message: str = ""
    events: List[TrackerEvent] = field(default_factory=list)


@dataclass
class CalendarDay:
    day: int
    other_month: bool = False
    today: bool = False
    completed: bool = False


def load_settings(store: StateStore) -> Settings:
    saved = store.get(SETTINGS_KEY) or {}
    if not isinstance(saved, dict):
        logger.warning("Ignoring saved settings of type %s", type(saved).__name__)
        return Settings()
    try:
        return Settings.model_validate({**dump(Settings()), **saved})
    except ValidationError as e:
        logger.warning("Ignoring invalid saved settings: %s", e)
        return Settings()


def load_progress(store: StateStore) -> UserProgress:
    saved = store.get(PROGRESS_KEY) or {}
    if not isinstance(saved, dict):
        logger.warning("Ignoring saved progress of type %s", type(saved).__name__)
        return UserProgress()
    try:
        return UserProgress.model_validate({**dump(UserProgress()), **saved})
    except ValidationError as e:
        logger.warning("Ignoring invalid saved progress: %s", e)
        return UserProgress()


def update_streak(progress: UserProgress, today: date) -> None:
    today_str = format_date(today)
    yesterday_str = format_date(today - timedelta(days=1))

    if progress.last_completed_date == yesterday_str:
        progress.streak_days += 1
    elif progress.last_completed_date != today_str:
        progress.streak_days = 1

    progress.last_completed_date = today_str


class ProgressTracker:
    def __init__(
        self,
        store: StateStore,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.clock = clock
        self.rng = rng or random.Random()
        self.settings = load_settings(store)
        self.progress = load_progress(store)

    # persistence

    def save_settings(self, settings: Settings) -> None:
        self.store.set(SETTINGS_KEY, dump(settings))
        self.settings = settings

    def _commit(self, draft: UserProgress) -> None:
        # the in-memory state only moves once the whole document is written
        self.store.set(PROGRESS_KEY, dump(draft))
        self.progress = draft

    # queries

    def today(self) -> date:
        return self.clock().date()

    def today_key(self) -> str:
        return format_date(self.today())

    def today_entry(self) -> DailyLogEntry:
        return self.progress.daily_log.get(self.today_key()) or DailyLogEntry()

    def today_glasses(self) -> int:
        return self.today_entry().glasses

    def progress_ratio(self) -> float:
        return self.today_glasses() / self.settings.daily_goal

    def progress_percent(self) -> float:
        return min(self.progress_ratio() * 100, 100.0)

    def glasses_left(self) -> int:
        return max(0, self.settings.daily_goal - self.today_glasses())

    def total_days_completed(self) -> int:
        return self.progress.total_days_completed()

    # actions

    def _draft_with_today(self) -> tuple[UserProgress, DailyLogEntry]:
        draft = self.progress.model_copy(deep=True)
        key = self.today_key()
        entry = draft.daily_log.get(key)
        if entry is None:
            entry = DailyLogEntry(timestamp=int(self.clock().timestamp() * 1000))
            draft.daily_log[key] = entry
        return draft, entry

    def check_daily_reset(self) -> bool:
        """Create today's log entry if it does not exist yet."""
        if self.today_key() in self.progress.daily_log:
            return False
        draft, _ = self._draft_with_today()
        self._commit(draft)
        return True

    def log_glass(self) -> ActionResult:
        if self.today_glasses() >= self.settings.daily_goal:
            return ActionResult(changed=False, message=ALREADY_COMPLETE)

        draft, entry = self._draft_with_today()
        entry.glasses += 1
        draft.total_glasses += 1

        events = [TrackerEvent("glass_logged", {"glasses": entry.glasses, "goal": self.settings.daily_goal})]

        if entry.glasses >= self.settings.daily_goal and not entry.completed:
            entry.completed = True
            update_streak(draft, self.today())
            events.append(
                TrackerEvent("goal_completed", {"streak_days": draft.streak_days, "message": GOAL_COMPLETED})
            )
            for kind, reward, announcement in evaluate_unlocks(draft):
                events.append(
                    TrackerEvent("reward_unlocked", {"kind": kind, "id": reward.id, "message": announcement})
                )

        self._commit(draft)
        return ActionResult(changed=True, message=self.rng.choice(AFFIRMATIONS), events=events)

    def undo_glass(self) -> ActionResult:
        # callers confirm with the user before calling this
        if self.today_glasses() == 0:
            return ActionResult(changed=False, message=NOTHING_TO_UNDO)

        draft, entry = self._draft_with_today()
        was_completed = entry.completed
        entry.glasses -= 1
        draft.total_glasses -= 1

        # streak_days stays as it is even when the day is un-completed
        if was_completed and entry.glasses < self.settings.daily_goal:
            entry.completed = False

        self._commit(draft)
        return ActionResult(
            changed=True,
            message=GLASS_UNDONE,
            events=[TrackerEvent("glass_undone", {"glasses": entry.glasses, "completed": entry.completed})],
        )

    def reset_day(self) -> ActionResult:
        if self.today_glasses() == 0:
            return ActionResult(changed=False, message=NOTHING_TO_RESET)

        draft, entry = self._draft_with_today()
        removed = entry.glasses
        entry.glasses = 0
        entry.completed = False
        draft.total_glasses -= removed

        self._commit(draft)
        return ActionResult(
            changed=True,
            message=DAY_RESET,
            events=[TrackerEvent("day_reset", {"removed": removed})],
        )

    def evaluate_unlocks(self) -> ActionResult:
        draft = self.progress.model_copy(deep=True)
        unlocked = evaluate_unlocks(draft)
        if not unlocked:
            return ActionResult(changed=False)

        self._commit(draft)
        return ActionResult(
            changed=True,
            message=unlocked[-1][2],
            events=[
                TrackerEvent("reward_unlocked", {"kind": kind, "id": reward.id, "message": announcement})
                for kind, reward, announcement in unlocked
            ],
        )

    def toggle_accessory(self, accessory_id: str) -> ActionResult:
        if find_accessory(accessory_id) is None or accessory_id not in self.progress.unlocked_accessories:
            return ActionResult(changed=False)

        draft = self.progress.model_copy(deep=True)
        if draft.current_accessory == accessory_id:
            draft.current_accessory = None
        else:
            draft.current_accessory = accessory_id

        self._commit(draft)
        return ActionResult(
            changed=True,
            events=[TrackerEvent("accessory_changed", {"current": draft.current_accessory})],
        )

    # summaries

    def weekly_summary(self) -> List[Dict[str, Any]]:
        today = self.today()
        start = today - timedelta(days=today.weekday())
        goal = self.settings.daily_goal

        days = []
        for i in range(7):
            d = start + timedelta(days=i)
            entry = self.progress.daily_log.get(format_date(d))
            glasses = entry.glasses if entry else 0
            days.append({
                "day": WEEKDAY_LABELS[i],
                "date": format_date(d),
                "glasses": glasses,
                "percent": min(glasses / goal * 100, 100.0),
            })
        return days

    def month_grid(self, year: int, month: int) -> List[CalendarDay]:
        # weeks start on Sunday
        lead = (date(year, month, 1).weekday() + 1) % 7
        days_in_month = calendar.monthrange(year, month)[1]
        prev_year, prev_month = (year - 1, 12) if month == 1 else (year, month - 1)
        prev_days = calendar.monthrange(prev_year, prev_month)[1]
        today = self.today()

        cells = [CalendarDay(prev_days - i, other_month=True) for i in range(lead - 1, -1, -1)]

        for day in range(1, days_in_month + 1):
            d = date(year, month, day)
            entry = self.progress.daily_log.get(format_date(d))
            cells.append(CalendarDay(day, today=(d == today), completed=bool(entry and entry.completed)))

        trailing = CALENDAR_CELLS - len(cells)
        cells.extend(CalendarDay(day, other_month=True) for day in range(1, trailing + 1))
        return cells
