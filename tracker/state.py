from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SETTINGS_KEY = "aqua-buddy-settings"
PROGRESS_KEY = "aqua-buddy-data"

MIN_DAILY_GOAL = 4
MAX_DAILY_GOAL = 12


class FontSize(str, Enum):
    small = "small"
    medium = "medium"
    large = "large"


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daily_goal: int = Field(default=8, ge=MIN_DAILY_GOAL, le=MAX_DAILY_GOAL, alias="dailyGoal")
    base_reminder_frequency_minutes: float = Field(default=60, gt=0, alias="baseReminderFrequencyMinutes")
    font_size: FontSize = Field(default=FontSize.medium, alias="fontSize")
    high_contrast: bool = Field(default=False, alias="highContrast")


class DailyLogEntry(BaseModel):
    glasses: int = Field(default=0, ge=0)
    completed: bool = False
    # epoch millis
    timestamp: int = 0


class UserProgress(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daily_log: Dict[str, DailyLogEntry] = Field(default_factory=dict, alias="dailyLog")
    total_glasses: int = Field(default=0, alias="totalGlasses")
    streak_days: int = Field(default=0, alias="streakDays")
    last_completed_date: Optional[str] = Field(default=None, alias="lastCompletedDate")
    unlocked_badges: List[str] = Field(default_factory=list, alias="unlockedBadges")
    unlocked_stickers: List[str] = Field(default_factory=list, alias="unlockedStickers")
    unlocked_accessories: List[str] = Field(default_factory=list, alias="unlockedAccessories")
    current_accessory: Optional[str] = Field(default=None, alias="currentAccessory")

    def total_days_completed(self) -> int:
        return sum(1 for entry in self.daily_log.values() if entry.completed)

    def logged_glasses(self) -> int:
        return sum(entry.glasses for entry in self.daily_log.values())


def format_date(d: date) -> str:
    return d.isoformat()


def dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)
