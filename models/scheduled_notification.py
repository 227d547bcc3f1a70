from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional

from beanie import Document
from pydantic import Field
from pymongo import IndexModel, ASCENDING


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def now_ms() -> int:
    return int(time.time() * 1000)


class ScheduledNotification(Document):
    token: str = Field(min_length=1, max_length=4096)
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=2000)

    # epoch millis; sent/sent_at are written only by the drain task
    scheduled_time: int
    sent: bool = False
    sent_at: Optional[int] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "scheduled_notifications"
        indexes = [
            IndexModel([("sent", ASCENDING), ("scheduled_time", ASCENDING)]),
            IndexModel([("sent", ASCENDING), ("sent_at", ASCENDING)]),
        ]
