from __future__ import annotations

from .db import db, client
from .scheduled_notification import ScheduledNotification, now_ms, utcnow

ALL_MODELS = [
    ScheduledNotification,
]
