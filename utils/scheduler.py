from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

import config
from api.notifications.queue import cleanup_sent_notifications, drain_due_notifications

logger = logging.getLogger(__name__)


def create_queue_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()

    # max_instances=1 keeps two drains of the same slot from overlapping
    scheduler.add_job(
        drain_due_notifications,
        "interval",
        seconds=config.QUEUE_DRAIN_INTERVAL_SECONDS,
        id="send_scheduled_notifications",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.add_job(
        cleanup_sent_notifications,
        "interval",
        hours=config.QUEUE_CLEANUP_INTERVAL_HOURS,
        id="cleanup_old_notifications",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler


def start_queue_scheduler() -> AsyncIOScheduler:
    scheduler = create_queue_scheduler()
    scheduler.start()
    logger.info(
        "Notification queue jobs started (drain every %ss, cleanup every %sh)",
        config.QUEUE_DRAIN_INTERVAL_SECONDS,
        config.QUEUE_CLEANUP_INTERVAL_HOURS,
    )
    return scheduler
