from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import config
from models.scheduled_notification import ScheduledNotification, now_ms, utcnow
from utils.push import build_push_message, count_outcomes, send_message

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60 * 1000
MS_PER_DAY = 24 * 60 * MS_PER_MINUTE


async def submit(
    token: str,
    message: str,
    title: Optional[str] = None,
    delay_minutes: float = 60,
    now: Optional[int] = None,
) -> ScheduledNotification:
    if not token or not message:
        raise ValueError("Missing required fields: token and message")

    created = now if now is not None else now_ms()
    doc = ScheduledNotification(
        token=token,
        title=title or config.DEFAULT_TITLE,
        message=message,
        scheduled_time=created + int(delay_minutes * MS_PER_MINUTE),
        sent=False,
    )
    await doc.insert()
    return doc


async def select_due(now: int, limit: int = config.DRAIN_BATCH_LIMIT) -> List[ScheduledNotification]:
    return await ScheduledNotification.find(
        {"sent": False, "scheduled_time": {"$lte": now}}
    ).limit(limit).to_list()


async def send_all(messages: List[Dict[str, Any]], sender: Callable[[Dict[str, Any]], str]) -> List[Any]:
    # one result per message, either a message id or the exception it raised
    return await asyncio.gather(
        *(asyncio.to_thread(sender, m) for m in messages),
        return_exceptions=True,
    )


async def drain_due_notifications(
    now: Optional[int] = None,
    sender: Callable[[Dict[str, Any]], str] = send_message,
) -> Dict[str, Any]:
    """Send every due, unsent notification and mark the whole batch sent.

    Entries are marked sent whatever the individual send outcome was; failed
    sends are logged and not retried.
    """
    now = now if now is not None else now_ms()
    summary: Dict[str, Any] = {"selected": 0, "sent": 0, "failed": 0, "error": None}

    try:
        due = await select_due(now)
        if not due:
            logger.info("No notifications to send")
            return summary

        summary["selected"] = len(due)
        messages = [build_push_message(d.token, d.title, d.message, now) for d in due]

        results = await send_all(messages, sender)

        await ScheduledNotification.find(
            {"_id": {"$in": [d.id for d in due]}}
        ).update({"$set": {"sent": True, "sent_at": now, "updated_at": utcnow()}})

        ok, failed = count_outcomes(results)
        summary["sent"] = ok
        summary["failed"] = failed
        logger.info("Sent %d notifications, %d failed", ok, failed)

        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                logger.error("Failed to send notification %d: %s", index, result)

        return summary
    except Exception as e:
        logger.exception("Error sending scheduled notifications")
        summary["error"] = str(e)
        return summary


async def cleanup_sent_notifications(now: Optional[int] = None) -> Dict[str, Any]:
    now = now if now is not None else now_ms()
    cutoff = now - config.RETENTION_DAYS * MS_PER_DAY
    summary: Dict[str, Any] = {"deleted": 0, "error": None}

    try:
        old = await ScheduledNotification.find(
            {"sent": True, "sent_at": {"$lt": cutoff}}
        ).limit(config.CLEANUP_BATCH_LIMIT).to_list()

        if not old:
            logger.info("No old notifications to clean up")
            return summary

        await ScheduledNotification.find({"_id": {"$in": [d.id for d in old]}}).delete()
        summary["deleted"] = len(old)
        logger.info("Cleaned up %d old notifications", len(old))
        return summary
    except Exception as e:
        logger.exception("Error cleaning up notifications")
        summary["error"] = str(e)
        return summary
