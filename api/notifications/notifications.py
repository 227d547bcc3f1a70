from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Header, HTTPException
from fastapi.responses import JSONResponse

import config
from models.scheduled_notification import now_ms
from schemas.notifications import (
    ErrorOut,
    QueueCleanupOut,
    QueueRunOut,
    ScheduleNotificationIn,
    ScheduleNotificationOut,
    SendNotificationIn,
    SendNotificationOut,
)
from utils.push import build_push_message, send_message

from .queue import cleanup_sent_notifications, drain_due_notifications, submit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])

MISSING_FIELDS = "Missing required fields: token and message"


def ms_to_iso(ms: int) -> str:
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def missing_fields() -> JSONResponse:
    return JSONResponse(status_code=400, content=ErrorOut(error=MISSING_FIELDS).model_dump())


def server_error(e: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content=ErrorOut(error=str(e)).model_dump())


def require_internal(x_internal_token: Optional[str]):
    secret = config.PUSH_INTERNAL_TOKEN
    if secret and (x_internal_token or "").strip() != secret:
        raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/scheduleNotification", response_model=ScheduleNotificationOut)
async def schedule_notification(payload: ScheduleNotificationIn):
    token = (payload.token or "").strip()
    message = (payload.message or "").strip()
    if not token or not message:
        return missing_fields()

    try:
        doc = await submit(token, message, title=payload.title, delay_minutes=payload.delay_minutes)
        scheduled_time = ms_to_iso(doc.scheduled_time)
    except Exception as e:
        logger.exception("Error scheduling notification")
        return server_error(e)

    logger.info("Scheduled notification %s for %s", doc.id, scheduled_time)
    return ScheduleNotificationOut(
        success=True,
        message="Notification scheduled successfully",
        scheduledTime=scheduled_time,
    )


@router.post("/sendNotification", response_model=SendNotificationOut)
async def send_notification(payload: SendNotificationIn):
    token = (payload.token or "").strip()
    message = (payload.message or "").strip()
    if not token or not message:
        return missing_fields()

    push = build_push_message(token, payload.title or config.DEFAULT_TITLE, message, now_ms(), high_priority=False)
    try:
        message_id = await asyncio.to_thread(send_message, push)
    except Exception as e:
        logger.exception("Error sending notification")
        return server_error(e)

    return SendNotificationOut(success=True, messageId=message_id)


@router.post("/push/queue/run", response_model=QueueRunOut)
async def push_queue_run(x_internal_token: Optional[str] = Header(default=None)):
    require_internal(x_internal_token)
    return QueueRunOut(**await drain_due_notifications())


@router.post("/push/queue/cleanup", response_model=QueueCleanupOut)
async def push_queue_cleanup(x_internal_token: Optional[str] = Header(default=None)):
    require_internal(x_internal_token)
    return QueueCleanupOut(**await cleanup_sent_notifications())
