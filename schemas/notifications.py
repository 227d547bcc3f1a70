from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

import config


class ScheduleNotificationIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = Field(default=None, max_length=4096)
    message: Optional[str] = Field(default=None, max_length=2000)
    title: Optional[str] = Field(default=None, max_length=200)
    delay_minutes: float = Field(default=60, ge=0, le=config.MAX_DELAY_MINUTES, alias="delayMinutes")


class ScheduleNotificationOut(BaseModel):
    success: bool
    message: str
    scheduledTime: str


class SendNotificationIn(BaseModel):
    token: Optional[str] = Field(default=None, max_length=4096)
    message: Optional[str] = Field(default=None, max_length=2000)
    title: Optional[str] = Field(default=None, max_length=200)


class SendNotificationOut(BaseModel):
    success: bool
    messageId: str


class ErrorOut(BaseModel):
    success: bool = False
    error: str


class QueueRunOut(BaseModel):
    selected: int
    sent: int
    failed: int
    error: Optional[str] = None


class QueueCleanupOut(BaseModel):
    deleted: int
    error: Optional[str] = None
