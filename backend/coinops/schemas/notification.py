from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    message: str
    timestamp: datetime.datetime


class NotificationRequest(BaseModel):
    title: str = Field(min_length=1)
    message: str


class NotificationList(BaseModel):
    count: int
    notifications: list[Notification] = Field(default_factory=list)
