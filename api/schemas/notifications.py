"""Pydantic schemas for the ``/api/notifications`` endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from core.feed.types import NotificationRecord


class NotificationItem(BaseModel):
    id: str
    type: Literal["friend_request", "like", "comment"]
    title: str
    message: str
    avatar: str | None = None
    user_id: str | None = None
    post_id: str | None = None
    content: str | None = None
    read: bool = False
    created_at: datetime

    @classmethod
    def from_record(cls, record: NotificationRecord) -> NotificationItem:
        return cls(
            id=record.id,
            type=record.type,
            title=record.title,
            message=record.message,
            avatar=record.avatar,
            user_id=record.user_id,
            post_id=record.post_id,
            content=record.content,
            read=record.read,
            created_at=record.created_at,
        )


class NotificationsResponse(BaseModel):
    success: bool = True
    notifications: list[NotificationItem]
    unread_count: int = Field(..., description="Unread notifications across the full set.")
    total: int
    has_more: bool
    timestamp: datetime


class MarkReadRequest(BaseModel):
    """Body for ``POST /api/notifications``: explicit ids or ``mark_all``."""

    notification_ids: list[str] | None = Field(default=None, max_length=1000)
    mark_all: bool = False

    @model_validator(mode="after")
    def _ids_or_all(self) -> MarkReadRequest:
        if not self.mark_all and not self.notification_ids:
            raise ValueError("Provide notification_ids or mark_all")
        return self


class MarkReadResponse(BaseModel):
    success: bool = True
    message: str
    marked: int
    timestamp: datetime
