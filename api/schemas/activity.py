"""Pydantic schemas for the ``/api/activity`` endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from core.feed.types import ActivityRecord, ActivityStats

ActivityFilter = Literal["all", "posts", "likes", "comments", "friends"]


class ActivityItem(BaseModel):
    """One entry of the merged activity timeline."""

    id: str = Field(..., description="``{short_code}_{row_id}``, unique within the response.")
    type: Literal["post_created", "like_given", "comment_made", "friend_added"]
    title: str
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    icon: str

    @classmethod
    def from_record(cls, record: ActivityRecord) -> ActivityItem:
        return cls(
            id=record.id,
            type=record.type,
            title=record.title,
            description=record.description,
            metadata=dict(record.metadata),
            timestamp=record.timestamp,
            icon=record.icon,
        )


class ActivityStatsOut(BaseModel):
    """Totals over the whole filtered set, not just the returned page."""

    posts_created: int = 0
    likes_given: int = 0
    comments_made: int = 0
    friends_added: int = 0

    @classmethod
    def from_stats(cls, stats: ActivityStats) -> ActivityStatsOut:
        return cls(
            posts_created=stats.posts_created,
            likes_given=stats.likes_given,
            comments_made=stats.comments_made,
            friends_added=stats.friends_added,
        )


class ActivityResponse(BaseModel):
    success: bool = True
    activities: list[ActivityItem]
    total: int
    has_more: bool
    stats: ActivityStatsOut | None = None
    timestamp: datetime
