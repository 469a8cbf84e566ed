"""
Activity stats summarizer.

Counts each activity category over the full date-filtered set, independent
of whatever page the caller is showing. A failing count is logged, the
session rolled back, and the count reported as 0. Stats never fail a
request.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.feed.types import ActivityStats, DateRange
from db.activity_sources import apply_date_range
from db.models import Friendship, MusicPost, PostComment, PostLike

logger = logging.getLogger(__name__)


def _count_statements(user_id: str, date_range: DateRange | None) -> dict[str, Select[Any]]:
    posts = select(func.count(MusicPost.id)).where(MusicPost.user_id == user_id)
    likes = select(func.count(PostLike.id)).where(PostLike.user_id == user_id)
    comments = select(func.count(PostComment.id)).where(PostComment.user_id == user_id)
    friends = select(func.count(Friendship.id)).where(
        Friendship.requester_id == user_id,
        Friendship.status == "accepted",
    )
    return {
        "posts_created": apply_date_range(posts, MusicPost.posted_at, date_range),
        "likes_given": apply_date_range(likes, PostLike.created_at, date_range),
        "comments_made": apply_date_range(comments, PostComment.created_at, date_range),
        "friends_added": apply_date_range(friends, Friendship.created_at, date_range),
    }


def summarize(session: Session, user_id: str, date_range: DateRange | None = None) -> ActivityStats:
    """Count posts, likes, comments and friends for *user_id*.

    Args:
        session: Open database session.
        user_id: Owner of the activity.
        date_range: Same inclusive bounds as the activity query.

    Returns:
        ``ActivityStats`` with every field an int (0 on failure).
    """
    counts: dict[str, int] = {}
    for name, stmt in _count_statements(user_id, date_range).items():
        try:
            counts[name] = int(session.scalar(stmt) or 0)
        except SQLAlchemyError as exc:
            logger.warning("stats: count '%s' failed, reporting 0: %s", name, exc)
            session.rollback()
            counts[name] = 0
    return ActivityStats(**counts)
