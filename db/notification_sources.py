"""
Event source adapters for notifications.

Notifications are derived from other users' actions on the current user:

    friend_requests   pending friendships addressed to the user
    likes             likes on the user's posts, excluding self-likes
    comments          comments on the user's posts, excluding own comments

Each fetcher returns at most ``limit`` rows, newest first, and raises on
datastore errors (isolated per category by the caller).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import Friendship, MusicPost, PostComment, PostLike

NotificationFetcher = Callable[[Session, str, int], Sequence[Any]]


def fetch_friend_requests(session: Session, user_id: str, limit: int) -> list[Friendship]:
    """Pending requests addressed to the user, joined to the requester."""
    stmt = (
        select(Friendship)
        .where(Friendship.addressee_id == user_id, Friendship.status == "pending")
        .order_by(Friendship.created_at.desc())
        .limit(limit)
    )
    return list(session.scalars(stmt).all())


def fetch_likes_received(session: Session, user_id: str, limit: int) -> list[PostLike]:
    """Likes other users left on the user's posts."""
    stmt = (
        select(PostLike)
        .join(MusicPost, PostLike.post_id == MusicPost.id)
        .where(MusicPost.user_id == user_id, PostLike.user_id != user_id)
        .order_by(PostLike.created_at.desc())
        .limit(limit)
    )
    return list(session.scalars(stmt).all())


def fetch_comments_received(session: Session, user_id: str, limit: int) -> list[PostComment]:
    """Comments other users left on the user's posts."""
    stmt = (
        select(PostComment)
        .join(MusicPost, PostComment.post_id == MusicPost.id)
        .where(MusicPost.user_id == user_id, PostComment.user_id != user_id)
        .order_by(PostComment.created_at.desc())
        .limit(limit)
    )
    return list(session.scalars(stmt).all())


NOTIFICATION_FETCHERS: dict[str, NotificationFetcher] = {
    "friend_requests": fetch_friend_requests,
    "likes": fetch_likes_received,
    "comments": fetch_comments_received,
}
"""Category → fetcher, in merge order."""
