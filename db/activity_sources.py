"""
Event source adapters for activity history.

One fetcher per category. Each returns at most ``limit`` rows owned by the
user, newest first on the category's native timestamp column, optionally
bounded by an inclusive ``DateRange``. Fetchers raise on datastore errors;
the route runs them through ``core.feed.sources.collect`` which isolates
the failure to that category.

Categories:
    posts      music_posts created by the user            (posted_at)
    likes      post_likes the user gave, with post+author (created_at)
    comments   post_comments the user made, with post     (created_at)
    friends    accepted friendships the user requested    (created_at)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from core.feed.types import DateRange
from db.models import Friendship, MusicPost, PostComment, PostLike

ActivityFetcher = Callable[[Session, str, DateRange | None, int], Sequence[Any]]


def apply_date_range(
    stmt: Select[Any],
    column: InstrumentedAttribute[Any],
    date_range: DateRange | None,
) -> Select[Any]:
    """Add inclusive ``>= start`` / ``<= end`` filters on *column*."""
    if date_range is None:
        return stmt
    if date_range.start is not None:
        stmt = stmt.where(column >= date_range.start)
    if date_range.end is not None:
        stmt = stmt.where(column <= date_range.end)
    return stmt


def fetch_posts_created(
    session: Session, user_id: str, date_range: DateRange | None, limit: int
) -> list[MusicPost]:
    """Posts the user created, newest first."""
    stmt = select(MusicPost).where(MusicPost.user_id == user_id)
    stmt = apply_date_range(stmt, MusicPost.posted_at, date_range)
    stmt = stmt.order_by(MusicPost.posted_at.desc()).limit(limit)
    return list(session.scalars(stmt).all())


def fetch_likes_given(
    session: Session, user_id: str, date_range: DateRange | None, limit: int
) -> list[PostLike]:
    """Likes the user gave, joined to the liked post and its author."""
    stmt = select(PostLike).where(PostLike.user_id == user_id)
    stmt = apply_date_range(stmt, PostLike.created_at, date_range)
    stmt = stmt.order_by(PostLike.created_at.desc()).limit(limit)
    return list(session.scalars(stmt).all())


def fetch_comments_made(
    session: Session, user_id: str, date_range: DateRange | None, limit: int
) -> list[PostComment]:
    """Comments the user made, joined to the commented post and its author."""
    stmt = select(PostComment).where(PostComment.user_id == user_id)
    stmt = apply_date_range(stmt, PostComment.created_at, date_range)
    stmt = stmt.order_by(PostComment.created_at.desc()).limit(limit)
    return list(session.scalars(stmt).all())


def fetch_friends_added(
    session: Session, user_id: str, date_range: DateRange | None, limit: int
) -> list[Friendship]:
    """Accepted friendships the user requested, joined to the new friend."""
    stmt = select(Friendship).where(
        Friendship.requester_id == user_id,
        Friendship.status == "accepted",
    )
    stmt = apply_date_range(stmt, Friendship.created_at, date_range)
    stmt = stmt.order_by(Friendship.created_at.desc()).limit(limit)
    return list(session.scalars(stmt).all())


ACTIVITY_FETCHERS: dict[str, ActivityFetcher] = {
    "posts": fetch_posts_created,
    "likes": fetch_likes_given,
    "comments": fetch_comments_made,
    "friends": fetch_friends_added,
}
"""Category → fetcher, in merge order."""
