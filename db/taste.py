"""
Taste inputs for the recommendation strategies.

Reads what the user posted, liked and prefers, plus what their friends are
posting. Each function raises on datastore errors so the strategy that
depends on it can be isolated by the blender.
"""

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from db.models import Friendship, MusicPost, PostLike, Profile


def recent_post_artists(session: Session, user_id: str, limit: int) -> list[str]:
    """Artists of the user's most recent posts, newest first."""
    stmt = (
        select(MusicPost.track_artist)
        .where(MusicPost.user_id == user_id)
        .order_by(MusicPost.posted_at.desc())
        .limit(limit)
    )
    return [artist for artist in session.scalars(stmt).all() if artist]


def recent_liked_artists(session: Session, user_id: str, limit: int) -> list[str | None]:
    """Artists of posts the user liked, newest like first.

    ``None`` marks a like whose post no longer exists.
    """
    stmt = (
        select(PostLike)
        .where(PostLike.user_id == user_id)
        .order_by(PostLike.created_at.desc())
        .limit(limit)
    )
    return [like.post.track_artist if like.post else None for like in session.scalars(stmt).all()]


def preferred_genres(session: Session, user_id: str) -> list[str] | None:
    """``music_preferences.preferred_genres`` from the profile, if set."""
    profile = session.get(Profile, user_id)
    if profile is None or not profile.music_preferences:
        return None
    genres = profile.music_preferences.get("preferred_genres")
    if not isinstance(genres, list):
        return None
    return [str(genre) for genre in genres if genre]


def friend_ids(session: Session, user_id: str, limit: int) -> list[str]:
    """Accepted friends on either side of the friendship, newest first."""
    stmt = (
        select(Friendship)
        .where(
            Friendship.status == "accepted",
            or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
        )
        .order_by(Friendship.created_at.desc())
        .limit(limit)
    )
    return [
        f.addressee_id if f.requester_id == user_id else f.requester_id
        for f in session.scalars(stmt).all()
    ]


def friends_recent_posts(
    session: Session, user_id: str, friend_limit: int, post_limit: int = 50
) -> list[MusicPost]:
    """Public posts by the user's friends, newest first."""
    friends = friend_ids(session, user_id, friend_limit)
    if not friends:
        return []
    stmt = (
        select(MusicPost)
        .where(MusicPost.user_id.in_(friends), MusicPost.privacy != "private")
        .order_by(MusicPost.posted_at.desc())
        .limit(post_limit)
    )
    return list(session.scalars(stmt).all())
