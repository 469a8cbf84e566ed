"""
SQLAlchemy ORM models for the TrackShare datastore.

The tables mirror the hosted Postgres schema the frontend already writes
to. The feed service reads posts, likes, comments and friendships, and
owns exactly one table of its own: ``notification_state``.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class Profile(Base):
    """Public profile of a TrackShare user.

    ``music_preferences`` is a free-form JSON object; the recommendation
    pipeline reads ``preferred_genres`` from it.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    display_name: Mapped[str | None] = mapped_column(String(128))
    avatar_url: Mapped[str | None] = mapped_column(String(512))
    music_preferences: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class MusicPost(Base):
    """A track shared to the feed."""

    __tablename__ = "music_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    track_title: Mapped[str] = mapped_column(String(256))
    track_artist: Mapped[str] = mapped_column(String(256))
    track_album: Mapped[str | None] = mapped_column(String(256))
    track_artwork_url: Mapped[str | None] = mapped_column(String(512))
    track_spotify_url: Mapped[str | None] = mapped_column(String(512))
    caption: Mapped[str | None] = mapped_column(Text)
    privacy: Mapped[str] = mapped_column(String(16), default="public")
    like_count: Mapped[int] = mapped_column(Integer, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, default=0)
    posted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    author: Mapped["Profile | None"] = relationship(lazy="joined")


class PostLike(Base):
    """A user liking a post. ``post`` may be gone if the post was deleted."""

    __tablename__ = "post_likes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    post_id: Mapped[str | None] = mapped_column(
        ForeignKey("music_posts.id", ondelete="SET NULL"), index=True, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    user: Mapped["Profile | None"] = relationship(lazy="joined")
    post: Mapped["MusicPost | None"] = relationship(lazy="joined")


class PostComment(Base):
    """A comment on a post."""

    __tablename__ = "post_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    post_id: Mapped[str | None] = mapped_column(
        ForeignKey("music_posts.id", ondelete="SET NULL"), index=True, nullable=True
    )
    content: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    user: Mapped["Profile | None"] = relationship(lazy="joined")
    post: Mapped["MusicPost | None"] = relationship(lazy="joined")


class Friendship(Base):
    """Directed friend request; ``status`` is pending | accepted | declined."""

    __tablename__ = "friendships"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    requester_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), index=True
    )
    addressee_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), index=True
    )
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    requester: Mapped["Profile | None"] = relationship(foreign_keys=[requester_id], lazy="joined")
    addressee: Mapped["Profile | None"] = relationship(foreign_keys=[addressee_id], lazy="joined")

    __table_args__ = (
        UniqueConstraint("requester_id", "addressee_id", name="uq_friendship_pair"),
    )


class NotificationState(Base):
    """Read marker for one derived notification.

    Notifications themselves are derived per request; only the fact that
    a user has read one is persisted. One row per ``(user_id,
    notification_id)``; marking twice is a no-op.
    """

    __tablename__ = "notification_state"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    notification_id: Mapped[str] = mapped_column(String(128))
    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("user_id", "notification_id", name="uq_notification_state_user_id"),
        Index("idx_notification_state_user", "user_id", "read_at"),
    )
