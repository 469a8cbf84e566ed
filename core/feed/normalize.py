"""Row → record normalization.

Maps raw datastore rows (posts, likes, comments, friendships) into the
uniform record shapes used by the merge stage. Rows are read by attribute,
so ORM instances and simple namespaces both work.

Joined relations are optional: a like whose post was deleted, or a comment
whose author profile is gone, still normalizes; the missing fields come
back as ``None`` and the text falls back to neutral wording. Join failures
degrade a single record, never the whole response.

Pure functions — no I/O.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from core.feed.types import ActivityRecord, NotificationRecord

# Short codes prefix every record id so categories can never collide.
ACTIVITY_SHORT_CODES: dict[str, str] = {
    "posts": "post",
    "likes": "like",
    "comments": "comment",
    "friends": "friend",
}

NOTIFICATION_SHORT_CODES: dict[str, str] = {
    "friend_requests": "friend_request",
    "likes": "like",
    "comments": "comment",
}

_UNKNOWN_ACTOR = "Someone"


def as_utc(value: datetime | str | None) -> datetime | None:
    """Coerce a row timestamp to an aware UTC datetime.

    Naive datetimes are assumed to already be UTC (SQLite drops tzinfo).
    ISO-8601 strings are parsed. Anything else returns None so the record
    is dropped by the merger instead of breaking the sort.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def make_id(short_code: str, row_id: Any) -> str:
    """Build a response-unique record id from a short code and a row id."""
    return f"{short_code}_{row_id}"


def _attr(obj: Any, *path: str) -> Any:
    """Follow an attribute path, returning None at the first missing link."""
    current = obj
    for name in path:
        if current is None:
            return None
        current = getattr(current, name, None)
    return current


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)


# ---------------------------------------------------------------------------
# Activity history
# ---------------------------------------------------------------------------


def _post_created(row: Any) -> ActivityRecord:
    title = _attr(row, "track_title")
    artist = _attr(row, "track_artist")
    return ActivityRecord(
        id=make_id(ACTIVITY_SHORT_CODES["posts"], row.id),
        type="post_created",
        title="Created Music Post",
        description=f'Posted "{title}" by {artist}',
        metadata={
            "track_title": title,
            "track_artist": artist,
            "track_artwork_url": _attr(row, "track_artwork_url"),
            "caption": _attr(row, "caption"),
            "privacy": _attr(row, "privacy"),
            "like_count": _attr(row, "like_count") or 0,
            "comment_count": _attr(row, "comment_count") or 0,
        },
        timestamp=as_utc(_attr(row, "posted_at")),
        icon="🎵",
    )


def _like_given(row: Any) -> ActivityRecord:
    title = _attr(row, "post", "track_title")
    artist = _attr(row, "post", "track_artist")
    return ActivityRecord(
        id=make_id(ACTIVITY_SHORT_CODES["likes"], row.id),
        type="like_given",
        title="Liked Music Post",
        description=f'Liked "{title}" by {artist}',
        metadata={
            "track_title": title,
            "track_artist": artist,
            "track_artwork_url": _attr(row, "post", "track_artwork_url"),
            "post_author": _attr(row, "post", "author", "display_name"),
        },
        timestamp=as_utc(_attr(row, "created_at")),
        icon="❤️",
    )


def _comment_made(row: Any) -> ActivityRecord:
    title = _attr(row, "post", "track_title")
    artist = _attr(row, "post", "track_artist")
    return ActivityRecord(
        id=make_id(ACTIVITY_SHORT_CODES["comments"], row.id),
        type="comment_made",
        title="Commented on Post",
        description=f'Commented on "{title}" by {artist}',
        metadata={
            "content": _attr(row, "content"),
            "track_title": title,
            "track_artist": artist,
            "track_artwork_url": _attr(row, "post", "track_artwork_url"),
            "post_author": _attr(row, "post", "author", "display_name"),
        },
        timestamp=as_utc(_attr(row, "created_at")),
        icon="💬",
    )


def _friend_added(row: Any) -> ActivityRecord:
    name = _attr(row, "addressee", "display_name")
    return ActivityRecord(
        id=make_id(ACTIVITY_SHORT_CODES["friends"], row.id),
        type="friend_added",
        title="Added Friend",
        description=f"Became friends with {name}",
        metadata={
            "friend_name": name,
            "friend_avatar": _attr(row, "addressee", "avatar_url"),
        },
        timestamp=as_utc(_attr(row, "created_at")),
        icon="👥",
    )


_ACTIVITY_NORMALIZERS: dict[str, Callable[[Any], ActivityRecord]] = {
    "posts": _post_created,
    "likes": _like_given,
    "comments": _comment_made,
    "friends": _friend_added,
}


def normalize_activity(category: str, row: Any) -> ActivityRecord:
    """Map one activity row to an ``ActivityRecord``.

    Args:
        category: One of ``posts``, ``likes``, ``comments``, ``friends``.
        row: Datastore row for that category.

    Raises:
        ValueError: If *category* is unknown.
    """
    try:
        normalizer = _ACTIVITY_NORMALIZERS[category]
    except KeyError as exc:
        raise ValueError(
            f"Unknown activity category {category!r}, "
            f"valid options: {sorted(_ACTIVITY_NORMALIZERS)}"
        ) from exc
    return normalizer(row)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


def _friend_request(row: Any) -> NotificationRecord:
    name = _attr(row, "requester", "display_name") or _UNKNOWN_ACTOR
    return NotificationRecord(
        id=make_id(NOTIFICATION_SHORT_CODES["friend_requests"], row.id),
        type="friend_request",
        title="New Friend Request",
        message=f"{name} wants to be your friend",
        avatar=_attr(row, "requester", "avatar_url"),
        user_id=_str_or_none(_attr(row, "requester", "id")),
        created_at=as_utc(_attr(row, "created_at")),
    )


def _post_liked(row: Any) -> NotificationRecord:
    name = _attr(row, "user", "display_name") or _UNKNOWN_ACTOR
    title = _attr(row, "post", "track_title")
    return NotificationRecord(
        id=make_id(NOTIFICATION_SHORT_CODES["likes"], row.id),
        type="like",
        title="New Like",
        message=f'{name} liked your post "{title}"',
        avatar=_attr(row, "user", "avatar_url"),
        user_id=_str_or_none(_attr(row, "user", "id")),
        post_id=_str_or_none(_attr(row, "post_id")),
        created_at=as_utc(_attr(row, "created_at")),
    )


def _post_commented(row: Any) -> NotificationRecord:
    name = _attr(row, "user", "display_name") or _UNKNOWN_ACTOR
    title = _attr(row, "post", "track_title")
    return NotificationRecord(
        id=make_id(NOTIFICATION_SHORT_CODES["comments"], row.id),
        type="comment",
        title="New Comment",
        message=f'{name} commented on your post "{title}"',
        avatar=_attr(row, "user", "avatar_url"),
        user_id=_str_or_none(_attr(row, "user", "id")),
        post_id=_str_or_none(_attr(row, "post_id")),
        content=_attr(row, "content"),
        created_at=as_utc(_attr(row, "created_at")),
    )


_NOTIFICATION_NORMALIZERS: dict[str, Callable[[Any], NotificationRecord]] = {
    "friend_requests": _friend_request,
    "likes": _post_liked,
    "comments": _post_commented,
}


def normalize_notification(category: str, row: Any) -> NotificationRecord:
    """Map one notification source row to a ``NotificationRecord``.

    Args:
        category: One of ``friend_requests``, ``likes``, ``comments``.
        row: Datastore row for that category.

    Raises:
        ValueError: If *category* is unknown.
    """
    try:
        normalizer = _NOTIFICATION_NORMALIZERS[category]
    except KeyError as exc:
        raise ValueError(
            f"Unknown notification category {category!r}, "
            f"valid options: {sorted(_NOTIFICATION_NORMALIZERS)}"
        ) from exc
    return normalizer(row)
