"""Feed record types — pure value objects.

These are the data contracts shared by the activity, notification and
recommendation pipelines. Every record is built fresh per request and
discarded after the response is serialized.
No I/O, no datetime.now(), no imports from db/ or providers/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

ActivityType = Literal["post_created", "like_given", "comment_made", "friend_added"]
NotificationType = Literal["friend_request", "like", "comment"]
RecommendationType = Literal[
    "trending",
    "similar_artist",
    "trending_friends",
    "genre_exploration",
    "mood_based",
]

# Query-string category → activity type, in merge order.
ACTIVITY_CATEGORIES: dict[str, ActivityType] = {
    "posts": "post_created",
    "likes": "like_given",
    "comments": "comment_made",
    "friends": "friend_added",
}

NOTIFICATION_CATEGORIES: tuple[str, ...] = ("friend_requests", "likes", "comments")

T = TypeVar("T")


@dataclass(frozen=True)
class DateRange:
    """Inclusive datetime bounds. Either side may be open.

    Attributes:
        start: Earliest timestamp included, or None for no lower bound.
        end: Latest timestamp included, or None for no upper bound.
    """

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(
                f"start ({self.start.isoformat()}) must not be after end ({self.end.isoformat()})"
            )

    @property
    def is_open(self) -> bool:
        """True when neither bound is set."""
        return self.start is None and self.end is None

    def contains(self, moment: datetime) -> bool:
        """Return True if *moment* falls within the inclusive bounds."""
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


@dataclass(frozen=True)
class ActivityRecord:
    """One entry in a user's activity history.

    Attributes:
        id: ``{short_code}_{row_id}`` — unique within one response.
        type: Which category produced the record.
        title: Short heading, e.g. "Liked Music Post".
        description: One-line human readable summary.
        metadata: Category-specific details (track, author, counts).
        timestamp: When the underlying event happened (UTC).
        icon: Emoji shown next to the entry.
    """

    id: str
    type: ActivityType
    title: str
    description: str
    timestamp: datetime | None
    icon: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationRecord:
    """A notification derived from another user's action.

    ``read`` starts False and is resolved against persisted read-state by
    the caller.
    """

    id: str
    type: NotificationType
    title: str
    message: str
    created_at: datetime | None
    avatar: str | None = None
    user_id: str | None = None
    post_id: str | None = None
    content: str | None = None
    read: bool = False

    @property
    def timestamp(self) -> datetime | None:
        """Alias so notifications share the activity sort key."""
        return self.created_at


@dataclass(frozen=True)
class RecommendationRecord:
    """A single recommended track produced by one strategy."""

    id: str
    title: str
    artist: str
    recommendation_reason: str
    recommendation_type: RecommendationType
    confidence: float
    album: str | None = None
    artwork: str | None = None
    url: str | None = None
    popularity: float = 0
    explicit: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @property
    def dedup_key(self) -> str:
        """Case-sensitive ``title_artist`` key used to collapse duplicates."""
        return f"{self.title}_{self.artist}"


@dataclass(frozen=True)
class ActivityStats:
    """Per-category totals over a date range, independent of paging."""

    posts_created: int = 0
    likes_given: int = 0
    comments_made: int = 0
    friends_added: int = 0


@dataclass(frozen=True)
class Page(Generic[T]):
    """One window over a sorted record list.

    Attributes:
        items: Records in the window, in final order.
        total: Size of the full list before windowing.
        has_more: True when records exist beyond the window.
    """

    items: list[T]
    total: int
    has_more: bool
