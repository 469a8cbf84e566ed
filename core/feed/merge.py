"""Record merging and recommendation deduplication.

Merging is plain concatenation in source order plus the date-range filter.
Sorting is a separate stage (``core.feed.paginate``) so stats and
read-state resolution can reuse the unsorted merged set.

Activity and notification records are never deduplicated: the short-code
id prefix makes cross-category collisions impossible. Recommendation
candidates from different strategies *can* describe the same track, so
they are collapsed on ``title_artist``, first-seen wins.

Pure functions — no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

from core.feed.normalize import as_utc
from core.feed.types import DateRange, RecommendationRecord

R = TypeVar("R")


def _bounds(date_range: DateRange | None) -> DateRange | None:
    if date_range is None or date_range.is_open:
        return None
    return DateRange(start=as_utc(date_range.start), end=as_utc(date_range.end))


def merge(lists: Iterable[Sequence[R]], date_range: DateRange | None = None) -> list[R]:
    """Concatenate per-source record lists into one unsorted list.

    Records without a timestamp are dropped since they cannot be ordered.
    When *date_range* is given, records outside its inclusive bounds are
    dropped as well.

    Args:
        lists: Record lists, one per source, in category order.
        date_range: Optional inclusive bounds on each record's timestamp.

    Returns:
        Flat list preserving source order, then within-source order.
    """
    bounds = _bounds(date_range)
    merged: list[R] = []
    for records in lists:
        for record in records:
            timestamp: Any = getattr(record, "timestamp", None)
            if timestamp is None:
                continue
            if bounds is not None and not bounds.contains(timestamp):
                continue
            merged.append(record)
    return merged


def dedupe_recommendations(
    records: Iterable[RecommendationRecord],
) -> list[RecommendationRecord]:
    """Collapse recommendations sharing a ``title_artist`` key.

    The first occurrence wins, so callers control priority purely through
    the order strategies are concatenated in. Idempotent: deduping a list
    concatenated with itself yields the same result as deduping it once.

    Args:
        records: Candidates in strategy evaluation order.

    Returns:
        Deduplicated list preserving first-seen order.
    """
    seen: set[str] = set()
    unique: list[RecommendationRecord] = []
    for record in records:
        key = record.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique
