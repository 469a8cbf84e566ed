"""Stable timestamp sort and offset/limit windowing.

Ties are common (seeded or backfilled rows often share a timestamp), so
the sort must be stable: records comparing equal keep the order the merger
produced. Python's ``sorted`` is stable, including with ``reverse=True``.

Pure functions — no I/O.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from operator import attrgetter
from typing import Any, TypeVar

from core.feed.types import Page

R = TypeVar("R")

_by_timestamp: Callable[[Any], datetime] = attrgetter("timestamp")


def sort_newest_first(
    records: Sequence[R],
    key: Callable[[R], Any] = _by_timestamp,
) -> list[R]:
    """Return *records* sorted by *key* descending, stable on ties."""
    return sorted(records, key=key, reverse=True)


def window(records: Sequence[R], offset: int, limit: int) -> Page[R]:
    """Slice an already-ordered list into one page.

    Args:
        records: Records in final order.
        offset: Index of the first record to return (>= 0).
        limit: Maximum records to return (>= 0). ``0`` yields an empty page.

    Returns:
        ``Page`` with ``has_more = offset + limit < total``.

    Raises:
        ValueError: If *offset* or *limit* is negative.
    """
    if offset < 0:
        raise ValueError(f"offset must be non-negative, got {offset}")
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    total = len(records)
    items = list(records[offset : offset + limit]) if limit else []
    return Page(items=items, total=total, has_more=(offset + limit) < total)


def paginate(
    records: Sequence[R],
    offset: int,
    limit: int,
    key: Callable[[R], Any] = _by_timestamp,
) -> Page[R]:
    """Sort newest-first (stable) and return the requested window.

    Example:
        >>> page = paginate(merged, offset=0, limit=2)
        >>> page.total, page.has_more
        (5, True)
    """
    return window(sort_newest_first(records, key=key), offset, limit)
