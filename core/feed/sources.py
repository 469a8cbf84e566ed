"""Partial-failure isolation for event sources.

Each category adapter is run through ``collect``. A source that raises is
logged and contributes an empty list, so the other categories still make
it into the merge. The outcome keeps a ``failed`` flag so the handler can
distinguish "every source is down" (500) from "nothing happened" (200 with
an empty page).

Usage::

    from core.feed.sources import all_failed, collect

    outcomes = collect(
        [("posts", lambda: fetch_posts(...)), ("likes", lambda: fetch_likes(...))],
        on_error=lambda category, exc: session.rollback(),
    )
    if all_failed(outcomes):
        raise HTTPException(500, "Failed to fetch activity history")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Sequence[Any]]
ErrorHook = Callable[[str, Exception], None]


@dataclass(frozen=True)
class SourceOutcome:
    """Result of running one source.

    Attributes:
        category: Source name, e.g. ``"likes"``.
        rows: Rows the source returned (empty on failure).
        failed: True if the source raised.
    """

    category: str
    rows: tuple[Any, ...] = ()
    failed: bool = False


def run_source(category: str, fetch: Fetcher, on_error: ErrorHook | None = None) -> SourceOutcome:
    """Run one source, converting any exception into an empty, failed outcome."""
    try:
        rows = fetch()
    except Exception as exc:  # noqa: BLE001
        logger.warning("source '%s' unavailable, contributing no rows: %s", category, exc)
        if on_error is not None:
            on_error(category, exc)
        return SourceOutcome(category=category, failed=True)
    return SourceOutcome(category=category, rows=tuple(rows or ()))


def collect(
    fetchers: Sequence[tuple[str, Fetcher]],
    on_error: ErrorHook | None = None,
) -> list[SourceOutcome]:
    """Run every source in order; one failure never cancels the others.

    Args:
        fetchers: ``(category, fetch)`` pairs, in merge order.
        on_error: Optional hook invoked with ``(category, exc)`` after a
            failure, e.g. to roll back a shared database session.

    Returns:
        One ``SourceOutcome`` per fetcher, same order.
    """
    return [run_source(category, fetch, on_error) for category, fetch in fetchers]


def all_failed(outcomes: Sequence[SourceOutcome]) -> bool:
    """True if at least one source ran and every source failed."""
    return bool(outcomes) and all(outcome.failed for outcome in outcomes)


def failed_categories(outcomes: Sequence[SourceOutcome]) -> list[str]:
    """Names of the sources that failed, in order."""
    return [outcome.category for outcome in outcomes if outcome.failed]
