"""Helpers shared by the feed routers."""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from core.feed.normalize import as_utc
from core.feed.sources import ErrorHook
from core.feed.types import DateRange
from infrastructure.metrics import record_source_failure

logger = logging.getLogger(__name__)


def isolate_failures(db: Session, endpoint: str) -> ErrorHook:
    """Error hook for ``collect``: count the failure and roll the session back.

    Rolling back keeps the shared session usable for the remaining sources
    after a failed statement (Postgres aborts the transaction otherwise).
    """

    def _on_error(source: str, exc: Exception) -> None:
        record_source_failure(endpoint, source)
        try:
            db.rollback()
        except Exception as rollback_exc:  # noqa: BLE001
            logger.warning("%s: rollback after '%s' failed: %s", endpoint, source, rollback_exc)

    return _on_error


def parse_date_range(start: datetime | None, end: datetime | None) -> DateRange | None:
    """Build an inclusive UTC ``DateRange`` from query params, 400 on start > end."""
    if start is None and end is None:
        return None
    try:
        return DateRange(start=as_utc(start), end=as_utc(end))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def check_page_size(limit: int, max_page_size: int) -> None:
    if limit > max_page_size:
        raise HTTPException(
            status_code=400,
            detail=f"limit must be at most {max_page_size}, got {limit}",
        )
