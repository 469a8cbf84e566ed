"""
Notification routes.

``GET /api/notifications``  — friend requests, likes and comments other
users directed at the caller, newest first, with persisted read-state.
``POST /api/notifications`` — mark specific notifications, or every
notification currently visible, as read. Marking is idempotent.
"""

import logging
from dataclasses import replace
from datetime import datetime
from functools import partial
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.deps import get_current_user, get_db, get_feed_config, get_now
from api.routes.common import check_page_size, isolate_failures
from api.schemas.notifications import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationItem,
    NotificationsResponse,
)
from core.config import FeedConfig
from core.feed.merge import merge
from core.feed.normalize import normalize_notification
from core.feed.paginate import sort_newest_first, window
from core.feed.sources import all_failed, collect, failed_categories
from core.feed.types import NotificationRecord
from db.notification_sources import NOTIFICATION_FETCHERS
from db.notification_state import NotificationStateStore
from infrastructure.metrics import LatencyTimer, record_feed_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["notifications"])

DbSession = Annotated[Session, Depends(get_db)]
CurrentUser = Annotated[str, Depends(get_current_user)]
Config = Annotated[FeedConfig, Depends(get_feed_config)]
Now = Annotated[datetime, Depends(get_now)]


def _collect_notifications(db: Session, user_id: str, row_cap: int) -> list[NotificationRecord]:
    """Fetch, normalize and sort every notification; 500 if all sources fail."""
    outcomes = collect(
        [
            (category, partial(fetch, db, user_id, row_cap))
            for category, fetch in NOTIFICATION_FETCHERS.items()
        ],
        on_error=isolate_failures(db, "notifications"),
    )
    if all_failed(outcomes):
        raise HTTPException(status_code=500, detail="Failed to fetch notifications")
    failed = failed_categories(outcomes)
    if failed:
        logger.warning("notifications: user %s served without %s", user_id, failed)
    records = merge(
        [[normalize_notification(o.category, row) for row in o.rows] for o in outcomes]
    )
    return sort_newest_first(records)


def _read_ids(store: NotificationStateStore, db: Session, user_id: str) -> set[str]:
    try:
        return store.read_ids(user_id)
    except SQLAlchemyError as exc:
        logger.warning("notifications: read-state unavailable, treating all as unread: %s", exc)
        db.rollback()
        return set()


@router.get("/notifications", response_model=NotificationsResponse)
def get_notifications(
    user_id: CurrentUser,
    db: DbSession,
    config: Config,
    now: Now,
    limit: Annotated[int, Query(ge=0)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    unread_only: bool = False,
) -> NotificationsResponse:
    """Return one page of notifications plus the total unread count."""
    check_page_size(limit, config.max_page_size)
    with LatencyTimer() as timer:
        try:
            records = _collect_notifications(db, user_id, config.source_row_cap)
        except HTTPException:
            record_feed_request(endpoint="notifications", status="error", latency_seconds=0.0)
            raise
        read = _read_ids(NotificationStateStore(db), db, user_id)
        records = [replace(record, read=record.id in read) for record in records]
        unread_count = sum(1 for record in records if not record.read)
        if unread_only:
            records = [record for record in records if not record.read]
        page = window(records, offset, limit)

    record_feed_request(endpoint="notifications", status="success", latency_seconds=timer.elapsed)
    return NotificationsResponse(
        notifications=[NotificationItem.from_record(record) for record in page.items],
        unread_count=unread_count,
        total=page.total,
        has_more=page.has_more,
        timestamp=now,
    )


@router.post("/notifications", response_model=MarkReadResponse)
def mark_notifications_read(
    body: MarkReadRequest,
    user_id: CurrentUser,
    db: DbSession,
    config: Config,
    now: Now,
) -> MarkReadResponse:
    """Persist read-state for the given ids, or for everything visible now."""
    store = NotificationStateStore(db)
    if body.mark_all:
        ids = [record.id for record in _collect_notifications(db, user_id, config.source_row_cap)]
    else:
        ids = list(body.notification_ids or [])
    try:
        marked = store.mark_read(user_id, ids, now)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("notifications: mark-as-read failed for user %s: %s", user_id, exc)
        raise HTTPException(status_code=500, detail="Failed to update notifications") from exc

    message = (
        "All notifications marked as read"
        if body.mark_all
        else f"{len(ids)} notification(s) marked as read"
    )
    return MarkReadResponse(message=message, marked=marked, timestamp=now)
