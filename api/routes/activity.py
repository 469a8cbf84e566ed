"""
Activity history route.

``GET /api/activity`` — merge the caller's posts, likes, comments and new
friends into one newest-first timeline, optionally bounded by a date range,
with optional per-category totals.

Each category is fetched independently: a failing category is logged and
skipped, and the request only fails when every category failed.
"""

import logging
from datetime import datetime
from functools import partial
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.deps import get_current_user, get_db, get_feed_config, get_now
from api.routes.common import check_page_size, isolate_failures, parse_date_range
from api.schemas.activity import (
    ActivityFilter,
    ActivityItem,
    ActivityResponse,
    ActivityStatsOut,
)
from core.config import FeedConfig
from core.feed.merge import merge
from core.feed.normalize import normalize_activity
from core.feed.paginate import paginate
from core.feed.sources import all_failed, collect, failed_categories
from db.activity_sources import ACTIVITY_FETCHERS
from db.stats import summarize
from infrastructure.metrics import LatencyTimer, record_feed_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["activity"])

DbSession = Annotated[Session, Depends(get_db)]
CurrentUser = Annotated[str, Depends(get_current_user)]
Config = Annotated[FeedConfig, Depends(get_feed_config)]
Now = Annotated[datetime, Depends(get_now)]


@router.get("/activity", response_model=ActivityResponse)
def get_activity(
    user_id: CurrentUser,
    db: DbSession,
    config: Config,
    now: Now,
    type: ActivityFilter = "all",  # noqa: A002
    limit: Annotated[int, Query(ge=0)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    include_stats: bool = False,
) -> ActivityResponse:
    """Return one page of the caller's activity timeline."""
    check_page_size(limit, config.max_page_size)
    date_range = parse_date_range(start_date, end_date)
    categories = list(ACTIVITY_FETCHERS) if type == "all" else [type]

    with LatencyTimer() as timer:
        outcomes = collect(
            [
                (
                    category,
                    partial(
                        ACTIVITY_FETCHERS[category],
                        db,
                        user_id,
                        date_range,
                        config.source_row_cap,
                    ),
                )
                for category in categories
            ],
            on_error=isolate_failures(db, "activity"),
        )
        if all_failed(outcomes):
            record_feed_request(endpoint="activity", status="error", latency_seconds=0.0)
            raise HTTPException(status_code=500, detail="Failed to fetch activity history")

        records = merge(
            [[normalize_activity(o.category, row) for row in o.rows] for o in outcomes],
            date_range,
        )
        page = paginate(records, offset, limit)
        stats = summarize(db, user_id, date_range) if include_stats else None

    failed = failed_categories(outcomes)
    if failed:
        logger.warning("activity: user %s served without %s", user_id, failed)
    record_feed_request(
        endpoint="activity",
        status="partial" if failed else "success",
        latency_seconds=timer.elapsed,
    )
    return ActivityResponse(
        activities=[ActivityItem.from_record(record) for record in page.items],
        total=page.total,
        has_more=page.has_more,
        stats=ActivityStatsOut.from_stats(stats) if stats is not None else None,
        timestamp=now,
    )
