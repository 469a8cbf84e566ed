"""``GET /api/trending`` — cached catalog chart with a static fallback."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from api.deps import get_trending_service
from api.schemas.trending import TrendingResponse, TrendingTrack
from infrastructure.metrics import LatencyTimer, record_feed_request
from providers.trending import TrendingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["trending"])

Trending = Annotated[TrendingService, Depends(get_trending_service)]


@router.get("/trending", response_model=TrendingResponse)
def get_trending(
    trending: Trending,
    genre: Annotated[str | None, Query(max_length=64)] = None,
    limit: Annotated[int, Query(ge=0, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    refresh: bool = False,
) -> TrendingResponse:
    """Return one page of trending tracks."""
    with LatencyTimer() as timer:
        result = trending.get_tracks(genre=genre, limit=limit, offset=offset, refresh=refresh)
    record_feed_request(
        endpoint="trending",
        status="fallback" if result.from_fallback else "success",
        latency_seconds=timer.elapsed,
    )
    return TrendingResponse(
        tracks=[TrendingTrack.from_track(track) for track in result.tracks],
        genre=genre,
        total=result.total,
        limit=limit,
        offset=offset,
        has_more=result.has_more,
        from_cache=result.from_cache,
        from_fallback=result.from_fallback,
    )
