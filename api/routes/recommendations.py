"""
Recommendation route.

``GET /api/recommendations`` — blend four personalized strategies
(similar artists, friends' popular posts, genre exploration, mood) into
one deduplicated list. Anonymous callers, ``type=trending``, and requests
where every strategy failed or came back empty are served from the
trending chart instead.
"""

import logging
from datetime import datetime
from typing import Annotated, Literal

import httpx
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import (
    get_catalog,
    get_db,
    get_feed_config,
    get_now,
    get_optional_user,
    get_trending_service,
)
from api.routes.common import check_page_size, isolate_failures
from api.schemas.recommendations import RecommendationItem, RecommendationsResponse
from core.config import FeedConfig
from core.feed.paginate import window
from core.feed.types import Page, RecommendationRecord
from core.recommendations import strategies
from core.recommendations.blend import StrategyBuilder, blend, needs_fallback, run_strategies
from core.recommendations.types import CatalogTrack
from db import taste
from infrastructure.circuit_breaker import CircuitOpenError
from infrastructure.metrics import (
    LatencyTimer,
    record_feed_request,
    record_recommendation_fallback,
)
from providers.catalog import CatalogError, DeezerCatalog
from providers.trending import TrendingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["recommendations"])

DbSession = Annotated[Session, Depends(get_db)]
OptionalUser = Annotated[str | None, Depends(get_optional_user)]
Config = Annotated[FeedConfig, Depends(get_feed_config)]
Now = Annotated[datetime, Depends(get_now)]
Catalog = Annotated[DeezerCatalog, Depends(get_catalog)]
Trending = Annotated[TrendingService, Depends(get_trending_service)]

_CATALOG_ERRORS = (CatalogError, CircuitOpenError, httpx.HTTPError)


def _genre_tracks(
    catalog: DeezerCatalog, genres: list[str], cap: int
) -> list[tuple[str, CatalogTrack | None]]:
    """One catalog lookup per genre until *cap* genres produced a track.

    A genre whose lookup fails is skipped; the others still count.
    """
    pairs: list[tuple[str, CatalogTrack | None]] = []
    found = 0
    for genre in genres:
        if found >= cap:
            break
        try:
            track = catalog.genre_track(genre)
        except _CATALOG_ERRORS as exc:
            logger.warning("recommendations: genre '%s' lookup failed: %s", genre, exc)
            continue
        pairs.append((genre, track))
        if track is not None:
            found += 1
    return pairs


def build_strategies(
    db: Session,
    catalog: DeezerCatalog,
    config: FeedConfig,
    user_id: str,
    genre: str | None,
    mood: str | None,
    energy: str | None,
) -> dict[str, StrategyBuilder]:
    """Bind each strategy to its datastore and catalog inputs."""

    def similar_artist() -> list[RecommendationRecord]:
        seeds = strategies.seed_artists(
            taste.recent_post_artists(db, user_id, config.recent_post_window),
            taste.recent_liked_artists(db, user_id, config.recent_like_window),
            config.seed_artist_count,
        )
        related = [(seed, catalog.related_top_tracks(seed)) for seed in seeds]
        return strategies.similar_artist(related, config.cap_for("similar_artist"))

    def trending_friends() -> list[RecommendationRecord]:
        posts = taste.friends_recent_posts(db, user_id, config.friend_window)
        return strategies.trending_friends(posts, config.cap_for("trending_friends"))

    def genre_exploration() -> list[RecommendationRecord]:
        cap = config.cap_for("genre_exploration")
        genres = strategies.exploration_genres(
            genre, taste.preferred_genres(db, user_id), config.default_genres
        )
        return strategies.genre_exploration(_genre_tracks(catalog, genres, cap), cap)

    def mood_based() -> list[RecommendationRecord]:
        cap = config.cap_for("mood_based")
        resolved = strategies.resolve_mood(mood, energy)
        return strategies.mood_based(resolved, catalog.mood_tracks(resolved, limit=cap), cap)

    return {
        "similar_artist": similar_artist,
        "trending_friends": trending_friends,
        "genre_exploration": genre_exploration,
        "mood_based": mood_based,
    }


def _trending_page(
    trending: TrendingService, genre: str | None, offset: int, limit: int
) -> Page[RecommendationRecord]:
    tracks, _, _ = trending.chart(genre)
    return window(strategies.trending_recommendations(tracks), offset, limit)


@router.get("/recommendations", response_model=RecommendationsResponse)
def get_recommendations(
    user_id: OptionalUser,
    db: DbSession,
    config: Config,
    now: Now,
    catalog: Catalog,
    trending: Trending,
    type: Literal["mixed", "trending"] = "mixed",  # noqa: A002
    limit: Annotated[int, Query(ge=0)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    genre: Annotated[str | None, Query(max_length=64)] = None,
    mood: Annotated[str | None, Query(max_length=32)] = None,
    energy: Annotated[str | None, Query(max_length=16)] = None,
) -> RecommendationsResponse:
    """Return one page of recommendations for the caller (or trending)."""
    check_page_size(limit, config.max_page_size)

    with LatencyTimer() as timer:
        fallback_reason: str | None = None
        if user_id is None:
            fallback_reason = "anonymous"
        elif type == "trending":
            fallback_reason = "requested"
        else:
            outcomes = run_strategies(
                build_strategies(db, catalog, config, user_id, genre, mood, energy),
                config,
                on_error=isolate_failures(db, "recommendations"),
            )
            if needs_fallback(outcomes):
                any_ok = any(not outcome.failed for outcome in outcomes)
                fallback_reason = "empty" if any_ok else "all_failed"
            else:
                page = blend(outcomes, offset, limit)

        if fallback_reason is not None:
            record_recommendation_fallback(fallback_reason)
            page = _trending_page(trending, genre, offset, limit)

    record_feed_request(
        endpoint="recommendations",
        status="success" if fallback_reason is None else "fallback",
        latency_seconds=timer.elapsed,
    )
    return RecommendationsResponse(
        recommendations=[RecommendationItem.from_record(record) for record in page.items],
        total=page.total,
        has_more=page.has_more,
        personalized=fallback_reason is None,
        timestamp=now,
    )
