"""
Trending tracks — the general, non-personalized recommendation source.

Chart tracks come from the Redis cache when warm, otherwise from the
catalog (through its circuit breaker) and are written back to the cache.
When the catalog is down the service serves a small static list so the
trending shelf and the anonymous recommendations are never empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from core.feed.paginate import window
from core.recommendations.types import CatalogTrack
from infrastructure.cache import TrendingCache
from infrastructure.circuit_breaker import CircuitOpenError
from infrastructure.metrics import record_trending_cache
from providers.catalog import CatalogError, DeezerCatalog

logger = logging.getLogger(__name__)

CHART_SIZE = 50

FALLBACK_TRACKS: tuple[CatalogTrack, ...] = (
    CatalogTrack(
        id="trending-fallback-1",
        title="Sample Trending Track 1",
        artist="Popular Artist",
        album="Hit Album",
        url="https://music.apple.com/us/album/sample-track/123456789",
        duration_ms=180000,
        position=1,
        genre="pop",
        provider="fallback",
    ),
    CatalogTrack(
        id="trending-fallback-2",
        title="Sample Trending Track 2",
        artist="Chart Topper",
        album="Top Hits",
        url="https://music.apple.com/us/album/sample-track/987654321",
        duration_ms=200000,
        position=2,
        genre="pop",
        provider="fallback",
    ),
    CatalogTrack(
        id="trending-fallback-3",
        title="Sample Trending Track 3",
        artist="Rising Star",
        album="New Wave",
        url="https://music.apple.com/us/album/sample-track/456789123",
        duration_ms=220000,
        position=3,
        genre="pop",
        provider="fallback",
    ),
)


@dataclass(frozen=True)
class TrendingResult:
    """One page of trending tracks and where it came from."""

    tracks: list[CatalogTrack]
    total: int
    has_more: bool
    from_cache: bool = False
    from_fallback: bool = False


class TrendingService:
    """Cached chart lookups with a static fallback.

    Args:
        catalog: Catalog client; its breaker guards every chart fetch.
        cache: Trending chart cache (a no-op when Redis is down).
    """

    def __init__(self, catalog: DeezerCatalog, cache: TrendingCache) -> None:
        self._catalog = catalog
        self._cache = cache

    def chart(
        self, genre: str | None = None, refresh: bool = False
    ) -> tuple[list[CatalogTrack], bool, bool]:
        """Full chart for *genre*.

        Returns:
            ``(tracks, from_cache, from_fallback)``.
        """
        if not refresh:
            cached = self._cache.get(genre)
            record_trending_cache(hit=cached is not None)
            if cached is not None:
                return cached, True, False
        try:
            tracks = self._catalog.chart(limit=CHART_SIZE, genre=genre)
        except CircuitOpenError as exc:
            logger.warning("trending: %s, serving fallback", exc)
            return list(FALLBACK_TRACKS), False, True
        except (CatalogError, httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("trending: catalog unavailable, serving fallback: %s", exc)
            return list(FALLBACK_TRACKS), False, True
        if not tracks:
            logger.info("trending: empty chart for genre=%s, serving fallback", genre)
            return list(FALLBACK_TRACKS), False, True
        self._cache.set(genre, tracks)
        return tracks, False, False

    def get_tracks(
        self,
        genre: str | None = None,
        limit: int = 20,
        offset: int = 0,
        refresh: bool = False,
    ) -> TrendingResult:
        """One offset/limit page of the chart."""
        tracks, from_cache, from_fallback = self.chart(genre, refresh)
        page = window(tracks, offset, limit)
        return TrendingResult(
            tracks=page.items,
            total=page.total,
            has_more=page.has_more,
            from_cache=from_cache,
            from_fallback=from_fallback,
        )
