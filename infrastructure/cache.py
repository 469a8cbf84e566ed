"""Redis-backed trending chart cache for the TrackShare feed service.

The catalog chart changes slowly and every anonymous recommendation request
reads it, so it is cached per genre in Redis with a short TTL. The cache is
shared across workers and survives restarts.

Key = ``trackshare:trending:{genre}``. Entries are the chart tracks stored
as a JSON list. There is no invalidation beyond the TTL; ``refresh=true``
on the trending endpoint bypasses the read and overwrites the entry.

Usage::

    from infrastructure.cache import TrendingCache

    cache = TrendingCache()
    tracks = cache.get("pop")
    if tracks is None:
        tracks = catalog.chart(limit=50)
        cache.set("pop", tracks)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from typing import Any

import redis as redis_lib

from core.recommendations.types import CatalogTrack

logger = logging.getLogger(__name__)

# Chart TTL: 15 minutes.
_DEFAULT_TTL_SECONDS = 900
# Redis key namespace
_NS = "trackshare:trending:"


def _make_key(genre: str | None) -> str:
    """Namespaced Redis key for one genre's chart.

    Args:
        genre: Genre label; None or blank means the global chart.

    Returns:
        Namespaced Redis key string.
    """
    label = (genre or "").strip().lower() or "all"
    return f"{_NS}{label}"


class TrendingCache:
    """Redis-backed cache for catalog chart tracks.

    Falls back gracefully to a no-op if Redis is unavailable. The trending
    endpoint keeps working, it just calls the catalog every time.

    Args:
        redis_url: Redis connection URL (default: from REDIS_URL env var or
            ``redis://localhost:6379/0``).
        ttl_seconds: Cache TTL in seconds (default: 900 = 15 min).
        client: Pre-built Redis client; skips ``from_url`` and ``ping``.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        ttl_seconds: int = _DEFAULT_TTL_SECONDS,
        client: Any = None,
    ) -> None:
        self._ttl = ttl_seconds
        self._client: Any = client
        if client is not None:
            return
        url = redis_url or os.environ.get("REDIS_URL", "redis://localhost:6379/0")
        try:
            self._client = redis_lib.from_url(url, decode_responses=True, socket_timeout=0.5)
            self._client.ping()
            logger.info("TrendingCache: connected to Redis at %s", url)
        except Exception as exc:  # noqa: BLE001
            logger.warning("TrendingCache: Redis unavailable (%s), caching disabled", exc)
            self._client = None

    @property
    def available(self) -> bool:
        """True if Redis is reachable."""
        return self._client is not None

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def get(self, genre: str | None) -> list[CatalogTrack] | None:
        """Return cached chart tracks or None on miss / error."""
        if not self._client:
            return None
        key = _make_key(genre)
        try:
            raw = self._client.get(key)
            if raw is None:
                return None
            tracks = [CatalogTrack(**item) for item in json.loads(raw)]
            logger.debug("TrendingCache HIT: %s (%d tracks)", key, len(tracks))
            return tracks
        except Exception as exc:  # noqa: BLE001
            logger.warning("TrendingCache.get error: %s", exc)
            return None

    def set(self, genre: str | None, tracks: list[CatalogTrack]) -> None:
        """Store chart tracks for *genre* with the configured TTL."""
        if not self._client:
            return
        key = _make_key(genre)
        try:
            payload = json.dumps([asdict(track) for track in tracks])
            self._client.setex(key, self._ttl, payload)
            logger.debug("TrendingCache SET: %s (%d tracks)", key, len(tracks))
        except Exception as exc:  # noqa: BLE001
            logger.warning("TrendingCache.set error: %s", exc)

    def flush(self) -> int:
        """Delete every cached chart.

        Returns:
            Number of keys deleted.
        """
        if not self._client:
            return 0
        try:
            keys = list(self._client.scan_iter(f"{_NS}*"))
            if not keys:
                return 0
            deleted = self._client.delete(*keys)
            logger.info("TrendingCache: flushed %d keys", deleted)
            return int(deleted)
        except Exception as exc:  # noqa: BLE001
            logger.warning("TrendingCache.flush error: %s", exc)
            return 0
