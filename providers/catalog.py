"""
Deezer catalog client.

Read-only access to the public Deezer API (no key required): charts,
related artists, genre charts and search. Lives in providers/ because it
performs network I/O (core/ must remain pure); everything it returns is a
``core.recommendations.types.CatalogTrack``.

Each request goes through the catalog circuit breaker and a short
transport-level retry. Any failure surfaces as ``CatalogError`` (or
``CircuitOpenError``) so the calling strategy can be isolated.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from dotenv import load_dotenv

from core.recommendations.types import CatalogTrack
from infrastructure.circuit_breaker import CircuitBreaker
from infrastructure.retry import TRANSIENT_ERRORS, with_retry

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.deezer.com"
DEFAULT_TIMEOUT_SECONDS = 8.0

# Search terms used when a mood has no dedicated chart.
MOOD_QUERIES: dict[str, str] = {
    "happy": "happy",
    "chill": "chill",
    "energetic": "workout",
    "melancholic": "sad",
}


class CatalogError(Exception):
    """Raised when the catalog returns an error or an unusable payload."""


def track_from_payload(item: dict[str, Any], genre: str | None = None) -> CatalogTrack:
    """Map one Deezer track object to a ``CatalogTrack``.

    Raises:
        CatalogError: If the payload has no id, title or artist.
    """
    artist = item.get("artist") or {}
    album = item.get("album") or {}
    if not item.get("id") or not item.get("title") or not artist.get("name"):
        raise CatalogError(f"Incomplete track payload: {sorted(item)}")
    duration = item.get("duration")
    return CatalogTrack(
        id=str(item["id"]),
        title=item["title"],
        artist=artist["name"],
        album=album.get("title"),
        artwork=album.get("cover_xl") or album.get("cover_medium"),
        url=item.get("link"),
        preview_url=item.get("preview") or None,
        duration_ms=int(duration) * 1000 if duration is not None else None,
        popularity=item.get("rank") or 0,
        explicit=bool(item.get("explicit_lyrics", False)),
        position=item.get("position"),
        genre=genre,
    )


def _tracks(payload: dict[str, Any], genre: str | None = None) -> list[CatalogTrack]:
    tracks: list[CatalogTrack] = []
    for item in payload.get("data") or []:
        try:
            tracks.append(track_from_payload(item, genre))
        except CatalogError as exc:
            logger.debug("catalog: skipping track: %s", exc)
    return tracks


class DeezerCatalog:
    """
    Music catalog backed by the public Deezer API.

    Reads ``DEEZER_API_URL`` and ``CATALOG_TIMEOUT_SECONDS`` from the
    environment. Pass ``client`` to reuse a connection pool (or a mock
    transport in tests) and ``breaker`` to share one circuit across
    requests.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        client: httpx.Client | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        load_dotenv()
        resolved_url = base_url or os.environ.get("DEEZER_API_URL", DEFAULT_BASE_URL)
        timeout = timeout_seconds or float(
            os.environ.get("CATALOG_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        )
        self._client = client or httpx.Client(base_url=resolved_url, timeout=timeout)
        self._breaker = breaker or CircuitBreaker(name="deezer")
        self._genre_ids: dict[str, int] | None = None

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    def close(self) -> None:
        self._client.close()

    @with_retry(max_attempts=2, base_seconds=0.25, exceptions=TRANSIENT_ERRORS)
    def _fetch(self, path: str, params: dict[str, Any] | None) -> dict[str, Any]:
        response = self._client.get(path, params=params)
        if response.status_code >= 400:
            raise CatalogError(f"GET {path} returned HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogError(f"GET {path} returned invalid JSON") from exc
        # Deezer reports quota and lookup errors with HTTP 200 and an "error" object.
        if not isinstance(payload, dict) or "error" in payload:
            error = payload.get("error") if isinstance(payload, dict) else payload
            raise CatalogError(f"GET {path} failed: {error}")
        return payload

    def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._breaker.call(self._fetch, path, params)

    # ------------------------------------------------------------------
    # Charts
    # ------------------------------------------------------------------

    def genre_id(self, genre: str) -> int | None:
        """Deezer genre id for a genre name (case-insensitive), or None."""
        if self._genre_ids is None:
            payload = self._get("/genre")
            self._genre_ids = {
                str(item["name"]).strip().lower(): int(item["id"])
                for item in payload.get("data") or []
                if item.get("name") and item.get("id") is not None
            }
        return self._genre_ids.get(genre.strip().lower())

    def chart(self, limit: int = 50, genre: str | None = None) -> list[CatalogTrack]:
        """Top tracks overall, or for *genre* when Deezer knows the genre.

        Unknown genres fall back to a plain search on the genre name.
        """
        if genre:
            genre_id = self.genre_id(genre)
            if genre_id is None:
                return self.search(genre, limit=limit, genre=genre)
            payload = self._get(f"/chart/{genre_id}/tracks", {"limit": limit})
            return _tracks(payload, genre)
        return _tracks(self._get("/chart/0/tracks", {"limit": limit}))

    def search(self, query: str, limit: int = 10, genre: str | None = None) -> list[CatalogTrack]:
        """Free-text track search."""
        return _tracks(self._get("/search", {"q": query, "limit": limit}), genre)

    # ------------------------------------------------------------------
    # Strategy inputs
    # ------------------------------------------------------------------

    def related_top_tracks(
        self, artist: str, artist_limit: int = 3, tracks_per_artist: int = 1
    ) -> list[CatalogTrack]:
        """Top tracks of artists Deezer lists as related to *artist*.

        Returns an empty list when the artist is unknown.
        """
        found = self._get("/search/artist", {"q": artist, "limit": 1}).get("data") or []
        if not found:
            logger.info("catalog: no artist match for '%s'", artist)
            return []
        related = self._get(f"/artist/{found[0]['id']}/related", {"limit": artist_limit})
        tracks: list[CatalogTrack] = []
        for related_artist in (related.get("data") or [])[:artist_limit]:
            top = self._get(f"/artist/{related_artist['id']}/top", {"limit": tracks_per_artist})
            tracks.extend(_tracks(top)[:tracks_per_artist])
        return tracks

    def genre_track(self, genre: str) -> CatalogTrack | None:
        """The top chart track for *genre*, or None if the genre is empty."""
        tracks = self.chart(limit=1, genre=genre)
        return tracks[0] if tracks else None

    def mood_tracks(self, mood: str, limit: int = 1) -> list[CatalogTrack]:
        """Tracks matching a mood keyword."""
        return self.search(MOOD_QUERIES.get(mood, mood), limit=limit)
