"""
Track metadata resolution for pasted share URLs.

Spotify and YouTube expose public oEmbed endpoints (title, author,
thumbnail); Apple Music ids are looked up through the iTunes lookup API.
None of them need credentials. A failed lookup is logged and the metadata
degrades to ``Unknown Track`` / ``Unknown Artist`` so a share link can
still be created from the URL alone.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from dotenv import load_dotenv

from core.sharing import TrackMetadata, TrackRef
from infrastructure.retry import TRANSIENT_ERRORS, with_retry

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Track"
UNKNOWN_ARTIST = "Unknown Artist"

SPOTIFY_OEMBED_URL = "https://open.spotify.com/oembed"
YOUTUBE_OEMBED_URL = "https://www.youtube.com/oembed"
ITUNES_LOOKUP_URL = "https://itunes.apple.com/lookup"


class OEmbedResolver:
    """Resolve a ``TrackRef`` into share metadata."""

    def __init__(
        self,
        *,
        timeout_seconds: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        load_dotenv()
        timeout = timeout_seconds or float(os.environ.get("CATALOG_TIMEOUT_SECONDS", 8.0))
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    @with_retry(max_attempts=2, base_seconds=0.25, exceptions=TRANSIENT_ERRORS)
    def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        response = self._client.get(url, params=params)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected payload from {url}")
        return payload

    def _lookup(self, ref: TrackRef) -> dict[str, Any]:
        if ref.provider == "spotify":
            track_url = f"https://open.spotify.com/track/{ref.id}"
            data = self._get_json(SPOTIFY_OEMBED_URL, {"url": track_url})
            return {
                "title": data.get("title"),
                "artist": data.get("author_name"),
                "artwork": data.get("thumbnail_url"),
                "spotify_url": track_url,
            }
        if ref.provider == "youtube":
            video_url = f"https://www.youtube.com/watch?v={ref.id}"
            data = self._get_json(YOUTUBE_OEMBED_URL, {"url": video_url, "format": "json"})
            return {
                "title": data.get("title"),
                "artist": data.get("author_name"),
                "artwork": data.get("thumbnail_url"),
                "youtube_url": f"https://music.youtube.com/watch?v={ref.id}",
            }
        data = self._get_json(ITUNES_LOOKUP_URL, {"id": ref.id})
        results = data.get("results") or []
        if not results:
            return {}
        item = results[0]
        artwork = item.get("artworkUrl100")
        return {
            "title": item.get("trackName"),
            "artist": item.get("artistName"),
            "artwork": artwork.replace("100x100bb", "400x400bb") if artwork else None,
            "apple_music_url": item.get("trackViewUrl"),
        }

    def resolve(self, ref: TrackRef) -> TrackMetadata:
        """Fetch title, artist and artwork for *ref*; never raises on lookup failure."""
        try:
            found = self._lookup(ref)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("resolve: %s lookup failed for %s: %s", ref.provider, ref.id, exc)
            found = {}
        return TrackMetadata(
            id=ref.id,
            title=found.get("title") or UNKNOWN_TITLE,
            artist=found.get("artist") or UNKNOWN_ARTIST,
            artwork=found.get("artwork"),
            spotify_url=found.get("spotify_url"),
            apple_music_url=found.get("apple_music_url"),
            youtube_url=found.get("youtube_url"),
        )
