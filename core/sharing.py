"""Track URL parsing and cross-provider share links.

A shared track is identified by the URL the user pasted (Spotify, Apple
Music or YouTube Music). From its metadata we build a link set for every
supported provider: a direct URL when we know the provider's id, and a
search URL that always works.

Pure functions — no I/O. Storage lives in ``infrastructure.share_store``.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Literal
from urllib.parse import quote

SourceProvider = Literal["spotify", "apple", "youtube"]

SHARE_PROVIDERS: tuple[str, ...] = (
    "spotify",
    "apple_music",
    "youtube_music",
    "deezer",
    "tidal",
    "soundcloud",
)

_URL_PATTERNS: tuple[tuple[SourceProvider, re.Pattern[str]], ...] = (
    ("spotify", re.compile(r"spotify\.com/track/([a-zA-Z0-9]+)")),
    ("apple", re.compile(r"music\.apple\.com/.*/album/.*/(\d+)")),
    ("youtube", re.compile(r"music\.youtube\.com/watch\?v=([a-zA-Z0-9_-]+)")),
)


@dataclass(frozen=True)
class TrackRef:
    """Provider + provider-native id parsed from a pasted URL."""

    provider: SourceProvider
    id: str


@dataclass(frozen=True)
class TrackMetadata:
    """Minimal metadata needed to share a track."""

    title: str
    artist: str
    id: str | None = None
    artwork: str | None = None
    spotify_url: str | None = None
    apple_music_url: str | None = None
    youtube_url: str | None = None


@dataclass(frozen=True)
class ProviderLink:
    url: str
    deep_link: str
    search_url: str


@dataclass
class ShareLink:
    """A stored share link. ``click_count`` is the only mutable field."""

    id: str
    short_id: str
    track_title: str
    track_artist: str
    provider_links: dict[str, dict[str, str]]
    created_at: str
    expires_at: str
    track_id: str | None = None
    track_artwork: str | None = None
    click_count: int = 0

    def is_expired(self, now: datetime) -> bool:
        return datetime.fromisoformat(self.expires_at) < now

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShareLink:
        return cls(**data)


def parse_track_url(url: str) -> TrackRef | None:
    """Recognize a Spotify, Apple Music or YouTube Music track URL.

    Returns:
        ``TrackRef`` or None when the URL matches no supported provider.
    """
    for provider, pattern in _URL_PATTERNS:
        match = pattern.search(url)
        if match:
            return TrackRef(provider=provider, id=match.group(1))
    return None


def _last_path_segment(url: str | None) -> str | None:
    if not url:
        return None
    segment = url.rstrip("/").split("/")[-1]
    return segment or None


def _youtube_video_id(url: str | None) -> str | None:
    if not url or "v=" not in url:
        return None
    return url.split("v=", 1)[1].split("&", 1)[0] or None


def _provider_id(provider_data: dict[str, Any], provider: str, key: str = "id") -> str | None:
    entry = provider_data.get(provider) or {}
    value = entry.get(key) if isinstance(entry, dict) else None
    return None if value is None else str(value)


def build_provider_links(
    track: TrackMetadata,
    provider_data: dict[str, Any] | None = None,
) -> dict[str, ProviderLink]:
    """Build direct, deep and search links for every share provider.

    Provider-specific ids come from *provider_data* first, then from the
    provider URLs on *track*, then fall back to the track's own id.

    Args:
        track: Track metadata (title and artist are required).
        provider_data: Optional ``{provider: {"id": ...}}`` lookups, e.g.
            ``{"youtube_music": {"videoId": "abc"}}``.
    """
    data = provider_data or {}
    term = quote(f"{track.artist} {track.title}", safe="")
    fallback = track.id or ""

    spotify_id = (
        _provider_id(data, "spotify") or _last_path_segment(track.spotify_url) or fallback
    )
    apple_id = (
        _provider_id(data, "apple_music") or _last_path_segment(track.apple_music_url) or fallback
    )
    video_id = (
        _provider_id(data, "youtube_music", "videoId")
        or _youtube_video_id(track.youtube_url)
        or fallback
    )
    deezer_id = _provider_id(data, "deezer") or fallback
    tidal_id = _provider_id(data, "tidal") or fallback
    soundcloud_id = _provider_id(data, "soundcloud") or fallback
    permalink = _last_path_segment(_provider_id(data, "soundcloud", "permalink_url")) or fallback

    return {
        "spotify": ProviderLink(
            url=f"https://open.spotify.com/track/{spotify_id}",
            deep_link=f"spotify:track:{spotify_id}",
            search_url=f"https://open.spotify.com/search/{term}",
        ),
        "apple_music": ProviderLink(
            url=f"https://music.apple.com/us/album/{apple_id}",
            deep_link=f"music://music.apple.com/album/{apple_id}",
            search_url=f"https://music.apple.com/us/search?term={term}",
        ),
        "youtube_music": ProviderLink(
            url=f"https://music.youtube.com/watch?v={video_id}",
            deep_link=f"youtubemusic://watch?v={video_id}",
            search_url=f"https://music.youtube.com/search?q={term}",
        ),
        "deezer": ProviderLink(
            url=f"https://www.deezer.com/track/{deezer_id}",
            deep_link=f"deezer://www.deezer.com/track/{deezer_id}",
            search_url=f"https://www.deezer.com/search/{term}",
        ),
        "tidal": ProviderLink(
            url=f"https://tidal.com/browse/track/{tidal_id}",
            deep_link=f"tidal://track/{tidal_id}",
            search_url=f"https://tidal.com/search/{term}",
        ),
        "soundcloud": ProviderLink(
            url=f"https://soundcloud.com/{permalink}",
            deep_link=f"soundcloud://sounds:{soundcloud_id}",
            search_url=f"https://soundcloud.com/search/sounds?q={term}",
        ),
    }


def links_as_dict(links: dict[str, ProviderLink]) -> dict[str, dict[str, str]]:
    """Serialize provider links for storage and JSON responses."""
    return {provider: asdict(link) for provider, link in links.items()}
