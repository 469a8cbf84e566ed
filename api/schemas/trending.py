"""Pydantic schemas for the ``/api/trending`` endpoint."""

from __future__ import annotations

from pydantic import BaseModel

from core.recommendations.types import CatalogTrack


class TrendingTrack(BaseModel):
    id: str
    title: str
    artist: str
    album: str | None = None
    artwork: str | None = None
    url: str | None = None
    preview_url: str | None = None
    duration_ms: int | None = None
    position: int | None = None
    genre: str | None = None
    provider: str

    @classmethod
    def from_track(cls, track: CatalogTrack) -> TrendingTrack:
        return cls(
            id=track.id,
            title=track.title,
            artist=track.artist,
            album=track.album,
            artwork=track.artwork,
            url=track.url,
            preview_url=track.preview_url,
            duration_ms=track.duration_ms,
            position=track.position,
            genre=track.genre,
            provider=track.provider,
        )


class TrendingResponse(BaseModel):
    success: bool = True
    tracks: list[TrendingTrack]
    genre: str | None = None
    total: int
    limit: int
    offset: int
    has_more: bool
    from_cache: bool
    from_fallback: bool
