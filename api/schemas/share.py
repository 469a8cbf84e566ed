"""Pydantic schemas for ``/api/resolve`` and ``/api/share``."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from core.sharing import ShareLink, TrackMetadata


class ResolveRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048, description="Pasted track URL.")


class TrackIn(BaseModel):
    """Track fields accepted when creating a share link."""

    id: str | None = None
    title: str = Field(..., min_length=1, max_length=256)
    artist: str = Field(..., min_length=1, max_length=256)
    artwork: str | None = None
    spotify_url: str | None = None
    apple_music_url: str | None = None
    youtube_url: str | None = None

    def to_metadata(self) -> TrackMetadata:
        return TrackMetadata(
            id=self.id,
            title=self.title,
            artist=self.artist,
            artwork=self.artwork,
            spotify_url=self.spotify_url,
            apple_music_url=self.apple_music_url,
            youtube_url=self.youtube_url,
        )


class ShareRequest(BaseModel):
    track: TrackIn
    provider_data: dict[str, Any] | None = None


class ShareCreated(BaseModel):
    short_id: str
    url: str
    expires_at: str


class ShareCreatedResponse(BaseModel):
    success: bool = True
    data: ShareCreated


class ShareLinkOut(BaseModel):
    id: str
    short_id: str
    track_id: str | None = None
    track_title: str
    track_artist: str
    track_artwork: str | None = None
    provider_links: dict[str, dict[str, str]]
    created_at: str
    expires_at: str
    click_count: int

    @classmethod
    def from_link(cls, link: ShareLink) -> ShareLinkOut:
        return cls(**link.to_dict())


class ShareLinkResponse(BaseModel):
    success: bool = True
    data: ShareLinkOut


class ResolvedTrack(BaseModel):
    id: str | None = None
    title: str
    artist: str
    artwork: str | None = None
    provider: str


class ResolveResponse(BaseModel):
    success: bool = True
    track: ResolvedTrack
    share: ShareCreated
