"""Catalog track value object shared by strategies and the trending source.

No I/O — providers/ builds these from catalog JSON.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CatalogTrack:
    """A track as returned by a public music catalog.

    Attributes:
        id: Catalog-native track id (stringified).
        title: Track title.
        artist: Primary artist name.
        album: Album title, if known.
        artwork: Cover image URL, if known.
        url: Public track page URL.
        preview_url: 30-second preview, if the catalog offers one.
        duration_ms: Track length in milliseconds.
        popularity: Catalog-specific rank or score (higher = more popular).
        explicit: Explicit-lyrics flag.
        position: 1-based chart position when the track came from a chart.
        genre: Genre label the track was fetched for, if any.
        provider: Catalog name, e.g. ``"deezer"``.
    """

    id: str
    title: str
    artist: str
    album: str | None = None
    artwork: str | None = None
    url: str | None = None
    preview_url: str | None = None
    duration_ms: int | None = None
    popularity: float = 0
    explicit: bool = False
    position: int | None = None
    genre: str | None = None
    provider: str = "deezer"
