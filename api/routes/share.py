"""
Track resolution and share-link routes.

``POST /api/resolve``          — pasted URL → metadata + new share link.
``POST /api/share``            — track fields → new share link.
``GET  /api/share/{short_id}`` — open a share link (counts the click).

Share links are public; no authentication is required.
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path

from api.deps import get_base_url, get_now, get_resolver, get_share_store
from api.schemas.share import (
    ResolvedTrack,
    ResolveRequest,
    ResolveResponse,
    ShareCreated,
    ShareCreatedResponse,
    ShareLinkOut,
    ShareLinkResponse,
    ShareRequest,
)
from core.sharing import ShareLink, TrackMetadata, parse_track_url
from infrastructure.metrics import record_share_link
from infrastructure.share_store import ShareLinkStore, ShareStoreError
from providers.oembed import OEmbedResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["share"])

Store = Annotated[ShareLinkStore, Depends(get_share_store)]
Resolver = Annotated[OEmbedResolver, Depends(get_resolver)]
BaseUrl = Annotated[str, Depends(get_base_url)]
Now = Annotated[datetime, Depends(get_now)]


def _create(
    store: ShareLinkStore,
    track: TrackMetadata,
    provider_data: dict | None,
    now: datetime,
    base_url: str,
) -> ShareCreated:
    try:
        link = store.create(track, provider_data, now)
    except ShareStoreError as exc:
        logger.error("share: could not store link for '%s': %s", track.title, exc)
        raise HTTPException(status_code=500, detail="Failed to create share link") from exc
    record_share_link("created")
    return ShareCreated(
        short_id=link.short_id,
        url=f"{base_url}/t/{link.short_id}",
        expires_at=link.expires_at,
    )


@router.post("/resolve", response_model=ResolveResponse)
def resolve_track(
    body: ResolveRequest,
    store: Store,
    resolver: Resolver,
    base_url: BaseUrl,
    now: Now,
) -> ResolveResponse:
    """Resolve a Spotify, Apple Music or YouTube Music URL and share it."""
    ref = parse_track_url(body.url)
    if ref is None:
        raise HTTPException(
            status_code=400,
            detail="Unsupported URL. Paste a Spotify, Apple Music or YouTube Music track link.",
        )
    metadata = resolver.resolve(ref)
    share = _create(store, metadata, None, now, base_url)
    return ResolveResponse(
        track=ResolvedTrack(
            id=metadata.id,
            title=metadata.title,
            artist=metadata.artist,
            artwork=metadata.artwork,
            provider=ref.provider,
        ),
        share=share,
    )


@router.post("/share", response_model=ShareCreatedResponse)
def create_share_link(
    body: ShareRequest,
    store: Store,
    base_url: BaseUrl,
    now: Now,
) -> ShareCreatedResponse:
    """Store a share link for a track the client already knows."""
    return ShareCreatedResponse(
        data=_create(store, body.track.to_metadata(), body.provider_data, now, base_url)
    )


@router.get("/share/{short_id}", response_model=ShareLinkResponse)
def open_share_link(
    short_id: Annotated[str, Path(min_length=1, max_length=32)],
    store: Store,
    now: Now,
) -> ShareLinkResponse:
    """Return a share link and count the click. 404 unknown, 410 expired."""
    try:
        link: ShareLink | None = store.get(short_id)
        if link is None:
            raise HTTPException(status_code=404, detail="Share link not found")
        if link.is_expired(now):
            record_share_link("expired")
            raise HTTPException(status_code=410, detail="Share link has expired")
        link = store.record_click(short_id) or link
    except ShareStoreError as exc:
        logger.error("share: lookup of %s failed: %s", short_id, exc)
        raise HTTPException(status_code=500, detail="Failed to fetch share link") from exc
    record_share_link("opened")
    return ShareLinkResponse(data=ShareLinkOut.from_link(link))
