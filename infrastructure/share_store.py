"""Redis-backed share-link storage.

A share link maps an 8-hex short id to a track and its provider links.
Links live in Redis as JSON under ``trackshare:share:{short_id}`` with a
TTL equal to the link lifetime (30 days by default), so they survive
restarts, are shared by every worker, and disappear on their own.

Unlike the trending cache this store does not degrade to a no-op: a share
link that was never stored cannot be opened later, so Redis errors surface
as ``ShareStoreError``.

Usage::

    from infrastructure.share_store import ShareLinkStore

    store = ShareLinkStore()
    link = store.create(track, provider_data, now=datetime.now(UTC))
    store.record_click(link.short_id)
"""

from __future__ import annotations

import json
import logging
import os
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Any

import redis as redis_lib

from core.sharing import ShareLink, TrackMetadata, build_provider_links, links_as_dict

logger = logging.getLogger(__name__)

_DEFAULT_TTL_DAYS = 30
_NS = "trackshare:share:"
_SHORT_ID_BYTES = 4  # 8 hex chars
_MAX_ID_ATTEMPTS = 5


class ShareStoreError(Exception):
    """Raised when share-link storage is unreachable or inconsistent."""


def _share_key(short_id: str) -> str:
    return f"{_NS}{short_id}"


def _clicks_key(short_id: str) -> str:
    return f"{_NS}{short_id}:clicks"


def new_short_id() -> str:
    """Random 8-character lowercase hex id."""
    return secrets.token_hex(_SHORT_ID_BYTES)


class ShareLinkStore:
    """Create, read and click-count share links in Redis.

    Args:
        redis_url: Redis connection URL (default: from REDIS_URL env var or
            ``redis://localhost:6379/0``).
        ttl_days: Link lifetime in days.
        client: Pre-built Redis client (tests pass a mock).
    """

    def __init__(
        self,
        redis_url: str | None = None,
        ttl_days: int = _DEFAULT_TTL_DAYS,
        client: Any = None,
    ) -> None:
        self._ttl = timedelta(days=ttl_days)
        if client is None:
            url = redis_url or os.environ.get("REDIS_URL", "redis://localhost:6379/0")
            client = redis_lib.from_url(url, decode_responses=True, socket_timeout=2.0)
        self._client = client

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def create(
        self,
        track: TrackMetadata,
        provider_data: dict[str, Any] | None,
        now: datetime,
    ) -> ShareLink:
        """Build provider links for *track* and store a new share link.

        Raises:
            ShareStoreError: Redis is unreachable or no free short id was found.
        """
        link = ShareLink(
            id=str(uuid.uuid4()),
            short_id="",
            track_id=track.id,
            track_title=track.title,
            track_artist=track.artist,
            track_artwork=track.artwork,
            provider_links=links_as_dict(build_provider_links(track, provider_data)),
            created_at=now.isoformat(),
            expires_at=(now + self._ttl).isoformat(),
        )
        try:
            for _ in range(_MAX_ID_ATTEMPTS):
                link.short_id = new_short_id()
                stored = self._client.set(
                    _share_key(link.short_id),
                    json.dumps(link.to_dict()),
                    ex=self.ttl_seconds,
                    nx=True,
                )
                if stored:
                    logger.info(
                        "share: created %s for '%s' by %s",
                        link.short_id,
                        track.title,
                        track.artist,
                    )
                    return link
        except redis_lib.RedisError as exc:
            raise ShareStoreError(f"Failed to store share link: {exc}") from exc
        raise ShareStoreError("Could not allocate a unique short id")

    def get(self, short_id: str) -> ShareLink | None:
        """Return the stored link, or None if unknown (or already evicted)."""
        try:
            raw, clicks = self._client.mget(_share_key(short_id), _clicks_key(short_id))
        except redis_lib.RedisError as exc:
            raise ShareStoreError(f"Failed to read share link: {exc}") from exc
        if raw is None:
            return None
        try:
            link = ShareLink.from_dict(json.loads(raw))
        except (TypeError, ValueError) as exc:
            logger.warning("share: discarding corrupt entry %s: %s", short_id, exc)
            return None
        if clicks is not None:
            link.click_count = int(clicks)
        return link

    def record_click(self, short_id: str) -> ShareLink | None:
        """Count one open of the link.

        Clicks live in a sibling counter key bumped with ``INCR``, so
        concurrent opens never overwrite each other and the link JSON is
        never rewritten. The counter expires together with the link; if the
        link expired after it was read, the counter is created already
        expired and Redis drops it.

        Returns:
            The link with its updated count, or None if it no longer exists.
        """
        link = self.get(short_id)
        if link is None:
            return None
        key = _clicks_key(short_id)
        try:
            pipe = self._client.pipeline()
            pipe.incr(key)
            pipe.expireat(key, datetime.fromisoformat(link.expires_at))
            count, _ = pipe.execute()
        except redis_lib.RedisError as exc:
            raise ShareStoreError(f"Failed to update share link: {exc}") from exc
        link.click_count = int(count)
        return link
