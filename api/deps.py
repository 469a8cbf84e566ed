"""
FastAPI dependency providers.

Reuses the canonical session factory from ``db.session`` to avoid
duplicate engine/sessionmaker definitions. Catalog clients, circuit
breakers and Redis-backed stores are process singletons, created on first
use and shared across requests. Tests replace any of them through
``app.dependency_overrides``.
"""

import logging
import os
import time
from collections.abc import Generator
from datetime import UTC, datetime
from typing import Annotated

from dotenv import load_dotenv
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from core.auth import AuthError, bearer_token, verify_token
from core.config import DEFAULT_CONFIG, FeedConfig
from db.session import SessionLocal
from infrastructure.cache import TrendingCache
from infrastructure.circuit_breaker import CircuitBreaker
from infrastructure.share_store import ShareLinkStore
from providers.catalog import DeezerCatalog
from providers.oembed import OEmbedResolver
from providers.trending import TrendingService

logger = logging.getLogger(__name__)

AUTH_REQUIRED = "Authentication required"


def get_db() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session for FastAPI dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_now() -> datetime:
    """Current UTC time; overridden in tests that need a fixed clock."""
    return datetime.now(UTC)


def get_feed_config() -> FeedConfig:
    return DEFAULT_CONFIG


# ---------------------------------------------------------------------------
# Authentication — identity is always the ``sub`` claim
# ---------------------------------------------------------------------------


def get_jwt_secret() -> str:
    """Signing secret for bearer tokens (``TRACKSHARE_JWT_SECRET``)."""
    load_dotenv()
    return os.environ.get("TRACKSHARE_JWT_SECRET", "")


def get_optional_user(
    secret: Annotated[str, Depends(get_jwt_secret)],
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Return the caller's user id, or None for missing/invalid tokens."""
    token = bearer_token(authorization)
    if token is None:
        return None
    try:
        return verify_token(token, secret, now=time.time()).user_id
    except AuthError as exc:
        logger.info("auth: rejected bearer token: %s", exc)
        return None


def get_current_user(
    user_id: Annotated[str | None, Depends(get_optional_user)],
) -> str:
    """Return the caller's user id or fail with 401."""
    if user_id is None:
        raise HTTPException(status_code=401, detail=AUTH_REQUIRED)
    return user_id


# ---------------------------------------------------------------------------
# Circuit breakers — one per external catalog
# ---------------------------------------------------------------------------

# Deezer breaker: trips after 3 consecutive failures, probes again after 30s.
_catalog_breaker: CircuitBreaker | None = None


def get_catalog_breaker() -> CircuitBreaker:
    """Return the Deezer circuit breaker singleton.

    Shared across all requests so failure counts accumulate across the
    lifetime of the server process.
    """
    global _catalog_breaker  # noqa: PLW0603
    if _catalog_breaker is None:
        _catalog_breaker = CircuitBreaker(
            name="deezer",
            failure_threshold=3,
            reset_timeout_seconds=30.0,
        )
    return _catalog_breaker


# ---------------------------------------------------------------------------
# Catalog and resolver clients
# ---------------------------------------------------------------------------

_catalog: DeezerCatalog | None = None


def get_catalog() -> DeezerCatalog:
    """Return a cached ``DeezerCatalog`` singleton (one HTTP connection pool)."""
    global _catalog  # noqa: PLW0603
    if _catalog is None:
        _catalog = DeezerCatalog(breaker=get_catalog_breaker())
    return _catalog


_resolver: OEmbedResolver | None = None


def get_resolver() -> OEmbedResolver:
    global _resolver  # noqa: PLW0603
    if _resolver is None:
        _resolver = OEmbedResolver()
    return _resolver


# ---------------------------------------------------------------------------
# Redis-backed stores
# ---------------------------------------------------------------------------

_trending_cache: TrendingCache | None = None


def get_trending_cache() -> TrendingCache:
    """Return a cached TrendingCache singleton.

    Falls back gracefully to a no-op cache if Redis is unavailable.
    """
    global _trending_cache  # noqa: PLW0603
    if _trending_cache is None:
        _trending_cache = TrendingCache()
    return _trending_cache


def get_trending_service(
    catalog: Annotated[DeezerCatalog, Depends(get_catalog)],
    cache: Annotated[TrendingCache, Depends(get_trending_cache)],
) -> TrendingService:
    return TrendingService(catalog=catalog, cache=cache)


_share_store: ShareLinkStore | None = None


def get_share_store() -> ShareLinkStore:
    """Return the share-link store singleton (lifetime from ``FeedConfig``)."""
    global _share_store  # noqa: PLW0603
    if _share_store is None:
        _share_store = ShareLinkStore(ttl_days=DEFAULT_CONFIG.share_ttl_days)
    return _share_store


def get_base_url() -> str:
    """Public origin used to build share URLs (``TRACKSHARE_BASE_URL``)."""
    load_dotenv()
    return os.environ.get("TRACKSHARE_BASE_URL", "https://trackshare.online").rstrip("/")
