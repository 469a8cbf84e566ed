"""
Shared fixtures for the test suite.

Centralizes reusable test infrastructure so individual test files
don't need to repeat engine, override or fake-client boilerplate.

Datastore tests run against an in-memory SQLite engine built from the ORM
metadata. ``StaticPool`` keeps one connection so the test, the route
handler thread and the factories all see the same tables.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from api.deps import (
    get_catalog,
    get_db,
    get_jwt_secret,
    get_now,
    get_resolver,
    get_share_store,
    get_trending_cache,
)
from api.main import app
from core.auth import sign_token
from core.recommendations.types import CatalogTrack
from core.sharing import TrackMetadata, TrackRef
from db.init_db import init_schema
from db.models import Friendship, MusicPost, PostComment, PostLike, Profile
from infrastructure.cache import TrendingCache
from infrastructure.share_store import ShareLinkStore
from providers.catalog import CatalogError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SECRET = "test-secret"
"""HS256 secret the API is configured with during tests."""

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
"""Fixed request clock."""

T0 = datetime(2025, 5, 30, 12, 0, tzinfo=UTC)
"""Reference event time; scenarios count backwards from here."""


def hours_before(base: datetime, hours: float) -> datetime:
    return base - timedelta(hours=hours)


def auth_header(user_id: str, secret: str = SECRET, **claims: Any) -> dict[str, str]:
    """``Authorization`` header carrying a valid token for *user_id*."""
    payload = {"sub": user_id, "exp": NOW.timestamp() + 10**9, **claims}
    return {"Authorization": f"Bearer {sign_token(payload, secret)}"}


# ---------------------------------------------------------------------------
# Datastore
# ---------------------------------------------------------------------------


@pytest.fixture()
def engine() -> Iterator[Engine]:
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    yield session
    session.close()


class Factory:
    """Row builders that commit immediately and return the ORM instance."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _save(self, obj: Any) -> Any:
        self.session.add(obj)
        self.session.commit()
        return obj

    def profile(self, display_name: str = "Alice", **kw: Any) -> Profile:
        return self._save(Profile(display_name=display_name, **kw))

    def post(
        self,
        author: Profile,
        posted_at: datetime,
        title: str = "Song",
        artist: str = "Artist",
        **kw: Any,
    ) -> MusicPost:
        return self._save(
            MusicPost(
                user_id=author.id,
                track_title=title,
                track_artist=artist,
                posted_at=posted_at,
                **kw,
            )
        )

    def like(self, user: Profile, post: MusicPost | None, created_at: datetime) -> PostLike:
        return self._save(
            PostLike(user_id=user.id, post_id=post.id if post else None, created_at=created_at)
        )

    def comment(
        self, user: Profile, post: MusicPost, created_at: datetime, content: str = "nice"
    ) -> PostComment:
        return self._save(
            PostComment(user_id=user.id, post_id=post.id, content=content, created_at=created_at)
        )

    def friendship(
        self,
        requester: Profile,
        addressee: Profile,
        created_at: datetime,
        status: str = "accepted",
    ) -> Friendship:
        return self._save(
            Friendship(
                requester_id=requester.id,
                addressee_id=addressee.id,
                status=status,
                created_at=created_at,
            )
        )


@pytest.fixture()
def factory(db: Session) -> Factory:
    return Factory(db)


# ---------------------------------------------------------------------------
# Fakes for external services
# ---------------------------------------------------------------------------


class FakePipeline:
    """Queues FakeRedis commands and applies them in order on ``execute``."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._ops: list[tuple[str, tuple[Any, ...]]] = []

    def __getattr__(self, name: str) -> Any:
        def queue(*args: Any) -> FakePipeline:
            self._ops.append((name, args))
            return self

        return queue

    def execute(self) -> list[Any]:
        ops, self._ops = self._ops, []
        return [getattr(self._redis, name)(*args) for name, args in ops]


class FakeRedis:
    """Dict-backed stand-in for the handful of Redis commands the app uses.

    TTLs are recorded, not enforced.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.expire_at: dict[str, datetime] = {}

    def ping(self) -> bool:
        return True

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def mget(self, *keys: str) -> list[str | None]:
        return [self.data.get(key) for key in keys]

    def incr(self, key: str) -> int:
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    def expireat(self, key: str, when: datetime) -> bool:
        if key not in self.data:
            return False
        self.expire_at[key] = when
        return True

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    def set(
        self,
        key: str,
        value: str,
        ex: int | None = None,
        nx: bool = False,
    ) -> bool | None:
        if nx and key in self.data:
            return None
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        else:
            self.ttls.pop(key, None)
        return True

    def ttl(self, key: str) -> int:
        return self.ttls.get(key, -1)

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def scan_iter(self, pattern: str) -> Iterator[str]:
        return iter([key for key in list(self.data) if fnmatch.fnmatch(key, pattern)])


def make_track(track_id: str, title: str, artist: str, **kw: Any) -> CatalogTrack:
    return CatalogTrack(id=track_id, title=title, artist=artist, **kw)


class FakeCatalog:
    """Deterministic catalog. Set ``fail`` to a set of method names to raise."""

    def __init__(self) -> None:
        self.fail: set[str] = set()
        self.related: dict[str, list[CatalogTrack]] = {}
        self.genres: dict[str, CatalogTrack | None] = {}
        self.moods: dict[str, list[CatalogTrack]] = {}
        self.charts: dict[str | None, list[CatalogTrack]] = {
            None: [make_track(str(i), f"Hit {i}", f"Star {i}", position=i) for i in range(1, 6)]
        }
        self.calls: list[tuple[str, Any]] = []

    def _check(self, name: str, arg: Any) -> None:
        self.calls.append((name, arg))
        if name in self.fail:
            raise CatalogError(f"{name} unavailable")

    def related_top_tracks(self, artist: str, *_: Any, **__: Any) -> list[CatalogTrack]:
        self._check("related_top_tracks", artist)
        return list(self.related.get(artist, []))

    def genre_track(self, genre: str) -> CatalogTrack | None:
        self._check("genre_track", genre)
        return self.genres.get(genre)

    def mood_tracks(self, mood: str, limit: int = 1) -> list[CatalogTrack]:
        self._check("mood_tracks", mood)
        return list(self.moods.get(mood, []))[:limit]

    def chart(self, limit: int = 50, genre: str | None = None) -> list[CatalogTrack]:
        self._check("chart", genre)
        return list(self.charts.get(genre, []))[:limit]


class FakeResolver:
    """Returns canned metadata for any ``TrackRef``."""

    def __init__(self, title: str = "Resolved Song", artist: str = "Resolved Artist") -> None:
        self.title = title
        self.artist = artist
        self.refs: list[TrackRef] = []

    def resolve(self, ref: TrackRef) -> TrackMetadata:
        self.refs.append(ref)
        return TrackMetadata(id=ref.id, title=self.title, artist=self.artist)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture()
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture()
def share_store(fake_redis: FakeRedis) -> ShareLinkStore:
    return ShareLinkStore(client=fake_redis)


@pytest.fixture()
def trending_cache(fake_redis: FakeRedis) -> TrendingCache:
    return TrendingCache(client=fake_redis)


# ---------------------------------------------------------------------------
# FastAPI test client fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client(
    session_factory: sessionmaker[Session],
    fake_catalog: FakeCatalog,
    fake_resolver: FakeResolver,
    share_store: ShareLinkStore,
    trending_cache: TrendingCache,
) -> Iterator[TestClient]:
    """``TestClient`` with the datastore, clock, secret and catalogs overridden."""

    def _override_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_jwt_secret] = lambda: SECRET
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_catalog] = lambda: fake_catalog
    app.dependency_overrides[get_resolver] = lambda: fake_resolver
    app.dependency_overrides[get_share_store] = lambda: share_store
    app.dependency_overrides[get_trending_cache] = lambda: trending_cache

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
