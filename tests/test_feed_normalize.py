"""Tests for core.feed.normalize — row to record mapping."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from core.feed.normalize import as_utc, make_id, normalize_activity, normalize_notification

WHEN = datetime(2025, 3, 1, 9, 30, tzinfo=UTC)


def _post(**kw):
    base = dict(
        id=7,
        track_title="Teardrop",
        track_artist="Massive Attack",
        track_artwork_url="https://img/1.jpg",
        caption="classic",
        privacy="public",
        like_count=3,
        comment_count=None,
        posted_at=WHEN,
        author=SimpleNamespace(id="u2", display_name="Bob", avatar_url=None),
    )
    base.update(kw)
    return SimpleNamespace(**base)


class TestAsUtc:
    def test_naive_assumed_utc(self) -> None:
        assert as_utc(datetime(2025, 1, 1, 10, 0)) == datetime(2025, 1, 1, 10, 0, tzinfo=UTC)

    def test_offset_converted(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        assert as_utc(datetime(2025, 1, 1, 12, 0, tzinfo=plus_two)).hour == 10

    def test_iso_string_with_z(self) -> None:
        assert as_utc("2025-01-01T10:00:00Z") == datetime(2025, 1, 1, 10, 0, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "not a date", 12345])
    def test_unusable_values_return_none(self, value) -> None:
        assert as_utc(value) is None


class TestActivityNormalization:
    def test_post_created(self) -> None:
        record = normalize_activity("posts", _post())
        assert record.id == "post_7"
        assert record.type == "post_created"
        assert record.description == 'Posted "Teardrop" by Massive Attack'
        assert record.metadata["like_count"] == 3
        assert record.metadata["comment_count"] == 0
        assert record.timestamp == WHEN

    def test_like_given_includes_post_author(self) -> None:
        row = SimpleNamespace(id=4, post=_post(), created_at=WHEN)
        record = normalize_activity("likes", row)
        assert record.id == "like_4"
        assert record.metadata["post_author"] == "Bob"
        assert record.icon == "❤️"

    def test_like_on_deleted_post_still_normalizes(self) -> None:
        row = SimpleNamespace(id=5, post=None, created_at=WHEN)
        record = normalize_activity("likes", row)
        assert record.metadata["track_title"] is None
        assert record.metadata["post_author"] is None
        assert record.timestamp == WHEN

    def test_comment_made(self) -> None:
        row = SimpleNamespace(id=9, post=_post(), content="love it", created_at=WHEN)
        record = normalize_activity("comments", row)
        assert record.type == "comment_made"
        assert record.metadata["content"] == "love it"

    def test_friend_added(self) -> None:
        row = SimpleNamespace(
            id=1,
            addressee=SimpleNamespace(display_name="Carol", avatar_url="https://a/c.png"),
            created_at=WHEN,
        )
        record = normalize_activity("friends", row)
        assert record.description == "Became friends with Carol"
        assert record.metadata["friend_avatar"] == "https://a/c.png"

    def test_ids_never_collide_across_categories(self) -> None:
        post = normalize_activity("posts", _post(id=1))
        like = normalize_activity("likes", SimpleNamespace(id=1, post=None, created_at=WHEN))
        assert post.id != like.id

    def test_unknown_category_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown activity category"):
            normalize_activity("reposts", _post())


class TestNotificationNormalization:
    def test_friend_request(self) -> None:
        row = SimpleNamespace(
            id=3,
            requester=SimpleNamespace(id="u9", display_name="Dana", avatar_url=None),
            created_at=WHEN,
        )
        record = normalize_notification("friend_requests", row)
        assert record.id == "friend_request_3"
        assert record.message == "Dana wants to be your friend"
        assert record.user_id == "u9"
        assert record.read is False

    def test_like_with_missing_actor_uses_neutral_name(self) -> None:
        row = SimpleNamespace(id=2, user=None, post=_post(), post_id=7, created_at=WHEN)
        record = normalize_notification("likes", row)
        assert record.message == 'Someone liked your post "Teardrop"'
        assert record.post_id == "7"

    def test_comment_carries_content(self) -> None:
        row = SimpleNamespace(
            id=8,
            user=SimpleNamespace(id="u3", display_name="Eve", avatar_url=None),
            post=_post(),
            post_id=7,
            content="banger",
            created_at=WHEN,
        )
        record = normalize_notification("comments", row)
        assert record.type == "comment"
        assert record.content == "banger"
        assert record.timestamp == WHEN

    def test_unknown_category_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown notification category"):
            normalize_notification("mentions", SimpleNamespace(id=1))


def test_make_id() -> None:
    assert make_id("comment", 12) == "comment_12"
