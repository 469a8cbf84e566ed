"""Integration tests for GET /api/activity.

Runs the real router against an in-memory SQLite datastore; only the
clock and the JWT secret are overridden.
"""

from __future__ import annotations

from unittest.mock import patch

from conftest import NOW, T0, auth_header, hours_before


def _boom(*_args, **_kwargs):
    raise RuntimeError("table unavailable")


def _seed_scenario(factory):
    """3 posts at T0, T0-1h, T0-2h and 2 likes at T0-0.5h, T0-1.5h."""
    alice, bob = factory.profile("Alice"), factory.profile("Bob")
    theirs = factory.post(bob, hours_before(T0, 10), title="Bob's", artist="B")
    posts = [factory.post(alice, hours_before(T0, h), title=f"Post {h}") for h in (0, 1, 2)]
    likes = [factory.like(alice, theirs, hours_before(T0, h)) for h in (0.5, 1.5)]
    return alice, posts, likes


class TestActivityPagination:
    def test_merged_newest_first_page(self, api_client, factory) -> None:
        alice, posts, likes = _seed_scenario(factory)
        resp = api_client.get("/api/activity?limit=2", headers=auth_header(alice.id))
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert [a["id"] for a in body["activities"]] == [
            f"post_{posts[0].id}",
            f"like_{likes[0].id}",
        ]
        assert body["total"] == 5
        assert body["has_more"] is True
        assert body["stats"] is None

    def test_last_page(self, api_client, factory) -> None:
        alice, posts, _ = _seed_scenario(factory)
        resp = api_client.get("/api/activity?limit=2&offset=4", headers=auth_header(alice.id))
        body = resp.json()
        assert [a["id"] for a in body["activities"]] == [f"post_{posts[2].id}"]
        assert body["has_more"] is False

    def test_offset_beyond_total(self, api_client, factory) -> None:
        alice, _, _ = _seed_scenario(factory)
        body = api_client.get("/api/activity?offset=50", headers=auth_header(alice.id)).json()
        assert body["activities"] == []
        assert body["total"] == 5
        assert body["has_more"] is False

    def test_type_filter(self, api_client, factory) -> None:
        alice, _, _ = _seed_scenario(factory)
        body = api_client.get("/api/activity?type=likes", headers=auth_header(alice.id)).json()
        assert {a["type"] for a in body["activities"]} == {"like_given"}
        assert body["total"] == 2

    def test_date_range(self, api_client, factory) -> None:
        alice, _, _ = _seed_scenario(factory)
        params = {
            "start_date": hours_before(T0, 1).isoformat(),
            "end_date": T0.isoformat(),
        }
        body = api_client.get("/api/activity", params=params, headers=auth_header(alice.id)).json()
        assert body["total"] == 3

    def test_timestamp_is_request_clock(self, api_client, factory) -> None:
        alice = factory.profile()
        body = api_client.get("/api/activity", headers=auth_header(alice.id)).json()
        assert body["timestamp"].startswith(NOW.isoformat()[:19])
        assert body["activities"] == []

    def test_like_metadata_names_post_author(self, api_client, factory) -> None:
        alice, _, _ = _seed_scenario(factory)
        body = api_client.get("/api/activity?type=likes", headers=auth_header(alice.id)).json()
        assert body["activities"][0]["metadata"]["post_author"] == "Bob"


class TestActivityStats:
    def test_stats_cover_full_set_not_page(self, api_client, factory) -> None:
        alice, _, _ = _seed_scenario(factory)
        resp = api_client.get(
            "/api/activity?limit=1&include_stats=true", headers=auth_header(alice.id)
        )
        stats = resp.json()["stats"]
        assert stats == {
            "posts_created": 3,
            "likes_given": 2,
            "comments_made": 0,
            "friends_added": 0,
        }

    def test_stats_count_all_categories_even_when_filtered(self, api_client, factory) -> None:
        alice, _, _ = _seed_scenario(factory)
        resp = api_client.get(
            "/api/activity?type=posts&include_stats=true", headers=auth_header(alice.id)
        )
        assert resp.json()["stats"]["likes_given"] == 2


class TestActivityFailures:
    def test_one_failing_category_is_skipped(self, api_client, factory) -> None:
        alice, _, _ = _seed_scenario(factory)
        with patch.dict("db.activity_sources.ACTIVITY_FETCHERS", {"likes": _boom}):
            resp = api_client.get("/api/activity", headers=auth_header(alice.id))
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 3
        assert {a["type"] for a in body["activities"]} == {"post_created"}

    def test_every_category_failing_is_500(self, api_client, factory) -> None:
        alice = factory.profile()
        failing = {name: _boom for name in ("posts", "likes", "comments", "friends")}
        with patch.dict("db.activity_sources.ACTIVITY_FETCHERS", failing):
            resp = api_client.get("/api/activity", headers=auth_header(alice.id))
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Failed to fetch activity history"}


class TestActivityValidation:
    def test_requires_token(self, api_client) -> None:
        resp = api_client.get("/api/activity")
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Authentication required"}

    def test_rejects_token_signed_with_other_secret(self, api_client, factory) -> None:
        alice = factory.profile()
        resp = api_client.get("/api/activity", headers=auth_header(alice.id, secret="wrong"))
        assert resp.status_code == 401

    def test_unknown_type(self, api_client, factory) -> None:
        resp = api_client.get("/api/activity?type=reposts", headers=auth_header(factory.profile().id))
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_negative_limit(self, api_client, factory) -> None:
        resp = api_client.get("/api/activity?limit=-1", headers=auth_header(factory.profile().id))
        assert resp.status_code == 400

    def test_limit_above_max_page_size(self, api_client, factory) -> None:
        resp = api_client.get("/api/activity?limit=5000", headers=auth_header(factory.profile().id))
        assert resp.status_code == 400
        assert "at most 1000" in resp.json()["error"]

    def test_inverted_date_range(self, api_client, factory) -> None:
        params = {"start_date": T0.isoformat(), "end_date": hours_before(T0, 1).isoformat()}
        resp = api_client.get(
            "/api/activity", params=params, headers=auth_header(factory.profile().id)
        )
        assert resp.status_code == 400

    def test_limit_zero_returns_empty_page(self, api_client, factory) -> None:
        alice, _, _ = _seed_scenario(factory)
        body = api_client.get("/api/activity?limit=0", headers=auth_header(alice.id)).json()
        assert body["activities"] == []
        assert body["total"] == 5
        assert body["has_more"] is True
