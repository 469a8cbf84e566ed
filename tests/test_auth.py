"""Tests for core.auth — HS256 bearer-token verification."""

from __future__ import annotations

import pytest

from core.auth import AuthError, bearer_token, sign_token, verify_token

SECRET = "s3cret"
NOW = 1_700_000_000.0


class TestBearerToken:
    def test_extracts_token(self) -> None:
        assert bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self) -> None:
        assert bearer_token("bearer tok") == "tok"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer ", "Token abc"])
    def test_missing_or_other_scheme(self, header) -> None:
        assert bearer_token(header) is None


class TestVerifyToken:
    def test_valid_token_returns_sub(self) -> None:
        token = sign_token({"sub": "user-1", "exp": NOW + 60}, SECRET)
        claims = verify_token(token, SECRET, now=NOW)
        assert claims.user_id == "user-1"
        assert claims.raw["exp"] == NOW + 60

    def test_wrong_secret(self) -> None:
        token = sign_token({"sub": "user-1"}, "other")
        with pytest.raises(AuthError, match="signature"):
            verify_token(token, SECRET, now=NOW)

    def test_tampered_payload(self) -> None:
        header, _, signature = sign_token({"sub": "user-1"}, SECRET).split(".")
        forged_payload = sign_token({"sub": "admin"}, "x").split(".")[1]
        with pytest.raises(AuthError):
            verify_token(f"{header}.{forged_payload}.{signature}", SECRET, now=NOW)

    def test_expired(self) -> None:
        token = sign_token({"sub": "user-1", "exp": NOW - 1}, SECRET)
        with pytest.raises(AuthError, match="expired"):
            verify_token(token, SECRET, now=NOW)

    def test_leeway_tolerates_skew(self) -> None:
        token = sign_token({"sub": "user-1", "exp": NOW - 5}, SECRET)
        assert verify_token(token, SECRET, now=NOW, leeway_seconds=10).user_id == "user-1"

    def test_not_yet_valid(self) -> None:
        token = sign_token({"sub": "user-1", "nbf": NOW + 60}, SECRET)
        with pytest.raises(AuthError, match="not yet valid"):
            verify_token(token, SECRET, now=NOW)

    def test_missing_sub(self) -> None:
        token = sign_token({"user_id": "user-1"}, SECRET)
        with pytest.raises(AuthError, match="'sub'"):
            verify_token(token, SECRET, now=NOW)

    def test_malformed_exp(self) -> None:
        token = sign_token({"sub": "user-1", "exp": "soon"}, SECRET)
        with pytest.raises(AuthError, match="Malformed 'exp'"):
            verify_token(token, SECRET, now=NOW)

    @pytest.mark.parametrize("token", ["", "one.two", "a.b.c.d", "!!!.@@@.###"])
    def test_malformed(self, token) -> None:
        with pytest.raises(AuthError):
            verify_token(token, SECRET, now=NOW)

    def test_rejects_other_algorithms(self) -> None:
        token = sign_token({"sub": "user-1"}, SECRET)
        _, payload, signature = token.split(".")
        # {"alg": "none"}
        none_header = "eyJhbGciOiAibm9uZSJ9"
        with pytest.raises(AuthError, match="algorithm"):
            verify_token(f"{none_header}.{payload}.{signature}", SECRET, now=NOW)

    def test_empty_secret_never_verifies(self) -> None:
        token = sign_token({"sub": "user-1"}, "")
        with pytest.raises(AuthError, match="not configured"):
            verify_token(token, "", now=NOW)
