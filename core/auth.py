"""HS256 bearer-token verification.

The identity claim is ``sub`` for every endpoint family. Tokens are issued
elsewhere; this module only verifies them.

Pure functions — the caller supplies the secret and the current time.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Any

IDENTITY_CLAIM = "sub"


class AuthError(Exception):
    """Raised when a token is missing, malformed, forged or expired."""


@dataclass(frozen=True)
class TokenClaims:
    """Verified token payload.

    Attributes:
        user_id: Value of the ``sub`` claim.
        raw: Full decoded payload.
    """

    user_id: str
    raw: dict[str, Any]


def _b64url_decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _segment_to_json(segment: str) -> dict[str, Any]:
    try:
        value = json.loads(_b64url_decode(segment).decode())
    except (ValueError, UnicodeDecodeError) as exc:
        raise AuthError("Malformed token") from exc
    if not isinstance(value, dict):
        raise AuthError("Malformed token")
    return value


def _numeric_claim(payload: dict[str, Any], name: str) -> float | None:
    value = payload.get(name)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise AuthError(f"Malformed '{name}' claim") from exc


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def verify_token(token: str, secret: str, now: float, leeway_seconds: int = 0) -> TokenClaims:
    """Verify an HS256 JWT and return its claims.

    Args:
        token: Compact JWT string.
        secret: Shared signing secret.
        now: Current POSIX time in seconds.
        leeway_seconds: Clock skew tolerated on ``exp`` / ``nbf``.

    Raises:
        AuthError: On a malformed token, wrong algorithm, bad signature,
            expired or not-yet-valid token, or a missing ``sub`` claim.
    """
    if not secret:
        raise AuthError("Token verification is not configured")
    try:
        header_b64, payload_b64, signature_b64 = token.split(".")
    except ValueError as exc:
        raise AuthError("Malformed token") from exc

    header = _segment_to_json(header_b64)
    if header.get("alg") != "HS256":
        raise AuthError("Unsupported token algorithm")

    signing_input = f"{header_b64}.{payload_b64}".encode()
    expected = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
    try:
        provided = _b64url_decode(signature_b64)
    except ValueError as exc:
        raise AuthError("Malformed token") from exc
    if not hmac.compare_digest(expected, provided):
        raise AuthError("Invalid token signature")

    payload = _segment_to_json(payload_b64)
    exp = _numeric_claim(payload, "exp")
    if exp is not None and now > exp + leeway_seconds:
        raise AuthError("Token expired")
    nbf = _numeric_claim(payload, "nbf")
    if nbf is not None and now + leeway_seconds < nbf:
        raise AuthError("Token not yet valid")

    subject = payload.get(IDENTITY_CLAIM)
    if subject is None or not str(subject).strip():
        raise AuthError(f"Token has no '{IDENTITY_CLAIM}' claim")
    return TokenClaims(user_id=str(subject), raw=payload)


def sign_token(payload: dict[str, Any], secret: str) -> str:
    """Sign *payload* as an HS256 JWT. Used by tests and local tooling."""
    header_b64 = _b64url_encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    payload_b64 = _b64url_encode(json.dumps(payload).encode())
    signing_input = f"{header_b64}.{payload_b64}".encode()
    signature = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
    return f"{header_b64}.{payload_b64}.{_b64url_encode(signature)}"
