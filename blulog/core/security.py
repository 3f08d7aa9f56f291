"""Security primitives for password hashing and token signing."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import os
import time
from typing import Any

PASSWORD_HASH_ALGORITHM = "pbkdf2_sha256"
PASSWORD_HASH_ITERATIONS = 120_000
_TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}


class TokenError(ValueError):
    """Base class for signed token verification failures."""


class TokenInvalidError(TokenError):
    """Token is malformed, tampered with or signed with another secret."""


class TokenExpiredError(TokenError):
    """Token signature is valid but its expiry is in the past."""


def _b64url_encode(raw: bytes) -> str:
    """Return URL-safe base64 string without padding."""
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    """Decode URL-safe base64 string with optional missing padding."""
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + padding).encode("utf-8"))


def hash_password(password: str) -> str:
    """Hash password using PBKDF2-HMAC-SHA256 with random salt."""
    salt = os.urandom(16)
    derived = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt, PASSWORD_HASH_ITERATIONS
    )
    return (
        f"{PASSWORD_HASH_ALGORITHM}${PASSWORD_HASH_ITERATIONS}"
        f"${_b64url_encode(salt)}${_b64url_encode(derived)}"
    )


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify password against a stored PBKDF2 hash."""
    try:
        algo, rounds_raw, salt_b64, digest_b64 = stored_hash.split("$", 3)
        if algo != PASSWORD_HASH_ALGORITHM:
            return False
        rounds = int(rounds_raw)
        salt = _b64url_decode(salt_b64)
        expected = _b64url_decode(digest_b64)
    except (ValueError, binascii.Error):
        return False

    derived = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(derived, expected)


def _sign(signing_input: bytes, secret_key: str) -> bytes:
    return hmac.new(secret_key.encode("utf-8"), signing_input, hashlib.sha256).digest()


def build_signed_token(payload: dict[str, Any], secret_key: str) -> str:
    """Create compact HS256 JWT for the given claims."""
    header_part = _b64url_encode(json.dumps(_TOKEN_HEADER, separators=(",", ":")).encode("utf-8"))
    payload_part = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_part}.{payload_part}".encode("utf-8")
    signature_part = _b64url_encode(_sign(signing_input, secret_key))
    return f"{header_part}.{payload_part}.{signature_part}"


def decode_signed_token(
    token: str, secret_key: str, *, now: int | None = None
) -> dict[str, Any]:
    """Verify a compact token and return its claims.

    Raises ``TokenExpiredError`` when the signature checks out but ``exp`` has
    passed, and ``TokenInvalidError`` for everything else. A wrong secret and a
    tampered token are deliberately indistinguishable.
    """
    parts = (token or "").split(".")
    if len(parts) != 3 or not all(parts):
        raise TokenInvalidError("Malformed token")
    header_part, payload_part, signature_part = parts

    signing_input = f"{header_part}.{payload_part}".encode("utf-8")
    try:
        got_sig = _b64url_decode(signature_part)
    except (ValueError, binascii.Error) as exc:
        raise TokenInvalidError("Malformed token") from exc
    if not hmac.compare_digest(_sign(signing_input, secret_key), got_sig):
        raise TokenInvalidError("Invalid token signature")

    try:
        header = json.loads(_b64url_decode(header_part).decode("utf-8"))
        payload = json.loads(_b64url_decode(payload_part).decode("utf-8"))
    except (ValueError, binascii.Error) as exc:
        raise TokenInvalidError("Invalid token payload") from exc
    if not isinstance(header, dict) or header.get("alg") != _TOKEN_HEADER["alg"]:
        raise TokenInvalidError("Unsupported token algorithm")
    if not isinstance(payload, dict):
        raise TokenInvalidError("Invalid token payload")

    exp = payload.get("exp")
    if not isinstance(exp, int) or isinstance(exp, bool):
        raise TokenInvalidError("Token has no expiry")
    current = int(time.time()) if now is None else now
    if current >= exp:
        raise TokenExpiredError("Token expired")

    return payload
