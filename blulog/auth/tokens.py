"""Signing and verification for access, refresh and reset tokens."""

from __future__ import annotations

import time
from enum import StrEnum

from pydantic import ValidationError

from blulog.auth.models import Account, AuthTokenClaims, is_account_id
from blulog.core.config import AuthConfig, TokenSettings
from blulog.core.security import (
    TokenInvalidError,
    build_signed_token,
    decode_signed_token,
)


class TokenKind(StrEnum):
    ACCESS = "access"
    REFRESH = "refresh"
    RESET = "reset"


class TokenSubjectError(TokenInvalidError):
    """Token verified but its subject is not a well-formed account id."""


_SUBJECT_CHECKED = {TokenKind.ACCESS, TokenKind.RESET}


class TokenCodec:
    """Issues and verifies the three independent bearer token classes.

    Each class has its own secret and lifetime. Verification is a pure
    function of the token, the secret and the current time; nothing is
    stored, so tokens cannot be revoked before they expire.
    """

    def __init__(self, config: AuthConfig) -> None:
        self._issuer = config.issuer
        self._settings: dict[TokenKind, TokenSettings] = {
            TokenKind.ACCESS: config.access,
            TokenKind.REFRESH: config.refresh,
            TokenKind.RESET: config.reset,
        }

    def ttl_seconds(self, kind: TokenKind) -> int:
        return self._settings[kind].ttl_seconds

    def issue(self, kind: TokenKind, account: Account, *, now: int | None = None) -> str:
        """Sign a new token of the given kind for the account."""
        settings = self._settings[kind]
        issued_at = int(time.time()) if now is None else now
        payload: dict[str, object] = {
            "iss": self._issuer,
            "type": str(kind),
            "sub": account.id,
            "iat": issued_at,
            "exp": issued_at + settings.ttl_seconds,
        }
        if kind is TokenKind.ACCESS:
            payload["email"] = account.email
        return build_signed_token(payload, settings.secret)

    def issue_access(self, account: Account, *, now: int | None = None) -> str:
        return self.issue(TokenKind.ACCESS, account, now=now)

    def issue_refresh(self, account: Account, *, now: int | None = None) -> str:
        return self.issue(TokenKind.REFRESH, account, now=now)

    def issue_reset(self, account: Account, *, now: int | None = None) -> str:
        return self.issue(TokenKind.RESET, account, now=now)

    def verify(
        self, kind: TokenKind, token: str, *, now: int | None = None
    ) -> AuthTokenClaims:
        """Return claims, or raise ``TokenExpiredError``/``TokenInvalidError``."""
        payload = decode_signed_token(token, self._settings[kind].secret, now=now)
        if payload.get("iss") != self._issuer or payload.get("type") != str(kind):
            raise TokenInvalidError("Invalid token")
        if kind in _SUBJECT_CHECKED and not is_account_id(payload.get("sub")):
            raise TokenSubjectError("Invalid token subject")
        try:
            return AuthTokenClaims.model_validate(payload)
        except ValidationError as exc:
            raise TokenInvalidError("Invalid token claims") from exc
