"""Verification of HS256 session tokens issued by the auth provider.

A token is accepted when:
- its signature matches the shared secret
- `exp` has not passed (60 seconds of clock skew tolerated)
- `iss` equals the configured issuer, ignoring a trailing slash
- `sub` is a UUID; it becomes the caller's user id
"""

from typing import Any, Protocol
from uuid import UUID

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
)

from sitebuilder.errors import ApiError, ApiErrorCode
from sitebuilder.logging import get_logger

logger = get_logger(__name__)

CLOCK_SKEW_SECONDS = 60
SESSION_TOKEN_ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["exp", "iss", "sub"]

# Checked in order; PyJWT errors subclass each other, most specific first
_REJECTIONS: tuple[tuple[type[InvalidTokenError], str, str], ...] = (
    (ExpiredSignatureError, "expired_token", "Session expired"),
    (InvalidSignatureError, "invalid_signature", "Invalid session signature"),
    (InvalidIssuerError, "invalid_issuer", "Invalid session issuer"),
    (DecodeError, "decode_error", "Invalid session format"),
    (InvalidTokenError, "invalid_token", "Invalid session"),
)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> dict[str, Any]:
        """Return the token's claims or raise ApiError(E_UNAUTHENTICATED)."""
        ...


def _rejection(exc: InvalidTokenError) -> ApiError:
    for exc_type, reason, message in _REJECTIONS:
        if isinstance(exc, exc_type):
            break
    logger.warning("auth_failure", reason=reason)
    return ApiError(ApiErrorCode.E_UNAUTHENTICATED, message)


class SessionTokenVerifier:
    def __init__(self, secret: str, issuer: str):
        self.secret = secret
        self.issuer = issuer.rstrip("/")

    def verify(self, token: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[SESSION_TOKEN_ALGORITHM],
                issuer=self.issuer,
                leeway=CLOCK_SKEW_SECONDS,
                options={"require": REQUIRED_CLAIMS},
            )
        except InvalidTokenError as exc:
            raise _rejection(exc) from exc

        try:
            UUID(str(claims["sub"]))
        except ValueError as exc:
            logger.warning("auth_failure", reason="invalid_sub")
            raise ApiError(
                ApiErrorCode.E_UNAUTHENTICATED, "Invalid session: sub is not a valid UUID"
            ) from exc

        return claims
