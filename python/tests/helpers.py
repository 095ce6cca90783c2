"""Session tokens and request credentials for tests."""

import time
from uuid import UUID, uuid4

import jwt

# Must match the AUTH_SECRET / AUTH_ISSUER defaults set in conftest.py
TEST_AUTH_SECRET = "test-session-secret"
TEST_AUTH_ISSUER = "site-builder-auth"
SESSION_COOKIE = "auth_session"
DEFAULT_EXPIRES_IN = 3600


def mint_test_token(
    user_id: UUID | str,
    expires_in: int = DEFAULT_EXPIRES_IN,
    issuer: str = TEST_AUTH_ISSUER,
    secret: str = TEST_AUTH_SECRET,
    **extra_claims,
) -> str:
    """Sign a session token for `user_id`; negative `expires_in` gives an expired one."""
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "iss": issuer,
        "iat": now,
        "exp": now + expires_in,
        **extra_claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def mint_expired_token(user_id: UUID | str) -> str:
    # One hour is well past the verifier's clock-skew leeway
    return mint_test_token(user_id, expires_in=-3600)


def mint_token_with_bad_signature(user_id: UUID | str) -> str:
    return mint_test_token(user_id, secret="not-the-session-secret")


def auth_headers(user_id: UUID | str, **token_kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_test_token(user_id, **token_kwargs)}"}


def auth_cookies(user_id: UUID | str, **token_kwargs) -> dict[str, str]:
    """Session cookie for a user, as set by the auth provider."""
    return {SESSION_COOKIE: mint_test_token(user_id, **token_kwargs)}


def create_test_user_id() -> UUID:
    return uuid4()
