"""Session authentication at the HTTP boundary.

AuthMiddleware turns a session token into a Viewer on request.state; route
handlers receive it through the get_viewer dependency. A token is taken from
the session cookie first and the `Authorization: Bearer` header second.
"""

from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from sitebuilder.auth.verifier import TokenVerifier
from sitebuilder.errors import ApiError, ApiErrorCode
from sitebuilder.logging import get_logger
from sitebuilder.responses import error_response

logger = get_logger(__name__)

AUTHORIZATION_HEADER = "authorization"
BEARER_PREFIX = "bearer "
DEFAULT_SESSION_COOKIE = "auth_session"

PUBLIC_PATHS = {"/health", "/health/ready", "/docs", "/redoc", "/openapi.json"}

# Anonymous visitors may browse published sites
PUBLIC_GET_PREFIXES = ("/api/project/published",)


@dataclass
class Viewer:
    """The authenticated caller; user_id is the session's `sub` claim."""

    user_id: UUID


def is_public_request(method: str, path: str) -> bool:
    if path in PUBLIC_PATHS:
        return True
    return method == "GET" and path.startswith(PUBLIC_GET_PREFIXES)


def _unauthenticated(reason: str, message: str, path: str) -> ApiError:
    logger.warning("auth_failure", reason=reason, request_path=path)
    return ApiError(ApiErrorCode.E_UNAUTHENTICATED, message)


def extract_session_token(request: Request, cookie_name: str = DEFAULT_SESSION_COOKIE) -> str:
    """Return the raw session token carried by a request.

    Raises:
        ApiError(E_UNAUTHENTICATED): No cookie, and the Authorization header
            is absent, not a bearer credential, or empty.
    """
    cookie_token = request.cookies.get(cookie_name)
    if cookie_token:
        return cookie_token

    path = request.url.path
    header = request.headers.get(AUTHORIZATION_HEADER)
    if not header:
        raise _unauthenticated("missing_session", "Unauthorized", path)
    if not header.lower().startswith(BEARER_PREFIX):
        raise _unauthenticated(
            "invalid_header_format", "Invalid authorization header format", path
        )

    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise _unauthenticated("empty_bearer", "Invalid authorization header format", path)
    return token


class AuthMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated requests to non-public paths.

    For an authenticated request the bootstrap callback runs first, so the
    caller's user row (and starting credit balance) exists before any route
    reads it.
    """

    def __init__(
        self,
        app: ASGIApp,
        verifier: TokenVerifier,
        cookie_name: str = DEFAULT_SESSION_COOKIE,
        bootstrap_callback: Callable[[UUID], object] | None = None,
    ):
        super().__init__(app)
        self.verifier = verifier
        self.cookie_name = cookie_name
        self.bootstrap_callback = bootstrap_callback

    async def dispatch(self, request: Request, call_next):
        if is_public_request(request.method, request.url.path):
            return await call_next(request)

        try:
            viewer = self.authenticate(request)
        except ApiError as exc:
            return JSONResponse(
                status_code=exc.status_code, content=error_response(exc.code, exc.message)
            )

        request.state.viewer = viewer
        return await call_next(request)

    def authenticate(self, request: Request) -> Viewer:
        claims = self.verifier.verify(extract_session_token(request, self.cookie_name))
        user_id = UUID(str(claims["sub"]))

        if self.bootstrap_callback is not None:
            try:
                self.bootstrap_callback(user_id)
            except Exception as exc:
                logger.exception(
                    "user_bootstrap_failed", user_id=str(user_id), error_type=type(exc).__name__
                )
                raise ApiError(ApiErrorCode.E_INTERNAL, "Internal server error") from exc

        return Viewer(user_id=user_id)


def get_viewer(request: Request) -> Viewer:
    """Dependency: the Viewer set by AuthMiddleware.

    Raises:
        ApiError(E_UNAUTHENTICATED): The middleware did not authenticate this request.
    """
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Unauthorized")
    return viewer

