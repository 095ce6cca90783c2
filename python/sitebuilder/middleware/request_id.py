"""Request correlation: every response carries X-Request-ID.

An incoming X-Request-ID is reused when it looks safe to log; otherwise a new
UUID4 is issued. The id is bound into the log context for the lifetime of the
request, and one `request_completed` access line is written per request.

Installed outermost (see sitebuilder.app.add_request_id_middleware), so a
request rejected by auth is still correlated.
"""

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from sitebuilder.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]+$")
_UUID_TEXT_LENGTH = 36

logger = get_logger(__name__)


def accept_or_generate_request_id(incoming: str | None) -> str:
    """Keep a caller-supplied id of 1-128 bytes of [A-Za-z0-9._-], else mint one.

    A UUID in any casing is returned in canonical lowercase form.
    """
    if (
        not incoming
        or len(incoming.encode("utf-8")) > MAX_REQUEST_ID_LENGTH
        or not _SAFE_REQUEST_ID.match(incoming)
    ):
        return str(uuid.uuid4())

    if len(incoming) == _UUID_TEXT_LENGTH:
        try:
            return str(uuid.UUID(incoming))
        except ValueError:
            pass
    return incoming


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 2)


class RequestIDMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.monotonic()
        request_id = accept_or_generate_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(request_id, path=request.url.path, method=request.method)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", duration_ms=_elapsed_ms(started))
            clear_request_context()
            raise

        # The viewer only exists once auth has run further down the stack
        viewer = getattr(request.state, "viewer", None)
        if viewer is not None:
            set_request_context(request_id, user_id=str(viewer.user_id))

        response.headers[REQUEST_ID_HEADER] = request_id
        if self.log_requests:
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=_elapsed_ms(started),
            )
        clear_request_context()
        return response
