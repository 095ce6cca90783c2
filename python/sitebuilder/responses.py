"""Response envelopes and the exception handlers that produce them.

    success: {"data": ...}
    failure: {"error": {"code": "E_...", "message": "...", "request_id": "..."}}

register_exception_handlers() wires every handler below onto an app so routes
only ever raise ApiError (or let something unexpected escape) and never build
error bodies themselves.
"""

import json
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sitebuilder.errors import ApiError, ApiErrorCode
from sitebuilder.logging import get_logger, get_request_id

logger = get_logger(__name__)

# Framework-raised HTTP errors (unknown route, wrong method) keep their status
HTTP_STATUS_TO_CODE: dict[int, ApiErrorCode] = {
    400: ApiErrorCode.E_INVALID_REQUEST,
    401: ApiErrorCode.E_UNAUTHENTICATED,
    403: ApiErrorCode.E_FORBIDDEN,
    404: ApiErrorCode.E_NOT_FOUND,
    405: ApiErrorCode.E_INVALID_REQUEST,
    422: ApiErrorCode.E_INVALID_REQUEST,
}

_JSON_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def success_response(data: Any) -> dict[str, Any]:
    return {"data": data}


def message_response(message: str, **extra: Any) -> dict[str, Any]:
    """Envelope for mutations whose only payload is a confirmation message."""
    return success_response({"message": message, **extra})


def error_response(
    code: ApiErrorCode, message: str, request_id: str | None = None
) -> dict[str, Any]:
    """Build the error envelope.

    The request id falls back to the one bound for the current request and is
    omitted when neither exists (e.g. outside a request).
    """
    body: dict[str, Any] = {"code": code.value, "message": message}
    request_id = request_id or get_request_id()
    if request_id:
        body["request_id"] = request_id
    return {"error": body}


def _json_error(status_code: int, code: ApiErrorCode, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_response(code, message))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return _json_error(exc.status_code, exc.code, exc.message)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = HTTP_STATUS_TO_CODE.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    return _json_error(exc.status_code, code, str(exc.detail or "An error occurred"))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Body and query validation failures are client errors, reported as 400
    return _json_error(400, ApiErrorCode.E_INVALID_REQUEST, "Invalid request body")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the failure, answer 500 without leaking details."""
    logger.exception("unhandled_exception", error_type=type(exc).__name__)
    return _json_error(500, ApiErrorCode.E_INTERNAL, "Internal server error")


async def reject_malformed_json(request: Request, call_next):
    """HTTP middleware: answer 400 for a JSON body that does not parse."""
    if request.method in _JSON_BODY_METHODS and "application/json" in request.headers.get(
        "content-type", ""
    ):
        body = await request.body()
        if body:
            try:
                json.loads(body)
            except json.JSONDecodeError:
                return _json_error(400, ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body")
    return await call_next(request)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.middleware("http")(reject_malformed_json)
