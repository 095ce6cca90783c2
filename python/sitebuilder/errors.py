"""Error codes carried in the `{"error": {...}}` envelope and their HTTP statuses.

Services raise ApiError (or a subclass); the handlers in sitebuilder.responses
turn it into a response with the status looked up here.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"

    E_FORBIDDEN = "E_FORBIDDEN"
    E_INSUFFICIENT_CREDITS = "E_INSUFFICIENT_CREDITS"
    E_PATH_FORBIDDEN = "E_PATH_FORBIDDEN"

    E_NOT_FOUND = "E_NOT_FOUND"
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"
    E_PROJECT_NOT_FOUND = "E_PROJECT_NOT_FOUND"
    E_VERSION_NOT_FOUND = "E_VERSION_NOT_FOUND"
    E_FILE_NOT_FOUND = "E_FILE_NOT_FOUND"

    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_PROMPT_EMPTY = "E_PROMPT_EMPTY"
    E_CODE_REQUIRED = "E_CODE_REQUIRED"
    E_FILEPATH_REQUIRED = "E_FILEPATH_REQUIRED"
    E_NOTHING_TO_PUBLISH = "E_NOTHING_TO_PUBLISH"

    E_INTERNAL = "E_INTERNAL"
    E_GENERATION_FAILED = "E_GENERATION_FAILED"
    E_EXPLORER_FAILED = "E_EXPLORER_FAILED"
    E_ARCHIVE_FAILED = "E_ARCHIVE_FAILED"
    E_DB_UNAVAILABLE = "E_DB_UNAVAILABLE"


_CODES_BY_STATUS: dict[int, tuple[ApiErrorCode, ...]] = {
    400: (
        ApiErrorCode.E_INVALID_REQUEST,
        ApiErrorCode.E_PROMPT_EMPTY,
        ApiErrorCode.E_CODE_REQUIRED,
        ApiErrorCode.E_FILEPATH_REQUIRED,
        ApiErrorCode.E_NOTHING_TO_PUBLISH,
    ),
    401: (ApiErrorCode.E_UNAUTHENTICATED,),
    # Insufficient credits is a refusal, not a payment flow
    403: (
        ApiErrorCode.E_FORBIDDEN,
        ApiErrorCode.E_INSUFFICIENT_CREDITS,
        ApiErrorCode.E_PATH_FORBIDDEN,
    ),
    404: (
        ApiErrorCode.E_NOT_FOUND,
        ApiErrorCode.E_USER_NOT_FOUND,
        ApiErrorCode.E_PROJECT_NOT_FOUND,
        ApiErrorCode.E_VERSION_NOT_FOUND,
        ApiErrorCode.E_FILE_NOT_FOUND,
    ),
    500: (
        ApiErrorCode.E_INTERNAL,
        ApiErrorCode.E_GENERATION_FAILED,
        ApiErrorCode.E_EXPLORER_FAILED,
        ApiErrorCode.E_ARCHIVE_FAILED,
    ),
    503: (ApiErrorCode.E_DB_UNAVAILABLE,),
}

ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    code: status for status, codes in _CODES_BY_STATUS.items() for code in codes
}


class ApiError(Exception):
    """An error with a stable code, a client-safe message and an HTTP status."""

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class NotFoundError(ApiError):
    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class ForbiddenError(ApiError):
    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_FORBIDDEN, message: str = "Forbidden"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)
