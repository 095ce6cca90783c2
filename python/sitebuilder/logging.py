"""structlog setup and request-scoped log fields.

Every event is rendered through the stdlib root handler, so structlog events
and plain `logging` records (uvicorn, alembic, the auth middleware) share one
format. While a request is in flight its fields are bound in context
variables and merged into each event:

    request_id, user_id, path, method, project_id

`path` is the raw path only; query strings never reach the logs.

    logger = get_logger(__name__)
    logger.info("revision_started", prompt_chars=412)
"""

import logging
import sys
from contextvars import ContextVar

import structlog

_CONTEXT_FIELDS = ("request_id", "user_id", "path", "method", "project_id")

_context: dict[str, ContextVar[str | None]] = {
    field: ContextVar(field, default=None) for field in _CONTEXT_FIELDS
}

_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def add_request_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """structlog processor: merge bound request fields into the event.

    Fields the caller passed explicitly are left alone.
    """
    for field, var in _context.items():
        value = var.get()
        if value and field not in event_dict:
            event_dict[field] = value
    return event_dict


def configure_logging(json_format: bool = True, level: int = logging.INFO) -> None:
    """Route structlog through stdlib logging with a JSON (or console) renderer."""
    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_request_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    renderer = (
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_request_context(
    request_id: str | None,
    user_id: str | None = None,
    path: str | None = None,
    method: str | None = None,
) -> None:
    """Bind the current request's fields; omitted optional fields keep their value."""
    _context["request_id"].set(request_id)
    for field, value in (("user_id", user_id), ("path", path), ("method", method)):
        if value is not None:
            _context[field].set(value)


def set_project_id(project_id: str | None) -> None:
    _context["project_id"].set(project_id)


def clear_request_context() -> None:
    for var in _context.values():
        var.set(None)


def get_request_id() -> str | None:
    return _context["request_id"].get()
