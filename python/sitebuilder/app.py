"""Application factory.

create_app() assembles the API: exception handlers, the session-auth
middleware and the routers. add_request_id_middleware() must be called on the
result afterwards. Starlette runs middleware in reverse registration order,
so registering it last makes it the outermost layer, and even a request
rejected by auth carries an X-Request-ID.

Request path:
    RequestIDMiddleware -> AuthMiddleware -> route -> AuthMiddleware -> RequestIDMiddleware

The lifespan owns one pooled httpx.AsyncClient. The LLM client and the site
generator built on it live on app.state until shutdown closes the pool.
"""

from contextlib import asynccontextmanager
from uuid import UUID

import httpx
from fastapi import FastAPI
from sqlalchemy.orm import Session, sessionmaker

from sitebuilder.api.routes import create_api_router
from sitebuilder.auth.middleware import AuthMiddleware
from sitebuilder.auth.verifier import SessionTokenVerifier, TokenVerifier
from sitebuilder.config import get_settings
from sitebuilder.db.models import User
from sitebuilder.db.session import session_scope
from sitebuilder.logging import configure_logging, get_logger
from sitebuilder.middleware.request_id import RequestIDMiddleware
from sitebuilder.responses import register_exception_handlers
from sitebuilder.services.bootstrap import ensure_user
from sitebuilder.services.llm import LLMClient, LLMSiteGenerator, OpenAIAdapter

configure_logging()

logger = get_logger(__name__)


def create_bootstrap_callback(session_factory: sessionmaker[Session] | None = None):
    """Return a callable that makes sure an authenticated user has a row.

    Each call runs in its own short-lived session, independent of the
    session the route handler will later get from get_db.
    """

    def bootstrap(user_id: UUID) -> User:
        with session_scope(session_factory) as db:
            return ensure_user(db, user_id)

    return bootstrap


def create_token_verifier() -> SessionTokenVerifier:
    settings = get_settings()
    return SessionTokenVerifier(
        secret=settings.auth_secret,  # type: ignore[arg-type]
        issuer=settings.normalized_issuer,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Read timeout is the generation budget; connecting should be quick
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(float(settings.llm_timeout_s), connect=10.0),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )
    app.state.httpx_client = http_client
    app.state.site_generator = LLMSiteGenerator(
        LLMClient(
            OpenAIAdapter(http_client, base_url=settings.llm_base_url),
            api_key=settings.llm_api_key,
            timeout_s=settings.llm_timeout_s,
        ),
        model_name=settings.llm_model,
    )
    logger.info(
        "site_generator_initialized",
        model_name=settings.llm_model,
        llm_key_configured=bool(settings.llm_api_key),
    )

    try:
        yield
    finally:
        await http_client.aclose()
        logger.info("httpx_client_closed")


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier: TokenVerifier | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        skip_auth_middleware: Leave session auth off (route-level tests).
        token_verifier: Verifier to use instead of the settings-based one.
        session_factory: Sessions for the user bootstrap; the application
            factory when omitted.
    """
    settings = get_settings()

    app = FastAPI(
        title="Site Builder API",
        description="Generate, revise and publish single-page websites",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    register_exception_handlers(app)
    app.include_router(create_api_router())

    if skip_auth_middleware:
        return app

    app.add_middleware(
        AuthMiddleware,
        verifier=token_verifier or create_token_verifier(),
        cookie_name=settings.auth_cookie_name,
        bootstrap_callback=create_bootstrap_callback(session_factory),
    )
    logger.info("auth_middleware_enabled", env=settings.sitebuilder_env.value)
    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Install RequestIDMiddleware as the outermost layer.

    Call after create_app() so every response, auth failures included,
    gets an X-Request-ID header.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
