"""Pytest configuration and fixtures for site builder tests.

Test isolation strategy:
- Every test that touches the database gets a fresh in-memory SQLite engine
  with the schema created from the ORM metadata (or DATABASE_URL when
  TEST_DATABASE_URL points at a real database)
- The LLM is replaced by FakeSiteGenerator via dependency overrides
- Auth tests use session tokens signed with TEST_AUTH_SECRET
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

# Settings are read lazily; give them test values before anything imports them
os.environ.setdefault("SITEBUILDER_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_SECRET", "test-session-secret")
os.environ.setdefault("AUTH_ISSUER", "site-builder-auth")

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sitebuilder.api.deps import get_db, get_explorer_root, get_site_generator
from sitebuilder.app import add_request_id_middleware, create_app
from sitebuilder.auth.verifier import SessionTokenVerifier
from sitebuilder.config import clear_settings_cache
from sitebuilder.db.engine import create_db_engine
from sitebuilder.db.models import Base
from sitebuilder.db.session import create_session_factory
from tests.helpers import TEST_AUTH_ISSUER, TEST_AUTH_SECRET, create_test_user_id
from tests.support.fake_generator import FakeSiteGenerator


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Settings are cached per process; tests that patch env need a clean slate."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create a private in-memory database for one test."""
    url = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    if url.startswith("sqlite"):
        engine = create_db_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_db_engine(url)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a database session bound to the per-test engine."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_generator() -> FakeSiteGenerator:
    return FakeSiteGenerator()


@pytest.fixture
def explorer_root(tmp_path: Path) -> Path:
    """Empty directory served by the explorer routes; tests populate it."""
    root = tmp_path / "explorer"
    root.mkdir()
    return root


def _override_dependencies(
    app: FastAPI,
    session_factory: sessionmaker[Session],
    generator: FakeSiteGenerator,
    explorer_root: Path,
) -> None:
    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_site_generator] = lambda: generator
    app.dependency_overrides[get_explorer_root] = lambda: explorer_root.resolve()


@pytest.fixture
def client(session_factory, fake_generator, explorer_root) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client without authentication.

    Suitable for public endpoints and basic functionality.
    """
    app = create_app(skip_auth_middleware=True)
    _override_dependencies(app, session_factory, fake_generator, explorer_root)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def test_verifier() -> SessionTokenVerifier:
    return SessionTokenVerifier(secret=TEST_AUTH_SECRET, issuer=TEST_AUTH_ISSUER)


@pytest.fixture
def authenticated_app(session_factory, fake_generator, explorer_root, test_verifier) -> FastAPI:
    """Provide a FastAPI app with auth and request-id middleware.

    The user bootstrap writes to the per-test engine.
    """
    app = create_app(token_verifier=test_verifier, session_factory=session_factory)
    _override_dependencies(app, session_factory, fake_generator, explorer_root)
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def authenticated_client(authenticated_app) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client with auth middleware.

    Use auth_headers() or auth_cookies() to authenticate requests.
    """
    with TestClient(authenticated_app) as client:
        yield client


@pytest.fixture
def test_user_id():
    """Generate a random UUID for a test user."""
    return create_test_user_id()
