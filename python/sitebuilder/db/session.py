"""Sessions and transactions.

- get_db(): one session per request, closed when the response is sent
- session_scope(): a session for code that runs outside a request
  (the auth bootstrap, scripts)
- transaction(db): commit a group of writes, or roll all of them back
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from sitebuilder.db.engine import get_engine

_session_factory: sessionmaker[Session] | None = None


def create_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Build a sessionmaker for an engine (the application engine by default).

    Objects stay loaded after commit: the revision flow commits between model
    calls and keeps reading the same rows afterwards.
    """
    return sessionmaker(
        bind=engine if engine is not None else get_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


def get_session_factory() -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory()
    return _session_factory


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Iterator[Session]:
    """Open a session and always close it; commits are left to the caller."""
    db = (factory or get_session_factory())()
    try:
        yield db
    finally:
        db.close()


def get_db() -> Iterator[Session]:
    """FastAPI dependency: a request-scoped session."""
    with session_scope() as db:
        yield db


@contextmanager
def transaction(db: Session) -> Iterator[None]:
    """Commit on normal exit, roll back and re-raise on any exception.

        with transaction(db):
            append_user(db, project_id, message)
            debit_credits(db, user_id)
    """
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise
