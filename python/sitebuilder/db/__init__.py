"""Persistence: engine, sessions and the ORM models."""

from sitebuilder.db.engine import create_db_engine, get_engine
from sitebuilder.db.models import (
    Base,
    Conversation,
    ConversationRole,
    User,
    Version,
    WebsiteProject,
)
from sitebuilder.db.session import get_db, session_scope, transaction

__all__ = [
    "create_db_engine",
    "get_engine",
    "get_db",
    "session_scope",
    "transaction",
    "Base",
    "ConversationRole",
    "User",
    "WebsiteProject",
    "Version",
    "Conversation",
]
