"""SQLAlchemy ORM models for the site builder.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Column types are portable (Uuid, DateTime) so the same models back
PostgreSQL in deployment and SQLite in tests.
"""

from datetime import UTC, datetime
from enum import Enum as PyEnum
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utcnow() -> datetime:
    """Timezone-aware current time used for client-side defaults."""
    return datetime.now(UTC)


# =============================================================================
# Enums
# =============================================================================


class ConversationRole(str, PyEnum):
    """Author of a conversation transcript entry."""

    user = "user"
    assistant = "assistant"


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """User account model.

    The user ID matches the auth provider's subject (session `sub` claim).
    Credits are only changed through atomic UPDATE statements.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, server_default="20")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    projects: Mapped[list["WebsiteProject"]] = relationship(
        "WebsiteProject", back_populates="user", cascade="all, delete-orphan"
    )


class WebsiteProject(Base):
    """A single-page website owned by one user.

    current_version_index points at the Version whose code is live, or is
    NULL after a manual save decoupled the code from the version history.
    """

    __tablename__ = "website_projects"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    initial_prompt: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    current_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_version_index: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    is_published: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    next_conversation_seq: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "next_conversation_seq >= 1",
            name="ck_website_projects_next_conversation_seq_positive",
        ),
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="projects")
    versions: Mapped[list["Version"]] = relationship(
        "Version",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Version.created_at",
    )
    conversation: Mapped[list["Conversation"]] = relationship(
        "Conversation",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Conversation.seq",
    )


class Version(Base):
    """Immutable snapshot of a project's HTML plus a label."""

    __tablename__ = "versions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("website_projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    project: Mapped["WebsiteProject"] = relationship("WebsiteProject", back_populates="versions")


class Conversation(Base):
    """Append-only transcript entry attached to a project."""

    __tablename__ = "conversations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("website_projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("seq >= 1", name="ck_conversations_seq_positive"),
        CheckConstraint(
            "role IN ('user', 'assistant')",
            name="ck_conversations_role",
        ),
        UniqueConstraint("project_id", "seq", name="uix_conversations_project_seq"),
    )

    # Relationships
    project: Mapped["WebsiteProject"] = relationship(
        "WebsiteProject", back_populates="conversation"
    )
