"""Initial schema - users, website_projects, versions, conversations

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Column types are portable (Uuid, DateTime with time zone) so the same
migration runs on PostgreSQL and on SQLite. IDs are generated by the
application, not the database.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # ==========================================================================
    # users table
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), server_default="", nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("credits", sa.Integer(), server_default="20", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # ==========================================================================
    # website_projects table
    # ==========================================================================
    op.create_table(
        "website_projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("initial_prompt", sa.Text(), server_default="", nullable=False),
        sa.Column("current_code", sa.Text(), nullable=True),
        # Not a foreign key: a version row and its project point at each other
        sa.Column("current_version_index", sa.Uuid(), nullable=True),
        sa.Column("is_published", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("next_conversation_seq", sa.Integer(), server_default="1", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "next_conversation_seq >= 1",
            name="ck_website_projects_next_conversation_seq_positive",
        ),
    )
    op.create_index("ix_website_projects_user_id", "website_projects", ["user_id"])

    # ==========================================================================
    # versions table
    # ==========================================================================
    op.create_table(
        "versions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["project_id"], ["website_projects.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_versions_project_id", "versions", ["project_id"])

    # ==========================================================================
    # conversations table
    # ==========================================================================
    op.create_table(
        "conversations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["project_id"], ["website_projects.id"], ondelete="CASCADE"),
        sa.CheckConstraint("seq >= 1", name="ck_conversations_seq_positive"),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="ck_conversations_role"),
        sa.UniqueConstraint("project_id", "seq", name="uix_conversations_project_seq"),
    )


def downgrade() -> None:
    op.drop_table("conversations")
    op.drop_index("ix_versions_project_id", table_name="versions")
    op.drop_table("versions")
    op.drop_index("ix_website_projects_user_id", table_name="website_projects")
    op.drop_table("website_projects")
    op.drop_table("users")
