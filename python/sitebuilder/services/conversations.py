"""Conversation transcript helpers.

Each project has a `next_conversation_seq` counter (starts at 1). Appending an
entry locks the project row (FOR UPDATE where the backend supports it), reads
the counter, increments it, and inserts the entry with the original value.
Entries are append-only; ordering within a project is by seq.

These helpers must be called within an existing transaction context.
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from sitebuilder.db.models import Conversation, ConversationRole, WebsiteProject
from sitebuilder.logging import get_logger

logger = get_logger(__name__)

# Assistant transcript lines
ENHANCED_PROMPT_TEMPLATE = 'I\'ve enhanced your prompt to: "{enhanced}"'
MAKING_CHANGES = "Now making changes to your website..."
GENERATION_FAILED = "Unable to generate the code, please try again"
CHANGES_MADE = "I've made the changes to your website! You can now preview it"
ROLLED_BACK = "I've rolled back your website to selected version. You can now preview it"


def assign_next_conversation_seq(db: Session, project_id: UUID) -> int:
    """Atomically assign the next transcript sequence number for a project.

    Raises:
        ValueError: If the project does not exist.
    """
    current_seq = db.execute(
        select(WebsiteProject.next_conversation_seq)
        .where(WebsiteProject.id == project_id)
        .with_for_update()
    ).scalar_one_or_none()

    if current_seq is None:
        raise ValueError(f"Project {project_id} not found")

    db.execute(
        update(WebsiteProject)
        .where(WebsiteProject.id == project_id)
        .values(next_conversation_seq=WebsiteProject.next_conversation_seq + 1)
        .execution_options(synchronize_session=False)
    )

    logger.debug("assigned_conversation_seq", project_id=str(project_id), seq=current_seq)
    return current_seq


def append_entry(
    db: Session,
    project_id: UUID,
    role: ConversationRole,
    content: str,
) -> Conversation:
    """Append one transcript entry to a project."""
    entry = Conversation(
        project_id=project_id,
        seq=assign_next_conversation_seq(db, project_id),
        role=role.value,
        content=content,
    )
    db.add(entry)
    db.flush()
    return entry


def append_assistant(db: Session, project_id: UUID, content: str) -> Conversation:
    return append_entry(db, project_id, ConversationRole.assistant, content)


def append_user(db: Session, project_id: UUID, content: str) -> Conversation:
    return append_entry(db, project_id, ConversationRole.user, content)
