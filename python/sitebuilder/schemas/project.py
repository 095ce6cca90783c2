"""Project-related Pydantic schemas.

Contains request and response models for project and user endpoints.
Request fields the services validate themselves (prompt, code) are optional
here so a missing field surfaces as the service's own error code rather than
a generic validation failure.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "RevisionRequest",
    "SaveCodeRequest",
    "CreateProjectRequest",
    "VersionOut",
    "ConversationEntryOut",
    "ProjectOut",
    "ProjectPreviewOut",
    "ProjectDetailOut",
    "ProjectOwnerOut",
    "PublishedProjectOut",
]

# =============================================================================
# Request Schemas
# =============================================================================


class RevisionRequest(BaseModel):
    """Request body for asking the model to change a site."""

    message: str | None = Field(default=None, description="Natural-language change request")


class SaveCodeRequest(BaseModel):
    """Request body for saving hand-edited HTML."""

    code: str | None = Field(default=None, description="Complete HTML document")


class CreateProjectRequest(BaseModel):
    """Request body for creating a project from a description."""

    initial_prompt: str | None = Field(default=None, description="Description of the site")


# =============================================================================
# Response Schemas
# =============================================================================


class VersionOut(BaseModel):
    """Response schema for a version snapshot."""

    id: UUID
    project_id: UUID
    code: str
    description: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationEntryOut(BaseModel):
    """Response schema for one transcript entry."""

    id: UUID
    seq: int
    role: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectOut(BaseModel):
    """Response schema for a project without its children."""

    id: UUID
    user_id: UUID
    name: str
    initial_prompt: str
    current_code: str | None
    current_version_index: UUID | None
    is_published: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectPreviewOut(ProjectOut):
    """Project plus its version history (oldest first)."""

    versions: list[VersionOut]


class ProjectDetailOut(ProjectOut):
    """Project plus its version history and conversation transcript."""

    versions: list[VersionOut]
    conversation: list[ConversationEntryOut]


class ProjectOwnerOut(BaseModel):
    """Public view of a project owner."""

    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class PublishedProjectOut(ProjectOut):
    """Published project listed in the community gallery."""

    user: ProjectOwnerOut
