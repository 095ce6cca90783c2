"""Request bodies and response shapes."""

from sitebuilder.schemas.files import FileContentRequest, FileNodeOut
from sitebuilder.schemas.project import (
    ConversationEntryOut,
    CreateProjectRequest,
    ProjectDetailOut,
    ProjectOut,
    ProjectOwnerOut,
    ProjectPreviewOut,
    PublishedProjectOut,
    RevisionRequest,
    SaveCodeRequest,
    VersionOut,
)

__all__ = [
    "ConversationEntryOut",
    "CreateProjectRequest",
    "FileContentRequest",
    "FileNodeOut",
    "ProjectDetailOut",
    "ProjectOut",
    "ProjectOwnerOut",
    "ProjectPreviewOut",
    "PublishedProjectOut",
    "RevisionRequest",
    "SaveCodeRequest",
    "VersionOut",
]
