"""Project service layer.

All project-related business logic lives here except generation, which is
in revisions.py. Routes call exactly one function from this module.

Visibility rules:
- Owner-only reads and writes return 404 for projects the viewer does not
  own, so existence is never leaked
- Published reads are anonymous and return a uniform 404 unless the project
  is published and has code
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from sitebuilder.db.models import User, Version, WebsiteProject
from sitebuilder.db.session import transaction
from sitebuilder.errors import ApiErrorCode, InvalidRequestError, NotFoundError
from sitebuilder.logging import get_logger, set_project_id
from sitebuilder.schemas.project import (
    ProjectDetailOut,
    ProjectOut,
    ProjectPreviewOut,
    PublishedProjectOut,
)
from sitebuilder.services.conversations import ROLLED_BACK, append_assistant
from sitebuilder.services.credits import get_credits

logger = get_logger(__name__)

PROJECT_NAME_MAX_CHARS = 50


def parse_uuid_or_404(value: str, code: ApiErrorCode = ApiErrorCode.E_PROJECT_NOT_FOUND) -> UUID:
    """Parse a path identifier; anything that is not a UUID cannot exist."""
    try:
        return UUID(value)
    except (ValueError, TypeError, AttributeError):
        raise NotFoundError(code, _not_found_message(code)) from None


def _not_found_message(code: ApiErrorCode) -> str:
    if code == ApiErrorCode.E_VERSION_NOT_FOUND:
        return "Version not found"
    return "Project not found"


def project_name_from_prompt(prompt: str) -> str:
    """Derive a display name from the creation prompt."""
    prompt = prompt.strip()
    if len(prompt) <= PROJECT_NAME_MAX_CHARS:
        return prompt
    return prompt[:PROJECT_NAME_MAX_CHARS] + "..."


# =============================================================================
# Lookups
# =============================================================================


def get_user_or_404(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    return user


def get_owned_project(
    db: Session, viewer_id: UUID, project_id: UUID, *options
) -> WebsiteProject:
    """Load a project owned by the viewer.

    Loader options (e.g. selectinload) also refresh already-loaded collections.

    Raises:
        NotFoundError(E_PROJECT_NOT_FOUND): Missing or owned by someone else.
    """
    stmt = select(WebsiteProject).where(
        WebsiteProject.id == project_id,
        WebsiteProject.user_id == viewer_id,
    )
    if options:
        stmt = stmt.options(*options).execution_options(populate_existing=True)

    project = db.execute(stmt).scalar_one_or_none()

    if project is None:
        raise NotFoundError(ApiErrorCode.E_PROJECT_NOT_FOUND, "Project not found")

    set_project_id(str(project.id))
    return project


# =============================================================================
# Mutations
# =============================================================================


def rollback_to_version(
    db: Session, viewer_id: UUID, project_id: UUID, version_id: UUID
) -> None:
    """Point the project back at one of its own versions.

    Creates or deletes no Version. Repeating the call leaves the same
    pointer and appends one more transcript line.

    Raises:
        NotFoundError(E_PROJECT_NOT_FOUND): Project missing or not owned.
        NotFoundError(E_VERSION_NOT_FOUND): Version missing or belongs to another project.
    """
    with transaction(db):
        project = get_owned_project(db, viewer_id, project_id)

        version = db.execute(
            select(Version).where(Version.id == version_id, Version.project_id == project.id)
        ).scalar_one_or_none()
        if version is None:
            raise NotFoundError(ApiErrorCode.E_VERSION_NOT_FOUND, "Version not found")

        project.current_code = version.code
        project.current_version_index = version.id
        append_assistant(db, project.id, ROLLED_BACK)

    logger.info("project.rolled_back", version_id=str(version_id))


def save_project_code(
    db: Session, viewer_id: UUID, project_id: UUID, code: str | None
) -> None:
    """Replace the live code with a manual edit.

    The edit is not versioned; current_version_index is cleared because the
    live code no longer matches any Version.

    Raises:
        InvalidRequestError(E_CODE_REQUIRED): No code supplied.
        NotFoundError(E_PROJECT_NOT_FOUND): Project missing or not owned.
    """
    if not code:
        raise InvalidRequestError(ApiErrorCode.E_CODE_REQUIRED, "Code is required")

    with transaction(db):
        project = get_owned_project(db, viewer_id, project_id)
        project.current_code = code
        project.current_version_index = None

    logger.info("project.saved", code_chars=len(code))


def delete_project(db: Session, viewer_id: UUID, project_id: UUID) -> None:
    """Delete a project with its versions and transcript."""
    with transaction(db):
        project = get_owned_project(db, viewer_id, project_id)
        db.delete(project)

    logger.info("project.deleted")


def toggle_publish(db: Session, viewer_id: UUID, project_id: UUID) -> bool:
    """Flip the published flag.

    Returns:
        The new is_published value.

    Raises:
        InvalidRequestError(E_NOTHING_TO_PUBLISH): Publishing a project with no code.
    """
    with transaction(db):
        project = get_owned_project(db, viewer_id, project_id)
        if not project.is_published and not project.current_code:
            raise InvalidRequestError(
                ApiErrorCode.E_NOTHING_TO_PUBLISH, "Project has no code to publish"
            )
        project.is_published = not project.is_published
        is_published = project.is_published

    logger.info("project.publish_toggled", is_published=is_published)
    return is_published


# =============================================================================
# Reads
# =============================================================================


def get_project_preview(db: Session, viewer_id: UUID, project_id: UUID) -> ProjectPreviewOut:
    """Owner-only view of a project with every version, oldest first."""
    project = get_owned_project(
        db, viewer_id, project_id, selectinload(WebsiteProject.versions)
    )
    return ProjectPreviewOut.model_validate(project)


def list_published_projects(db: Session) -> list[PublishedProjectOut]:
    """Every published project with its owner's public identity."""
    projects = (
        db.execute(
            select(WebsiteProject)
            .where(WebsiteProject.is_published.is_(True))
            .options(selectinload(WebsiteProject.user))
            .order_by(WebsiteProject.updated_at.desc())
        )
        .scalars()
        .all()
    )
    return [PublishedProjectOut.model_validate(p) for p in projects]


def get_published_code(db: Session, project_id: UUID) -> str:
    """Live code of a published project.

    Missing, unpublished and empty projects are indistinguishable.
    """
    project = db.get(WebsiteProject, project_id)
    if project is None or not project.is_published or not project.current_code:
        raise NotFoundError(ApiErrorCode.E_PROJECT_NOT_FOUND, "Project not found")
    return project.current_code


def get_user_credits(db: Session, viewer_id: UUID) -> int:
    credits = get_credits(db, viewer_id)
    if credits is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    return credits


def list_user_projects(db: Session, viewer_id: UUID) -> list[ProjectOut]:
    """The viewer's projects, newest first."""
    projects = (
        db.execute(
            select(WebsiteProject)
            .where(WebsiteProject.user_id == viewer_id)
            .order_by(WebsiteProject.created_at.desc())
        )
        .scalars()
        .all()
    )
    return [ProjectOut.model_validate(p) for p in projects]


def get_user_project(db: Session, viewer_id: UUID, project_id: UUID) -> ProjectDetailOut:
    """Owner view of a project with versions and its transcript ordered by seq."""
    project = get_owned_project(
        db,
        viewer_id,
        project_id,
        selectinload(WebsiteProject.versions),
        selectinload(WebsiteProject.conversation),
    )
    return ProjectDetailOut.model_validate(project)
