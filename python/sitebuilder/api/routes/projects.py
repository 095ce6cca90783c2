"""Project routes.

Routes are transport-only:
- Extract viewer_user_id from request.state
- Parse path identifiers (malformed IDs are 404, like unknown ones)
- Call exactly one service function
- Return success(...) or raise ApiError

The published routes are public (see PUBLIC_GET_PREFIXES in auth.middleware).
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sitebuilder.api.deps import get_db, get_site_generator
from sitebuilder.auth.middleware import Viewer, get_viewer
from sitebuilder.errors import ApiErrorCode
from sitebuilder.responses import message_response, success_response
from sitebuilder.schemas.project import RevisionRequest, SaveCodeRequest
from sitebuilder.services import projects as projects_service
from sitebuilder.services import revisions as revisions_service
from sitebuilder.services.llm import SiteGenerator
from sitebuilder.services.projects import parse_uuid_or_404

router = APIRouter(prefix="/api/project", tags=["projects"])


# =============================================================================
# Public routes
# =============================================================================


@router.get("/published")
def list_published_projects(db: Annotated[Session, Depends(get_db)]) -> dict:
    """List every published project with its owner's id and name."""
    projects = projects_service.list_published_projects(db)
    return success_response({"projects": [p.model_dump(mode="json") for p in projects]})


@router.get("/published/{project_id}")
def get_published_code(project_id: str, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Live code of a published project.

    Errors:
        E_PROJECT_NOT_FOUND (404): Missing, unpublished, or no code yet.
    """
    code = projects_service.get_published_code(db, parse_uuid_or_404(project_id))
    return success_response({"code": code})


# =============================================================================
# Owner routes
# =============================================================================


@router.post("/revision/{project_id}")
async def make_revision(
    project_id: str,
    body: RevisionRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    generator: Annotated[SiteGenerator, Depends(get_site_generator)],
) -> dict:
    """Ask the model to apply a change request; costs 5 credits.

    Errors:
        E_USER_NOT_FOUND (404), E_INSUFFICIENT_CREDITS (403), E_PROMPT_EMPTY (400),
        E_PROJECT_NOT_FOUND (404), E_GENERATION_FAILED (500).
    """
    await revisions_service.make_revision(
        db,
        generator,
        viewer.user_id,
        parse_uuid_or_404(project_id),
        body.message,
    )
    return message_response(revisions_service.REVISION_SUCCESS_MESSAGE)


@router.put("/save/{project_id}")
def save_project_code(
    project_id: str,
    body: SaveCodeRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Replace the live code with a manual edit (not versioned)."""
    projects_service.save_project_code(
        db, viewer.user_id, parse_uuid_or_404(project_id), body.code
    )
    return message_response("Project saved successfully")


@router.get("/rollback/{project_id}/{version_id}")
def rollback_to_version(
    project_id: str,
    version_id: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Make one of the project's versions live again."""
    projects_service.rollback_to_version(
        db,
        viewer.user_id,
        parse_uuid_or_404(project_id),
        parse_uuid_or_404(version_id, ApiErrorCode.E_VERSION_NOT_FOUND),
    )
    return message_response("Version rolled back")


@router.get("/preview/{project_id}")
def get_project_preview(
    project_id: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Project with its full version history, oldest first."""
    project = projects_service.get_project_preview(
        db, viewer.user_id, parse_uuid_or_404(project_id)
    )
    return success_response({"project": project.model_dump(mode="json")})


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Delete a project together with its versions and transcript."""
    projects_service.delete_project(db, viewer.user_id, parse_uuid_or_404(project_id))
    return message_response("Project deleted successfully")
