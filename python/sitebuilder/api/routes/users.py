"""User routes.

The viewer's own account: credit balance, project list, project creation,
transcript view and publishing. Routes are transport-only and call exactly
one service function each.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sitebuilder.api.deps import get_db, get_site_generator
from sitebuilder.auth.middleware import Viewer, get_viewer
from sitebuilder.responses import message_response, success_response
from sitebuilder.schemas.project import CreateProjectRequest
from sitebuilder.services import projects as projects_service
from sitebuilder.services import revisions as revisions_service
from sitebuilder.services.llm import SiteGenerator
from sitebuilder.services.projects import parse_uuid_or_404

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/credits")
def get_user_credits(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    credits = projects_service.get_user_credits(db, viewer.user_id)
    return success_response({"credits": credits})


@router.post("/project")
async def create_project(
    body: CreateProjectRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    generator: Annotated[SiteGenerator, Depends(get_site_generator)],
) -> dict:
    """Create a project and generate its first version; costs 5 credits.

    Errors:
        E_INSUFFICIENT_CREDITS (403), E_PROMPT_EMPTY (400),
        E_GENERATION_FAILED (500, the empty project is kept).
    """
    project_id = await revisions_service.create_project(
        db, generator, viewer.user_id, body.initial_prompt
    )
    return success_response({"project_id": str(project_id)})


@router.get("/projects")
def list_user_projects(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """The viewer's projects, newest first."""
    projects = projects_service.list_user_projects(db, viewer.user_id)
    return success_response({"projects": [p.model_dump(mode="json") for p in projects]})


@router.get("/project/{project_id}")
def get_user_project(
    project_id: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Project with versions and its conversation transcript."""
    project = projects_service.get_user_project(
        db, viewer.user_id, parse_uuid_or_404(project_id)
    )
    return success_response({"project": project.model_dump(mode="json")})


@router.get("/publish-toggle/{project_id}")
def toggle_publish(
    project_id: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Publish or unpublish a project.

    Errors:
        E_NOTHING_TO_PUBLISH (400): The project has no code yet.
    """
    is_published = projects_service.toggle_publish(
        db, viewer.user_id, parse_uuid_or_404(project_id)
    )
    message = "Project published successfully" if is_published else "Project unpublished"
    return message_response(message, is_published=is_published)
