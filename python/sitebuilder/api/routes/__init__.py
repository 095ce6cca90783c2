"""HTTP routes, grouped per resource."""

from fastapi import APIRouter

from sitebuilder.api.routes.health import router as health_router
from sitebuilder.api.routes.project_files import router as project_files_router
from sitebuilder.api.routes.projects import router as projects_router
from sitebuilder.api.routes.users import router as users_router


def create_api_router() -> APIRouter:
    # Explorer paths share the /api/project prefix; their static segments go first
    api_router = APIRouter()
    api_router.include_router(health_router)
    api_router.include_router(project_files_router)
    api_router.include_router(projects_router)
    api_router.include_router(users_router)
    return api_router


__all__ = ["create_api_router"]
