"""File explorer routes.

Read-only access to the configured explorer root: the tree, single files,
and a streamed ZIP of everything that is not excluded. All routes require
authentication.
"""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from sitebuilder.api.deps import get_explorer_root
from sitebuilder.auth.middleware import Viewer, get_viewer
from sitebuilder.config import get_settings
from sitebuilder.responses import success_response
from sitebuilder.schemas.files import FileContentRequest
from sitebuilder.services import archive as archive_service
from sitebuilder.services import snapshot as snapshot_service

router = APIRouter(prefix="/api/project", tags=["project-files"])


@router.get("/structure")
def get_project_structure(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    root: Annotated[Path, Depends(get_explorer_root)],
) -> dict:
    """Explorer tree plus the display name of the project."""
    structure = snapshot_service.read_project_structure(root)
    return success_response(
        {
            "structure": [
                node.model_dump(mode="json", exclude_none=True) for node in structure
            ],
            "projectName": get_settings().explorer_project_name,
        }
    )


@router.post("/file-content")
def get_file_content(
    body: FileContentRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    root: Annotated[Path, Depends(get_explorer_root)],
) -> dict:
    """Contents of one file below the explorer root.

    Errors:
        E_FILEPATH_REQUIRED (400), E_PATH_FORBIDDEN (403), E_FILE_NOT_FOUND (404).
    """
    content = snapshot_service.read_file_content(root, body.filepath)
    return success_response({"content": content, "filepath": body.filepath})


@router.get("/download-zip")
def download_project_zip(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    root: Annotated[Path, Depends(get_explorer_root)],
) -> StreamingResponse:
    """Stream the explorer root as a ZIP attachment.

    The file list is collected before the response starts, so walk failures
    return E_ARCHIVE_FAILED (500) as JSON.
    """
    entries = archive_service.collect_archive_entries(root)
    return StreamingResponse(
        archive_service.stream_zip(entries),
        media_type=archive_service.ARCHIVE_MEDIA_TYPE,
        headers=archive_service.archive_headers(),
    )
