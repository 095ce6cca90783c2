"""Read-only view of the explorer root for the in-app code explorer.

Exclusion is a coarse substring match on each entry name: any name that
contains one of EXCLUDED_ITEMS is skipped together with everything below it
(so `builder.py` is hidden because it contains `build`).

Symlinks are never followed or listed. Paths in the tree are relative to the
root and always use "/" as separator.
"""

import os
from pathlib import Path

from sitebuilder.errors import ApiError, ApiErrorCode, InvalidRequestError, NotFoundError
from sitebuilder.logging import get_logger
from sitebuilder.schemas.files import FileNodeOut

logger = get_logger(__name__)

EXCLUDED_ITEMS = (
    "node_modules",
    ".git",
    ".env",
    "dist",
    "build",
    ".next",
    "coverage",
    ".DS_Store",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    ".vscode",
    ".idea",
    "generated",
    "__pycache__",
    ".venv",
    ".pytest_cache",
)


def should_exclude(name: str) -> bool:
    return any(excluded in name for excluded in EXCLUDED_ITEMS)


def file_extension(name: str) -> str:
    """Lowercase extension without the dot; "" for none (and for dotfiles)."""
    return os.path.splitext(name)[1].lower()[1:]


def _join(relative: str, name: str) -> str:
    return f"{relative}/{name}" if relative else name


def list_entries(dir_path: Path) -> list[os.DirEntry]:
    """Non-excluded entries of one directory, sorted by name.

    Raises:
        OSError: If the directory cannot be listed.
    """
    with os.scandir(dir_path) as it:
        entries = [entry for entry in it if not should_exclude(entry.name)]
    return sorted(entries, key=lambda entry: entry.name)


def read_directory_structure(dir_path: Path, relative: str = "") -> list[FileNodeOut]:
    """Build the explorer tree below dir_path.

    An unreadable directory contributes no children; an entry whose
    metadata cannot be read is skipped on its own.
    """
    try:
        entries = list_entries(dir_path)
    except OSError as e:
        logger.error("explorer.read_dir_failed", rel_path=relative or ".", error=str(e))
        return []

    nodes: list[FileNodeOut] = []
    for entry in entries:
        rel_path = _join(relative, entry.name)
        try:
            if entry.is_symlink():
                continue
            if entry.is_dir(follow_symlinks=False):
                nodes.append(
                    FileNodeOut(
                        name=entry.name,
                        path=rel_path,
                        type="folder",
                        children=read_directory_structure(Path(entry.path), rel_path),
                    )
                )
            elif entry.is_file(follow_symlinks=False):
                nodes.append(
                    FileNodeOut(
                        name=entry.name,
                        path=rel_path,
                        type="file",
                        size=entry.stat(follow_symlinks=False).st_size,
                        extension=file_extension(entry.name),
                    )
                )
        except OSError as e:
            logger.warning("explorer.stat_failed", rel_path=rel_path, error=str(e))

    return nodes


def read_project_structure(root: Path) -> list[FileNodeOut]:
    """Explorer tree of the configured root.

    Raises:
        ApiError(E_EXPLORER_FAILED): The root itself is not a readable directory.
    """
    if not root.is_dir():
        logger.error("explorer.root_missing")
        raise ApiError(ApiErrorCode.E_EXPLORER_FAILED, "Failed to read project structure")
    return read_directory_structure(root)


def resolve_within_root(root: Path, filepath: str) -> Path:
    """Resolve a client-supplied path and make sure it stays inside root.

    Both "/" and "\\" are accepted as separators. The check compares whole
    path components, so a sibling such as `<root>-other` is rejected.

    Raises:
        ApiError(E_PATH_FORBIDDEN): The path escapes the root.
    """
    root = root.resolve()
    candidate = (root / filepath.replace("\\", "/")).resolve()

    root_str = str(root)
    prefix = root_str if root_str.endswith(os.sep) else root_str + os.sep
    if candidate != root and not str(candidate).startswith(prefix):
        logger.warning("explorer.path_forbidden")
        raise ApiError(ApiErrorCode.E_PATH_FORBIDDEN, "Access denied")

    return candidate


def read_file_content(root: Path, filepath: str | None) -> str:
    """Contents of one file below the root, decoded as UTF-8 with replacement.

    Raises:
        InvalidRequestError(E_FILEPATH_REQUIRED): No path supplied.
        InvalidRequestError(E_INVALID_REQUEST): The path contains a NUL byte.
        ApiError(E_PATH_FORBIDDEN): The path escapes the root.
        NotFoundError(E_FILE_NOT_FOUND): Missing, or not a regular file.
        ApiError(E_EXPLORER_FAILED): The file exists but cannot be read.
    """
    if not filepath:
        raise InvalidRequestError(ApiErrorCode.E_FILEPATH_REQUIRED, "File path is required")

    try:
        path = resolve_within_root(root, filepath)
        is_file = path.is_file()
    except ValueError as e:
        # Embedded NUL byte
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "Invalid file path") from e
    except OSError:
        # e.g. ENAMETOOLONG; the path cannot name an existing file
        is_file = False
    if not is_file:
        raise NotFoundError(ApiErrorCode.E_FILE_NOT_FOUND, "File not found")

    try:
        data = path.read_bytes()
    except OSError as e:
        logger.error("explorer.read_file_failed", error=str(e))
        raise ApiError(ApiErrorCode.E_EXPLORER_FAILED, "Failed to read file content") from e

    return data.decode("utf-8", errors="replace")
