"""File explorer Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field

__all__ = ["FileContentRequest", "FileNodeOut"]


class FileContentRequest(BaseModel):
    """Request body for reading one file from the explorer root."""

    filepath: str | None = Field(default=None, description="Root-relative path of the file")


class FileNodeOut(BaseModel):
    """One node of the explorer tree.

    Folders carry `children`; files carry `size` and `extension`.
    """

    name: str
    path: str
    type: Literal["file", "folder"]
    children: list["FileNodeOut"] | None = None
    size: int | None = None
    extension: str | None = None
