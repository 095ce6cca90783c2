"""Streaming ZIP export of the explorer root.

The file list is collected up front so that walk failures still produce a
normal JSON error. Once streaming has started, the status line is already
sent: failures are logged and the archive is cut short.

zipfile writes into a sink without tell()/seek(), which makes it emit data
descriptors after each member instead of seeking back to patch headers. The
sink is drained after every chunk so memory stays bounded by CHUNK_SIZE.
"""

import zipfile
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import NamedTuple

from sitebuilder.errors import ApiError, ApiErrorCode
from sitebuilder.logging import get_logger
from sitebuilder.services.snapshot import list_entries

logger = get_logger(__name__)

ARCHIVE_FILENAME = "site-builder-project.zip"
ARCHIVE_MEDIA_TYPE = "application/zip"
COMPRESS_LEVEL = 9
CHUNK_SIZE = 64 * 1024


class ArchiveEntry(NamedTuple):
    path: Path
    arcname: str
    size: int


def _walk(dir_path: Path, prefix: str, out: list[ArchiveEntry]) -> None:
    for entry in list_entries(dir_path):
        arcname = f"{prefix}/{entry.name}" if prefix else entry.name
        if entry.is_symlink():
            continue
        if entry.is_dir(follow_symlinks=False):
            _walk(Path(entry.path), arcname, out)
        elif entry.is_file(follow_symlinks=False):
            out.append(
                ArchiveEntry(Path(entry.path), arcname, entry.stat(follow_symlinks=False).st_size)
            )


def collect_archive_entries(root: Path) -> list[ArchiveEntry]:
    """Every non-excluded regular file below root, in name order.

    Raises:
        ApiError(E_ARCHIVE_FAILED): Any directory or entry cannot be read.
    """
    entries: list[ArchiveEntry] = []
    try:
        _walk(root, "", entries)
    except OSError as e:
        logger.error("archive.collect_failed", error=str(e))
        raise ApiError(ApiErrorCode.E_ARCHIVE_FAILED, "Failed to create project ZIP") from e

    logger.info("archive.collected", file_count=len(entries))
    return entries


class _ChunkSink:
    """Write-only, non-seekable buffer that hands out what was written so far."""

    def __init__(self):
        self._chunks: list[bytes] = []

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def stream_zip(entries: Iterable[ArchiveEntry], chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield a deflated ZIP archive of the given files incrementally."""
    sink = _ChunkSink()
    written = 0
    try:
        with zipfile.ZipFile(
            sink, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL
        ) as zf:
            for entry in entries:
                force_zip64 = entry.size >= zipfile.ZIP64_LIMIT
                with open(entry.path, "rb") as src, zf.open(
                    entry.arcname, mode="w", force_zip64=force_zip64
                ) as dest:
                    while True:
                        chunk = src.read(chunk_size)
                        if not chunk:
                            break
                        dest.write(chunk)
                        data = sink.drain()
                        if data:
                            yield data
                data = sink.drain()
                if data:
                    yield data
                written += 1

        # Central directory is written when the ZipFile closes
        data = sink.drain()
        if data:
            yield data
    except Exception:
        logger.exception("archive.stream_failed", files_written=written)
        return

    logger.info("archive.completed", files_written=written)


def archive_headers() -> dict[str, str]:
    return {"Content-Disposition": f"attachment; filename={ARCHIVE_FILENAME}"}
