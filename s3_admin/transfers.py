from __future__ import annotations
"""Helpers for turning local files into uploads and saving downloads."""
from dataclasses import dataclass
import logging
import mimetypes
from pathlib import Path
from typing import Iterable, Optional

from .models import DownloadedObject

LOGGER = logging.getLogger(__name__)


@dataclass
class UploadFile:
    """A file queued for upload.

    ``relative_path`` keeps the folder structure of a dropped directory
    (``photos/2024/a.jpg``); without it the object is named ``name``.
    """

    name: str
    data: bytes
    content_type: Optional[str] = None
    relative_path: Optional[str] = None


def upload_key(prefix: str, upload: UploadFile) -> str:
    return f"{prefix}{upload.relative_path or upload.name}"


def path_depth(path: str) -> int:
    return len([segment for segment in path.split("/") if segment])


def validate_path_depths(files: Iterable[UploadFile], max_depth: int) -> bool:
    return all(path_depth(f.relative_path) <= max_depth for f in files if f.relative_path)


def _read_upload(path: Path, relative_path: str | None) -> UploadFile:
    content_type, _ = mimetypes.guess_type(path.name)
    return UploadFile(
        name=path.name,
        data=path.read_bytes(),
        content_type=content_type,
        relative_path=relative_path,
    )


def _collect_directory(directory: Path, base_path: str, max_depth: int) -> list[UploadFile]:
    if path_depth(base_path) + 1 > max_depth:
        LOGGER.warning("Skipping directory %s - max depth %d reached", base_path, max_depth)
        return []
    files: list[UploadFile] = []
    for child in sorted(directory.iterdir()):
        child_path = f"{base_path}/{child.name}"
        if child.is_dir():
            files.extend(_collect_directory(child, child_path, max_depth))
        elif child.is_file():
            files.append(_read_upload(child, child_path))
    return files


def collect_upload_files(paths: Iterable[str | Path], max_depth: int = 3) -> list[UploadFile]:
    """Read local files and directories into uploads.

    Plain files upload under their own name. Directories keep their structure
    relative to their parent; directories whose files would sit more than
    ``max_depth`` segments deep are skipped.
    """

    files: list[UploadFile] = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            files.extend(_collect_directory(path, path.name, max_depth))
        elif path.is_file():
            files.append(_read_upload(path, None))
        else:
            LOGGER.warning("Skipping %s - not a file or directory", path)
    return files


class DirectoryDownloadSink:
    """Saves downloaded objects into a local directory."""

    def __init__(self, directory: str | Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def __call__(self, filename: str, obj: DownloadedObject) -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        destination = self._directory / filename
        destination.write_bytes(obj.data)
        return destination
