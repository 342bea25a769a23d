from __future__ import annotations
"""UI-agnostic helpers for formatting listings."""
from datetime import datetime

SIZE_SUFFIXES = ("B", "KB", "MB", "GB", "TB")


def format_size(size: int | None) -> str:
    if size is None or size < 0:
        return "-"
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for suffix in SIZE_SUFFIXES[1:]:
        value /= 1024
        if value < 1024 or suffix == SIZE_SUFFIXES[-1]:
            return f"{value:.2f} {suffix}"
    return f"{size} B"


def format_last_modified(last_modified: object) -> str:
    if not last_modified:
        return "-"
    if isinstance(last_modified, datetime):
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or last_modified.isoformat()
    try:
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or str(last_modified)
    except AttributeError:
        return str(last_modified)


def download_filename(key: str) -> str:
    """Suggested local filename for ``key``: its last path segment."""

    return key.rsplit("/", 1)[-1] or key
