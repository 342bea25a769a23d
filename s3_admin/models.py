from __future__ import annotations
"""Data models representing bucket listings and object operations."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class StoredObject:
    """A single object in a bucket as known to the client."""

    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None


@dataclass
class ObjectPage:
    """Represents a single page of a bucket listing."""

    items: list[StoredObject] = field(default_factory=list)
    next_cursor: Optional[str] = None
    truncated: bool = False


@dataclass(frozen=True)
class DeleteError:
    key: str
    reason: str


@dataclass
class DeleteResult:
    """Outcome of a bulk delete; per-key errors are a normal outcome."""

    deleted: list[str] = field(default_factory=list)
    errors: list[DeleteError] = field(default_factory=list)


@dataclass
class DeleteAllResult:
    success: bool = True
    count: int = 0


@dataclass
class DownloadedObject:
    key: str
    data: bytes
    content_type: str = "application/octet-stream"
    content_length: Optional[int] = None


@dataclass
class ListingState:
    """Aggregate state owned by :class:`~s3_admin.controller.ListingController`."""

    bucket: str = ""
    objects: list[StoredObject] = field(default_factory=list)
    selected_keys: set[str] = field(default_factory=set)
    cursor: Optional[str] = None
    has_more: bool = True
    loading: bool = False
    deleting: bool = False
    uploading: bool = False


@dataclass(frozen=True)
class ConfirmOptions:
    """Question passed to the confirmation gate."""

    title: str
    description: str
    confirm_text: str = "Confirm"
    cancel_text: str = "Cancel"
    variant: str = "default"


@dataclass(frozen=True)
class Notification:
    level: str
    message: str


@dataclass
class UploadOutcome:
    uploaded: list[str] = field(default_factory=list)
    total: int = 0
    failed_key: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.failed_key is None


@dataclass
class DownloadOutcome:
    saved: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
