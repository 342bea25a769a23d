from __future__ import annotations
"""Listing controller: paginated objects, selection and bucket mutations."""
import asyncio
from dataclasses import replace
import logging
from typing import Awaitable, Callable, Iterable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .models import (
    ConfirmOptions,
    DeleteResult,
    DeleteAllResult,
    DownloadedObject,
    DownloadOutcome,
    ListingState,
    Notification,
    StoredObject,
    UploadOutcome,
)
from .services import PAGE_SIZE, S3ObjectStore
from .settings import AppSettings, SettingsStorage
from .transfers import UploadFile, path_depth, upload_key
from .ui_utils import download_filename

LOGGER = logging.getLogger(__name__)

ConfirmFn = Callable[[ConfirmOptions], Awaitable[bool]]
NotifyFn = Callable[[Notification], None]
DownloadSinkFn = Callable[[str, DownloadedObject], object]

STORE_ERRORS = (BotoCoreError, ClientError)


def _log_notification(notification: Notification) -> None:
    level = logging.ERROR if notification.level == "error" else logging.INFO
    LOGGER.log(level, "%s", notification.message)


class ListingController:
    """Owns the cumulative object listing of one bucket at a time.

    Every operation is a coroutine; store calls run in worker threads and the
    controller itself is only touched from the event loop. Each bucket switch
    starts a new session, and results of calls issued under an older session
    are discarded instead of being applied.
    """

    def __init__(
        self,
        store: S3ObjectStore,
        *,
        confirm: ConfirmFn,
        notify: NotifyFn | None = None,
        download_sink: DownloadSinkFn | None = None,
        settings: AppSettings | None = None,
        settings_storage: SettingsStorage | None = None,
    ) -> None:
        self._store = store
        self._confirm = confirm
        self._notify_fn = notify or _log_notification
        self._download_sink = download_sink
        self._settings_storage = settings_storage
        if settings is None:
            settings = settings_storage.load() if settings_storage else AppSettings()
        self._settings = settings
        self._buckets: list[str] = []
        self._state = ListingState()
        self._session = 0
        self._fetch_token: Optional[object] = None

    @property
    def buckets(self) -> list[str]:
        return list(self._buckets)

    @property
    def state(self) -> ListingState:
        """A copy of the current state; mutating it has no effect."""

        return replace(
            self._state,
            objects=list(self._state.objects),
            selected_keys=set(self._state.selected_keys),
        )

    @property
    def bucket(self) -> str:
        return self._state.bucket

    @property
    def objects(self) -> list[StoredObject]:
        return list(self._state.objects)

    @property
    def selected_keys(self) -> set[str]:
        return set(self._state.selected_keys)

    @property
    def has_more(self) -> bool:
        return self._state.has_more

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def deleting(self) -> bool:
        return self._state.deleting

    @property
    def uploading(self) -> bool:
        return self._state.uploading

    async def load_buckets(self) -> list[str]:
        LOGGER.debug("Loading buckets")
        try:
            buckets = await asyncio.to_thread(self._store.list_buckets)
        except STORE_ERRORS:
            LOGGER.exception("Bucket listing error")
            self._notify("error", "Failed to load buckets. Check your credentials.")
            return []
        self._buckets = list(buckets)
        LOGGER.debug("Loaded %d bucket(s)", len(buckets))
        if buckets:
            preferred = buckets[0]
            last_bucket = self._settings.last_bucket
            if self._settings.remember_last_bucket and last_bucket in buckets:
                preferred = last_bucket
            await self.select_bucket(preferred)
        return list(buckets)

    async def select_bucket(self, name: str) -> None:
        """Switch to ``name``, dropping all state of the previous bucket."""

        name = name or ""
        if name == self._state.bucket:
            return
        self._session += 1
        self._fetch_token = None
        self._state = ListingState(
            bucket=name,
            deleting=self._state.deleting,
            uploading=self._state.uploading,
        )
        LOGGER.debug("Selected bucket '%s' (session %d)", name, self._session)
        self._remember_bucket(name)
        if name:
            await self.fetch_page(reset=True)

    async def refresh(self) -> None:
        await self.fetch_page(reset=True)

    async def fetch_page(self, *, reset: bool = False) -> None:
        """Load the first page (``reset``) or append the next one."""

        bucket = self._state.bucket
        if not bucket:
            LOGGER.debug("No bucket selected; skipping fetch")
            return
        if not reset and (self._state.loading or not self._state.has_more):
            LOGGER.debug("Ignoring fetch for bucket '%s'; loading or exhausted", bucket)
            return

        session = self._session
        token = object()
        self._fetch_token = token
        self._state.loading = True
        cursor = None if reset else self._state.cursor
        page = None
        current = False
        try:
            page = await asyncio.to_thread(
                self._store.list_page,
                bucket,
                cursor=cursor,
                page_size=PAGE_SIZE,
            )
        except STORE_ERRORS:
            LOGGER.exception("List objects error for bucket '%s'", bucket)
        finally:
            current = self._release_fetch(session, token)

        if not current:
            LOGGER.debug("Discarding stale page for bucket '%s'", bucket)
            return
        if page is None:
            self._notify("error", "Failed to load objects.")
            return

        if reset:
            self._state.objects = []
        known = {obj.key for obj in self._state.objects}
        for item in page.items:
            if item.key in known:
                continue
            known.add(item.key)
            self._state.objects.append(item)
        self._state.selected_keys &= known
        self._state.cursor = page.next_cursor
        self._state.has_more = page.next_cursor is not None
        LOGGER.debug(
            "Fetched %d object(s) for bucket '%s' (has_more=%s)",
            len(page.items),
            bucket,
            self._state.has_more,
        )

    def toggle_select(self, key: str) -> None:
        selected = self._state.selected_keys
        if key in selected:
            selected.discard(key)
        elif any(obj.key == key for obj in self._state.objects):
            selected.add(key)

    def toggle_select_all(self, scope: Iterable[str] | None = None) -> None:
        """Select every key in ``scope`` or, if all already are, deselect them.

        ``scope`` defaults to every loaded key; in tree mode pass the keys of
        the visible file nodes. Keys that are not loaded are ignored.
        """

        loaded = [obj.key for obj in self._state.objects]
        if scope is not None:
            wanted = set(scope)
            loaded = [key for key in loaded if key in wanted]
        selected = self._state.selected_keys
        if loaded and all(key in selected for key in loaded):
            selected.difference_update(loaded)
        else:
            selected.update(loaded)

    async def delete_selected(self) -> DeleteResult | None:
        bucket = self._state.bucket
        keys = [obj.key for obj in self._state.objects if obj.key in self._state.selected_keys]
        if not bucket or not keys:
            return None
        if self._state.deleting:
            LOGGER.debug("Delete already in progress for bucket '%s'", bucket)
            return None

        session = self._session
        confirmed = await self._confirm(
            ConfirmOptions(
                title="Delete Objects",
                description=f"Are you sure you want to delete {len(keys)} objects from {bucket}?",
                confirm_text="Delete",
                variant="destructive",
            )
        )
        if not confirmed or session != self._session or self._state.deleting:
            return None
        keys = [obj.key for obj in self._state.objects if obj.key in self._state.selected_keys]
        if not keys:
            return None

        self._state.deleting = True
        try:
            result = await asyncio.to_thread(self._store.delete_objects, bucket, keys)
        except STORE_ERRORS:
            LOGGER.exception("Delete objects error for bucket '%s'", bucket)
            self._notify("error", "Failed to delete selected objects.")
            return None
        finally:
            self._state.deleting = False

        if session != self._session:
            LOGGER.debug("Bucket changed during delete; not reconciling '%s'", bucket)
            return result

        deleted = set(result.deleted)
        self._state.objects = [obj for obj in self._state.objects if obj.key not in deleted]
        remaining = {obj.key for obj in self._state.objects}
        self._state.selected_keys = {
            key for key in self._state.selected_keys if key in remaining
        }
        if result.errors:
            LOGGER.warning(
                "%d of %d object(s) failed to delete from bucket '%s'",
                len(result.errors),
                len(keys),
                bucket,
            )
            self._notify(
                "warning",
                f"Deleted {len(result.deleted)} objects from {bucket}; {len(result.errors)} failed.",
            )
        else:
            self._notify("success", f"Deleted {len(result.deleted)} objects from {bucket}")

        if not self._state.objects and self._state.has_more:
            await self.fetch_page(reset=True)
        return result

    async def delete_all_in_bucket(self) -> DeleteAllResult | None:
        bucket = self._state.bucket
        if not bucket or self._state.deleting:
            return None

        session = self._session
        confirmed = await self._confirm(
            ConfirmOptions(
                title="Delete All Objects - Warning",
                description=(
                    f'This will delete ALL objects in bucket "{bucket}". '
                    "This action cannot be undone."
                ),
                confirm_text="Continue",
                variant="destructive",
            )
        )
        if not confirmed:
            return None
        confirmed = await self._confirm(
            ConfirmOptions(
                title="Final Confirmation",
                description=f'Are you absolutely sure? All data in "{bucket}" will be lost forever.',
                confirm_text="Delete All",
                variant="destructive",
            )
        )
        if not confirmed or session != self._session or self._state.deleting:
            return None

        self._state.deleting = True
        try:
            result = await asyncio.to_thread(self._store.delete_all_objects, bucket)
        except STORE_ERRORS:
            LOGGER.exception("Delete all error for bucket '%s'", bucket)
            self._notify("error", "Failed to delete all objects.")
            return None
        finally:
            self._state.deleting = False

        if not result.success:
            self._notify("error", "Failed to delete all objects.")
            return result
        self._notify("success", f"Deleted all {result.count} objects from {bucket}")
        if session == self._session:
            await self.fetch_page(reset=True)
        return result

    async def upload_files(self, files: list[UploadFile], prefix: str = "") -> UploadOutcome | None:
        """Upload ``files`` one after another under ``prefix``.

        The first failure stops the queue; the outcome lists the keys that
        were stored before it.
        """

        bucket = self._state.bucket
        if not bucket or not files:
            return None
        if self._state.uploading:
            LOGGER.debug("Upload already in progress for bucket '%s'", bucket)
            return None
        max_depth = self._settings.max_folder_depth
        too_deep = [f for f in files if f.relative_path and path_depth(f.relative_path) > max_depth]
        if too_deep:
            self._notify(
                "error",
                f"{len(too_deep)} file(s) are nested deeper than {max_depth} folders.",
            )
            return None

        session = self._session
        outcome = UploadOutcome(total=len(files))
        self._state.uploading = True
        try:
            for upload in files:
                key = upload_key(prefix, upload)
                try:
                    await asyncio.to_thread(
                        self._store.put_object,
                        bucket,
                        key,
                        upload.data,
                        upload.content_type,
                    )
                except STORE_ERRORS as exc:
                    LOGGER.exception("Upload error for '%s' in bucket '%s'", key, bucket)
                    outcome.failed_key = key
                    outcome.error = str(exc)
                    self._notify(
                        "error",
                        f"Failed to upload files. {len(outcome.uploaded)} of {len(files)} "
                        f"uploaded before {key} failed.",
                    )
                    return outcome
                outcome.uploaded.append(key)
        finally:
            self._state.uploading = False

        location = f"{prefix} folder" if prefix else bucket
        self._notify("success", f"Uploaded {len(files)} files to {location}")
        if session == self._session:
            await self.fetch_page(reset=True)
        return outcome

    async def download_selected(self) -> DownloadOutcome | None:
        bucket = self._state.bucket
        keys = [obj.key for obj in self._state.objects if obj.key in self._state.selected_keys]
        if not bucket or not keys:
            return None
        if self._download_sink is None:
            raise RuntimeError("No download sink configured")

        outcome = DownloadOutcome()
        for key in keys:
            try:
                obj = await asyncio.to_thread(self._store.get_object, bucket, key)
                await asyncio.to_thread(self._download_sink, download_filename(key), obj)
            except (*STORE_ERRORS, OSError, ValueError):
                LOGGER.exception("Download error for '%s' in bucket '%s'", key, bucket)
                outcome.failed.append(key)
            else:
                outcome.saved.append(key)
        if outcome.failed:
            self._notify("error", f"Failed to download {len(outcome.failed)} file(s).")
        return outcome

    def _release_fetch(self, session: int, token: object) -> bool:
        if self._fetch_token is not token:
            return False
        self._fetch_token = None
        self._state.loading = False
        return session == self._session

    def _remember_bucket(self, bucket: str) -> None:
        if not self._settings.remember_last_bucket or self._settings_storage is None:
            return
        self._settings = replace(self._settings, last_bucket=bucket)
        self._settings_storage.save(replace(self._settings_storage.load(), last_bucket=bucket))

    def _notify(self, level: str, message: str) -> None:
        self._notify_fn(Notification(level=level, message=message))
