from __future__ import annotations
"""Saved connections and the object stores opened from them."""

from dataclasses import replace
import logging
from typing import Callable

from .profiles import ConnectionProfile, ProfileStorage, profile_from_env
from .services import S3ObjectStore
from .settings import SettingsStorage

LOGGER = logging.getLogger(__name__)

StoreFactory = Callable[[ConnectionProfile], S3ObjectStore]


class NotConnectedError(RuntimeError):
    """Raised when a store is requested before connecting."""


class ConnectionManager:
    """Manages connection profiles and opens :class:`S3ObjectStore` instances."""

    def __init__(
        self,
        storage: ProfileStorage | None = None,
        *,
        settings_storage: SettingsStorage | None = None,
        store_factory: StoreFactory | None = None,
    ):
        self._storage = storage or ProfileStorage()
        self._settings_storage = settings_storage
        self._store_factory = store_factory or S3ObjectStore
        self._profiles: list[ConnectionProfile] = self._storage.load()
        self._selected_profile: str | None = None
        self._store: S3ObjectStore | None = None

    @property
    def is_connected(self) -> bool:
        return self._store is not None

    @property
    def selected_profile(self) -> str | None:
        return self._selected_profile

    @property
    def store(self) -> S3ObjectStore:
        if self._store is None:
            raise NotConnectedError("Not connected to an object store")
        return self._store

    def list_profiles(self) -> list[ConnectionProfile]:
        return list(self._profiles)

    def save_profile(self, profile: ConnectionProfile, *, original_name: str | None = None) -> None:
        if original_name and original_name != profile.name:
            self._profiles = [p for p in self._profiles if p.name != original_name]
        self._upsert_profile(profile)
        self._storage.save(self._profiles)

    def delete_profile(self, name: str) -> None:
        before = len(self._profiles)
        self._profiles = [p for p in self._profiles if p.name != name]
        if len(self._profiles) == before:
            raise ValueError(f"Profile '{name}' does not exist")
        if self._selected_profile == name:
            self._selected_profile = None
            self._store = None
        self._storage.save(self._profiles)

    def get_profile(self, name: str) -> ConnectionProfile:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    def connect_with_profile(self, name: str) -> S3ObjectStore:
        profile = self.get_profile(name)
        store = self.connect(profile)
        self._remember_connection(name)
        return store

    def connect_from_env(self) -> S3ObjectStore:
        profile = profile_from_env()
        if profile is None:
            raise NotConnectedError("S3_ENDPOINT_URL and S3_ACCESS_KEY_ID must be set")
        return self.connect(profile)

    def connect(self, profile: ConnectionProfile) -> S3ObjectStore:
        LOGGER.debug("Opening store for profile '%s' at %s", profile.name, profile.endpoint_url)
        self._store = self._store_factory(profile)
        self._selected_profile = profile.name
        return self._store

    def _remember_connection(self, name: str) -> None:
        """Save ``name`` as ``last_connection``.

        Shares the ``remember_last_bucket`` switch: the last connection and the
        last bucket are restored together or not at all.
        """

        if self._settings_storage is None:
            return
        settings = self._settings_storage.load()
        if not settings.remember_last_bucket:
            return
        self._settings_storage.save(replace(settings, last_connection=name))

    def _upsert_profile(self, profile: ConnectionProfile) -> None:
        for idx, existing in enumerate(self._profiles):
            if existing.name == profile.name:
                self._profiles[idx] = profile
                break
        else:
            self._profiles.append(profile)
