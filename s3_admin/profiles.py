from __future__ import annotations
"""Connection profile models and persistence."""
from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Mapping

import keyring
from keyring.errors import KeyringError

ENV_PROFILE_NAME = "env"


@dataclass
class ConnectionProfile:
    """Represents a saved connection to an S3-compatible store."""

    name: str
    endpoint_url: str
    access_key: str
    secret_key: str
    default_bucket: str = ""


def profile_from_env(environ: Mapping[str, str] | None = None) -> ConnectionProfile | None:
    """Build a profile from ``S3_*`` environment variables, if they are set."""

    environ = os.environ if environ is None else environ
    endpoint_url = environ.get("S3_ENDPOINT_URL", "").strip()
    access_key = environ.get("S3_ACCESS_KEY_ID", "").strip()
    if not endpoint_url or not access_key:
        return None
    return ConnectionProfile(
        name=ENV_PROFILE_NAME,
        endpoint_url=endpoint_url,
        access_key=access_key,
        secret_key=environ.get("S3_SECRET_ACCESS_KEY", ""),
        default_bucket=environ.get("S3_BUCKET_NAME", "").strip(),
    )


class KeychainStore:
    """Encapsulates OS keychain access for secrets."""

    def __init__(self, service_name: str = "s3_admin"):
        self._service_name = service_name

    def get_secret(self, profile_name: str) -> str:
        if not profile_name:
            return ""
        try:
            return keyring.get_password(self._service_name, profile_name) or ""
        except KeyringError:
            return ""

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        if not profile_name:
            return
        if not secret_key:
            self.delete_secret(profile_name)
            return
        try:
            keyring.set_password(self._service_name, profile_name, secret_key)
        except KeyringError:
            return

    def delete_secret(self, profile_name: str) -> None:
        if not profile_name:
            return
        try:
            keyring.delete_password(self._service_name, profile_name)
        except KeyringError:
            return


class ProfileStorage:
    """JSON-backed store for connection profiles; secrets go to the keychain."""

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".s3_admin_connections.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    def load(self) -> list[ConnectionProfile]:
        data = self._read_entries()
        profiles: list[ConnectionProfile] = []
        sanitized: list[dict[str, str]] = []
        saw_plaintext = False
        for entry in data:
            try:
                name = entry["name"]
                endpoint_url = entry["endpoint_url"]
                access_key = entry["access_key"]
            except (KeyError, TypeError):
                continue
            default_bucket = entry.get("default_bucket", "")
            secret_key = entry.get("secret_key", "")
            if secret_key:
                saw_plaintext = True
                self._keychain.set_secret(name, secret_key)
            else:
                secret_key = self._keychain.get_secret(name)
            profiles.append(
                ConnectionProfile(
                    name=name,
                    endpoint_url=endpoint_url,
                    access_key=access_key,
                    secret_key=secret_key,
                    default_bucket=default_bucket,
                )
            )
            sanitized.append(self._entry(profiles[-1]))
        if saw_plaintext:
            self._write_data(sanitized)
        return profiles

    def save(self, profiles: list[ConnectionProfile]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = []
        for profile in profiles:
            self._keychain.set_secret(profile.name, profile.secret_key)
            data.append(self._entry(profile))
        existing_names = {
            entry.get("name") for entry in self._read_entries() if isinstance(entry, dict)
        }
        current_names = {profile.name for profile in profiles}
        for name in existing_names - current_names:
            if isinstance(name, str) and name:
                self._keychain.delete_secret(name)
        self._write_data(data)

    def _entry(self, profile: ConnectionProfile) -> dict[str, str]:
        entry = {
            "name": profile.name,
            "endpoint_url": profile.endpoint_url,
            "access_key": profile.access_key,
        }
        if profile.default_bucket:
            entry["default_bucket"] = profile.default_bucket
        return entry

    def _read_entries(self) -> list:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return []
        return data if isinstance(data, list) else []

    def _write_data(self, data: list[dict[str, str]]) -> None:
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
