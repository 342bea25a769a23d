from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
from pathlib import Path


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    tree_view_enabled: bool = False
    max_folder_depth: int = 3
    remember_last_bucket: bool = False
    last_bucket: str = ""
    last_connection: str = ""


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _bool(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _str(value: object) -> str:
    return value if isinstance(value, str) else ""


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".s3_admin_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()
        defaults = AppSettings()
        return AppSettings(
            tree_view_enabled=_bool(data.get("tree_view_enabled"), defaults.tree_view_enabled),
            max_folder_depth=_positive_int(data.get("max_folder_depth"), defaults.max_folder_depth),
            remember_last_bucket=_bool(data.get("remember_last_bucket"), defaults.remember_last_bucket),
            last_bucket=_str(data.get("last_bucket")),
            last_connection=_str(data.get("last_connection")),
        )

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        payload["max_folder_depth"] = max(int(settings.max_folder_depth), 1)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return
