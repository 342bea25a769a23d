from __future__ import annotations
"""Virtual folder projection over a flat object key namespace."""
from dataclasses import dataclass, replace
from typing import Iterable, Union

from .models import StoredObject
from .settings import SettingsStorage

SEPARATOR = "/"


@dataclass(frozen=True)
class TreeViewConfig:
    """Explicit tree view configuration handed to :func:`project`."""

    enabled: bool = False
    separator: str = SEPARATOR


@dataclass(frozen=True)
class FolderNode:
    """A synthetic folder derived from a shared key prefix."""

    name: str
    full_path: str


@dataclass(frozen=True)
class FileNode:
    """A real object shown under its name relative to the current prefix."""

    name: str
    object: StoredObject


DisplayNode = Union[FolderNode, FileNode]


@dataclass(frozen=True)
class Projection:
    folders: tuple[FolderNode, ...] = ()
    files: tuple[FileNode, ...] = ()

    @property
    def nodes(self) -> tuple[DisplayNode, ...]:
        return self.folders + self.files

    @property
    def file_keys(self) -> list[str]:
        return [node.object.key for node in self.files]


def _sort_key(name: str) -> tuple[str, str]:
    # Case only breaks ties, lowercase first.
    return (name.casefold(), name.swapcase())


def project(
    objects: Iterable[StoredObject],
    prefix: str = "",
    config: TreeViewConfig | None = None,
) -> Projection:
    """Split ``objects`` into the folders and files directly below ``prefix``.

    With tree view disabled every object becomes a file named by its full key,
    in the order given, and ``prefix`` is ignored. With tree view enabled:

    * objects outside ``prefix`` are skipped;
    * a key whose remainder holds a separator contributes one folder named by
      the remainder's first segment (folders are deduplicated by name);
    * any other key becomes a file named by its remainder;
    * a key equal to ``prefix`` (a directory marker) is hidden.

    Folders and files are each sorted by name and folders come first.
    """

    config = config or TreeViewConfig()
    if not config.enabled:
        return Projection(files=tuple(FileNode(name=obj.key, object=obj) for obj in objects))

    separator = config.separator
    folder_names: set[str] = set()
    files: list[FileNode] = []
    for obj in objects:
        if not obj.key.startswith(prefix):
            continue
        remaining = obj.key[len(prefix):]
        if not remaining:
            continue
        folder_name, found, _ = remaining.partition(separator)
        if found:
            folder_names.add(folder_name)
        else:
            files.append(FileNode(name=remaining, object=obj))

    folders = [
        FolderNode(name=name, full_path=f"{prefix}{name}{separator}")
        for name in sorted(folder_names, key=_sort_key)
    ]
    files.sort(key=lambda node: _sort_key(node.name))
    return Projection(folders=tuple(folders), files=tuple(files))


def breadcrumbs(prefix: str, separator: str = SEPARATOR) -> list[str]:
    return [segment for segment in prefix.split(separator) if segment]


def prefix_from_breadcrumbs(parts: Iterable[str], separator: str = SEPARATOR) -> str:
    joined = separator.join(parts)
    return f"{joined}{separator}" if joined else ""


def navigate_up(prefix: str, separator: str = SEPARATOR) -> str:
    """Return the parent of ``prefix``; the root is its own parent."""

    parts = breadcrumbs(prefix, separator)
    return prefix_from_breadcrumbs(parts[:-1], separator)


class TreeNavigator:
    """Tracks the current virtual folder and the persisted tree view toggle."""

    def __init__(
        self,
        settings_storage: SettingsStorage | None = None,
        *,
        separator: str = SEPARATOR,
    ) -> None:
        self._settings_storage = settings_storage
        enabled = settings_storage.load().tree_view_enabled if settings_storage else False
        self._config = TreeViewConfig(enabled=enabled, separator=separator)
        self._current_prefix = ""

    @property
    def config(self) -> TreeViewConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def current_prefix(self) -> str:
        return self._current_prefix

    @property
    def breadcrumbs(self) -> list[str]:
        return breadcrumbs(self._current_prefix, self._config.separator)

    def set_enabled(self, enabled: bool) -> None:
        self._config = replace(self._config, enabled=bool(enabled))
        self._current_prefix = ""
        if self._settings_storage is not None:
            settings = self._settings_storage.load()
            self._settings_storage.save(replace(settings, tree_view_enabled=self._config.enabled))

    def navigate_to(self, folder_path: str) -> None:
        separator = self._config.separator
        if folder_path and not folder_path.endswith(separator):
            folder_path += separator
        self._current_prefix = folder_path

    def navigate_up(self) -> None:
        self._current_prefix = navigate_up(self._current_prefix, self._config.separator)

    def reset_prefix(self) -> None:
        self._current_prefix = ""

    def display(self, objects: Iterable[StoredObject]) -> Projection:
        return project(objects, self._current_prefix, self._config)
