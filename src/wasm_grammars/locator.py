"""Resolve installed npm package directories the way Node's module lookup does."""

from __future__ import annotations

import os
from pathlib import Path

_PACKAGE_FILE = "package.json"


class PackageLocator:
    """Finds a package root under ``node_modules`` with a deterministic fallback.

    Lookup order: ``node_modules`` of the project directory and each ancestor,
    then every ``NODE_PATH`` entry. When nothing matches, the expected location
    ``<project_dir>/node_modules/<name>`` is returned without checking it exists;
    callers detect absence when they use the path.
    """

    def __init__(self, project_dir: Path, *, node_path: tuple[Path, ...] | None = None) -> None:
        self.project_dir = project_dir.resolve()
        self.node_path = node_path if node_path is not None else _node_path_from_env()

    def resolve(self, name: str) -> Path:
        try:
            return find_package_root(self._resolve_module(name))
        except (LookupError, OSError):
            return self.fallback_path(name)

    def fallback_path(self, name: str) -> Path:
        return self.project_dir / "node_modules" / name

    def _resolve_module(self, name: str) -> Path:
        for base in self._search_dirs():
            candidate = base / name / _PACKAGE_FILE
            if candidate.is_file():
                return candidate
        raise LookupError(f"Cannot resolve package {name!r} from {self.project_dir}")

    def _search_dirs(self) -> list[Path]:
        dirs = [
            directory / "node_modules"
            for directory in (self.project_dir, *self.project_dir.parents)
            if directory.name != "node_modules"
        ]
        dirs.extend(self.node_path)
        return dirs


def find_package_root(start: Path) -> Path:
    """Walk up from ``start`` to the nearest directory containing ``package.json``."""

    current = start if start.is_dir() else start.parent
    for directory in (current, *current.parents):
        if (directory / _PACKAGE_FILE).is_file():
            return directory
    raise LookupError(f"No {_PACKAGE_FILE} found above {start}")


def _node_path_from_env() -> tuple[Path, ...]:
    raw = os.getenv("NODE_PATH", "")
    return tuple(Path(part) for part in raw.split(os.pathsep) if part.strip())
