"""Replace an installed grammar package with a fresh clone at a pinned revision."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from wasm_grammars.commands import CommandRunner, SubprocessCommandRunner
from wasm_grammars.errors import BuildErrorKind, GrammarBuildError
from wasm_grammars.locator import PackageLocator
from wasm_grammars.manifest import GrammarManifest, PinnedSource, parse_pinned_source

logger = logging.getLogger(__name__)


class RevisionFetcher:
    """Makes the local copy of a package match its pinned upstream revision.

    Destructive: the resolved package directory is deleted unconditionally.
    Every git call gets an explicit working directory.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        locator: PackageLocator,
        manifest: GrammarManifest,
        command_runner: CommandRunner | None = None,
        git_executable: str = "git",
        on_progress: Callable[[str], None] | None = None,
    ) -> None:
        self.locator = locator
        self.manifest = manifest
        self.command_runner = command_runner or SubprocessCommandRunner()
        self.git_executable = git_executable
        self._emit = on_progress or (lambda _: None)

    def fetch(self, name: str) -> PinnedSource:
        package_path = self.locator.resolve(name)
        source = self._pinned_source(name)

        self._emit(f"Deleting cached copy of {name}")
        try:
            _remove_tree(package_path)
        except OSError as error:
            raise GrammarBuildError(
                BuildErrorKind.FETCH_DELETE,
                f"Failed to delete cached copy of {name}",
                error,
            ) from error

        self._emit(f"Cloning {name} from git ({source.revision})")
        self._git(
            [self.git_executable, "clone", source.repository_url, str(package_path)],
            cwd=self.locator.project_dir,
            kind=BuildErrorKind.FETCH_CLONE,
            label=f"Failed to clone git repo for {name}",
        )
        self._git(
            [self.git_executable, "reset", "--hard", source.revision],
            cwd=package_path,
            kind=BuildErrorKind.FETCH_RESET,
            label=f"Failed to reset {name} to {source.revision}",
        )
        logger.info("Fetched %s at %s from %s", name, source.revision, source.repository_url)
        return source

    def _pinned_source(self, name: str) -> PinnedSource:
        label = f"Invalid pinned source for {name}"
        descriptor = self.manifest.descriptors.get(name)
        if descriptor is None:
            raise GrammarBuildError(
                BuildErrorKind.DESCRIPTOR_PARSE,
                label,
                f"{name!r} is not declared in {self.manifest.path}",
            )
        try:
            return parse_pinned_source(descriptor)
        except ValueError as error:
            raise GrammarBuildError(BuildErrorKind.DESCRIPTOR_PARSE, label, error) from error

    def _git(self, args: list[str], *, cwd: Path, kind: BuildErrorKind, label: str) -> None:
        try:
            result = self.command_runner.run(args, cwd=cwd)
        except OSError as error:
            raise GrammarBuildError(kind, label, error) from error
        if not result.ok:
            raise GrammarBuildError(kind, label, result)


def _remove_tree(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)
