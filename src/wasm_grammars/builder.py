"""Compile one grammar (or grammar sub-path) to WebAssembly and collect the artifacts."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from wasm_grammars.commands import CommandRunner, SubprocessCommandRunner
from wasm_grammars.errors import BuildErrorKind, GrammarBuildError
from wasm_grammars.locator import PackageLocator

logger = logging.getLogger(__name__)


class ArtifactBuilder:
    """Runs ``tree-sitter generate`` / ``build --wasm`` and moves artifacts to ``out_dir``."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        locator: PackageLocator,
        out_dir: Path,
        command_runner: CommandRunner | None = None,
        cli_package: str = "tree-sitter-cli",
        cli_executable: str = "tree-sitter",
        artifact_glob: str = "*.wasm",
        on_progress: Callable[[str], None] | None = None,
    ) -> None:
        self.locator = locator
        self.out_dir = out_dir
        self.command_runner = command_runner or SubprocessCommandRunner()
        self.cli_package = cli_package
        self.cli_executable = cli_executable
        self.artifact_glob = artifact_glob
        self._emit = on_progress or (lambda _: None)

    def cli_path(self) -> Path:
        return self.locator.resolve(self.cli_package) / self.cli_executable

    def build(
        self,
        name: str,
        *,
        sub_path: str | None = None,
        generate: bool = False,
    ) -> list[Path]:
        """Build one grammar and return the artifact paths placed in ``out_dir``."""

        label = f"{name}/{sub_path}" if sub_path else name
        cli = str(self.cli_path())
        package_root = self.locator.resolve(name)
        workdir = package_root / sub_path if sub_path else package_root

        self._emit(f"Building {label}")
        if not workdir.is_dir():
            raise GrammarBuildError(
                BuildErrorKind.MISSING_WORKDIR,
                f"Missing working directory for {label}",
                f"{workdir} does not exist",
            )

        if generate:
            self._run(
                [cli, "generate"],
                cwd=workdir,
                kind=BuildErrorKind.GENERATE,
                label=f"Failed to generate {label}",
            )
        self._run(
            [cli, "build", "--wasm"],
            cwd=workdir,
            kind=BuildErrorKind.BUILD,
            label=f"Failed to build {label}",
        )

        artifacts = self._collect_artifacts(workdir, label=label)
        self._emit(f"Finished building {label}")
        logger.info("Built %s: %s", label, ", ".join(path.name for path in artifacts))
        return artifacts

    def _run(self, args: list[str], *, cwd: Path, kind: BuildErrorKind, label: str) -> None:
        try:
            result = self.command_runner.run(args, cwd=cwd)
        except OSError as error:
            raise GrammarBuildError(kind, label, error) from error
        if not result.ok:
            raise GrammarBuildError(kind, label, result)

    def _collect_artifacts(self, workdir: Path, *, label: str) -> list[Path]:
        move_label = f"Failed to move artifacts for {label}"
        produced = sorted(path for path in workdir.glob(self.artifact_glob) if path.is_file())
        if not produced:
            raise GrammarBuildError(
                BuildErrorKind.MOVE,
                move_label,
                f"no {self.artifact_glob} files in {workdir}",
            )

        moved: list[Path] = []
        try:
            for source in produced:
                target = self.out_dir / source.name
                if target.exists():
                    logger.warning("Overwriting artifact %s with output of %s", target, label)
                    target.unlink()
                shutil.move(str(source), str(target))
                moved.append(target)
        except OSError as error:
            raise GrammarBuildError(BuildErrorKind.MOVE, move_label, error) from error
        return moved
