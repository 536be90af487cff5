"""Runtime configuration for grammar builds.

Every setting can be overridden with a ``WASM_GRAMMARS_*`` environment
variable. Package selection is controlled by ``WASM_GRAMMARS_PACKAGE_PREFIX``,
``WASM_GRAMMARS_EXCLUDED_PACKAGES`` and ``WASM_GRAMMARS_EXTRA_PACKAGES``; the
last one is a comma-separated list of grammar packages whose names do not start
with the prefix but must still be built.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_ENV_PREFIX = "WASM_GRAMMARS_"


@dataclass(slots=True)
class SelectionSettings:
    """Which manifest entries are treated as grammar packages."""

    manifest_sections: tuple[str, ...] = ("devDependencies",)
    package_prefix: str = "tree-sitter-"
    excluded_packages: tuple[str, ...] = ("tree-sitter", "tree-sitter-cli")
    extra_packages: tuple[str, ...] = ()


@dataclass(slots=True)
class ToolchainSettings:
    """External executables used by fetch and build steps."""

    cli_package: str = "tree-sitter-cli"
    cli_executable: str = "tree-sitter"
    git_executable: str = "git"
    artifact_glob: str = "*.wasm"


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    project_dir: Path = Path(".")
    manifest_path: Path | None = None
    out_dir: Path | None = None
    jobs: int = field(default_factory=lambda: os.cpu_count() or 1)
    selection: SelectionSettings = field(default_factory=SelectionSettings)
    toolchain: ToolchainSettings = field(default_factory=ToolchainSettings)

    @property
    def effective_manifest_path(self) -> Path:
        return self.manifest_path or self.project_dir / "package.json"

    @property
    def effective_out_dir(self) -> Path:
        return self.out_dir or self.project_dir / "out"

    @classmethod
    def from_env(
        cls,
        *,
        project_dir: Path | None = None,
        out_dir: Path | None = None,
        jobs: int | None = None,
    ) -> Settings:
        """Load settings from environment; explicit arguments win over env values."""

        resolved_project_dir = project_dir or Path(_env("PROJECT_DIR", "."))
        manifest_raw = _env("MANIFEST_PATH", "")
        out_dir_raw = _env("OUT_DIR", "")
        jobs_raw = _env("JOBS", "")

        defaults = SelectionSettings()
        toolchain_defaults = ToolchainSettings()
        return cls(
            project_dir=resolved_project_dir,
            manifest_path=Path(manifest_raw) if manifest_raw else None,
            out_dir=out_dir or (Path(out_dir_raw) if out_dir_raw else None),
            jobs=jobs if jobs is not None else _parse_jobs(jobs_raw),
            selection=SelectionSettings(
                manifest_sections=_env_csv("MANIFEST_SECTIONS", defaults.manifest_sections),
                package_prefix=_env("PACKAGE_PREFIX", defaults.package_prefix),
                excluded_packages=_env_csv("EXCLUDED_PACKAGES", defaults.excluded_packages),
                extra_packages=_env_csv("EXTRA_PACKAGES", defaults.extra_packages),
            ),
            toolchain=ToolchainSettings(
                cli_package=_env("CLI_PACKAGE", toolchain_defaults.cli_package),
                cli_executable=_env("CLI_EXECUTABLE", toolchain_defaults.cli_executable),
                git_executable=_env("GIT_EXECUTABLE", toolchain_defaults.git_executable),
                artifact_glob=_env("ARTIFACT_GLOB", toolchain_defaults.artifact_glob),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if settings cannot drive a build."""

        if self.jobs < 1:
            raise ValueError(f"{_ENV_PREFIX}JOBS must be >= 1, got {self.jobs}.")
        if not self.selection.manifest_sections:
            raise ValueError(f"{_ENV_PREFIX}MANIFEST_SECTIONS must list at least one section.")
        if not self.selection.package_prefix.strip():
            raise ValueError(f"{_ENV_PREFIX}PACKAGE_PREFIX must not be empty.")
        if not self.toolchain.artifact_glob.strip():
            raise ValueError(f"{_ENV_PREFIX}ARTIFACT_GLOB must not be empty.")
        if not self.toolchain.cli_executable.strip():
            raise ValueError(f"{_ENV_PREFIX}CLI_EXECUTABLE must not be empty.")


def _env(name: str, default: str) -> str:
    return os.getenv(f"{_ENV_PREFIX}{name}", default).strip()


def _env_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None:
        return default
    values: list[str] = []
    for part in raw.split(","):
        token = part.strip()
        if token and token not in values:
            values.append(token)
    return tuple(values)


def _parse_jobs(raw: str) -> int:
    if not raw:
        return os.cpu_count() or 1
    try:
        return int(raw)
    except ValueError as error:
        raise ValueError(f"Invalid {_ENV_PREFIX}JOBS value: {raw!r}") from error
