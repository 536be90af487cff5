"""Per-package failure isolation and output directory lifecycle."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from wasm_grammars.errors import BuildErrorKind, GrammarBuildError
from wasm_grammars.recipes import Builder, Fetcher, execute_recipe, recipe_for

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PackageOutcome:
    """Result of processing one package recipe."""

    name: str
    succeeded: bool
    artifacts: list[Path] = field(default_factory=list)
    error_kind: BuildErrorKind | None = None
    error: str | None = None


@dataclass(slots=True)
class BuildRunResult:
    """Aggregate of all package outcomes in one run."""

    out_dir: Path
    outcomes: list[PackageOutcome] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(not outcome.succeeded for outcome in self.outcomes)

    @property
    def failed_packages(self) -> list[str]:
        return [outcome.name for outcome in self.outcomes if not outcome.succeeded]

    @property
    def artifacts(self) -> list[Path]:
        return [path for outcome in self.outcomes if outcome.succeeded for path in outcome.artifacts]


def process_package(
    name: str,
    *,
    fetcher: Fetcher,
    builder: Builder,
    on_progress: Callable[[str], None] | None = None,
) -> PackageOutcome:
    """Run the recipe for ``name``; every error is converted into a failed outcome."""

    emit = on_progress or (lambda _: None)
    try:
        artifacts = execute_recipe(name, recipe_for(name), fetcher=fetcher, builder=builder)
    except GrammarBuildError as exc:
        logger.error("%s: %s", exc.label, exc.cause)
        emit(f"{exc.label}:\n{exc.cause}")
        return PackageOutcome(
            name=name,
            succeeded=False,
            error_kind=exc.kind,
            error=str(exc),
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error while processing %s", name)
        emit(f"Failed to process {name}:\n{exc!r}")
        return PackageOutcome(name=name, succeeded=False, error=repr(exc))
    return PackageOutcome(name=name, succeeded=True, artifacts=artifacts)


def reset_output_dir(out_dir: Path) -> None:
    """Remove ``out_dir`` with its contents and recreate it empty."""

    if out_dir.exists():
        shutil.rmtree(out_dir)
    out_dir.mkdir(parents=True)
