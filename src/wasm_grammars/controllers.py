"""Controllers for grammar build CLI commands."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from wasm_grammars.builder import ArtifactBuilder
from wasm_grammars.config import Settings
from wasm_grammars.fetcher import RevisionFetcher
from wasm_grammars.flows import run_grammar_build
from wasm_grammars.locator import PackageLocator
from wasm_grammars.manifest import (
    GrammarManifest,
    load_manifest,
    parse_pinned_source,
    select_grammar_packages,
)
from wasm_grammars.recipes import FetchPinnedRevision, describe_step, recipe_for
from wasm_grammars.runner import BuildRunResult, reset_output_dir


@dataclass(slots=True)
class GrammarBuildCommand:
    """CLI input for a build run."""

    project_dir: Path | None
    out_dir: Path | None
    jobs: int | None
    name_filter: str | None


@dataclass(slots=True)
class GrammarPlanCommand:
    """CLI input for printing recipes without running them."""

    project_dir: Path | None
    name_filter: str | None


@dataclass(slots=True)
class GrammarBuildReport:
    """Build summary to render in CLI."""

    lines: list[str]
    success: bool


class GrammarBuildCliController:
    """Wires settings, manifest, fetcher and builder into the build flow."""

    def build(
        self,
        command: GrammarBuildCommand,
        *,
        on_progress: Callable[[str], None] | None = None,
    ) -> GrammarBuildReport:
        settings = _settings(command.project_dir, out_dir=command.out_dir, jobs=command.jobs)
        manifest = _manifest(settings)
        names = select_grammar_packages(manifest, settings.selection, command.name_filter)
        if not names:
            reset_output_dir(settings.effective_out_dir)
            return GrammarBuildReport(
                lines=[_no_packages_line(manifest, command.name_filter)],
                success=True,
            )

        out_dir = settings.effective_out_dir
        locator = PackageLocator(settings.project_dir)
        fetcher = RevisionFetcher(
            locator=locator,
            manifest=manifest,
            git_executable=settings.toolchain.git_executable,
            on_progress=on_progress,
        )
        builder = ArtifactBuilder(
            locator=locator,
            out_dir=out_dir,
            cli_package=settings.toolchain.cli_package,
            cli_executable=settings.toolchain.cli_executable,
            artifact_glob=settings.toolchain.artifact_glob,
            on_progress=on_progress,
        )
        result = run_grammar_build(
            package_names=names,
            out_dir=out_dir,
            jobs=settings.jobs,
            fetcher=fetcher,
            builder=builder,
            on_progress=on_progress,
        )
        return GrammarBuildReport(lines=_format_run_result(result), success=not result.failed)

    def plan(self, command: GrammarPlanCommand) -> list[str]:
        settings = _settings(command.project_dir)
        manifest = _manifest(settings)
        names = select_grammar_packages(manifest, settings.selection, command.name_filter)
        if not names:
            return [_no_packages_line(manifest, command.name_filter)]

        lines = [f"Packages selected: {len(names)}"]
        for name in names:
            recipe = recipe_for(name)
            steps = "; ".join(describe_step(step) for step in recipe)
            lines.append(f"- {name}: {steps}")
            if any(isinstance(step, FetchPinnedRevision) for step in recipe):
                lines.append(f"  source: {_describe_source(manifest, name)}")
        return lines


def _settings(
    project_dir: Path | None,
    *,
    out_dir: Path | None = None,
    jobs: int | None = None,
) -> Settings:
    settings = Settings.from_env(project_dir=project_dir, out_dir=out_dir, jobs=jobs)
    settings.validate()
    return settings


def _manifest(settings: Settings) -> GrammarManifest:
    return load_manifest(
        settings.effective_manifest_path,
        sections=settings.selection.manifest_sections,
    )


def _describe_source(manifest: GrammarManifest, name: str) -> str:
    descriptor = manifest.descriptors.get(name, "")
    try:
        source = parse_pinned_source(descriptor)
    except ValueError:
        return f"INVALID ({descriptor!r})"
    return f"{source.repository_url} @ {source.revision}"


def _no_packages_line(manifest: GrammarManifest, name_filter: str | None) -> str:
    suffix = f" matching {name_filter!r}" if name_filter else ""
    return f"No grammar packages{suffix} declared in {manifest.path}"


def _format_run_result(result: BuildRunResult) -> list[str]:
    succeeded = len(result.outcomes) - len(result.failed_packages)
    lines = [
        f"Packages: {len(result.outcomes)} total, {succeeded} succeeded, "
        f"{len(result.failed_packages)} failed",
    ]
    if result.failed:
        lines.append(f"Failed: {', '.join(sorted(result.failed_packages))}")
        lines.append(f"Output directory {result.out_dir} was emptied.")
    else:
        lines.append(f"Artifacts in {result.out_dir}:")
        lines.extend(f"- {path.name}" for path in sorted(result.artifacts))
    return lines
