"""Prefect flow building every selected grammar package with bounded concurrency.

Each package runs as one Prefect task on a ``ThreadPoolTaskRunner``; the pool
size caps how many recipes are in flight. Tasks never raise: failures are
isolated per package by ``process_package`` and aggregated here.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from prefect import flow, task
from prefect.cache_policies import NO_CACHE
from prefect.task_runners import ThreadPoolTaskRunner

from wasm_grammars.recipes import Builder, Fetcher
from wasm_grammars.runner import (
    BuildRunResult,
    PackageOutcome,
    process_package,
    reset_output_dir,
)

logger = logging.getLogger(__name__)


@task(name="build_grammar_package", cache_policy=NO_CACHE)
def build_package_task(
    name: str,
    *,
    fetcher: Fetcher,
    builder: Builder,
    on_progress: Callable[[str], None] | None = None,
) -> PackageOutcome:
    """Process one package recipe in isolation."""
    return process_package(name, fetcher=fetcher, builder=builder, on_progress=on_progress)


@flow(name="grammar_build_flow", validate_parameters=False)
def grammar_build_flow(
    *,
    package_names: list[str],
    out_dir: Path,
    fetcher: Fetcher,
    builder: Builder,
    on_progress: Callable[[str], None] | None = None,
) -> BuildRunResult:
    """Build all packages; leave ``out_dir`` empty unless every package succeeded."""

    emit = on_progress or (lambda _: None)
    started = time.monotonic()
    reset_output_dir(out_dir)

    futures = [
        build_package_task.submit(
            name,
            fetcher=fetcher,
            builder=builder,
            on_progress=on_progress,
        )
        for name in package_names
    ]
    result = BuildRunResult(out_dir=out_dir, outcomes=[future.result() for future in futures])
    elapsed = time.monotonic() - started

    if result.failed:
        reset_output_dir(out_dir)
        logger.error(
            "Grammar build failed for %d of %d packages: %s",
            len(result.failed_packages),
            len(result.outcomes),
            ", ".join(result.failed_packages),
        )
        emit(f"Build failed in {elapsed:.1f}s; discarded artifacts in {out_dir}")
    else:
        logger.info("Built %d artifacts in %.1fs", len(result.artifacts), elapsed)
        emit(f"Built {len(result.artifacts)} artifacts into {out_dir} in {elapsed:.1f}s")
    return result


def run_grammar_build(  # noqa: PLR0913
    *,
    package_names: list[str],
    out_dir: Path,
    jobs: int,
    fetcher: Fetcher,
    builder: Builder,
    on_progress: Callable[[str], None] | None = None,
) -> BuildRunResult:
    """Run ``grammar_build_flow`` with at most ``jobs`` packages in flight."""

    if jobs < 1:
        raise ValueError(f"jobs must be >= 1, got {jobs}")
    bounded_flow = grammar_build_flow.with_options(
        task_runner=ThreadPoolTaskRunner(max_workers=jobs),
    )
    return bounded_flow(
        package_names=package_names,
        out_dir=out_dir,
        fetcher=fetcher,
        builder=builder,
        on_progress=on_progress,
    )
