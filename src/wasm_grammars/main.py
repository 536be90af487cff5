"""CLI entrypoint for wasm-grammars."""

from pathlib import Path

import rich_click as click

from wasm_grammars import __version__
from wasm_grammars.controllers import (
    GrammarBuildCliController,
    GrammarBuildCommand,
    GrammarPlanCommand,
)

click.rich_click.USE_MARKDOWN = True
BUILD_CONTROLLER = GrammarBuildCliController()


@click.group()
@click.version_option(version=__version__, prog_name="wasm-grammars")
def wasm_grammars() -> None:
    """Build tree-sitter grammar packages into WebAssembly parsers."""


@wasm_grammars.command("build")
@click.argument("name_filter", required=False, default=None)
@click.option(
    "--project-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help=(
        "Directory holding package.json and node_modules. "
        "Defaults to WASM_GRAMMARS_PROJECT_DIR."
    ),
)
@click.option(
    "--out-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Artifact directory, recreated on every run. Defaults to <project-dir>/out.",
)
@click.option(
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Max packages built concurrently. Defaults to the number of CPUs.",
)
def build(
    name_filter: str | None,
    project_dir: Path | None,
    out_dir: Path | None,
    jobs: int | None,
) -> None:
    """Build every grammar package, or only those whose name contains NAME_FILTER.

    Packages are taken from package.json when their name starts with
    `tree-sitter-`. List other packages to build, comma-separated, in
    `WASM_GRAMMARS_EXTRA_PACKAGES`.
    """

    try:
        report = BUILD_CONTROLLER.build(
            GrammarBuildCommand(
                project_dir=project_dir,
                out_dir=out_dir,
                jobs=jobs,
                name_filter=name_filter,
            ),
            on_progress=click.echo,
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(report.lines)
    if not report.success:
        raise click.ClickException("Grammar build failed.")


@wasm_grammars.command("plan")
@click.argument("name_filter", required=False, default=None)
@click.option(
    "--project-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory holding package.json. Defaults to WASM_GRAMMARS_PROJECT_DIR.",
)
def plan(name_filter: str | None, project_dir: Path | None) -> None:
    """Show the build recipe for each selected package without running it."""

    try:
        lines = BUILD_CONTROLLER.plan(
            GrammarPlanCommand(project_dir=project_dir, name_filter=name_filter),
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    wasm_grammars()
