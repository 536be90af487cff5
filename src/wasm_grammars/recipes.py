"""Per-package build recipes.

Upstream grammar packages are laid out differently: one grammar at the package
root, several grammars in sub-directories, grammars that must be regenerated
from ``grammar.js`` before building, and grammars only usable from a pinned
upstream revision. The table below records which layout each package uses;
anything not listed builds a single grammar from its package root.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class FetchPinnedRevision:
    """Replace the installed package with a clone at its pinned revision."""


@dataclass(frozen=True, slots=True)
class BuildGrammar:
    """Build one grammar, optionally from a sub-path and after ``generate``."""

    sub_path: str | None = None
    generate: bool = False


RecipeStep = FetchPinnedRevision | BuildGrammar
Recipe = tuple[RecipeStep, ...]

DEFAULT_RECIPE: Recipe = (BuildGrammar(),)

RECIPE_OVERRIDES: dict[str, Recipe] = {
    "tree-sitter-agda": (FetchPinnedRevision(), BuildGrammar()),
    "tree-sitter-elixir": (FetchPinnedRevision(), BuildGrammar()),
    "tree-sitter-query": (FetchPinnedRevision(), BuildGrammar()),
    "tree-sitter-perl": (FetchPinnedRevision(), BuildGrammar(generate=True)),
    "tree-sitter-markdown": (
        FetchPinnedRevision(),
        BuildGrammar(sub_path="tree-sitter-markdown"),
        BuildGrammar(sub_path="tree-sitter-markdown-inline"),
    ),
    "tree-sitter-latex": (BuildGrammar(generate=True),),
    "tree-sitter-swift": (BuildGrammar(generate=True),),
    "tree-sitter-php": (BuildGrammar(sub_path="php"),),
    "tree-sitter-typescript": (
        BuildGrammar(sub_path="typescript"),
        BuildGrammar(sub_path="tsx"),
    ),
    "tree-sitter-xml": (
        BuildGrammar(sub_path="xml"),
        BuildGrammar(sub_path="dtd"),
    ),
}


@runtime_checkable
class Fetcher(Protocol):
    def fetch(self, name: str) -> object: ...


@runtime_checkable
class Builder(Protocol):
    def build(
        self,
        name: str,
        *,
        sub_path: str | None = None,
        generate: bool = False,
    ) -> list[Path]: ...


def recipe_for(name: str) -> Recipe:
    """Return the ordered steps for ``name``; never empty."""

    return RECIPE_OVERRIDES.get(name, DEFAULT_RECIPE)


def execute_recipe(
    name: str,
    recipe: Recipe,
    *,
    fetcher: Fetcher,
    builder: Builder,
) -> list[Path]:
    """Run steps in order; the first failing step aborts the rest."""

    artifacts: list[Path] = []
    for step in recipe:
        if isinstance(step, FetchPinnedRevision):
            fetcher.fetch(name)
        else:
            artifacts.extend(builder.build(name, sub_path=step.sub_path, generate=step.generate))
    return artifacts


def describe_step(step: RecipeStep) -> str:
    if isinstance(step, FetchPinnedRevision):
        return "fetch pinned revision"
    parts = ["build"]
    if step.sub_path:
        parts.append(f"sub-path={step.sub_path}")
    if step.generate:
        parts.append("generate")
    return " ".join(parts)
