"""Grammar package manifest (``package.json``) and pinned-source descriptors."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from wasm_grammars.config import SelectionSettings

_PINNED_SOURCE_RE = re.compile(
    r"^github:(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+)"
    r"#(?P<revision>[A-Za-z0-9_./-]+)$",
)


@dataclass(slots=True)
class GrammarManifest:
    """Package name to version/source descriptor, as declared by the project."""

    path: Path
    descriptors: dict[str, str] = field(default_factory=dict)

    def names(self) -> list[str]:
        return sorted(self.descriptors)


@dataclass(frozen=True, slots=True)
class PinnedSource:
    """Upstream repository and exact revision a package must be built from."""

    owner: str
    repo: str
    revision: str

    @property
    def repository_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}.git"


def load_manifest(
    path: Path,
    *,
    sections: tuple[str, ...] = ("devDependencies",),
) -> GrammarManifest:
    """Read dependency sections of ``package.json`` into one mapping.

    Later sections override earlier ones for duplicated names.
    """

    try:
        raw = json.loads(path.read_text("utf-8"))
    except FileNotFoundError as error:
        raise ValueError(f"Manifest not found: {path}") from error
    except UnicodeDecodeError as error:
        raise ValueError(f"Manifest is not valid UTF-8: {path}") from error
    except json.JSONDecodeError as error:
        raise ValueError(f"Manifest is not valid JSON: {path}") from error
    if not isinstance(raw, dict):
        raise ValueError(f"Manifest root must be a JSON object: {path}")

    descriptors: dict[str, str] = {}
    for section in sections:
        entries = raw.get(section)
        if entries is None:
            continue
        if not isinstance(entries, dict):
            raise ValueError(f"Manifest section {section!r} must be a JSON object: {path}")
        for name, descriptor in entries.items():
            if not isinstance(descriptor, str):
                raise ValueError(
                    f"Manifest entry {name!r} in {section!r} must be a string: {path}",
                )
            descriptors[str(name)] = descriptor
    return GrammarManifest(path=path, descriptors=descriptors)


def select_grammar_packages(
    manifest: GrammarManifest,
    selection: SelectionSettings,
    name_filter: str | None = None,
) -> list[str]:
    """Return grammar package names to build, sorted by name."""

    selected: list[str] = []
    for name in manifest.names():
        if name in selection.excluded_packages:
            continue
        if not name.startswith(selection.package_prefix) and name not in selection.extra_packages:
            continue
        if name_filter and name_filter not in name:
            continue
        selected.append(name)
    return selected


def parse_pinned_source(descriptor: str) -> PinnedSource:
    """Parse ``github:<owner>/<repo>#<revision>``; raise ``ValueError`` otherwise."""

    match = _PINNED_SOURCE_RE.match(descriptor.strip())
    if match is None:
        raise ValueError(
            f"Invalid pinned source {descriptor!r}. Expected 'github:<owner>/<repo>#<revision>'.",
        )
    repo = match.group("repo")
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise ValueError(f"Invalid pinned source {descriptor!r}: empty repository name.")
    return PinnedSource(
        owner=match.group("owner"),
        repo=repo,
        revision=match.group("revision"),
    )
