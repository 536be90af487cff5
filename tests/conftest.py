"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from prefect.testing.utilities import prefect_test_harness

from wasm_grammars.commands import CommandResult

_ENV_NAMES = (
    "PROJECT_DIR",
    "MANIFEST_PATH",
    "OUT_DIR",
    "JOBS",
    "MANIFEST_SECTIONS",
    "PACKAGE_PREFIX",
    "EXCLUDED_PACKAGES",
    "EXTRA_PACKAGES",
    "CLI_PACKAGE",
    "CLI_EXECUTABLE",
    "GIT_EXECUTABLE",
    "ARTIFACT_GLOB",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep developer WASM_GRAMMARS_* / NODE_PATH settings out of tests."""
    for name in _ENV_NAMES:
        monkeypatch.delenv(f"WASM_GRAMMARS_{name}", raising=False)
    monkeypatch.delenv("NODE_PATH", raising=False)


@pytest.fixture(scope="session")
def prefect_harness():
    with prefect_test_harness():
        yield


def write_manifest(project_dir: Path, dev_dependencies: dict[str, str]) -> Path:
    project_dir.mkdir(parents=True, exist_ok=True)
    path = project_dir / "package.json"
    path.write_text(
        json.dumps({"name": "fixture", "devDependencies": dev_dependencies}, indent=2),
        "utf-8",
    )
    return path


def install_package(project_dir: Path, name: str, *sub_paths: str) -> Path:
    root = project_dir / "node_modules" / name
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(json.dumps({"name": name}), "utf-8")
    for sub_path in sub_paths:
        (root / sub_path).mkdir(parents=True, exist_ok=True)
    return root


class RecordingCommandRunner:
    """Command runner double: records calls and emulates ``tree-sitter build --wasm``."""

    def __init__(
        self,
        *,
        fail_on: tuple[str, ...] = (),
        raise_on: tuple[str, ...] = (),
        produce_artifacts: bool = True,
    ) -> None:
        self.calls: list[tuple[tuple[str, ...], Path]] = []
        self.fail_on = fail_on
        self.raise_on = raise_on
        self.produce_artifacts = produce_artifacts

    def run(self, args: list[str], *, cwd: Path) -> CommandResult:
        self.calls.append((tuple(args), cwd))
        verb = args[1]
        if verb in self.raise_on:
            raise FileNotFoundError(args[0])
        if verb in self.fail_on:
            return CommandResult(tuple(args), cwd, 1, "", f"{verb} exploded")
        if args[1:] == ["build", "--wasm"] and self.produce_artifacts:
            stem = cwd.name if cwd.name.startswith("tree-sitter-") else f"tree-sitter-{cwd.name}"
            (cwd / f"{stem}.wasm").write_bytes(b"\0asm")
        return CommandResult(tuple(args), cwd, 0, "", "")

    def verbs(self) -> list[str]:
        return [args[1] for args, _ in self.calls]
