from __future__ import annotations

from pathlib import Path

import allure
import pytest
from conftest import RecordingCommandRunner, install_package

from wasm_grammars.errors import BuildErrorKind, GrammarBuildError
from wasm_grammars.fetcher import RevisionFetcher
from wasm_grammars.locator import PackageLocator
from wasm_grammars.manifest import GrammarManifest

pytestmark = [
    allure.epic("Toolchain"),
    allure.feature("Revision Fetcher"),
]

_AGDA = "tree-sitter-agda"
_AGDA_SOURCE = "github:tree-sitter/tree-sitter-agda#47802091de0cb8ac2533d67ac37e65692c5902c4"


def _fetcher(
    project_dir: Path,
    descriptors: dict[str, str],
    runner: RecordingCommandRunner,
    progress: list[str] | None = None,
) -> RevisionFetcher:
    return RevisionFetcher(
        locator=PackageLocator(project_dir, node_path=()),
        manifest=GrammarManifest(path=project_dir / "package.json", descriptors=descriptors),
        command_runner=runner,
        on_progress=progress.append if progress is not None else None,
    )


def test_fetch_deletes_clones_and_resets_with_explicit_cwd(tmp_path: Path) -> None:
    root = install_package(tmp_path, _AGDA)
    (root / "stale.txt").write_text("old", "utf-8")
    runner = RecordingCommandRunner()
    progress: list[str] = []

    source = _fetcher(tmp_path, {_AGDA: _AGDA_SOURCE}, runner, progress).fetch(_AGDA)

    resolved_root = root.resolve()
    assert source.revision == "47802091de0cb8ac2533d67ac37e65692c5902c4"
    assert not (root / "stale.txt").exists()
    assert runner.calls == [
        (
            (
                "git",
                "clone",
                "https://github.com/tree-sitter/tree-sitter-agda.git",
                str(resolved_root),
            ),
            tmp_path.resolve(),
        ),
        (
            ("git", "reset", "--hard", "47802091de0cb8ac2533d67ac37e65692c5902c4"),
            resolved_root,
        ),
    ]
    assert progress == [
        f"Deleting cached copy of {_AGDA}",
        f"Cloning {_AGDA} from git (47802091de0cb8ac2533d67ac37e65692c5902c4)",
    ]


def test_fetch_clones_into_fallback_path_when_package_missing(tmp_path: Path) -> None:
    runner = RecordingCommandRunner()

    _fetcher(tmp_path, {_AGDA: _AGDA_SOURCE}, runner).fetch(_AGDA)

    expected = tmp_path.resolve() / "node_modules" / _AGDA
    assert runner.calls[0][0][-1] == str(expected)
    assert runner.calls[1][1] == expected


def test_fetch_rejects_malformed_descriptor_before_touching_disk(tmp_path: Path) -> None:
    root = install_package(tmp_path, _AGDA)
    runner = RecordingCommandRunner()

    with pytest.raises(GrammarBuildError) as excinfo:
        _fetcher(tmp_path, {_AGDA: "1.0.0"}, runner).fetch(_AGDA)

    assert excinfo.value.kind is BuildErrorKind.DESCRIPTOR_PARSE
    assert excinfo.value.label == f"Invalid pinned source for {_AGDA}"
    assert root.exists()
    assert runner.calls == []


def test_fetch_rejects_package_absent_from_manifest(tmp_path: Path) -> None:
    runner = RecordingCommandRunner()

    with pytest.raises(GrammarBuildError) as excinfo:
        _fetcher(tmp_path, {}, runner).fetch(_AGDA)

    assert excinfo.value.kind is BuildErrorKind.DESCRIPTOR_PARSE
    assert "not declared" in str(excinfo.value.cause)


def test_fetch_clone_failure_skips_reset(tmp_path: Path) -> None:
    runner = RecordingCommandRunner(fail_on=("clone",))

    with pytest.raises(GrammarBuildError) as excinfo:
        _fetcher(tmp_path, {_AGDA: _AGDA_SOURCE}, runner).fetch(_AGDA)

    assert excinfo.value.kind is BuildErrorKind.FETCH_CLONE
    assert runner.verbs() == ["clone"]
    assert "clone exploded" in str(excinfo.value)


def test_fetch_reset_failure_is_tagged(tmp_path: Path) -> None:
    runner = RecordingCommandRunner(fail_on=("reset",))

    with pytest.raises(GrammarBuildError) as excinfo:
        _fetcher(tmp_path, {_AGDA: _AGDA_SOURCE}, runner).fetch(_AGDA)

    assert excinfo.value.kind is BuildErrorKind.FETCH_RESET
    assert runner.verbs() == ["clone", "reset"]


def test_fetch_missing_git_executable_is_clone_failure(tmp_path: Path) -> None:
    runner = RecordingCommandRunner(raise_on=("clone",))

    with pytest.raises(GrammarBuildError) as excinfo:
        _fetcher(tmp_path, {_AGDA: _AGDA_SOURCE}, runner).fetch(_AGDA)

    assert excinfo.value.kind is BuildErrorKind.FETCH_CLONE
    assert isinstance(excinfo.value.cause, FileNotFoundError)


def test_fetch_delete_failure_is_tagged(tmp_path: Path, monkeypatch) -> None:
    install_package(tmp_path, _AGDA)
    runner = RecordingCommandRunner()

    def _deny(*_args, **_kwargs):
        raise PermissionError("read-only file system")

    monkeypatch.setattr("wasm_grammars.fetcher.shutil.rmtree", _deny)

    with pytest.raises(GrammarBuildError) as excinfo:
        _fetcher(tmp_path, {_AGDA: _AGDA_SOURCE}, runner).fetch(_AGDA)

    assert excinfo.value.kind is BuildErrorKind.FETCH_DELETE
    assert runner.calls == []
