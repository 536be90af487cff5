"""Subprocess execution with an explicit working directory per call."""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(slots=True)
class CommandResult:
    """Captured outcome of one external command."""

    args: tuple[str, ...]
    cwd: Path
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def __str__(self) -> str:
        command = shlex.join(self.args)
        details = _truncate(self.stderr) or _truncate(self.stdout)
        summary = f"`{command}` exited with code {self.exit_code} in {self.cwd}"
        return f"{summary}: {details}" if details else summary


class CommandRunner(Protocol):
    """Protocol implemented by command runners."""

    def run(self, args: list[str], *, cwd: Path) -> CommandResult:
        """Run ``args`` in ``cwd`` and return the captured result."""


class SubprocessCommandRunner:
    """Runs commands to completion; never changes the process working directory.

    ``OSError`` (missing executable, bad cwd) propagates to the caller.
    """

    def run(self, args: list[str], *, cwd: Path) -> CommandResult:
        completed = subprocess.run(  # noqa: S603
            args,
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
        )
        return CommandResult(
            args=tuple(args),
            cwd=cwd,
            exit_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


def _truncate(value: str, *, limit: int = 400) -> str:
    compact = value.strip().replace("\n", " ")
    if len(compact) <= limit:
        return compact
    return compact[:limit] + "..."
