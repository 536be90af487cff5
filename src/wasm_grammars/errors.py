"""Structured failures raised by fetch and build steps."""

from __future__ import annotations

from enum import Enum


class BuildErrorKind(str, Enum):
    """Closed set of per-package failure kinds."""

    DESCRIPTOR_PARSE = "descriptor_parse"
    FETCH_DELETE = "fetch_delete"
    FETCH_CLONE = "fetch_clone"
    FETCH_RESET = "fetch_reset"
    MISSING_WORKDIR = "missing_workdir"
    GENERATE = "generate"
    BUILD = "build"
    MOVE = "move"


class GrammarBuildError(RuntimeError):
    """Known step failure carrying a human-readable label and the underlying cause."""

    def __init__(self, kind: BuildErrorKind, label: str, cause: object) -> None:
        super().__init__(f"{label}: {cause}")
        self.kind = kind
        self.label = label
        self.cause = cause
