"""Exception hierarchy shared by the runtime, tools and evaluation harness.

Backend and transport failures raised by a generation responder or a tool
body are never wrapped; they propagate to the caller unchanged.
"""

from __future__ import annotations

from typing import Any, Literal

Direction = Literal["input", "output"]


class EvaluaError(Exception):
    """Base class for errors raised by evalua itself."""


class ValidationError(EvaluaError):
    """A value failed its declared schema.

    Always preceded by exactly one ``validation_error`` trace event at the
    span where the check happened.
    """

    def __init__(
        self,
        issues: list[dict[str, Any]],
        direction: Direction,
        message: str | None = None,
    ) -> None:
        super().__init__(message or f"{direction} validation failed")
        self.issues = issues
        self.direction = direction


class ToolError(EvaluaError):
    """A tool was requested by a name that is not registered."""


class MetricCollisionError(EvaluaError):
    """Two judges reported the same metric name for one case."""

    def __init__(self, case_id: str, metric: str) -> None:
        super().__init__(f"Metric '{metric}' reported by more than one judge for case '{case_id}'")
        self.case_id = case_id
        self.metric = metric


class TargetLoadError(EvaluaError):
    """A target or evaluation reference could not be resolved."""
