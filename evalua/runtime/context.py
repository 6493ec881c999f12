"""ExecutionContext - the immutable bundle threaded through nested work."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Literal

from evalua.tracing import Trace

if TYPE_CHECKING:
    from evalua.cache import Cache
    from evalua.llm.client import LLMClient
    from evalua.tools.registry import ToolRegistry


@dataclass(frozen=True)
class Policies:
    """Reserved policy hooks. Carried on every context, consulted by nothing yet."""

    repair_attempts: int = 0
    on_validation_error: Literal["fail", "skip"] = "fail"

    def to_dict(self) -> dict[str, Any]:
        return {
            "repair_attempts": self.repair_attempts,
            "on_validation_error": self.on_validation_error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Policies:
        return cls(
            repair_attempts=int(data.get("repair_attempts", 0)),
            on_validation_error=data.get("on_validation_error", "fail"),
        )


@dataclass(frozen=True)
class ExecutionContext:
    """Everything a step, tool or generation call needs at one nesting level.

    ``child()`` opens a new span and returns a new context pointing at it;
    the parent context is left untouched.
    """

    run_id: str
    span_id: str
    trace: Trace
    llm: LLMClient
    tools: ToolRegistry
    cache: Cache | None = None
    policies: Policies | None = None

    def child(self, name: str, metadata: dict[str, Any] | None = None) -> ExecutionContext:
        child_trace = self.trace.child(name, metadata)
        return replace(self, span_id=child_trace.span_id, trace=child_trace)
