"""Pydantic schemas for trace events.

Event stream for one run:
    span_start / span_end   tree of named, timed spans (parent-linked)
    generation_call         one backend generation attempt
    tool_call               one resolved tool invocation
    validation_error        schema failure at a span boundary
    artifact / event        point-in-time records on the current span

Every record is a self-contained JSON object, one per line in the sink.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


class TokenUsage(BaseModel):
    """Token counts reported by a backend."""

    input: int | None = None
    output: int | None = None

    @property
    def total(self) -> int:
        return (self.input or 0) + (self.output or 0)


class _BaseEvent(BaseModel):
    timestamp: str = Field(default_factory=utc_now)
    run_id: str
    span_id: str


class SpanStart(_BaseEvent):
    type: Literal["span_start"] = "span_start"
    parent_span_id: str | None = None
    name: str
    metadata: dict[str, Any] | None = None


class SpanEnd(_BaseEvent):
    type: Literal["span_end"] = "span_end"
    parent_span_id: str | None = None
    name: str
    metadata: dict[str, Any] | None = None
    duration_ms: int = 0
    error: str | None = None
    cost_usd: float | None = None
    tokens: TokenUsage | None = None


class GenerationCall(_BaseEvent):
    type: Literal["generation_call"] = "generation_call"
    model: str
    params: dict[str, Any] | None = None
    request_hash: str | None = None
    raw: Any = None
    parsed: Any = None
    error: str | None = None
    tokens: TokenUsage | None = None
    cost_usd: float | None = None


class ToolCall(_BaseEvent):
    type: Literal["tool_call"] = "tool_call"
    tool: str
    input: Any = None
    output: Any = None
    error: str | None = None


class ValidationErrorEvent(_BaseEvent):
    type: Literal["validation_error"] = "validation_error"
    direction: Literal["input", "output"]
    issues: list[dict[str, Any]] = Field(default_factory=list)


class Artifact(_BaseEvent):
    type: Literal["artifact"] = "artifact"
    name: str
    data: Any = None


class Event(_BaseEvent):
    type: Literal["event"] = "event"
    name: str
    metadata: dict[str, Any] | None = None


TraceEvent = Annotated[
    SpanStart | SpanEnd | GenerationCall | ToolCall | ValidationErrorEvent | Artifact | Event,
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[TraceEvent] = TypeAdapter(TraceEvent)


def parse_event(data: str | bytes | dict[str, Any]) -> TraceEvent:
    """Rebuild a trace event from a JSON line or a plain dict."""
    if isinstance(data, dict):
        return _event_adapter.validate_python(data)
    return _event_adapter.validate_json(data)
