"""Execution tracing.

- Trace: handle on one span; opens child spans and emits point events
- TraceSink: append-only destination (JSONL file or in-memory list)
- build_span_tree: rebuild and check the span tree of a finished run

The trace format is one JSON object per line, in emission order, so a run
can be read back with ``read_trace`` and inspected without the runtime.
"""

from evalua.tracing.schemas import (
    Artifact,
    Event,
    GenerationCall,
    SpanEnd,
    SpanStart,
    TokenUsage,
    ToolCall,
    TraceEvent,
    ValidationErrorEvent,
    parse_event,
)
from evalua.tracing.sink import (
    InMemoryTraceSink,
    JsonlTraceSink,
    SharedTraceSink,
    TraceSink,
    read_trace,
)
from evalua.tracing.trace import RunUsage, Trace
from evalua.tracing.tree import SpanNode, build_span_tree

__all__ = [
    "Artifact",
    "Event",
    "GenerationCall",
    "SpanEnd",
    "SpanStart",
    "TokenUsage",
    "ToolCall",
    "TraceEvent",
    "ValidationErrorEvent",
    "parse_event",
    "InMemoryTraceSink",
    "JsonlTraceSink",
    "SharedTraceSink",
    "TraceSink",
    "read_trace",
    "RunUsage",
    "Trace",
    "SpanNode",
    "build_span_tree",
]
