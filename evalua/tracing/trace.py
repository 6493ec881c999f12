"""Trace - a handle on one span of a run's execution tree.

A run owns one sink and one root span. Each ``Trace`` is scoped to a single
span; ``child()`` opens a new span below it and returns a new handle, so
nested work never moves a shared cursor.

Usage:
    trace = Trace(run_id, sink, root_span_id, name="root")

    child = trace.child("fetch")
    ...
    child.end(started_at)

    # or let span() close it on every path
    result = await trace.span("summarize", lambda t: do_work(t))
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar
from uuid import uuid4

from evalua.tracing.schemas import (
    Artifact,
    Event,
    GenerationCall,
    SpanEnd,
    SpanStart,
    TokenUsage,
    TraceEvent,
)
from evalua.tracing.sink import TraceSink

logger = logging.getLogger(__name__)

T = TypeVar("T")


def new_id() -> str:
    return uuid4().hex


def elapsed_ms(started_at: float) -> int:
    return int((time.perf_counter() - started_at) * 1000)


def error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


@dataclass
class RunUsage:
    """Token and cost totals for one run, fed by generation_call events."""

    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    calls: int = 0
    reported_tokens: bool = False
    reported_cost: bool = False

    def record(self, event: GenerationCall) -> None:
        self.calls += 1
        if event.tokens is not None:
            self.reported_tokens = True
            self.input_tokens += event.tokens.input or 0
            self.output_tokens += event.tokens.output or 0
        if event.cost_usd is not None:
            self.reported_cost = True
            self.cost_usd += event.cost_usd

    @property
    def tokens(self) -> TokenUsage | None:
        if not self.reported_tokens:
            return None
        return TokenUsage(input=self.input_tokens, output=self.output_tokens)

    @property
    def cost(self) -> float | None:
        return self.cost_usd if self.reported_cost else None


class Trace:
    """Handle scoped to one span of one run."""

    def __init__(
        self,
        run_id: str,
        sink: TraceSink,
        span_id: str,
        parent_span_id: str | None = None,
        name: str = "",
        usage: RunUsage | None = None,
    ) -> None:
        self._run_id = run_id
        self._sink = sink
        self._span_id = span_id
        self._parent_span_id = parent_span_id
        self._name = name
        self._usage = usage if usage is not None else RunUsage()
        self._ended = False

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def span_id(self) -> str:
        return self._span_id

    @property
    def parent_span_id(self) -> str | None:
        return self._parent_span_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def usage(self) -> RunUsage:
        return self._usage

    @property
    def ended(self) -> bool:
        return self._ended

    @classmethod
    def start_root(
        cls, run_id: str, sink: TraceSink, name: str, metadata: dict[str, Any] | None = None
    ) -> Trace:
        """Open the root span of a run (no parent)."""
        trace = cls(run_id, sink, new_id(), None, name)
        trace.emit(
            SpanStart(run_id=run_id, span_id=trace.span_id, name=name, metadata=metadata)
        )
        return trace

    def child(self, name: str, metadata: dict[str, Any] | None = None) -> Trace:
        """Open a child span of this one and return a handle scoped to it."""
        child_span_id = new_id()
        self.emit(
            SpanStart(
                run_id=self._run_id,
                span_id=child_span_id,
                parent_span_id=self._span_id,
                name=name,
                metadata=metadata,
            )
        )
        return Trace(self._run_id, self._sink, child_span_id, self._span_id, name, self._usage)

    def end(
        self,
        started_at: float,
        error: BaseException | str | None = None,
        cost_usd: float | None = None,
        tokens: TokenUsage | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Close this handle's span. Only the first call emits ``span_end``.

        Args:
            started_at: ``time.perf_counter()`` reading taken when the work began.
        """
        if self._ended:
            logger.warning(f"Span {self._name!r} ({self._span_id}) already ended, ignoring")
            return
        self._ended = True
        if isinstance(error, BaseException):
            error = error_message(error)
        self.emit(
            SpanEnd(
                run_id=self._run_id,
                span_id=self._span_id,
                parent_span_id=self._parent_span_id,
                name=self._name,
                metadata=metadata,
                duration_ms=elapsed_ms(started_at),
                error=error,
                cost_usd=cost_usd,
                tokens=tokens,
            )
        )

    async def span(
        self,
        name: str,
        fn: Callable[[Trace], Awaitable[T]],
        metadata: dict[str, Any] | None = None,
    ) -> T:
        """Run ``fn`` inside a child span, closing it on return and on raise."""
        span_trace = self.child(name, metadata)
        started_at = time.perf_counter()
        try:
            result = await fn(span_trace)
        except BaseException as e:
            span_trace.end(started_at, error=e)
            raise
        span_trace.end(started_at)
        return result

    def event(self, name: str, metadata: dict[str, Any] | None = None) -> None:
        self.emit(Event(run_id=self._run_id, span_id=self._span_id, name=name, metadata=metadata))

    def artifact(self, name: str, data: Any) -> None:
        self.emit(Artifact(run_id=self._run_id, span_id=self._span_id, name=name, data=data))

    def emit(self, event: TraceEvent) -> None:
        if isinstance(event, GenerationCall):
            self._usage.record(event)
        self._sink.write(event)
