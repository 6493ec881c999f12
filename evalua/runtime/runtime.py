"""Run orchestrator - the single entry point for executing a step or workflow.

One ``run()`` call is one run: a fresh run id, a root span, one trace sink
that is closed before the call returns (on success and on failure), and a
``RunRecord`` summarizing the outcome.

Usage:
    runtime = create_runtime(llm=create_echo_llm(), trace_dir="traces")
    result = await runtime.run(summarize_workflow, {"text": "..."})
    print(result.record.status, result.output)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

from evalua.runtime.context import ExecutionContext, Policies
from evalua.runtime.step import Step
from evalua.tools.registry import ToolRegistry
from evalua.tracing import JsonlTraceSink, SharedTraceSink, TokenUsage, Trace, TraceSink
from evalua.tracing.trace import error_message, new_id
from evalua.validation import validate

if TYPE_CHECKING:
    from evalua.cache import Cache
    from evalua.config import RuntimeConfig
    from evalua.llm.client import LLMClient

logger = logging.getLogger(__name__)

SinkFactory = Callable[[str], TraceSink]


class RunRecord(BaseModel):
    """Externally visible summary of one orchestrator invocation."""

    run_id: str
    target: str
    status: Literal["success", "failure"]
    started_at: str
    ended_at: str
    duration_ms: int = 0
    cost_usd: float | None = None
    tokens: TokenUsage | None = None
    error: str | None = None


class RunResult(BaseModel):
    output: Any = None
    record: RunRecord


class Runtime:
    """Executes steps and workflows with tracing, caching and tools wired in."""

    def __init__(
        self,
        llm: LLMClient,
        tools: ToolRegistry | None = None,
        trace_dir: Path | str | None = None,
        sink_factory: SinkFactory | None = None,
        cache: Cache | None = None,
        policies: Policies | None = None,
    ) -> None:
        self.llm = llm
        self.tools = tools if tools is not None else ToolRegistry()
        self.trace_dir = Path(trace_dir) if trace_dir else Path.cwd() / "traces"
        self.cache = cache
        self.policies = policies
        self._sink_factory = sink_factory or self._jsonl_sink

    @classmethod
    def from_config(
        cls, config: RuntimeConfig, llm: LLMClient, tools: ToolRegistry | None = None
    ) -> Runtime:
        from evalua.cache import FileCache

        return cls(
            llm=llm,
            tools=tools,
            trace_dir=config.trace_dir,
            cache=FileCache(config.cache_dir) if config.cache_dir else None,
            policies=config.policies,
        )

    def _jsonl_sink(self, run_id: str) -> TraceSink:
        return JsonlTraceSink(self.trace_dir / f"{run_id}.jsonl")

    async def run(self, target: Step, input: Any) -> RunResult:
        """Execute ``target`` as a new run.

        Raises:
            Whatever the call chain raised, unchanged. The failure RunRecord
            is attached to the exception as ``run_record``.
        """
        run_id = new_id()
        sink = self._sink_factory(run_id)
        trace = Trace.start_root(run_id, sink, target.name, {"kind": target.kind})
        ctx = ExecutionContext(
            run_id=run_id,
            span_id=trace.span_id,
            trace=trace,
            llm=self.llm,
            tools=self.tools,
            cache=self.cache,
            policies=self.policies,
        )
        started_wall = datetime.now(UTC)
        started_at = time.perf_counter()
        logger.info(f"Run {run_id} started: {target.kind} {target.name!r}")

        try:
            validated_input = validate(target.input_schema, input, "input", trace)
            output = await target.run(ctx, validated_input)
            validated_output = validate(target.output_schema, output, "output", trace)
        except BaseException as e:
            usage = trace.usage
            trace.end(started_at, error=e, cost_usd=usage.cost, tokens=usage.tokens)
            sink.close()
            record = self._record(
                run_id, target, "failure", started_wall, started_at, trace, error_message(e)
            )
            e.run_record = record
            logger.info(f"Run {run_id} failed after {record.duration_ms}ms: {record.error}")
            raise

        usage = trace.usage
        trace.end(started_at, cost_usd=usage.cost, tokens=usage.tokens)
        sink.close()
        record = self._record(run_id, target, "success", started_wall, started_at, trace)
        logger.info(f"Run {run_id} succeeded in {record.duration_ms}ms")
        return RunResult(output=validated_output, record=record)

    @staticmethod
    def _record(
        run_id: str,
        target: Step,
        status: Literal["success", "failure"],
        started_wall: datetime,
        started_at: float,
        trace: Trace,
        error: str | None = None,
    ) -> RunRecord:
        return RunRecord(
            run_id=run_id,
            target=target.name,
            status=status,
            started_at=started_wall.isoformat(),
            ended_at=datetime.now(UTC).isoformat(),
            duration_ms=int((time.perf_counter() - started_at) * 1000),
            cost_usd=trace.usage.cost,
            tokens=trace.usage.tokens,
            error=error,
        )


def create_runtime(
    llm: LLMClient,
    tools: ToolRegistry | None = None,
    trace_dir: Path | str | None = None,
    sink: TraceSink | None = None,
    cache: Cache | None = None,
    policies: Policies | None = None,
) -> Runtime:
    """Build a ``Runtime``.

    A fixed ``sink`` receives every run's events. Each run flushes it; closing
    it is left to the caller.
    """
    shared = SharedTraceSink(sink) if sink is not None else None
    return Runtime(
        llm=llm,
        tools=tools,
        trace_dir=trace_dir,
        sink_factory=(lambda _run_id: shared) if shared is not None else None,
        cache=cache,
        policies=policies,
    )
