"""Steps and workflows - traced, schema-validated units of work.

Every invocation, at any nesting depth:
1. opens a child span named after the unit
2. validates the input (the body never sees an invalid value)
3. runs the body with the child context
4. validates the output (an invalid value never reaches the caller)
5. closes the span, with the error message if anything raised

Usage:
    @step("summarize", input=SummarizeInput, output=Summary)
    async def summarize(ctx, input):
        ...

    @workflow("pipeline", input=SummarizeInput, output=Summary)
    async def pipeline(ctx, input):
        return await summarize(ctx, input)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Literal

from evalua.runtime.context import ExecutionContext
from evalua.validation import validate

logger = logging.getLogger(__name__)

StepFn = Callable[[ExecutionContext, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Step:
    """The smallest traced, validated unit of work."""

    kind: ClassVar[Literal["step", "workflow"]] = "step"

    name: str
    input_schema: Any
    output_schema: Any
    fn: StepFn
    description: str = ""

    async def run(self, ctx: ExecutionContext, input: Any) -> Any:
        span_ctx = ctx.child(self.name, {"kind": self.kind})
        started_at = time.perf_counter()
        try:
            validated_input = validate(self.input_schema, input, "input", span_ctx.trace)
            result = await self.fn(span_ctx, validated_input)
            validated_output = validate(self.output_schema, result, "output", span_ctx.trace)
        except BaseException as e:
            logger.debug(f"{self.kind} {self.name!r} failed: {e}")
            span_ctx.trace.end(started_at, error=e)
            raise
        span_ctx.trace.end(started_at)
        return validated_output

    async def __call__(self, ctx: ExecutionContext, input: Any) -> Any:
        return await self.run(ctx, input)


@dataclass(frozen=True)
class Workflow(Step):
    """A composition of steps. Same wrapping contract as ``Step``."""

    kind: ClassVar[Literal["step", "workflow"]] = "workflow"


def step(
    name: str, *, input: Any, output: Any, description: str = ""
) -> Callable[[StepFn], Step]:
    """Decorator turning an async ``(ctx, input)`` function into a ``Step``."""

    def decorator(fn: StepFn) -> Step:
        return Step(name, input, output, fn, description or (fn.__doc__ or "").strip())

    return decorator


def workflow(
    name: str, *, input: Any, output: Any, description: str = ""
) -> Callable[[StepFn], Workflow]:
    """Decorator turning an async ``(ctx, input)`` function into a ``Workflow``."""

    def decorator(fn: StepFn) -> Workflow:
        return Workflow(name, input, output, fn, description or (fn.__doc__ or "").strip())

    return decorator
