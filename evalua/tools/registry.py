"""Tool registry - name-keyed table of schema-validated operations.

Usage:
    @tool("lookup", input=LookupInput, output=LookupResult)
    async def lookup(ctx, input):
        ...

    registry = create_tool_registry([lookup])
    result = await registry.call("lookup", ctx, {"query": "solar"})
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from evalua.errors import ToolError
from evalua.tracing import ToolCall
from evalua.tracing.trace import error_message
from evalua.validation import adapter_for, validate

if TYPE_CHECKING:
    from evalua.runtime.context import ExecutionContext

logger = logging.getLogger(__name__)

ToolFn = Callable[["ExecutionContext", Any], Any]


@dataclass(frozen=True)
class Tool:
    """A named side-effecting operation with declared input/output schemas.

    ``fn`` may be a plain function or a coroutine function.
    """

    name: str
    input_schema: Any
    output_schema: Any
    fn: ToolFn
    description: str = ""

    async def invoke(self, ctx: ExecutionContext, input: Any) -> Any:
        result = self.fn(ctx, input)
        if inspect.isawaitable(result):
            result = await result
        return result

    def descriptor(self) -> dict[str, Any]:
        """Function-calling description, suitable for ``GenerateRequest.tools``."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": adapter_for(self.input_schema).json_schema(),
            },
        }


def tool(
    name: str, *, input: Any, output: Any, description: str = ""
) -> Callable[[ToolFn], Tool]:
    """Decorator turning a ``(ctx, input)`` function into a ``Tool``."""

    def decorator(fn: ToolFn) -> Tool:
        return Tool(name, input, output, fn, description or (fn.__doc__ or "").strip())

    return decorator


class ToolRegistry:
    """In-memory tool table. Re-registering a name replaces the previous tool.

    Not thread-safe; one event loop drives it.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            logger.debug(f"Replacing tool {tool.name!r}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def descriptors(self) -> list[dict[str, Any]]:
        return [t.descriptor() for t in self._tools.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def call(self, name: str, ctx: ExecutionContext, input: Any) -> Any:
        """Validate, invoke and trace one tool call.

        Raises:
            ToolError: if ``name`` is not registered (nothing is traced).
            ValidationError: if the input or output fails its schema.
        """
        registered = self._tools.get(name)
        if registered is None:
            raise ToolError(f"Tool not found: {name}")

        try:
            validated_input = validate(registered.input_schema, input, "input", ctx.trace)
            output = await registered.invoke(ctx, validated_input)
            validated_output = validate(registered.output_schema, output, "output", ctx.trace)
        except Exception as e:
            ctx.trace.emit(
                ToolCall(
                    run_id=ctx.run_id,
                    span_id=ctx.span_id,
                    tool=name,
                    input=input,
                    error=error_message(e),
                )
            )
            raise

        ctx.trace.emit(
            ToolCall(
                run_id=ctx.run_id,
                span_id=ctx.span_id,
                tool=name,
                input=input,
                output=validated_output,
            )
        )
        return validated_output


def create_tool_registry(tools: list[Tool] | None = None) -> ToolRegistry:
    registry = ToolRegistry()
    for t in tools or []:
        registry.register(t)
    return registry
