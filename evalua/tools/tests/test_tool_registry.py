"""Tests for the tool registry."""

import pytest
from pydantic import BaseModel, Field

from evalua.errors import ToolError, ValidationError
from evalua.tools.registry import Tool, ToolRegistry, create_tool_registry, tool


class Lookup(BaseModel):
    query: str = Field(min_length=1)


class Hits(BaseModel):
    count: int


@tool("search", input=Lookup, output=Hits, description="Count matching documents")
async def search(ctx, lookup: Lookup) -> Hits:
    return Hits(count=len(lookup.query))


def sync_search(ctx, lookup: Lookup) -> dict:
    return {"count": 99}


class TestToolRegistry:
    def test_register_last_write_wins(self):
        registry = create_tool_registry([search])
        replacement = Tool("search", Lookup, Hits, sync_search)

        registry.register(replacement)

        assert len(registry) == 1
        assert registry.get("search") is replacement
        assert "search" in registry
        assert registry.names() == ["search"]

    @pytest.mark.asyncio
    async def test_call_validates_and_traces(self, make_ctx, sink):
        registry = create_tool_registry([search])
        ctx = make_ctx()

        result = await registry.call("search", ctx, {"query": "solar"})

        assert result == Hits(count=5)
        [call] = sink.of_type("tool_call")
        assert call.tool == "search"
        assert call.input == {"query": "solar"}
        assert call.output == Hits(count=5)
        assert call.error is None
        assert call.span_id == ctx.span_id

    @pytest.mark.asyncio
    async def test_sync_tool_output_is_validated(self, make_ctx):
        registry = create_tool_registry([Tool("search", Lookup, Hits, sync_search)])
        assert await registry.call("search", make_ctx(), {"query": "x"}) == Hits(count=99)

    @pytest.mark.asyncio
    async def test_unknown_tool_raises_without_trace(self, make_ctx, sink):
        registry = ToolRegistry()

        with pytest.raises(ToolError, match="Tool not found: missing"):
            await registry.call("missing", make_ctx(), {})

        assert sink.of_type("tool_call") == []

    @pytest.mark.asyncio
    async def test_invalid_input_uses_shared_validation_error(self, make_ctx, sink):
        registry = create_tool_registry([search])

        with pytest.raises(ValidationError) as exc_info:
            await registry.call("search", make_ctx(), {"query": ""})

        assert exc_info.value.direction == "input"
        assert len(sink.of_type("validation_error")) == 1
        [call] = sink.of_type("tool_call")
        assert call.error == "input validation failed"

    @pytest.mark.asyncio
    async def test_tool_failure_is_traced_and_reraised(self, make_ctx, sink):
        def broken(ctx, lookup):
            raise TimeoutError("index offline")

        registry = create_tool_registry([Tool("broken", Lookup, Hits, broken)])

        with pytest.raises(TimeoutError):
            await registry.call("broken", make_ctx(), {"query": "x"})

        [call] = sink.of_type("tool_call")
        assert call.error == "index offline"
        assert call.output is None

    def test_descriptors_expose_input_json_schema(self):
        registry = create_tool_registry([search])
        [descriptor] = registry.descriptors()
        function = descriptor["function"]
        assert function["name"] == "search"
        assert function["description"] == "Count matching documents"
        assert function["parameters"]["properties"]["query"]["minLength"] == 1
