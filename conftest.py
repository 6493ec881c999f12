"""
Shared fixtures for evalua tests.
"""

from typing import Callable

import pytest

from evalua.cache import InMemoryCache
from evalua.llm.client import BackendResponse, GenerateRequest, ProgrammableLLMClient
from evalua.runtime.context import ExecutionContext
from evalua.runtime.runtime import Runtime, create_runtime
from evalua.tools.registry import ToolRegistry
from evalua.tracing import InMemoryTraceSink, Trace


class RecordingResponder:
    """Responder returning queued (or fixed) replies and counting calls."""

    def __init__(self, replies: list[str] | None = None, default: str = "ok") -> None:
        self.replies = list(replies or [])
        self.default = default
        self.requests: list[GenerateRequest] = []
        self.error: Exception | None = None
        self.tokens: dict | None = None
        self.cost_usd: float | None = None

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def __call__(self, request: GenerateRequest) -> BackendResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        raw = self.replies.pop(0) if self.replies else self.default
        return BackendResponse(raw=raw, tokens=self.tokens, cost_usd=self.cost_usd)


@pytest.fixture
def sink() -> InMemoryTraceSink:
    return InMemoryTraceSink()


@pytest.fixture
def responder() -> RecordingResponder:
    return RecordingResponder()


@pytest.fixture
def llm(responder) -> ProgrammableLLMClient:
    return ProgrammableLLMClient(responder)


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def tools() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def make_ctx(sink, llm, tools) -> Callable[..., ExecutionContext]:
    """
    Factory fixture for a root-level context writing to the shared sink.
    """

    def _make_ctx(cache=None, name: str = "root") -> ExecutionContext:
        trace = Trace.start_root("run-test", sink, name)
        return ExecutionContext(
            run_id="run-test",
            span_id=trace.span_id,
            trace=trace,
            llm=llm,
            tools=tools,
            cache=cache,
        )

    return _make_ctx


@pytest.fixture
def runtime(sink, llm, tools) -> Runtime:
    return create_runtime(llm=llm, tools=tools, sink=sink)
