"""Cache-aware generation client.

One ``generate()`` call is one structured request to a backend responder:

    key = request_key(provider, request)        # canonical, order-independent
    hit  -> cached result, no backend call, no generation_call event
    miss -> responder(request) -> parse/validate -> generation_call event
            -> cache.set(key, result) -> result

Backend errors are traced and re-raised unchanged. Nothing is retried here.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from evalua.cache import MISSING, cache_get, cache_set
from evalua.tracing import GenerationCall, TokenUsage
from evalua.tracing.trace import elapsed_ms, error_message
from evalua.validation import check, schema_identity, validate

if TYPE_CHECKING:
    from evalua.runtime.context import ExecutionContext

logger = logging.getLogger(__name__)


class Message(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class GenerateRequest(BaseModel):
    """A single structured generation request."""

    model_config = ConfigDict(arbitrary_types_allowed=True, protected_namespaces=())

    model: str
    messages: list[Message] = Field(default_factory=list)
    output_schema: Any = None
    temperature: float | None = None
    max_tokens: int | None = None
    tools: list[dict[str, Any]] | None = None


class BackendResponse(BaseModel):
    """What a responder hands back: raw text plus optional usage."""

    raw: str
    tokens: TokenUsage | None = None
    cost_usd: float | None = None


class GenerateResult(BaseModel):
    raw: str
    parsed: Any = None
    tokens: TokenUsage | None = None
    cost_usd: float | None = None


Responder = Callable[[GenerateRequest], Awaitable[BackendResponse]]


class LLMClient(Protocol):
    async def generate(
        self, ctx: ExecutionContext, request: GenerateRequest | None = None, **fields: Any
    ) -> GenerateResult: ...


def canonical_json(value: Any) -> str:
    """JSON with object keys sorted at every level and no insignificant whitespace."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def request_key(provider: str, request: GenerateRequest) -> str:
    """Deterministic cache key for a request."""
    return canonical_json(
        {
            "provider": provider,
            "model": request.model,
            "messages": [m.model_dump() for m in request.messages],
            "schema": schema_identity(request.output_schema),
            "temperature": float(request.temperature or 0),
            "max_tokens": request.max_tokens,
            "tools": request.tools or [],
        }
    )


def request_hash(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def decode_candidate(raw: str) -> Any:
    """Structured decoding of raw model text, falling back to the text itself."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_with_schema(schema: Any, raw: str) -> Any:
    """Decode ``raw`` and validate it against ``schema`` (untraced)."""
    return check(schema, decode_candidate(raw), "output")


class ProgrammableLLMClient:
    """LLM client driven by a responder coroutine.

    The responder is the only part that talks to a provider; caching,
    parsing and tracing live here.
    """

    def __init__(self, responder: Responder, provider: str = "programmable") -> None:
        self._responder = responder
        self.provider = provider

    async def generate(
        self, ctx: ExecutionContext, request: GenerateRequest | None = None, **fields: Any
    ) -> GenerateResult:
        if request is None:
            request = GenerateRequest(**fields)
        elif fields:
            request = request.model_copy(update=fields)

        key = request_key(self.provider, request)
        cached = await cache_get(ctx.cache, key)
        if cached is not MISSING:
            logger.debug(f"Cache hit for {request.model} request {request_hash(key)}")
            return self._restore(cached, request.output_schema)

        started_at = time.perf_counter()
        params = {"temperature": request.temperature, "max_tokens": request.max_tokens}
        response: BackendResponse | None = None
        try:
            response = await self._responder(request)
            parsed = None
            if request.output_schema is not None:
                parsed = validate(
                    request.output_schema, decode_candidate(response.raw), "output", ctx.trace
                )
            result = GenerateResult(
                raw=response.raw,
                parsed=parsed,
                tokens=response.tokens,
                cost_usd=response.cost_usd,
            )
            ctx.trace.emit(
                GenerationCall(
                    run_id=ctx.run_id,
                    span_id=ctx.span_id,
                    model=request.model,
                    params=params,
                    request_hash=request_hash(key),
                    raw=response.raw,
                    parsed=parsed,
                    tokens=response.tokens,
                    cost_usd=response.cost_usd,
                )
            )
        except Exception as e:
            ctx.trace.emit(
                GenerationCall(
                    run_id=ctx.run_id,
                    span_id=ctx.span_id,
                    model=request.model,
                    params=params,
                    request_hash=request_hash(key),
                    raw=response.raw if response else None,
                    error=error_message(e),
                    tokens=response.tokens if response else None,
                    cost_usd=response.cost_usd if response else None,
                )
            )
            raise
        finally:
            ctx.trace.event("generation_complete", {"duration_ms": elapsed_ms(started_at)})

        await cache_set(ctx.cache, key, result.model_dump(mode="json"))
        return result

    @staticmethod
    def _restore(cached: Any, schema: Any) -> GenerateResult:
        result = GenerateResult.model_validate(cached)
        if schema is not None and result.parsed is not None:
            result.parsed = check(schema, result.parsed, "output")
        return result


async def echo_responder(request: GenerateRequest) -> BackendResponse:
    """Answers with the content of the last user message."""
    for message in reversed(request.messages):
        if message.role == "user":
            return BackendResponse(raw=message.content)
    return BackendResponse(raw="")


def static_responder(text: str) -> Responder:
    async def respond(request: GenerateRequest) -> BackendResponse:
        return BackendResponse(raw=text)

    return respond


def create_echo_llm() -> ProgrammableLLMClient:
    return ProgrammableLLMClient(echo_responder, provider="echo")


def create_static_llm(text: str) -> ProgrammableLLMClient:
    return ProgrammableLLMClient(static_responder(text), provider="static")
