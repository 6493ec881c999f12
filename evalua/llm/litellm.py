"""LiteLLM-backed responder.

Credentials are read by LiteLLM from the environment (``OPENAI_API_KEY``,
``ANTHROPIC_API_KEY``, ``GEMINI_API_KEY``, ...), never by the runtime.

Usage:
    llm = create_litellm_llm()
    runtime = create_runtime(llm=llm, cache=FileCache("cache"))
"""

from __future__ import annotations

import logging
from typing import Any

import litellm

from evalua.llm.client import BackendResponse, GenerateRequest, ProgrammableLLMClient
from evalua.tracing import TokenUsage

logger = logging.getLogger(__name__)


class LiteLLMResponder:
    """Sends a ``GenerateRequest`` through ``litellm.acompletion``."""

    def __init__(self, **completion_kwargs: Any) -> None:
        self._completion_kwargs = completion_kwargs

    def _build_kwargs(self, request: GenerateRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": [m.model_dump() for m in request.messages],
            **self._completion_kwargs,
        }
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        if request.max_tokens is not None:
            kwargs["max_tokens"] = request.max_tokens
        if request.tools:
            kwargs["tools"] = request.tools
        if request.output_schema is not None:
            kwargs["response_format"] = {"type": "json_object"}
        return kwargs

    async def __call__(self, request: GenerateRequest) -> BackendResponse:
        response = await litellm.acompletion(**self._build_kwargs(request))

        content = response.choices[0].message.content or ""
        usage = getattr(response, "usage", None)
        tokens = None
        if usage is not None:
            tokens = TokenUsage(
                input=getattr(usage, "prompt_tokens", None),
                output=getattr(usage, "completion_tokens", None),
            )

        cost_usd = None
        try:
            cost_usd = litellm.completion_cost(completion_response=response)
        except Exception as e:
            # Unknown models have no pricing entry
            logger.debug(f"No cost available for {request.model}: {e}")

        return BackendResponse(raw=content, tokens=tokens, cost_usd=cost_usd)


def create_litellm_llm(**completion_kwargs: Any) -> ProgrammableLLMClient:
    return ProgrammableLLMClient(LiteLLMResponder(**completion_kwargs), provider="litellm")
