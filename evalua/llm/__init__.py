"""Generation clients.

The concrete LiteLLM responder lives in ``evalua.llm.litellm`` and is only
imported when asked for, so the core runs without provider packages loaded.
"""

from evalua.llm.client import (
    BackendResponse,
    GenerateRequest,
    GenerateResult,
    LLMClient,
    Message,
    ProgrammableLLMClient,
    Responder,
    create_echo_llm,
    create_static_llm,
    echo_responder,
    parse_with_schema,
    request_key,
    static_responder,
)

__all__ = [
    "BackendResponse",
    "GenerateRequest",
    "GenerateResult",
    "LLMClient",
    "Message",
    "ProgrammableLLMClient",
    "Responder",
    "create_echo_llm",
    "create_static_llm",
    "echo_responder",
    "parse_with_schema",
    "request_key",
    "static_responder",
]
