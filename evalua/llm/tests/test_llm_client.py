"""Tests for the cache-aware generation client."""

import json
from types import SimpleNamespace

import pytest
from pydantic import BaseModel

from evalua.cache import FileCache, InMemoryCache
from evalua.errors import ValidationError
from evalua.llm.client import (
    GenerateRequest,
    ProgrammableLLMClient,
    create_echo_llm,
    parse_with_schema,
    request_key,
)


class Answer(BaseModel):
    answer: str
    confidence: float


MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "What is 2+2?"},
]


class TestRequestKey:
    def test_field_order_does_not_change_key(self):
        a = GenerateRequest(model="m", messages=MESSAGES, temperature=0.2, tools=[{"b": 1, "a": 2}])
        b = GenerateRequest.model_validate(
            {
                "tools": [{"a": 2, "b": 1}],
                "temperature": 0.2,
                "messages": [{"content": m["content"], "role": m["role"]} for m in MESSAGES],
                "model": "m",
            }
        )
        assert request_key("p", a) == request_key("p", b)

    def test_nested_keys_are_sorted(self):
        key = request_key("p", GenerateRequest(model="m", tools=[{"z": {"y": 1, "x": 2}}]))
        assert '{"x":2,"y":1}' in key
        assert list(json.loads(key)) == sorted(json.loads(key))

    def test_unset_temperature_defaults_to_zero(self):
        unset = GenerateRequest(model="m", messages=MESSAGES)
        zero = GenerateRequest(model="m", messages=MESSAGES, temperature=0)
        assert request_key("p", unset) == request_key("p", zero)

    def test_distinguishes_provider_model_and_schema(self):
        base = GenerateRequest(model="m", messages=MESSAGES)
        assert request_key("p", base) != request_key("q", base)
        assert request_key("p", base) != request_key("p", base.model_copy(update={"model": "n"}))
        with_schema = base.model_copy(update={"output_schema": Answer})
        assert request_key("p", base) != request_key("p", with_schema)


class TestParseWithSchema:
    def test_decodes_json(self):
        parsed = parse_with_schema(Answer, '{"answer": "4", "confidence": 0.9}')
        assert parsed == Answer(answer="4", confidence=0.9)

    def test_falls_back_to_raw_text(self):
        assert parse_with_schema(str, "plain words") == "plain words"

    def test_invalid_output_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_with_schema(Answer, "not json at all")
        assert exc_info.value.direction == "output"
        assert exc_info.value.issues


class TestGenerate:
    @pytest.mark.asyncio
    async def test_miss_calls_backend_and_traces(self, make_ctx, responder, sink, llm):
        responder.default = '{"answer": "4", "confidence": 0.5}'
        responder.tokens = {"input": 12, "output": 3}
        responder.cost_usd = 0.001
        ctx = make_ctx()

        result = await llm.generate(ctx, model="m", messages=MESSAGES, output_schema=Answer)

        assert result.parsed == Answer(answer="4", confidence=0.5)
        assert result.tokens.input == 12
        calls = sink.of_type("generation_call")
        assert len(calls) == 1
        assert calls[0].raw == responder.default
        assert calls[0].parsed == result.parsed
        assert calls[0].cost_usd == 0.001
        assert calls[0].request_hash
        assert calls[0].span_id == ctx.span_id
        assert [e.name for e in sink.of_type("event")] == ["generation_complete"]

    @pytest.mark.asyncio
    async def test_same_request_twice_hits_backend_once(
        self, make_ctx, responder, sink, llm, cache
    ):
        ctx = make_ctx(cache=cache)

        first = await llm.generate(ctx, model="m", messages=MESSAGES)
        second = await llm.generate(ctx, model="m", messages=MESSAGES)

        assert responder.calls == 1
        assert second == first
        assert len(sink.of_type("generation_call")) == 1
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_cache_hit_restores_parsed_model(self, make_ctx, responder, llm, cache):
        responder.default = '{"answer": "4", "confidence": 1}'
        ctx = make_ctx(cache=cache)

        await llm.generate(ctx, model="m", messages=MESSAGES, output_schema=Answer)
        cached = await llm.generate(ctx, model="m", messages=MESSAGES, output_schema=Answer)

        assert responder.calls == 1
        assert isinstance(cached.parsed, Answer)

    @pytest.mark.asyncio
    async def test_stored_falsy_value_is_a_hit(self, make_ctx, responder, llm):
        responder.default = ""
        ctx = make_ctx(cache=InMemoryCache())

        await llm.generate(ctx, model="m", messages=MESSAGES)
        await llm.generate(ctx, model="m", messages=MESSAGES)

        assert responder.calls == 1

    @pytest.mark.asyncio
    async def test_file_cache_survives_new_client(self, make_ctx, responder, tmp_path):
        file_cache = FileCache(tmp_path / "cache")
        ctx = make_ctx(cache=file_cache)

        await ProgrammableLLMClient(responder).generate(ctx, model="m", messages=MESSAGES)
        await ProgrammableLLMClient(responder).generate(ctx, model="m", messages=MESSAGES)

        assert responder.calls == 1
        assert len(list((tmp_path / "cache").glob("*.json"))) == 1

    @pytest.mark.asyncio
    async def test_schema_failure_raises_and_skips_cache(
        self, make_ctx, responder, sink, llm, cache
    ):
        responder.default = "definitely not an answer"
        ctx = make_ctx(cache=cache)

        with pytest.raises(ValidationError):
            await llm.generate(ctx, model="m", messages=MESSAGES, output_schema=Answer)

        assert len(cache) == 0
        [validation] = sink.of_type("validation_error")
        assert validation.direction == "output"
        [call] = sink.of_type("generation_call")
        assert call.raw == "definitely not an answer"
        assert call.error == "output validation failed"

    @pytest.mark.asyncio
    async def test_backend_error_propagates_unchanged(self, make_ctx, responder, sink, llm, cache):
        boom = ConnectionError("provider unreachable")
        responder.error = boom
        ctx = make_ctx(cache=cache)

        with pytest.raises(ConnectionError) as exc_info:
            await llm.generate(ctx, model="m", messages=MESSAGES)

        assert exc_info.value is boom
        [call] = sink.of_type("generation_call")
        assert call.error == "provider unreachable"
        assert responder.calls == 1
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_echo_llm_returns_last_user_message(self, make_ctx):
        result = await create_echo_llm().generate(make_ctx(), model="m", messages=MESSAGES)
        assert result.raw == "What is 2+2?"


class TestLiteLLMResponder:
    @pytest.mark.asyncio
    async def test_builds_completion_call_and_reads_usage(self, monkeypatch):
        import litellm

        from evalua.llm.litellm import LiteLLMResponder

        captured = {}

        async def fake_acompletion(**kwargs):
            captured.update(kwargs)
            return SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content='{"answer": "4"}'))],
                usage=SimpleNamespace(prompt_tokens=9, completion_tokens=4),
            )

        def no_pricing(**kwargs):
            raise ValueError("model not mapped")

        monkeypatch.setattr(litellm, "acompletion", fake_acompletion)
        monkeypatch.setattr(litellm, "completion_cost", no_pricing)

        responder = LiteLLMResponder(model="override-model")
        response = await responder(
            GenerateRequest(model="m", messages=MESSAGES, output_schema=Answer, temperature=0)
        )

        assert captured["model"] == "override-model"
        assert captured["messages"][1] == {"role": "user", "content": "What is 2+2?"}
        assert captured["response_format"] == {"type": "json_object"}
        assert captured["temperature"] == 0
        assert response.raw == '{"answer": "4"}'
        assert response.tokens.input == 9
        assert response.cost_usd is None
