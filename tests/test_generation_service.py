from __future__ import annotations

import json
import logging

import httpx
import pytest

from bookcopy.core.errors import (
    GENERATION_FAILED_MESSAGE,
    EmptyInput,
    GenerationFailed,
    InvalidGenerationType,
    MalformedResponse,
    MissingCredential,
    UpstreamError,
)
from bookcopy.core.generation_config import GenerationConfig, GenerationConfigTable
from bookcopy.llms.prompts import SYSTEM_PROMPT, GenerationType, build_prompt
from bookcopy.services import generation_service
from bookcopy.services.generation_service import generate
from tests.conftest import StubLLM


@pytest.mark.asyncio
@pytest.mark.parametrize("gen_type", [t.value for t in GenerationType])
async def test_returns_stub_text_for_every_type(gen_type: str) -> None:
    stub = StubLLM(text="T")
    assert await generate(gen_type, "some text", client=stub) == "T"
    call = stub.calls[0]
    assert call["system_prompt"] == SYSTEM_PROMPT
    assert call["user_prompt"] == build_prompt(gen_type, "some text")


@pytest.mark.asyncio
async def test_uses_config_for_requested_type() -> None:
    stub = StubLLM()
    table = GenerationConfigTable({GenerationType.KEYWORDS: GenerationConfig(0.3, 42)})
    await generate(GenerationType.KEYWORDS, "text", config=table, client=stub)
    assert stub.calls[0]["temperature"] == 0.3
    assert stub.calls[0]["max_output_tokens"] == 42


@pytest.mark.asyncio
async def test_invalid_type_makes_no_call() -> None:
    stub = StubLLM()
    with pytest.raises(InvalidGenerationType):
        await generate("bogus-type", "text", client=stub)
    assert stub.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   \n\t"])
async def test_empty_input_makes_no_call(text: str) -> None:
    stub = StubLLM()
    with pytest.raises(EmptyInput):
        await generate("blurb", text, client=stub)
    assert stub.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        UpstreamError(503, "secret upstream body"),
        MalformedResponse("empty choices[0].message.content"),
        MissingCredential(),
    ],
)
async def test_client_failures_become_generic_generation_failed(error: Exception, caplog) -> None:
    stub = StubLLM(error=error)
    with caplog.at_level(logging.ERROR, logger="bookcopy"):
        with pytest.raises(GenerationFailed) as exc_info:
            await generate("description", "text", client=stub)

    message = str(exc_info.value)
    assert message == GENERATION_FAILED_MESSAGE
    assert "503" not in message and "secret" not in message
    assert exc_info.value.__cause__ is None
    assert exc_info.value.__suppress_context__
    record = next(r for r in caplog.records if r.getMessage() == "generation_failed")
    assert record.error_kind == type(error).__name__


@pytest.mark.asyncio
async def test_upstream_detail_is_logged_not_raised(caplog) -> None:
    stub = StubLLM(error=UpstreamError(500, "quota exceeded"))
    with caplog.at_level(logging.ERROR, logger="bookcopy"):
        with pytest.raises(GenerationFailed):
            await generate("foreword", "text", client=stub)
    record = next(r for r in caplog.records if r.getMessage() == "generation_failed")
    assert record.status_code == 500
    assert record.upstream_body == "quota exceeded"


@pytest.mark.asyncio
async def test_categories_end_to_end_with_http_stub(monkeypatch) -> None:
    answer = '{"main":"Fiction","sub":["Mystery","Thriller"]}'
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": answer}}]})

    transport = httpx.MockTransport(handler)
    real_client = generation_service.OpenAIClient
    monkeypatch.setattr(generation_service, "OpenAIClient", lambda: real_client(transport=transport))

    result = await generate("categories", "A story about a detective.")

    assert result == answer
    user_prompt = json.loads(seen[0].content)["messages"][1]["content"]
    assert "A story about a detective." in user_prompt
    assert '"main"' in user_prompt and '"sub"' in user_prompt


@pytest.mark.asyncio
async def test_upstream_non_success_over_http_is_generation_failed(monkeypatch) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(401, text="invalid api key sk-..."))
    real_client = generation_service.OpenAIClient
    monkeypatch.setattr(generation_service, "OpenAIClient", lambda: real_client(transport=transport))

    with pytest.raises(GenerationFailed) as exc_info:
        await generate("blurb", "text")
    assert "401" not in str(exc_info.value)
    assert "api key" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_owned_client_is_closed(monkeypatch) -> None:
    stub = StubLLM()
    monkeypatch.setattr(generation_service, "OpenAIClient", lambda: stub)
    await generate("analysis", "text")
    assert stub.closed


@pytest.mark.asyncio
async def test_injected_client_is_left_open() -> None:
    stub = StubLLM()
    await generate("analysis", "text", client=stub)
    assert not stub.closed
