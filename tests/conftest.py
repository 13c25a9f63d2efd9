from __future__ import annotations

import io

import pytest
from docx import Document
from fastapi.testclient import TestClient

from bookcopy.core.config import GENERATION_ENV_PREFIX, GENERATION_ENV_SUFFIXES, GENERATION_TYPE_NAMES, get_settings
from bookcopy.core.generation_config import get_generation_config
from bookcopy.llms.base import BaseLLM


class StubLLM(BaseLLM):
    """Completion client double: returns ``text`` or raises ``error``, recording every call."""

    def __init__(self, text: str = "generated text", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[dict] = []
        self.closed = False

    async def complete(self, system_prompt: str, user_prompt: str, temperature: float, max_output_tokens: int) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.text

    async def close(self) -> None:
        self.closed = True


def _clear_caches() -> None:
    get_settings.cache_clear()
    get_generation_config.cache_clear()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "bookcopy-test.db"))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("OPENAI_API_KEY", "test-api-key")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://llm.test/v1")
    monkeypatch.delenv("TOKEN_TTL_MINUTES", raising=False)
    monkeypatch.delenv("MAX_UPLOAD_BYTES", raising=False)
    for type_name in GENERATION_TYPE_NAMES:
        for suffix in GENERATION_ENV_SUFFIXES:
            monkeypatch.delenv(f"{GENERATION_ENV_PREFIX}{type_name}{suffix}", raising=False)
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def stub_llm() -> StubLLM:
    return StubLLM()


@pytest.fixture
def api(stub_llm):
    from bookcopy.main import app, get_completion_client

    async def _stub_client():
        yield stub_llm

    app.dependency_overrides[get_completion_client] = _stub_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(api) -> dict[str, str]:
    r = api.post(
        "/auth/register",
        json={"username": "author", "email": "author@example.com", "password": "s3cret"},
    )
    assert r.status_code == 201
    return {"Authorization": f"Bearer {r.json()['token']}"}


def make_docx(*paragraphs: str) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()
