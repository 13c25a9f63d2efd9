# =============================================================================
# bookcopy/llms/openai_client.py — OpenAI chat-completions client
# =============================================================================
# One POST per call, no retries, no streaming. The API key is read from
# settings on every call and checked before any network I/O.
# Response contract: choices[0].message.content must be a non-empty string.
# =============================================================================

from dataclasses import dataclass
from typing import Any

import httpx

from bookcopy.core.config import Settings, get_settings
from bookcopy.core.errors import MalformedResponse, UpstreamError
from bookcopy.core.security import require_openai_key
from bookcopy.llms.base import BaseLLM


@dataclass(frozen=True)
class CompletionRequest:
    system_prompt: str
    user_prompt: str
    temperature: float
    max_output_tokens: int

    def to_payload(self, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": self.user_prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_output_tokens,
        }


def extract_content(data: Any) -> str:
    if not isinstance(data, dict):
        raise MalformedResponse("body is not a JSON object")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise MalformedResponse("missing choices")
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise MalformedResponse("missing choices[0].message")
    content = message.get("content")
    if not isinstance(content, str) or not content:
        raise MalformedResponse("empty choices[0].message.content")
    return content


class OpenAIClient(BaseLLM):
    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.settings.request_timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        settings = self.settings
        key = require_openai_key(settings)
        request = CompletionRequest(system_prompt, user_prompt, temperature, max_output_tokens)
        client = await self._get_client()
        url = f"{settings.openai_base_url.rstrip('/')}/chat/completions"
        try:
            r = await client.post(
                url,
                headers={"Authorization": f"Bearer {key}"},
                json=request.to_payload(settings.openai_model),
            )
        except httpx.RequestError as e:
            raise UpstreamError(None, f"{type(e).__name__}: {e!s}") from e
        if not r.is_success:
            raise UpstreamError(r.status_code, r.text or "")
        try:
            data = r.json()
        except ValueError as e:
            raise MalformedResponse("body is not valid JSON") from e
        return extract_content(data)
