from __future__ import annotations

from typing import Any

import httpx

from .settings import RelaySettings

_ROLE_MAP = {"user": "user", "assistant": "model"}


def to_gemini_contents(messages: list[dict[str, str]]) -> list[dict[str, Any]]:
    return [
        {
            "role": _ROLE_MAP[message["role"]],
            "parts": [{"text": message["content"]}],
        }
        for message in messages
    ]


class GeminiClient:
    def __init__(self, settings: RelaySettings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.transport = transport

    def open_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=httpx.Timeout(self.settings.timeout_seconds, connect=8.0),
        )

    def build_payload(self, contents: list[dict[str, Any]], *, max_output_tokens: int) -> dict[str, Any]:
        return {
            "contents": contents,
            "generationConfig": {
                "temperature": self.settings.temperature,
                "maxOutputTokens": max_output_tokens,
            },
            "systemInstruction": {"parts": [{"text": self.settings.system_prompt}]},
        }

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": str(self.settings.api_key),
        }

    async def open_stream(self, client: httpx.AsyncClient, contents: list[dict[str, Any]]) -> httpx.Response:
        request = client.build_request(
            "POST",
            self.settings.stream_url,
            headers=self._headers(),
            json=self.build_payload(contents, max_output_tokens=self.settings.stream_max_output_tokens),
        )
        return await client.send(request, stream=True)

    async def generate(self, client: httpx.AsyncClient, contents: list[dict[str, Any]]) -> httpx.Response:
        return await client.post(
            self.settings.generate_url,
            headers=self._headers(),
            json=self.build_payload(contents, max_output_tokens=self.settings.fallback_max_output_tokens),
        )
