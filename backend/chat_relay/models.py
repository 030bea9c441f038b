from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator

import httpx
from pydantic import BaseModel, Field

UPSTREAM_SOURCE = "gemini"
RATE_LIMIT_HEADERS = ("x-ratelimit-limit", "x-ratelimit-remaining", "x-ratelimit-reset")


class GeminiPart(BaseModel):
    text: str | None = None


class GeminiContent(BaseModel):
    role: str | None = None
    parts: list[GeminiPart] | None = None


class GeminiCandidate(BaseModel):
    content: GeminiContent | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")


class GeminiChunk(BaseModel):
    candidates: list[GeminiCandidate] | None = None

    def first_text(self) -> str | None:
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text


class UpstreamOutcome(str, Enum):
    STREAMING = "streaming"
    AUTH_FAILURE = "auth_failure"
    RATE_LIMITED = "rate_limited"
    OTHER_FAILURE = "other_failure"
    FALLBACK_SUCCESS = "fallback_success"
    FALLBACK_FAILURE = "fallback_failure"


def classify_stream_status(status_code: int) -> UpstreamOutcome:
    if 200 <= status_code < 300:
        return UpstreamOutcome.STREAMING
    if status_code in {401, 403}:
        return UpstreamOutcome.AUTH_FAILURE
    if status_code == 429:
        return UpstreamOutcome.RATE_LIMITED
    return UpstreamOutcome.OTHER_FAILURE


def classify_fallback_status(status_code: int) -> UpstreamOutcome:
    if 200 <= status_code < 300:
        return UpstreamOutcome.FALLBACK_SUCCESS
    return UpstreamOutcome.FALLBACK_FAILURE


@dataclass(frozen=True)
class UpstreamFailure:
    status_code: int
    text: str
    rate_headers: dict[str, str | None]

    @classmethod
    def from_response(cls, response: httpx.Response) -> UpstreamFailure:
        return cls(
            status_code=response.status_code,
            text=response.text,
            rate_headers={name: response.headers.get(name) for name in RATE_LIMIT_HEADERS},
        )


@dataclass
class RelayReply:
    status_code: int
    outcome: UpstreamOutcome | None = None
    body: dict[str, Any] | None = None
    frames: AsyncIterator[str] | None = None
