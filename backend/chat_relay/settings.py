from __future__ import annotations

import os
from dataclasses import dataclass

from chat_protocol.env import env_float, env_int

DEFAULT_MODEL = "gemini-2.0-flash-exp"
DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI health assistant. Provide clear, concise health advice while "
    "emphasizing that users should consult healthcare professionals for serious concerns. "
    "Keep responses friendly and supportive."
)


@dataclass(frozen=True)
class RelaySettings:
    api_key: str | None
    model: str = DEFAULT_MODEL
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.7
    stream_max_output_tokens: int = 2048
    # Fallback calls run with a smaller output budget than streaming ones.
    fallback_max_output_tokens: int = 1024
    timeout_seconds: float = 60.0
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    @classmethod
    def from_env(cls) -> RelaySettings:
        return cls(
            api_key=(os.getenv("GEMINI_API_KEY") or "").strip() or None,
            model=(os.getenv("GEMINI_MODEL") or "").strip() or DEFAULT_MODEL,
            base_url=(
                os.getenv("GEMINI_API_BASE_URL") or "https://generativelanguage.googleapis.com/v1beta"
            ).rstrip("/"),
            temperature=env_float("GEMINI_TEMPERATURE", 0.7),
            stream_max_output_tokens=env_int("GEMINI_STREAM_MAX_OUTPUT_TOKENS", 2048),
            fallback_max_output_tokens=env_int("GEMINI_FALLBACK_MAX_OUTPUT_TOKENS", 1024),
            timeout_seconds=env_float("HEALTH_CHAT_TIMEOUT_SECONDS", 60.0),
            system_prompt=(os.getenv("HEALTH_CHAT_SYSTEM_PROMPT") or "").strip() or DEFAULT_SYSTEM_PROMPT,
        )

    @property
    def stream_url(self) -> str:
        return f"{self.base_url}/models/{self.model}:streamGenerateContent?alt=sse"

    @property
    def generate_url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"
