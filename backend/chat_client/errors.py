from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

GENERIC_FAILURE = "Failed to get response"
NETWORK_FAILURE = "Network error. Please check your connection and try again."


class ChatClientError(Exception):
    pass


@dataclass(frozen=True)
class ErrorBody:
    details: str = ""
    source: str = ""
    rate_headers: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, raw: bytes | str) -> ErrorBody:
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            return cls()
        if not isinstance(payload, dict):
            return cls()
        details = payload.get("details") or payload.get("error") or ""
        source = payload.get("source") or ""
        rate_headers = payload.get("rateHeaders")
        return cls(
            details=details if isinstance(details, str) else str(details),
            source=source if isinstance(source, str) else "",
            rate_headers=rate_headers if isinstance(rate_headers, dict) else {},
        )


def _header_hint(rate_headers: dict[str, Any], name: str) -> str:
    value = rate_headers.get(name)
    return "?" if value is None else str(value)


def describe_error(status_code: int, raw_body: bytes | str) -> str:
    body = ErrorBody.parse(raw_body)
    if status_code == 429:
        if body.source == "gemini":
            message = (
                f"Gemini rate limit. Remaining: {_header_hint(body.rate_headers, 'x-ratelimit-remaining')}. "
                f"Reset: {_header_hint(body.rate_headers, 'x-ratelimit-reset')}"
            )
        else:
            message = "Supabase rate limit. Try again shortly."
        if body.details:
            message += f" ({body.details[:180]})"
        return message
    if status_code == 402:
        return "API quota/credentials issue. Please check your AI key."
    if status_code == 403:
        return "Forbidden. Check function JWT verification setting or use anon key in Authorization header."
    return body.details or GENERIC_FAILURE
