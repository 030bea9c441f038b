from __future__ import annotations

import logging
from typing import AsyncIterator

import httpx
from pydantic import ValidationError

from chat_protocol import DONE_SENTINEL, TERMINAL_FRAME, aiter_sse_data, encode_delta

from .gemini import GeminiClient, to_gemini_contents
from .models import (
    UPSTREAM_SOURCE,
    GeminiChunk,
    RelayReply,
    UpstreamFailure,
    UpstreamOutcome,
    classify_fallback_status,
    classify_stream_status,
)
from .settings import RelaySettings

logger = logging.getLogger(__name__)

_QUOTA_HINT = "API quota exceeded or invalid API key. Please check your Gemini API configuration."


def extract_fragment(payload: str) -> str | None:
    if payload == DONE_SENTINEL:
        return None
    try:
        chunk = GeminiChunk.model_validate_json(payload)
    except ValidationError:
        logger.debug("Skipping malformed Gemini frame: %s", payload[:200])
        return None
    text = chunk.first_text()
    if not text:
        logger.debug("No text content found in Gemini frame")
        return None
    return text


def relay_status_for(upstream_status: int) -> int:
    if upstream_status == 429:
        return 429
    if upstream_status in {402, 403}:
        return 402
    return 500


def map_upstream_error(failure: UpstreamFailure, outcome: UpstreamOutcome) -> RelayReply:
    logger.error(
        "Gemini API error: status=%s outcome=%s rate_headers=%s details=%s",
        failure.status_code,
        outcome.value,
        failure.rate_headers,
        failure.text[:500],
    )
    status_code = relay_status_for(failure.status_code)
    if status_code == 429:
        body = {
            "error": "Rate limits exceeded (Gemini upstream).",
            "details": failure.text,
            "rateHeaders": failure.rate_headers,
            "source": UPSTREAM_SOURCE,
        }
    elif status_code == 402:
        body = {"error": _QUOTA_HINT, "details": failure.text, "source": UPSTREAM_SOURCE}
    else:
        body = {"error": "Gemini API error", "details": failure.text, "source": UPSTREAM_SOURCE}
    return RelayReply(status_code=status_code, outcome=outcome, body=body)


def _unreachable(exc: httpx.HTTPError, outcome: UpstreamOutcome) -> RelayReply:
    logger.error("Gemini API unreachable (%s): %s", outcome.value, exc)
    return RelayReply(
        status_code=500,
        outcome=outcome,
        body={"error": "Gemini API unreachable", "details": str(exc) or type(exc).__name__, "source": UPSTREAM_SOURCE},
    )


async def _single_frame(text: str) -> AsyncIterator[str]:
    yield encode_delta(text)
    yield TERMINAL_FRAME


class ChatRelay:
    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    async def relay(self, messages: list[dict[str, str]]) -> RelayReply:
        settings = RelaySettings.from_env()
        if not settings.api_key:
            logger.error("GEMINI_API_KEY is not configured")
            return RelayReply(status_code=500, body={"error": "GEMINI_API_KEY is not configured"})

        logger.info("Using Gemini model: %s", settings.model)
        contents = to_gemini_contents(messages)
        gemini = GeminiClient(settings, transport=self.transport)
        client = gemini.open_client()
        handed_off = False
        try:
            try:
                response = await gemini.open_stream(client, contents)
            except httpx.HTTPError as exc:
                return _unreachable(exc, UpstreamOutcome.OTHER_FAILURE)

            outcome = classify_stream_status(response.status_code)
            if outcome is UpstreamOutcome.STREAMING:
                handed_off = True
                return RelayReply(
                    status_code=200,
                    outcome=outcome,
                    frames=self._translate(response, client),
                )

            await response.aread()
            await response.aclose()
            failure = UpstreamFailure.from_response(response)
            if outcome is not UpstreamOutcome.OTHER_FAILURE:
                return map_upstream_error(failure, outcome)

            logger.warning("Gemini streaming call failed with %s; retrying without streaming", response.status_code)
            try:
                fallback = await gemini.generate(client, contents)
            except httpx.HTTPError as exc:
                return _unreachable(exc, UpstreamOutcome.FALLBACK_FAILURE)

            outcome = classify_fallback_status(fallback.status_code)
            if outcome is UpstreamOutcome.FALLBACK_SUCCESS:
                try:
                    text = GeminiChunk.model_validate_json(fallback.content).first_text() or ""
                except ValidationError:
                    return map_upstream_error(UpstreamFailure.from_response(fallback), UpstreamOutcome.FALLBACK_FAILURE)
                return RelayReply(status_code=200, outcome=outcome, frames=_single_frame(text))
            return map_upstream_error(UpstreamFailure.from_response(fallback), outcome)
        finally:
            if not handed_off:
                await client.aclose()

    async def _translate(self, response: httpx.Response, client: httpx.AsyncClient) -> AsyncIterator[str]:
        try:
            async for payload in aiter_sse_data(response.aiter_bytes()):
                fragment = extract_fragment(payload)
                if fragment:
                    yield encode_delta(fragment)
        except httpx.HTTPError as exc:
            logger.error("Gemini stream interrupted: %s", exc)
        finally:
            await response.aclose()
            await client.aclose()
        yield TERMINAL_FRAME
