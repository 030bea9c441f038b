from .gemini import GeminiClient, to_gemini_contents
from .models import (
    RATE_LIMIT_HEADERS,
    UPSTREAM_SOURCE,
    GeminiChunk,
    RelayReply,
    UpstreamFailure,
    UpstreamOutcome,
    classify_fallback_status,
    classify_stream_status,
)
from .relay import ChatRelay, extract_fragment, map_upstream_error, relay_status_for
from .settings import DEFAULT_MODEL, RelaySettings

__all__ = [
    "DEFAULT_MODEL",
    "RATE_LIMIT_HEADERS",
    "UPSTREAM_SOURCE",
    "ChatRelay",
    "GeminiChunk",
    "GeminiClient",
    "RelayReply",
    "RelaySettings",
    "UpstreamFailure",
    "UpstreamOutcome",
    "classify_fallback_status",
    "classify_stream_status",
    "extract_fragment",
    "map_upstream_error",
    "relay_status_for",
    "to_gemini_contents",
]
