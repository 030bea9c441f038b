from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from chat_protocol.env import env_float, env_int

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 1
    delay_seconds: float = 1.2
    retry_statuses: frozenset[int] = frozenset({429})

    @classmethod
    def from_env(cls) -> RetryPolicy:
        retries = env_int("HEALTH_CHAT_RETRIES", 1)
        delay_seconds = env_float("HEALTH_CHAT_RETRY_DELAY_SECONDS", 1.2)
        return cls(retries=max(0, retries), delay_seconds=max(0.0, delay_seconds))


async def post_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    json: dict[str, Any],
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
) -> httpx.Response:
    # The returned response is opened in streaming mode; the caller closes it.
    attempt = 0
    while True:
        request = client.build_request("POST", url, json=json)
        response = await client.send(request, stream=True)
        if response.status_code not in policy.retry_statuses or attempt >= policy.retries:
            return response
        await response.aclose()
        attempt += 1
        logger.warning(
            "Chat relay returned %s; retrying in %.1fs (attempt %s of %s)",
            response.status_code,
            policy.delay_seconds,
            attempt,
            policy.retries,
        )
        await sleep(policy.delay_seconds)
