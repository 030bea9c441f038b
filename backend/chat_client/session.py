from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Callable

import httpx

from chat_protocol import DONE_SENTINEL, aiter_sse_data, decode_delta

from .errors import GENERIC_FAILURE, NETWORK_FAILURE, ChatClientError, describe_error
from .retry import RetryPolicy, Sleep, post_with_retry
from .transcript import DEFAULT_GREETING, Message, apply_fragment

logger = logging.getLogger(__name__)

DEFAULT_CHAT_URL = "http://localhost:8000/health-ai-chat"


@dataclass(frozen=True)
class Notification:
    description: str
    title: str = "Error"
    variant: str = "destructive"


async def aiter_delta_fragments(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    async for payload in aiter_sse_data(chunks):
        if payload == DONE_SENTINEL:
            return
        content = decode_delta(payload)
        if content:
            yield content


class ChatSession:
    def __init__(
        self,
        url: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        retry: RetryPolicy | None = None,
        greeting: str | None = DEFAULT_GREETING,
        timeout_seconds: float = 60.0,
        on_update: Callable[[list[Message]], None] | None = None,
        on_notify: Callable[[Notification], None] | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self.url = url or os.getenv("HEALTH_CHAT_URL") or DEFAULT_CHAT_URL
        self.transport = transport
        self.retry = retry or RetryPolicy.from_env()
        self.timeout_seconds = timeout_seconds
        self.on_update = on_update
        self.on_notify = on_notify
        self._sleep = sleep or asyncio.sleep
        self.messages: list[Message] = [Message(role="assistant", content=greeting)] if greeting else []
        self.notifications: list[Notification] = []
        self.is_loading = False

    async def send_message(self, text: str) -> bool:
        if not text.strip() or self.is_loading:
            return False

        self._set_messages([*self.messages, Message(role="user", content=text)])
        self.is_loading = True
        try:
            await self._exchange()
        except ChatClientError as exc:
            self._notify(str(exc))
        except httpx.HTTPError as exc:
            logger.warning("Chat request failed: %s", exc)
            self._notify(NETWORK_FAILURE)
        except Exception:
            logger.exception("Chat request failed unexpectedly")
            self._notify(GENERIC_FAILURE)
        finally:
            self.is_loading = False
        return True

    async def _exchange(self) -> None:
        payload = {"messages": [message.as_payload() for message in self.messages]}
        async with httpx.AsyncClient(
            transport=self.transport,
            timeout=httpx.Timeout(self.timeout_seconds, connect=8.0),
        ) as client:
            response = await post_with_retry(client, self.url, json=payload, policy=self.retry, sleep=self._sleep)
            try:
                if not response.is_success:
                    raw_body = await response.aread()
                    logger.warning("AI function error response: status=%s body=%s", response.status_code, raw_body[:500])
                    raise ChatClientError(describe_error(response.status_code, raw_body))
                async for fragment in aiter_delta_fragments(response.aiter_bytes()):
                    self._set_messages(apply_fragment(self.messages, fragment))
            finally:
                await response.aclose()

    def _set_messages(self, messages: list[Message]) -> None:
        self.messages = messages
        if self.on_update is not None:
            self.on_update(messages)

    def _notify(self, description: str) -> None:
        notification = Notification(description=description)
        self.notifications.append(notification)
        if self.on_notify is not None:
            self.on_notify(notification)
