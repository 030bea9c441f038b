from __future__ import annotations

import codecs
from typing import AsyncIterable, AsyncIterator

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def data_payload(line: str) -> str | None:
    if line.endswith("\r"):
        line = line[:-1]
    if not line.strip() or line.startswith(":"):
        return None
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX) :].strip()


class SSEDataParser:
    """Turns arbitrarily split bytes into the payloads of complete ``data:`` lines.

    A line is only emitted once its terminating newline has arrived, so the
    payloads produced for a body do not depend on where the body was split.
    Call :meth:`close` once the byte source is exhausted to release a final
    unterminated line.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._payloads(lines)

    def close(self) -> list[str]:
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._payloads([tail]) if tail else []

    @staticmethod
    def _payloads(lines: list[str]) -> list[str]:
        payloads: list[str] = []
        for line in lines:
            payload = data_payload(line)
            if payload is not None:
                payloads.append(payload)
        return payloads


async def aiter_sse_data(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    parser = SSEDataParser()
    async for chunk in chunks:
        for payload in parser.feed(chunk):
            yield payload
    for payload in parser.close():
        yield payload
