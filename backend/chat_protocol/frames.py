from __future__ import annotations

import logging

from pydantic import BaseModel, ValidationError

from .sse import DONE_SENTINEL

logger = logging.getLogger(__name__)

TERMINAL_FRAME = f"data: {DONE_SENTINEL}\n\n"


class Delta(BaseModel):
    content: str | None = None


class DeltaChoice(BaseModel):
    delta: Delta | None = None


class DeltaChunk(BaseModel):
    choices: list[DeltaChoice] | None = None

    @classmethod
    def for_content(cls, content: str) -> DeltaChunk:
        return cls(choices=[DeltaChoice(delta=Delta(content=content))])

    def content(self) -> str | None:
        if not self.choices:
            return None
        delta = self.choices[0].delta
        if delta is None:
            return None
        return delta.content


def encode_delta(content: str) -> str:
    return f"data: {DeltaChunk.for_content(content).model_dump_json()}\n\n"


def decode_delta(payload: str) -> str | None:
    try:
        chunk = DeltaChunk.model_validate_json(payload)
    except ValidationError:
        logger.debug("Skipping malformed delta frame: %s", payload[:200])
        return None
    return chunk.content()
