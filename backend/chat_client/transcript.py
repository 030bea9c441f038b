from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Role = Literal["user", "assistant"]

DEFAULT_GREETING = "Hello! I'm your AI health assistant. How can I help you today?"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def as_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def apply_fragment(transcript: list[Message], fragment: str) -> list[Message]:
    """Return a new transcript with ``fragment`` merged into the trailing assistant reply.

    The last assistant message grows in place; if the transcript ends with a
    user message a new assistant message is started. The input list is left
    untouched.
    """
    if transcript and transcript[-1].role == "assistant":
        last = transcript[-1]
        return [*transcript[:-1], Message(role="assistant", content=last.content + fragment)]
    return [*transcript, Message(role="assistant", content=fragment)]
