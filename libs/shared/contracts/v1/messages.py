from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SUBJECT: Literal["api"] = "api"

ReplyStatus = Literal["sent", "no-reply", "failed"]


@dataclass(frozen=True)
class InboundMessage:
    subject: str
    payload: bytes
    reply: str | None = None

    def __post_init__(self) -> None:
        # Clients report "no reply subject" as an empty string.
        if not self.reply:
            object.__setattr__(self, "reply", None)

    def text(self) -> str:
        """Payload as text; invalid UTF-8 becomes U+FFFD instead of raising."""
        return decode_payload(self.payload)


@dataclass(frozen=True)
class ReplyOutcome:
    response: str
    elapsed: float  # seconds, receipt -> before publish
    status: ReplyStatus
    error: str | None = None


def decode_payload(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


def encode_response(response: str) -> bytes:
    return response.encode("utf-8")
