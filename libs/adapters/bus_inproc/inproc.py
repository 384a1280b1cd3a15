from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from ports.bus import BusPublishError, MessageBusPort
from shared.contracts.v1.messages import SUBJECT, InboundMessage


class InprocMessageBus(MessageBusPort):
    """Local asyncio-queue bus for single-process runs and tests."""

    def __init__(self, fail_publish: bool = False) -> None:
        self.fail_publish = fail_publish
        self.connected = False
        self.subscriptions: list[str] = []
        self.published: list[tuple[str, bytes]] = []
        self._q: asyncio.Queue[InboundMessage | None] = asyncio.Queue()

    @classmethod
    def create(cls) -> InprocMessageBus:
        return cls()

    async def connect(self) -> None:
        self.connected = True

    async def subscribe(self, subject: str) -> AsyncIterator[InboundMessage]:
        self.subscriptions.append(subject)
        return self._messages(subject)

    async def _messages(self, subject: str) -> AsyncIterator[InboundMessage]:
        while True:
            msg = await self._q.get()
            if msg is None:
                return
            if msg.subject == subject:
                yield msg

    async def publish(self, destination: str, data: bytes) -> None:
        if self.fail_publish:
            raise BusPublishError(f"publish to {destination!r} rejected")
        self.published.append((destination, bytes(data)))

    async def close(self) -> None:
        self.connected = False

    # Test/helper API: inject an inbound message
    def inject(self, payload: bytes, reply: str | None = None, subject: str = SUBJECT) -> None:
        self._q.put_nowait(InboundMessage(subject=subject, payload=payload, reply=reply))

    def end(self) -> None:
        """Terminate the subscription stream once queued messages drain."""
        self._q.put_nowait(None)
