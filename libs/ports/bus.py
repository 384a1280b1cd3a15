from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from shared.contracts.v1.messages import InboundMessage


class BusError(RuntimeError):
    """Base class for message-bus failures."""


class BusConnectionError(BusError):
    """Broker unreachable or rejected the credential."""


class BusPublishError(BusError):
    """A publish could not be handed to the broker."""


class MessageBusPort(ABC):
    """Subject-based pub/sub client with request/reply via reply subjects."""

    @abstractmethod
    async def connect(self) -> None: ...

    @abstractmethod
    async def subscribe(self, subject: str) -> AsyncIterator[InboundMessage]:
        """Subscribe now; the returned stream yields messages until the subscription ends."""

    @abstractmethod
    async def publish(self, destination: str, data: bytes) -> None: ...

    @abstractmethod
    async def close(self) -> None: ...


__all__ = [
    "BusError",
    "BusConnectionError",
    "BusPublishError",
    "MessageBusPort",
]
