from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any, Final

import nats
from nats.aio.client import Client
from nats.aio.subscription import Subscription
from nats.errors import Error as NatsError
from ports.bus import BusConnectionError, BusPublishError, MessageBusPort
from shared.contracts.v1.messages import InboundMessage

LOG: Final = logging.getLogger("bus.nats")


async def _log_client_error(ex: Exception) -> None:
    LOG.warning("%r", ex)


def nats_url(host: str, port: int) -> str:
    return f"nats://{host}:{port}"


class NatsMessageBus(MessageBusPort):
    """
    nats-py client behind MessageBusPort (token auth).
    Extra keyword options go straight to ``nats.connect``, e.g.
    ``max_reconnect_attempts`` / ``reconnect_time_wait``.
    """

    def __init__(
        self, url: str, token: str, connect_timeout_s: float = 2.0, **options: Any
    ) -> None:
        self.url = url
        self._token = token
        self._connect_timeout_s = connect_timeout_s
        self._options = options
        self._nc: Client | None = None

    def _require(self) -> Client:
        if self._nc is None:
            raise BusConnectionError("NATS client is not connected")
        return self._nc

    async def connect(self) -> None:
        try:
            self._nc = await nats.connect(
                servers=[self.url],
                token=self._token,
                connect_timeout=self._connect_timeout_s,
                **{"error_cb": _log_client_error, **self._options},
            )
        except (NatsError, OSError, asyncio.TimeoutError) as ex:
            raise BusConnectionError(f"Failed to connect to {self.url}: {ex!r}") from ex
        LOG.debug("Connected to %s", self.url)

    async def subscribe(self, subject: str) -> AsyncIterator[InboundMessage]:
        nc = self._require()
        sub = await nc.subscribe(subject)
        return self._messages(nc, sub)

    async def _messages(self, nc: Client, sub: Subscription) -> AsyncIterator[InboundMessage]:
        try:
            async for msg in sub.messages:
                yield InboundMessage(subject=msg.subject, payload=msg.data, reply=msg.reply)
        finally:
            if nc.is_connected:
                with contextlib.suppress(NatsError):
                    await sub.unsubscribe()

    async def publish(self, destination: str, data: bytes) -> None:
        nc = self._require()
        try:
            await nc.publish(destination, data)
        except NatsError as ex:
            raise BusPublishError(repr(ex)) from ex

    async def close(self) -> None:
        if self._nc is None:
            return
        nc, self._nc = self._nc, None
        if nc.is_closed:
            return
        try:
            await nc.drain()
        except NatsError:
            await nc.close()
