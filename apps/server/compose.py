from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Final

from adapters.time import MonotonicClockPort
from domain.commands import dispatch
from ports.bus import BusPublishError, MessageBusPort
from ports.time import ClockPort
from shared.contracts.v1.messages import SUBJECT, InboundMessage, ReplyOutcome, encode_response

from apps.server.settings import ServerSettings

LOG: Final = logging.getLogger("responder")


def build_bus(settings: ServerSettings) -> MessageBusPort:
    bus: MessageBusPort

    if settings.bus_impl == "nats":
        from adapters.bus_nats import NatsMessageBus

        bus = NatsMessageBus(
            url=settings.nats_url,
            token=settings.nats_token.get_secret_value(),
            connect_timeout_s=settings.connect_timeout_s,
            max_reconnect_attempts=settings.max_reconnect_attempts,
            reconnect_time_wait=settings.reconnect_time_wait_s,
        )
    else:
        from adapters.bus_inproc import InprocMessageBus

        bus = InprocMessageBus.create()

    return bus


def format_elapsed(seconds: float) -> str:
    """Render a duration with two decimals in the largest unit below it (ns/µs/ms/s)."""
    for unit, scale in (("s", 1.0), ("ms", 1e-3), ("µs", 1e-6)):
        if seconds >= scale:
            return f"{seconds / scale:.2f}{unit}"
    return f"{seconds / 1e-9:.2f}ns"


class ServerApp:
    """Receive loop: one message at a time, decode -> dispatch -> reply."""

    def __init__(
        self,
        bus: MessageBusPort,
        clock: ClockPort | None = None,
        handler: Callable[[str], str] = dispatch,
        subject: str = SUBJECT,
    ) -> None:
        self.bus = bus
        self.clock = clock or MonotonicClockPort()
        self.handler = handler
        self.subject = subject

    async def handle(self, msg: InboundMessage) -> ReplyOutcome:
        started = self.clock.now()
        command = msg.text()
        LOG.info("Received command: %s", command)

        response = self.handler(command)
        elapsed = self.clock.now() - started

        if msg.reply is None:
            LOG.info(
                "No reply subject provided, response: %s (%s)", response, format_elapsed(elapsed)
            )
            return ReplyOutcome(response=response, elapsed=elapsed, status="no-reply")

        try:
            await self.bus.publish(msg.reply, encode_response(response))
        except BusPublishError as ex:
            LOG.error("Failed to send response: %s (%s)", ex, format_elapsed(elapsed))
            return ReplyOutcome(response=response, elapsed=elapsed, status="failed", error=str(ex))

        LOG.info("Sent response: %s (%s)", response, format_elapsed(elapsed))
        return ReplyOutcome(response=response, elapsed=elapsed, status="sent")

    async def serve(self) -> int:
        """Run until the subscription ends. Returns the number of messages handled."""
        messages = await self.bus.subscribe(self.subject)
        LOG.info("Waiting for commands on '%s' subject...", self.subject)
        handled = 0
        async for msg in messages:
            await self.handle(msg)
            handled += 1
        LOG.info("Subscription on '%s' ended after %d message(s).", self.subject, handled)
        return handled
