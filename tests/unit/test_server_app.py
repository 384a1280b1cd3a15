from __future__ import annotations

import asyncio
import logging

import pytest
from adapters.bus_inproc import InprocMessageBus
from adapters.time import FakeClockPort
from shared.contracts.v1.messages import InboundMessage

from apps.server.compose import ServerApp, format_elapsed


def _msg(payload: bytes, reply: str | None = "_INBOX.1") -> InboundMessage:
    return InboundMessage(subject="api", payload=payload, reply=reply)


def test_handle_publishes_reply_with_elapsed():
    bus = InprocMessageBus()
    app = ServerApp(bus, clock=FakeClockPort([10.0, 10.25]))

    out = asyncio.run(app.handle(_msg(b" PING ")))

    assert out.status == "sent"
    assert out.response == "pong"
    assert out.elapsed == pytest.approx(0.25)
    assert out.error is None
    assert bus.published == [("_INBOX.1", b"pong")]


def test_handle_without_reply_only_logs(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.INFO, logger="responder")
    bus = InprocMessageBus()
    app = ServerApp(bus, clock=FakeClockPort())

    out = asyncio.run(app.handle(_msg(b"status", reply=None)))

    assert out.status == "no-reply"
    assert bus.published == []
    assert "No reply subject provided" in caplog.text


def test_handle_publish_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.INFO, logger="responder")
    bus = InprocMessageBus(fail_publish=True)
    app = ServerApp(bus, clock=FakeClockPort([0.0, 0.002]))

    out = asyncio.run(app.handle(_msg(b"ping")))

    assert out.status == "failed"
    assert out.response == "pong"
    assert out.error and "rejected" in out.error
    assert "Failed to send response" in caplog.text
    assert "(2.00ms)" in caplog.text


def test_handle_decodes_invalid_utf8_lossily():
    bus = InprocMessageBus()
    app = ServerApp(bus, clock=FakeClockPort())

    out = asyncio.run(app.handle(_msg(b"echo \xff")))

    assert out.response == "Echo: \ufffd"
    assert bus.published == [("_INBOX.1", "Echo: \ufffd".encode())]


def test_serve_processes_in_arrival_order_until_stream_ends():
    bus = InprocMessageBus()
    bus.inject(b"ping", reply="r1")
    bus.inject(b"echo one", reply="r2")
    bus.inject(b"nope", reply=None)
    bus.inject(b"status", reply="r3")
    bus.end()

    handled = asyncio.run(ServerApp(bus, clock=FakeClockPort()).serve())

    assert handled == 4
    assert bus.subscriptions == ["api"]
    assert [dest for dest, _ in bus.published] == ["r1", "r2", "r3"]
    assert bus.published[1] == ("r2", b"Echo: one")


def test_serve_keeps_going_after_publish_failures():
    bus = InprocMessageBus(fail_publish=True)
    for _ in range(3):
        bus.inject(b"ping", reply="r")
    bus.end()

    assert asyncio.run(ServerApp(bus, clock=FakeClockPort()).serve()) == 3


def test_serve_ignores_other_subjects():
    bus = InprocMessageBus()
    bus.inject(b"ping", reply="r1", subject="other")
    bus.inject(b"ping", reply="r2")
    bus.end()

    assert asyncio.run(ServerApp(bus, clock=FakeClockPort()).serve()) == 1
    assert bus.published == [("r2", b"pong")]


def test_custom_handler_is_used():
    bus = InprocMessageBus()
    app = ServerApp(bus, clock=FakeClockPort(), handler=str.upper)

    out = asyncio.run(app.handle(_msg(b"abc")))

    assert out.response == "ABC"


@pytest.mark.parametrize(
    ("seconds", "text"),
    [(1.5, "1.50s"), (0.5, "500.00ms"), (0.000002, "2.00µs"), (5e-10, "0.50ns")],
)
def test_format_elapsed_units(seconds: float, text: str):
    assert format_elapsed(seconds) == text


class _OrderedBus(InprocMessageBus):
    async def subscribe(self, subject: str):
        stream = await super().subscribe(subject)
        logging.getLogger("responder").info("subscribed to %s", subject)
        return stream


def test_serve_announces_waiting_after_subscribing(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.INFO, logger="responder")
    bus = _OrderedBus()
    bus.end()

    asyncio.run(ServerApp(bus, clock=FakeClockPort()).serve())

    messages = [r.getMessage() for r in caplog.records]
    assert messages.index("subscribed to api") < messages.index(
        "Waiting for commands on 'api' subject..."
    )
