# libs/domain/commands/builtin.py
from __future__ import annotations

from typing import Final

from .dispatcher import Command, CommandDispatcher

GREETING: Final = "Hello from Rust server! Command received."
STATUS_TEXT: Final = "Server is running and ready to process commands"
ECHO_PREFIX: Final = "echo "
AVAILABLE: Final = "ping, status, echo <message>"


def _unknown(cmd: Command) -> str:
    return f"Unknown command: '{cmd.original}'. Available commands: {AVAILABLE}"


DEFAULT_DISPATCHER: Final = CommandDispatcher(fallback=_unknown)


@DEFAULT_DISPATCHER.exact("hello from python!")
def _hello(cmd: Command) -> str:
    return GREETING


@DEFAULT_DISPATCHER.exact("ping")
def _ping(cmd: Command) -> str:
    return "pong"


@DEFAULT_DISPATCHER.exact("status")
def _status(cmd: Command) -> str:
    return STATUS_TEXT


@DEFAULT_DISPATCHER.prefix(ECHO_PREFIX)
def _echo(cmd: Command) -> str:
    # Sliced from the lowercased form, so echoed text comes back lowercase.
    return f"Echo: {cmd.normalized[len(ECHO_PREFIX):]}"


def dispatch(raw: str) -> str:
    """Map a command string to its reply. Total and side-effect free."""
    return DEFAULT_DISPATCHER.dispatch(raw)
