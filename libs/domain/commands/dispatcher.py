from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

Handler = Callable[["Command"], str]
Predicate = Callable[[str], bool]

# Unicode White_Space. str.strip() would also drop the U+001C..U+001F separators.
WHITESPACE = (
    "\t\n\x0b\x0c\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)


@dataclass(frozen=True)
class Command:
    """One inbound command after trimming.

    ``normalized`` is what rules match against; ``original`` keeps the
    caller's casing for messages that echo the input back.
    """

    original: str
    normalized: str

    @classmethod
    def parse(cls, raw: str) -> Command:
        trimmed = raw.strip(WHITESPACE)
        return cls(original=trimmed, normalized=trimmed.lower())


class CommandDispatcher:
    """Ordered (predicate, handler) rules; the first matching rule answers."""

    def __init__(self, fallback: Handler) -> None:
        self._rules: list[tuple[Predicate, Handler]] = []
        self._fallback = fallback

    def rule(self, predicate: Predicate):
        def deco(fn: Handler) -> Handler:
            self._rules.append((predicate, fn))
            return fn

        return deco

    def exact(self, text: str):
        return self.rule(lambda cmd: cmd == text)

    def prefix(self, text: str):
        return self.rule(lambda cmd: cmd.startswith(text))

    def dispatch(self, raw: str) -> str:
        cmd = Command.parse(raw)
        for matches, fn in self._rules:
            if matches(cmd.normalized):
                return fn(cmd)
        return self._fallback(cmd)
