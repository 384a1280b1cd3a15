from .clock import FakeClockPort, MonotonicClockPort

__all__ = ["FakeClockPort", "MonotonicClockPort"]
