from .bus import BusConnectionError, BusError, BusPublishError, MessageBusPort
from .time import ClockPort

__all__ = [
    "MessageBusPort",
    "BusError",
    "BusConnectionError",
    "BusPublishError",
    "ClockPort",
]
