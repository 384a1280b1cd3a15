from .inproc import InprocMessageBus

__all__ = ["InprocMessageBus"]
