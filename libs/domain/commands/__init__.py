from .builtin import DEFAULT_DISPATCHER, dispatch
from .dispatcher import Command, CommandDispatcher

__all__ = ["Command", "CommandDispatcher", "DEFAULT_DISPATCHER", "dispatch"]
