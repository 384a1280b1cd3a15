from .nats import NatsMessageBus, nats_url

__all__ = ["NatsMessageBus", "nats_url"]
