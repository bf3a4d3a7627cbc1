"""Channels to the Nootverse actor."""

from nootverse_client.remote.channel import ActorChannel
from nootverse_client.remote.http_channel import HttpActorChannel
from nootverse_client.remote.memory_actor import InMemoryActor, MemoryChannel

__all__ = [
    "ActorChannel",
    "HttpActorChannel",
    "InMemoryActor",
    "MemoryChannel",
]
