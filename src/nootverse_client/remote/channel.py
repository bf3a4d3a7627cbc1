"""The RPC channel to the remote actor.

The channel is a black box: it takes an actor method name plus positional
arguments and returns the decoded reply. Implementations raise
TransportError for network or credential failures and RejectedError when
the actor refuses the call.
"""
from typing import Any, Protocol, runtime_checkable

# Actor methods, grouped by record kind
NOTE_METHODS = (
    "addNote",
    "getAllOwnedNotes",
    "updateNote",
    "deleteNote",
    "searchNotes",
)
UNIVERSE_METHODS = (
    "createUniverse",
    "getMyUniverses",
    "getPublicUniverses",
    "updateUniverse",
    "deleteUniverse",
    "searchUniverses",
    "getStats",
)
ACTOR_METHODS = NOTE_METHODS + UNIVERSE_METHODS + ("whoami",)


@runtime_checkable
class ActorChannel(Protocol):
    """Anything that can invoke an actor method asynchronously."""

    async def call(self, method: str, *args: Any) -> Any:
        ...
