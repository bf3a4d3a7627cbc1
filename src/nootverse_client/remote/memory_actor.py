"""In-process actor with the same positional semantics as the remote one.

Used by the test suite and by ``nootverse --memory`` for offline demos.
Owned lists are per principal; update and delete address records by their
position in the caller's own list, exactly like the deployed actor.
"""
import asyncio
import copy
import itertools
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from nootverse_client.exceptions import RejectedError
from nootverse_client.models.schema import ANONYMOUS_PRINCIPAL

logger = logging.getLogger(__name__)


def _matches(query: str, *fields: Any) -> bool:
    needle = query.lower()
    for field in fields:
        if isinstance(field, list):
            if any(needle in item.lower() for item in field):
                return True
        elif needle in str(field).lower():
            return True
    return False


class InMemoryActor:
    """Holds notes and universes in plain lists, keyed by caller principal."""

    def __init__(self, clock_ns: Optional[Callable[[], int]] = None):
        self._clock_ns = clock_ns or time.time_ns
        self._notes: Dict[str, List[Dict[str, Any]]] = {}
        self._universes: List[Dict[str, Any]] = []
        self._ids = itertools.count(1)
        self.calls: List[str] = []

    def channel(self, credential: Optional[str] = None) -> "MemoryChannel":
        """Return a channel whose caller principal is the credential itself."""
        return MemoryChannel(self, credential or ANONYMOUS_PRINCIPAL)

    # -- dispatch -----------------------------------------------------------

    async def dispatch(self, principal: str, method: str, args: tuple) -> Any:
        # Every call suspends once so callers interleave as they would remotely
        await asyncio.sleep(0)
        self.calls.append(method)
        handler = getattr(self, f"_op_{method}", None)
        if handler is None:
            raise RejectedError(f"Unknown actor method '{method}'", method=method)
        result = handler(principal, *args)
        return copy.deepcopy(result)

    def _require_caller(self, principal: str, method: str) -> None:
        if principal == ANONYMOUS_PRINCIPAL:
            raise RejectedError(
                "Anonymous callers cannot modify records",
                method=method,
                reason="anonymous caller",
            )

    def _owned_universes(self, principal: str) -> List[Dict[str, Any]]:
        return [u for u in self._universes if u["owner"] == principal]

    @staticmethod
    def _public_view(universe: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in universe.items() if k != "owner"}

    # -- notes --------------------------------------------------------------

    def _op_addNote(self, principal, note_id, title, content, tags):
        self._require_caller(principal, "addNote")
        self._notes.setdefault(principal, []).append(
            {"id": note_id, "title": title, "content": content, "tags": list(tags)}
        )
        return None

    def _op_getAllOwnedNotes(self, principal):
        return self._notes.get(principal, [])

    def _op_updateNote(self, principal, index, note_id, title, content, tags):
        self._require_caller(principal, "updateNote")
        notes = self._notes.get(principal, [])
        index = int(index)
        if not 0 <= index < len(notes):
            raise RejectedError("Note index out of range", method="updateNote", reason=str(index))
        notes[index] = {"id": note_id, "title": title, "content": content, "tags": list(tags)}
        return None

    def _op_deleteNote(self, principal, index):
        self._require_caller(principal, "deleteNote")
        notes = self._notes.get(principal, [])
        index = int(index)
        if not 0 <= index < len(notes):
            raise RejectedError("Note index out of range", method="deleteNote", reason=str(index))
        del notes[index]
        return None

    def _op_searchNotes(self, principal, query):
        return [
            n for n in self._notes.get(principal, [])
            if _matches(query, n["title"], n["content"], n["tags"])
        ]

    # -- universes ----------------------------------------------------------

    def _op_createUniverse(self, principal, universe_input):
        self._require_caller(principal, "createUniverse")
        now = self._clock_ns()
        universe_id = f"universe-{next(self._ids)}"
        self._universes.append(
            {
                "id": universe_id,
                "title": universe_input["title"],
                "description": universe_input["description"],
                "content": universe_input["content"],
                "isPublic": universe_input["isPublic"],
                "tags": list(universe_input["tags"]),
                "createdAt": now,
                "updatedAt": now,
                "owner": principal,
            }
        )
        return universe_id

    def _op_getMyUniverses(self, principal):
        return [self._public_view(u) for u in self._owned_universes(principal)]

    def _op_getPublicUniverses(self, principal):
        return [self._public_view(u) for u in self._universes if u["isPublic"]]

    def _op_updateUniverse(self, principal, index, universe_input):
        self._require_caller(principal, "updateUniverse")
        owned = self._owned_universes(principal)
        index = int(index)
        if not 0 <= index < len(owned):
            return False
        owned[index].update(
            title=universe_input["title"],
            description=universe_input["description"],
            content=universe_input["content"],
            isPublic=universe_input["isPublic"],
            tags=list(universe_input["tags"]),
            updatedAt=self._clock_ns(),
        )
        return True

    def _op_deleteUniverse(self, principal, index):
        self._require_caller(principal, "deleteUniverse")
        owned = self._owned_universes(principal)
        index = int(index)
        if not 0 <= index < len(owned):
            return False
        self._universes.remove(owned[index])
        return True

    def _op_searchUniverses(self, principal, query):
        return [
            self._public_view(u) for u in self._universes
            if u["isPublic"]
            and _matches(query, u["title"], u["description"], u["content"], u["tags"])
        ]

    def _op_getStats(self, principal):
        return {
            "totalUniverses": len(self._universes),
            "publicUniverses": sum(1 for u in self._universes if u["isPublic"]),
            "totalUsers": len({u["owner"] for u in self._universes}),
        }

    def _op_whoami(self, principal):
        return principal


class MemoryChannel:
    """ActorChannel bound to one caller principal of an InMemoryActor."""

    def __init__(self, actor: InMemoryActor, principal: str):
        self.actor = actor
        self.principal = principal

    async def call(self, method: str, *args: Any) -> Any:
        return await self.actor.dispatch(self.principal, method, args)
