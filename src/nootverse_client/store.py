"""Typed wrappers around the actor's record operations.

A store turns untyped channel replies into Note / Universe models and
typed failures. Stores never retry and never cache; that is the sync
engine's job.
"""
import logging
from typing import Any, Callable, Generic, List, Optional, Protocol, Tuple, TypeVar

import pydantic

from nootverse_client.exceptions import (
    ErrorCode,
    RejectedError,
    StalePositionError,
    ValidationError,
)
from nootverse_client.models.schema import (
    Note,
    NoteInput,
    RecordKind,
    Scope,
    Stats,
    Universe,
    UniverseInput,
    generate_id,
    now_ms,
)
from nootverse_client.observability import timed_operation
from nootverse_client.remote.channel import ActorChannel

logger = logging.getLogger(__name__)

T = TypeVar("T", Note, Universe)
I = TypeVar("I", NoteInput, UniverseInput)


class RecordStore(Protocol[T, I]):
    """Capability set a SyncEngine is parameterized over."""

    kind: RecordKind
    server_search: bool
    scopes: Tuple[Scope, ...]
    mutable_scopes: Tuple[Scope, ...]
    search_scope: Scope

    async def load(self, scope: Scope) -> List[T]: ...

    async def create(self, record_input: I, record_id: Optional[str] = None) -> T: ...

    async def update_at(self, position: int, record: T, record_input: I) -> T: ...

    async def delete_at(self, position: int) -> None: ...

    async def search(self, query: str) -> List[T]: ...

    def to_input(self, record: T) -> I: ...


class _BaseStore(Generic[T]):
    """Shared call plumbing: timing, logging and reply decoding."""

    kind: RecordKind
    scopes: Tuple[Scope, ...] = (Scope.OWNED,)
    mutable_scopes: Tuple[Scope, ...] = (Scope.OWNED,)
    search_scope: Scope = Scope.OWNED
    server_search = False

    def __init__(self, channel: ActorChannel):
        self.channel = channel

    def rebind(self, channel: ActorChannel) -> None:
        """Use a new channel, e.g. after the session credential changed."""
        self.channel = channel

    async def _call(self, method: str, *args: Any, **context: Any) -> Any:
        with timed_operation(method, **context) as op:
            result = await self.channel.call(method, *args)
            if isinstance(result, list):
                op["result_count"] = len(result)
            return result

    @staticmethod
    def _decode(method: str, decoder: Callable[[Any], Any], payload: Any) -> Any:
        try:
            return decoder(payload)
        except (KeyError, TypeError, ValueError, pydantic.ValidationError) as e:
            logger.error(f"Undecodable reply from {method}: {e}")
            raise RejectedError(
                f"Malformed reply from {method}",
                method=method,
                reason=str(e),
                code=ErrorCode.MALFORMED_RESPONSE,
            ) from e

    def _decode_list(self, method: str, decoder: Callable[[Any], T], payload: Any) -> List[T]:
        if not isinstance(payload, list):
            raise RejectedError(
                f"Expected a list from {method}",
                method=method,
                code=ErrorCode.MALFORMED_RESPONSE,
            )
        return [self._decode(method, decoder, item) for item in payload]

    def _check_scope(self, scope: Scope) -> None:
        if scope not in self.scopes:
            raise ValidationError(
                f"{self.kind.value} records have no {scope.value} scope",
                field="scope",
                value=scope.value,
                code=ErrorCode.UNSUPPORTED_SCOPE,
            )

    async def whoami(self) -> str:
        """Identity the actor derives from the channel credential."""
        return str(await self._call("whoami"))


class NoteStore(_BaseStore[Note]):
    """Notes: client-generated ids, owned scope only, local search."""

    kind = RecordKind.NOTE

    async def load(self, scope: Scope = Scope.OWNED) -> List[Note]:
        self._check_scope(scope)
        payload = await self._call("getAllOwnedNotes")
        return self._decode_list("getAllOwnedNotes", Note.from_wire, payload)

    async def create(self, record_input: NoteInput, record_id: Optional[str] = None) -> Note:
        note = Note(
            id=record_id or generate_id(),
            title=record_input.title,
            content=record_input.content,
            tags=record_input.tags,
        )
        await self._call(
            "addNote", note.id, note.title, note.content, list(note.tags), record_id=note.id
        )
        logger.info(f"Created note {note.id}")
        return note

    async def update_at(self, position: int, record: Note, record_input: NoteInput) -> Note:
        # The id rides along for validation only; the actor addresses by position
        updated = record.model_copy(
            update={
                "title": record_input.title,
                "content": record_input.content,
                "tags": list(record_input.tags),
            }
        )
        await self._call(
            "updateNote",
            position,
            record.id,
            updated.title,
            updated.content,
            list(updated.tags),
            position=position,
            record_id=record.id,
        )
        return updated

    async def delete_at(self, position: int) -> None:
        await self._call("deleteNote", position, position=position)

    async def search(self, query: str) -> List[Note]:
        payload = await self._call("searchNotes", query, query=query[:50])
        return self._decode_list("searchNotes", Note.from_wire, payload)

    def to_input(self, record: Note) -> NoteInput:
        return NoteInput.from_note(record)


class UniverseStore(_BaseStore[Universe]):
    """Universes: server-assigned ids, owned and public scopes, remote search."""

    kind = RecordKind.UNIVERSE
    scopes = (Scope.OWNED, Scope.PUBLIC)
    # searchUniverses only ever looks at published universes
    search_scope = Scope.PUBLIC
    server_search = True

    def __init__(self, channel: ActorChannel, clock_ms: Callable[[], int] = now_ms):
        super().__init__(channel)
        self._clock_ms = clock_ms

    async def load(self, scope: Scope = Scope.OWNED) -> List[Universe]:
        self._check_scope(scope)
        method = "getMyUniverses" if scope is Scope.OWNED else "getPublicUniverses"
        payload = await self._call(method)
        return self._decode_list(method, Universe.from_wire, payload)

    async def create(
        self, record_input: UniverseInput, record_id: Optional[str] = None
    ) -> Universe:
        if record_id is not None:
            raise ValidationError(
                "Universe identifiers are assigned by the actor",
                field="record_id",
                value=record_id,
            )
        universe_id = await self._call("createUniverse", record_input.to_wire())
        if not isinstance(universe_id, str) or not universe_id:
            raise RejectedError(
                "createUniverse returned no identifier",
                method="createUniverse",
                code=ErrorCode.MALFORMED_RESPONSE,
            )
        # The actor stamps its own times; ours stand in until the next reload
        stamp = self._clock_ms()
        logger.info(f"Created universe {universe_id}")
        return Universe(
            id=universe_id,
            title=record_input.title,
            description=record_input.description,
            content=record_input.content,
            is_public=record_input.is_public,
            tags=record_input.tags,
            created_at_ms=stamp,
            updated_at_ms=stamp,
        )

    async def update_at(
        self, position: int, record: Universe, record_input: UniverseInput
    ) -> Universe:
        ok = await self._call(
            "updateUniverse",
            position,
            record_input.to_wire(),
            position=position,
            record_id=record.id,
        )
        if not ok:
            raise StalePositionError(position, expected_id=record.id)
        return record.model_copy(
            update={
                "title": record_input.title,
                "description": record_input.description,
                "content": record_input.content,
                "is_public": record_input.is_public,
                "tags": list(record_input.tags),
                "updated_at_ms": max(self._clock_ms(), record.created_at_ms),
            }
        )

    async def delete_at(self, position: int) -> None:
        ok = await self._call("deleteUniverse", position, position=position)
        if not ok:
            raise StalePositionError(position)

    async def search(self, query: str) -> List[Universe]:
        payload = await self._call("searchUniverses", query, query=query[:50])
        return self._decode_list("searchUniverses", Universe.from_wire, payload)

    async def stats(self) -> Stats:
        payload = await self._call("getStats")
        return self._decode("getStats", Stats.from_wire, payload)

    def to_input(self, record: Universe) -> UniverseInput:
        return UniverseInput.from_universe(record)
