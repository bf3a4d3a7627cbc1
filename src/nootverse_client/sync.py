"""Sync engine: keeps a RecordCache consistent with one remote list.

The engine always calls the actor first and mutates the cache only after
the call succeeded, so no rollback is ever needed. Update and delete are
addressed by position; before each one the engine checks that the cached
record at that position still carries the identifier the caller saw.
"""
import itertools
import logging
from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from nootverse_client.cache import RecordCache
from nootverse_client.exceptions import (
    ErrorCode,
    InvalidTransitionError,
    NootverseError,
    StalePositionError,
    ValidationError,
)
from nootverse_client.filtering import collect_tags, filter_by_tag, filter_records
from nootverse_client.models.schema import (
    Note,
    NoteInput,
    Scope,
    Session,
    Universe,
    UniverseInput,
)
from nootverse_client.observability import traced
from nootverse_client.store import RecordStore
from nootverse_client.workflow import (
    ConfirmingDelete,
    Creating,
    DialogState,
    DialogWorkflow,
    Editing,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", Note, Universe)
I = TypeVar("I", NoteInput, UniverseInput)


@dataclass(frozen=True)
class Notice:
    """A dismissible, user-visible report of a failed operation."""

    id: int
    operation: str
    message: str
    code: ErrorCode
    error: str

    @property
    def forces_reload(self) -> bool:
        return self.code is ErrorCode.STALE_POSITION


@dataclass(frozen=True)
class ViewItem(Generic[T]):
    """A displayed record and its cache position (None if not cached)."""

    position: Optional[int]
    record: T


class SyncEngine(Generic[T, I]):
    """Mediates between one RecordCache and the RecordStore behind it.

    One engine exists per (record kind, scope). The session is an explicit
    value; replacing it reloads or clears the cache.
    """

    def __init__(
        self,
        store: RecordStore,
        scope: Scope = Scope.OWNED,
        session: Optional[Session] = None,
        workflow: Optional[DialogWorkflow] = None,
        server_search: Optional[bool] = None,
    ):
        """Initialize the engine.

        Args:
            store: Typed RemoteStore for the record kind.
            scope: Which remote list the cache mirrors.
            session: Initial session; anonymous when omitted.
            workflow: Dialog state machine, created when omitted.
            server_search: Force remote (True) or local (False) search.
                Defaults to remote only when the store searches this scope.
        """
        self.store = store
        self.scope = scope
        self.cache: RecordCache[T] = RecordCache()
        self.workflow = workflow or DialogWorkflow()
        self._session = session or Session.anonymous()
        self._session_generation = 0
        self._load_ticket = 0
        self._search_ticket = 0
        self._notices: List[Notice] = []
        self._notice_ids = itertools.count(1)
        self._query = ""
        self._tag: Optional[str] = None
        self._remote_results: Optional[List[T]] = None
        self.loading = False
        self.needs_reload = False
        if server_search is None:
            server_search = store.server_search and scope is store.search_scope
        self.server_search = server_search

    # -- session ------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def requires_auth(self) -> bool:
        return self.scope is Scope.OWNED

    @property
    def read_only(self) -> bool:
        return self.scope not in self.store.mutable_scopes

    async def set_session(self, session: Session) -> bool:
        """Adopt a new session: reload when it may read, clear otherwise."""
        self._session = session
        self._session_generation += 1
        self._reset()
        if session.authenticated or not self.requires_auth:
            return await self.load()
        logger.info(f"Session signed out; cleared {self.store.kind.value} cache")
        return False

    def _reset(self) -> None:
        # Results of loads and searches started under the old session are dropped
        self._load_ticket += 1
        self._search_ticket += 1
        self.loading = False
        self.cache.clear()
        self.workflow.close()
        self._query = ""
        self._tag = None
        self._remote_results = None

    # -- notices ------------------------------------------------------------

    @property
    def notices(self) -> List[Notice]:
        return list(self._notices)

    def post_notice(self, error: NootverseError, operation: str) -> Notice:
        notice = Notice(
            id=next(self._notice_ids),
            operation=operation,
            message=error.message,
            code=error.code,
            error=type(error).__name__,
        )
        self._notices.append(notice)
        logger.warning(f"{self.store.kind.value} {operation} failed: {error}")
        return notice

    def dismiss_notice(self, notice: Notice) -> None:
        self._notices = [n for n in self._notices if n.id != notice.id]

    def clear_notices(self) -> None:
        self._notices.clear()

    # -- load ---------------------------------------------------------------

    @traced("sync.load")
    async def load(self) -> bool:
        """Full reload of the scope; only the latest in-flight load applies."""
        if self.requires_auth and not self._session.authenticated:
            logger.debug(f"Skipping {self.store.kind.value} load: not signed in")
            return False

        self._load_ticket += 1
        ticket = self._load_ticket
        self.loading = True
        try:
            records = await self.store.load(self.scope)
        except NootverseError as e:
            if ticket == self._load_ticket:
                self.loading = False
                self.post_notice(e, "load")
            return False

        if ticket != self._load_ticket:
            logger.info(
                f"Discarding superseded {self.store.kind.value} load "
                f"(ticket {ticket}, latest {self._load_ticket})"
            )
            return False

        self.loading = False
        self.cache.replace_all(records)
        self.needs_reload = False
        return True

    refresh = load

    # -- dialogs ------------------------------------------------------------

    def open_create(self) -> DialogState:
        self._require_writable()
        return self.workflow.begin_create()

    def open_edit(self, position: int) -> DialogState:
        self._require_writable()
        return self.workflow.begin_edit(position, self.cache.record_at(position))

    def open_view(self, position: int) -> DialogState:
        return self.workflow.begin_view(position, self.cache.record_at(position))

    def request_delete(self, position: int) -> DialogState:
        self._require_writable()
        return self.workflow.begin_delete(position, self.cache.record_at(position))

    async def cancel(self) -> None:
        """Close the active dialog, reloading if positions became unreliable."""
        self.workflow.close()
        if self.needs_reload:
            await self.load()

    async def commit(self, record_input: I) -> Optional[T]:
        """Save the editor contents for the active Creating/Editing dialog.

        The dialog closes on success and stays open on failure so the
        input can be retried, except after a stale position.
        """
        state = self.workflow.state
        if isinstance(state, Creating):
            result = await self.create(record_input)
        elif isinstance(state, Editing):
            result = await self.update_at(state.position, state.record.id, record_input)
        else:
            raise InvalidTransitionError(type(state).__name__, "commit")

        if result is not None:
            self.workflow.close_if_current(state)
        return result

    async def confirm_delete(self) -> bool:
        """Carry out the delete the user has just confirmed."""
        state = self.workflow.state
        if not isinstance(state, ConfirmingDelete):
            raise InvalidTransitionError(type(state).__name__, "confirm delete")

        deleted = await self.delete_at(state.position, state.record_id)
        if deleted:
            self.workflow.close_if_current(state)
        return deleted

    # -- mutations ----------------------------------------------------------

    def _require_writable(self) -> None:
        if self.read_only:
            raise ValidationError(
                f"The {self.scope.value} {self.store.kind.value} list is read-only",
                field="scope",
                value=self.scope.value,
                code=ErrorCode.READ_ONLY_SCOPE,
            )
        if self.requires_auth and not self._session.authenticated:
            raise ValidationError(f"Please sign in to change {self.store.kind.value}s")

    def _validated(self, position: int, record_id: str) -> T:
        record = self.cache.record_at(position)
        if record.id != record_id:
            raise StalePositionError(position, expected_id=record_id, length=len(self.cache))
        return record

    async def _recover_stale(self, error: StalePositionError, operation: str) -> None:
        self.post_notice(error, operation)
        self.workflow.close()
        self.needs_reload = True
        await self.load()

    async def _drop_older_loads(self, operation: str) -> None:
        # Snapshots requested before the actor accepted this change describe the old list
        self._load_ticket += 1
        if self.loading:
            logger.info(f"Reloading after {operation}: an older load was in flight")
            self.loading = False
            self.needs_reload = True
            await self.load()

    def _superseded(self, generation: int, operation: str) -> bool:
        if generation != self._session_generation:
            logger.info(f"Dropping {operation} result: session changed while in flight")
            return True
        return False

    @traced("sync.create")
    async def create(self, record_input: I, record_id: Optional[str] = None) -> Optional[T]:
        """Create remotely, then append to the cache.

        ``record_id`` is forwarded for kinds whose identifiers the client
        chooses; otherwise the store generates or receives one.
        """
        generation = self._session_generation
        try:
            self._require_writable()
            record_input.require_title()
            record = await self.store.create(record_input, record_id)
        except NootverseError as e:
            self.post_notice(e, "create")
            return None

        if self._superseded(generation, "create"):
            return record
        if self.cache.position_of(record.id) is None:
            self.cache.insert_end(record)
        await self._drop_older_loads("create")
        return record

    @traced("sync.update")
    async def update_at(self, position: int, record_id: str, record_input: I) -> Optional[T]:
        """Update the record at ``position`` after checking it is ``record_id``."""
        generation = self._session_generation
        try:
            self._require_writable()
            record_input.require_title()
            current = self._validated(position, record_id)
            updated = await self.store.update_at(position, current, record_input)
        except StalePositionError as e:
            await self._recover_stale(e, "update")
            return None
        except NootverseError as e:
            self.post_notice(e, "update")
            return None

        if self._superseded(generation, "update"):
            return updated
        self._apply_update(position, updated)
        await self._drop_older_loads("update")
        return updated

    @traced("sync.delete")
    async def delete_at(self, position: int, record_id: str) -> bool:
        """Delete the record at ``position`` after checking it is ``record_id``."""
        generation = self._session_generation
        try:
            self._require_writable()
            self._validated(position, record_id)
            await self.store.delete_at(position)
        except StalePositionError as e:
            await self._recover_stale(e, "delete")
            return False
        except NootverseError as e:
            self.post_notice(e, "delete")
            return False

        if self._superseded(generation, "delete"):
            return True
        self._apply_delete(position, record_id)
        await self._drop_older_loads("delete")
        return True

    def _locate(self, position: int, record_id: str) -> Optional[int]:
        # A reload may have landed while the call was in flight
        if 0 <= position < len(self.cache) and self.cache.record_at(position).id == record_id:
            return position
        return self.cache.position_of(record_id)

    def _apply_update(self, position: int, updated: T) -> None:
        found = self._locate(position, updated.id)
        if found is None:
            self.needs_reload = True
            return
        self.cache.replace_at(found, updated)
        if self._remote_results is not None:
            self._remote_results = [
                updated if r.id == updated.id else r for r in self._remote_results
            ]

    def _apply_delete(self, position: int, record_id: str) -> None:
        found = self._locate(position, record_id)
        if found is not None:
            self.cache.remove_at(found)
            position = found
        # Every cached position after the deleted one now points one record further
        self.workflow.invalidate_from(position)
        if self._remote_results is not None:
            self._remote_results = [r for r in self._remote_results if r.id != record_id]

    # -- search and view ----------------------------------------------------

    @property
    def query(self) -> str:
        return self._query

    @property
    def tag(self) -> Optional[str]:
        return self._tag

    @traced("sync.search")
    async def search(self, query: str) -> List[ViewItem[T]]:
        """Set the search query and return the resulting view.

        Remote-search engines only call the actor for non-blank queries;
        a blank query shows the cached list without a round trip.
        """
        self._query = query
        self._tag = None
        if not self.server_search:
            return self.view

        self._search_ticket += 1
        ticket = self._search_ticket
        if not query.strip():
            self._remote_results = None
            if not self.cache.loaded:
                await self.load()
            return self.view

        try:
            results = await self.store.search(query)
        except NootverseError as e:
            if ticket == self._search_ticket:
                self.post_notice(e, "search")
            return self.view

        if ticket == self._search_ticket:
            self._remote_results = results
        return self.view

    def filter_by_tag(self, tag: str) -> List[ViewItem[T]]:
        """Show only cached records carrying ``tag``; clears the query."""
        self._search_ticket += 1
        self._query = ""
        self._remote_results = None
        self._tag = tag
        return self.view

    def clear_filters(self) -> List[ViewItem[T]]:
        self._search_ticket += 1
        self._query = ""
        self._tag = None
        self._remote_results = None
        return self.view

    def all_tags(self) -> List[str]:
        return collect_tags(self.cache.records)

    @property
    def view(self) -> List[ViewItem[T]]:
        """Records to display, derived from the cache and the active filters.

        Positions are looked up in the cache by identifier; the order of a
        remote search result says nothing about positions.
        """
        if self._remote_results is not None:
            records = list(self._remote_results)
        elif self.server_search:
            records = list(self.cache.records)
        else:
            records = filter_records(self.cache.records, self._query)
        if self._tag is not None:
            records = filter_by_tag(records, self._tag)
        return [ViewItem(self.cache.position_of(r.id), r) for r in records]
