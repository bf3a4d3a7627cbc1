"""Dialog state machine: which dialog is open and what it targets."""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from nootverse_client.exceptions import InvalidTransitionError
from nootverse_client.models.schema import Record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Closed:
    """No dialog open."""


@dataclass(frozen=True)
class Creating:
    """Editor open for a new record."""


@dataclass(frozen=True)
class Editing:
    """Editor open on the record observed at ``position``."""

    position: int
    record: Record


@dataclass(frozen=True)
class Viewing:
    """Read-only view of the record observed at ``position``."""

    position: int
    record: Record


@dataclass(frozen=True)
class ConfirmingDelete:
    """Confirmation prompt before deleting the record at ``position``."""

    position: int
    record_id: str
    title: str


DialogState = Union[Closed, Creating, Editing, Viewing, ConfirmingDelete]

CLOSED = Closed()


@dataclass(frozen=True)
class DialogTarget:
    """What the active dialog operates on; both None means "create new"."""

    record: Optional[Record]
    position: Optional[int]


def captured_position(state: DialogState) -> Optional[int]:
    """Position a state captured when it was entered, if any."""
    if isinstance(state, (Editing, Viewing, ConfirmingDelete)):
        return state.position
    return None


class DialogWorkflow:
    """Tracks the single active dialog for one record list.

    Every transition replaces the state object, so a commit that captured
    the state it started from can tell whether the user has since moved on.
    """

    def __init__(self) -> None:
        self._state: DialogState = CLOSED

    @property
    def state(self) -> DialogState:
        return self._state

    @property
    def is_open(self) -> bool:
        return not isinstance(self._state, Closed)

    @property
    def target(self) -> DialogTarget:
        state = self._state
        if isinstance(state, (Editing, Viewing)):
            return DialogTarget(record=state.record, position=state.position)
        if isinstance(state, ConfirmingDelete):
            return DialogTarget(record=None, position=state.position)
        return DialogTarget(record=None, position=None)

    def _move(self, new_state: DialogState, action: str, *allowed: type) -> DialogState:
        if not isinstance(self._state, allowed):
            raise InvalidTransitionError(type(self._state).__name__, action)
        logger.debug(f"Dialog {type(self._state).__name__} -> {type(new_state).__name__}")
        self._state = new_state
        return new_state

    def begin_create(self) -> DialogState:
        return self._move(Creating(), "create", Closed)

    def begin_edit(self, position: int, record: Record) -> DialogState:
        return self._move(Editing(position, record), "edit", Closed, Viewing)

    def begin_view(self, position: int, record: Record) -> DialogState:
        return self._move(Viewing(position, record), "view", Closed)

    def begin_delete(self, position: int, record: Record) -> DialogState:
        return self._move(
            ConfirmingDelete(position, record.id, record.title), "delete", Closed, Viewing
        )

    def close(self) -> None:
        """Return to Closed from any state (cancel, commit, stale position)."""
        if self.is_open:
            logger.debug(f"Dialog {type(self._state).__name__} -> Closed")
        self._state = CLOSED

    def close_if_current(self, state: DialogState) -> bool:
        """Close only if ``state`` is still the active one."""
        if self._state is state and self.is_open:
            self.close()
            return True
        return False

    def invalidate_from(self, position: int) -> bool:
        """Close a dialog whose captured position is ``>= position``.

        Called after a delete at ``position`` shifted every later record.
        """
        captured = captured_position(self._state)
        if captured is not None and captured >= position:
            logger.info(
                f"Closing {type(self._state).__name__} at position {captured}: "
                f"delete at {position} shifted it"
            )
            self.close()
            return True
        return False
