"""Tests for the dialog state machine."""
import pytest

from nootverse_client.exceptions import InvalidTransitionError
from nootverse_client.models.schema import Note
from nootverse_client.workflow import (
    Closed,
    ConfirmingDelete,
    Creating,
    DialogWorkflow,
    Editing,
    Viewing,
)

NOTE = Note(id="n1", title="First")


@pytest.fixture
def workflow():
    return DialogWorkflow()


class TestTransitions:
    """Allowed and rejected transitions."""

    def test_starts_closed(self, workflow):
        assert isinstance(workflow.state, Closed)
        assert workflow.is_open is False

    def test_create(self, workflow):
        workflow.begin_create()
        assert isinstance(workflow.state, Creating)
        assert workflow.target.record is None
        assert workflow.target.position is None

    def test_edit_from_closed(self, workflow):
        workflow.begin_edit(2, NOTE)
        assert workflow.state == Editing(2, NOTE)
        assert workflow.target.position == 2
        assert workflow.target.record == NOTE

    def test_view_then_edit(self, workflow):
        workflow.begin_view(1, NOTE)
        workflow.begin_edit(1, NOTE)
        assert isinstance(workflow.state, Editing)

    def test_view_then_delete(self, workflow):
        workflow.begin_view(1, NOTE)
        workflow.begin_delete(1, NOTE)
        assert workflow.state == ConfirmingDelete(1, "n1", "First")

    def test_delete_from_closed(self, workflow):
        workflow.begin_delete(0, NOTE)
        assert isinstance(workflow.state, ConfirmingDelete)

    def test_create_while_editing_is_rejected(self, workflow):
        workflow.begin_edit(0, NOTE)
        with pytest.raises(InvalidTransitionError) as exc_info:
            workflow.begin_create()
        assert exc_info.value.current == "Editing"

    def test_view_while_viewing_is_rejected(self, workflow):
        workflow.begin_view(0, NOTE)
        with pytest.raises(InvalidTransitionError):
            workflow.begin_view(1, NOTE)

    def test_close_from_any_state(self, workflow):
        for begin in (
            workflow.begin_create,
            lambda: workflow.begin_edit(0, NOTE),
            lambda: workflow.begin_view(0, NOTE),
            lambda: workflow.begin_delete(0, NOTE),
        ):
            begin()
            workflow.close()
            assert isinstance(workflow.state, Closed)


class TestInvalidation:
    """Closing dialogs whose captured position was shifted."""

    def test_invalidate_closes_at_or_after_position(self, workflow):
        workflow.begin_edit(0, NOTE)
        assert workflow.invalidate_from(0) is True
        assert isinstance(workflow.state, Closed)

    def test_invalidate_keeps_earlier_positions(self, workflow):
        workflow.begin_view(1, NOTE)
        assert workflow.invalidate_from(2) is False
        assert isinstance(workflow.state, Viewing)

    def test_invalidate_ignores_creating(self, workflow):
        workflow.begin_create()
        assert workflow.invalidate_from(0) is False
        assert isinstance(workflow.state, Creating)

    def test_close_if_current_ignores_replaced_state(self, workflow):
        started = workflow.begin_create()
        workflow.close()
        replacement = workflow.begin_view(0, NOTE)
        assert workflow.close_if_current(started) is False
        assert workflow.state is replacement
        assert workflow.close_if_current(replacement) is True
