import pytest

from tables.enums import Role, BookingStatus
from lifecycle.errors import Forbidden, InvalidTransition, InvalidState
from lifecycle.policy import Operation, POLICY, is_allowed, require, requires_ownership
from lifecycle.transitions import TRANSITIONS, operation_for, append_note


def test_every_role_has_a_policy_entry():
    assert set(POLICY) == set(Role)


@pytest.mark.parametrize("role,operation,allowed", [
    (Role.CLIENT, Operation.CREATE_BOOKING, True),
    (Role.CLIENT, Operation.CANCEL, True),
    (Role.CLIENT, Operation.ASSIGN, False),
    (Role.CLIENT, Operation.COMPLETE, False),
    (Role.TECHNICIAN, Operation.START, True),
    (Role.TECHNICIAN, Operation.COMPLETE, True),
    (Role.TECHNICIAN, Operation.CANCEL, False),
    (Role.ADMIN, Operation.ASSIGN, True),
    (Role.ADMIN, Operation.CANCEL, True),
    (Role.ADMIN, Operation.COMPLETE, False),
])
def test_is_allowed(role, operation, allowed):
    assert is_allowed(role, operation) is allowed


def test_require_raises_forbidden():
    with pytest.raises(Forbidden):
        require(Role.TECHNICIAN, Operation.MODERATE_REVIEW)
    require(Role.ADMIN, Operation.MODERATE_REVIEW)


def test_role_accepts_plain_strings():
    assert is_allowed("ADMIN", Operation.ASSIGN)


def test_ownership_only_for_clients_and_technicians():
    assert requires_ownership(Role.CLIENT, Operation.CANCEL)
    assert requires_ownership(Role.TECHNICIAN, Operation.COMPLETE)
    assert not requires_ownership(Role.ADMIN, Operation.CANCEL)


def test_terminal_statuses_have_no_outgoing_edges():
    for (current, _), _op in TRANSITIONS.items():
        assert not current.is_terminal


def test_every_non_terminal_status_can_be_cancelled():
    for status in BookingStatus:
        if not status.is_terminal:
            assert operation_for(status, BookingStatus.CANCELLED) == Operation.CANCEL


def test_unknown_edge_names_both_statuses():
    with pytest.raises(InvalidTransition) as exc_info:
        operation_for(BookingStatus.PENDING, BookingStatus.COMPLETED)
    err = exc_info.value
    assert isinstance(err, InvalidState)
    assert err.current == "PENDING"
    assert err.attempted == "COMPLETED"
    assert "PENDING" in err.message and "COMPLETED" in err.message


def test_append_note_keeps_previous_notes():
    first = append_note(None, Role.ADMIN, "Called customer")
    second = append_note(first, Role.TECHNICIAN, "Replaced washer")
    assert second == "[ADMIN] Called customer\n[TECHNICIAN] Replaced washer"
    assert append_note(second, Role.ADMIN, None) == second
