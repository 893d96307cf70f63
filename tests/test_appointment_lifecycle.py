import itertools

import pytest

from clinic.exceptions import PermissionDeniedError, TransitionError, ValidationError
from clinic.application.services.appointment_lifecycle import (
    AppointmentStatus,
    Role,
    Transition,
    allowed_transitions,
    check_transition,
    validate_reason,
)

S = AppointmentStatus

LEGAL = {
    (Role.DOCTOR, Transition.APPROVE, S.PENDING): S.SCHEDULED,
    (Role.DOCTOR, Transition.DECLINE, S.PENDING): S.DECLINED,
    (Role.DOCTOR, Transition.RESCHEDULE, S.SCHEDULED): S.RESCHEDULED,
    (Role.DOCTOR, Transition.RESCHEDULE, S.RESCHEDULED): S.RESCHEDULED,
    (Role.DOCTOR, Transition.COMPLETE, S.SCHEDULED): S.COMPLETED,
    (Role.DOCTOR, Transition.COMPLETE, S.RESCHEDULED): S.COMPLETED,
    (Role.DOCTOR, Transition.CANCEL, S.SCHEDULED): S.CANCELLED,
    (Role.DOCTOR, Transition.CANCEL, S.RESCHEDULED): S.CANCELLED,
    (Role.PATIENT, Transition.CANCEL, S.SCHEDULED): S.CANCELLED,
}


@pytest.mark.parametrize("role,transition,current", list(itertools.product(Role, Transition, S)))
def test_every_combination_matches_the_table(role, transition, current):
    key = (role, transition, current)
    if key in LEGAL:
        assert check_transition(role, transition, current).target == LEGAL[key]
    else:
        with pytest.raises(TransitionError):
            check_transition(role, transition, current)


def test_admin_has_no_lifecycle_transitions():
    for transition in Transition:
        with pytest.raises(PermissionDeniedError):
            check_transition(Role.ADMIN, transition, S.PENDING)


def test_wrong_state_message_is_actionable():
    with pytest.raises(TransitionError) as exc:
        check_transition(Role.DOCTOR, Transition.APPROVE, S.COMPLETED)
    assert exc.value.status_code == 409
    assert "completed" in exc.value.detail
    assert "pending" in exc.value.detail


def test_terminal_states_allow_nothing():
    for role, status in itertools.product(Role, (S.COMPLETED, S.CANCELLED, S.DECLINED)):
        assert allowed_transitions(role, status) == []


def test_allowed_transitions_for_scheduled_doctor():
    assert set(allowed_transitions(Role.DOCTOR, S.SCHEDULED)) == {
        Transition.RESCHEDULE, Transition.COMPLETE, Transition.CANCEL,
    }


def test_reason_is_trimmed_before_counting():
    with pytest.raises(ValidationError) as exc:
        validate_reason("  123456789  ", 10)
    assert exc.value.field == "reason"
    assert validate_reason("  1234567890 ", 10) == "1234567890"
