"""Appointment statuses and the role-gated transitions between them."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from ...exceptions import PermissionDeniedError, TransitionError, ValidationError


class Role(str, Enum):
    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as resolved from the bearer token."""
    user_id: str
    role: Role


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    RESCHEDULED = "RESCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    DECLINED = "DECLINED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class Transition(str, Enum):
    APPROVE = "approve"
    DECLINE = "decline"
    RESCHEDULE = "reschedule"
    COMPLETE = "complete"
    CANCEL = "cancel"


# Statuses that hold a slot
ACTIVE_STATUSES = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.RESCHEDULED,
})


@dataclass(frozen=True)
class Rule:
    target: AppointmentStatus
    sources: FrozenSet[AppointmentStatus]
    requires_reason: bool = False


_S = AppointmentStatus

TRANSITIONS: Dict[Tuple[Role, Transition], Rule] = {
    (Role.DOCTOR, Transition.APPROVE): Rule(_S.SCHEDULED, frozenset({_S.PENDING})),
    (Role.DOCTOR, Transition.DECLINE): Rule(_S.DECLINED, frozenset({_S.PENDING}), requires_reason=True),
    (Role.DOCTOR, Transition.RESCHEDULE): Rule(_S.RESCHEDULED, frozenset({_S.SCHEDULED, _S.RESCHEDULED})),
    (Role.DOCTOR, Transition.COMPLETE): Rule(_S.COMPLETED, frozenset({_S.SCHEDULED, _S.RESCHEDULED})),
    (Role.DOCTOR, Transition.CANCEL): Rule(_S.CANCELLED, frozenset({_S.SCHEDULED, _S.RESCHEDULED}), requires_reason=True),
    (Role.PATIENT, Transition.CANCEL): Rule(_S.CANCELLED, frozenset({_S.SCHEDULED}), requires_reason=True),
}

# PATCH {status} is routed to the transition that produces that status
TRANSITION_FOR_TARGET: Dict[AppointmentStatus, Transition] = {
    rule.target: transition for (_, transition), rule in TRANSITIONS.items()
}


def ensure_role_can(role: Role, transition: Transition) -> Rule:
    rule = TRANSITIONS.get((role, transition))
    if rule is None:
        raise PermissionDeniedError(f"A {role.value.lower()} cannot {transition.value} appointments")
    return rule


def check_transition(role: Role, transition: Transition, current: AppointmentStatus) -> Rule:
    """Return the rule for this move or raise.

    PermissionDeniedError when the role never has this transition,
    TransitionError when it does but not from the current status.
    """
    rule = ensure_role_can(role, transition)
    if current not in rule.sources:
        allowed = ", ".join(sorted(s.value.lower() for s in rule.sources))
        raise TransitionError(
            f"Cannot {transition.value} an appointment that is {current.value.lower()}. "
            f"Only {allowed} appointments can be {rule.target.value.lower()}."
        )
    return rule


def allowed_transitions(role: Role, current: AppointmentStatus) -> List[Transition]:
    return [
        transition
        for (rule_role, transition), rule in TRANSITIONS.items()
        if rule_role == role and current in rule.sources
    ]


def validate_reason(reason: Optional[str], min_length: int, field: str = "reason") -> str:
    cleaned = (reason or "").strip()
    if len(cleaned) < min_length:
        raise ValidationError(f"Reason must be at least {min_length} characters", field=field)
    return cleaned
