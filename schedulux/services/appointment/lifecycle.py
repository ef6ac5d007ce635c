# schedulux/services/appointment/lifecycle.py
"""
Appointment status state machine.

    pending ──► confirmed ──► completed
       │            │    └──► no_show
       ├──► declined│
       └──► cancelled ◄┘

declined, cancelled, completed and no_show are terminal.
"""
from typing import Dict, FrozenSet

from schedulux.core.errors import ForbiddenError, InvalidTransitionError
from schedulux.models.appointment import AppointmentStatus
from schedulux.schemas.appointment import ActorRole

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.DECLINED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.DECLINED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

# The only move a client may make
CLIENT_TRANSITIONS = frozenset({AppointmentStatus.CANCELLED})

VENDOR_ONLY_TARGETS = frozenset({
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.DECLINED,
    AppointmentStatus.COMPLETED,
    AppointmentStatus.NO_SHOW,
})


def validate_transition(current, new, actor_role) -> None:
    """
    Raise unless `actor_role` may move an appointment from `current` to `new`.

    Permission is checked before the table, so a client asking for a
    vendor-only status is refused regardless of the current state.

    Raises:
        ForbiddenError: the role may never request this status
        InvalidTransitionError: the move is not in the transition table
    """
    current = AppointmentStatus(current)
    new = AppointmentStatus(new)
    role = ActorRole(actor_role)

    if role == ActorRole.CLIENT and new not in CLIENT_TRANSITIONS:
        raise ForbiddenError(
            "Clients can only cancel appointments",
            details={"requested_status": new.value}
        )

    if role != ActorRole.VENDOR and new in VENDOR_ONLY_TARGETS:
        raise ForbiddenError(
            f"Only the vendor can mark an appointment as {new.value}",
            details={"requested_status": new.value}
        )

    if new not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, new.value)
