"""State machines for appointments and clinical notes."""

from datetime import datetime
from enum import Enum

from careledger.errors import InvalidState, ValidationError


class AppointmentStatus(str, Enum):
    """States in the appointment lifecycle."""
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no-show"


class NoteStatus(str, Enum):
    """States in the clinical note lifecycle."""
    DRAFT = "draft"
    FINALIZED = "finalized"
    SIGNED = "signed"


# No transition into COMPLETED or NO_SHOW is exposed.
APPOINTMENT_TRANSITIONS = {
    "cancel": {
        AppointmentStatus.SCHEDULED: AppointmentStatus.CANCELLED,
        # Repeat cancellation is tolerated and re-applied unconditionally.
        AppointmentStatus.CANCELLED: AppointmentStatus.CANCELLED,
    },
}

NOTE_TRANSITIONS = {
    "finalize": {
        NoteStatus.DRAFT: NoteStatus.FINALIZED,
    },
}

# Content fields may only change while the note is in one of these states.
NOTE_EDITABLE_STATES = {NoteStatus.DRAFT}


def check_schedulable(scheduled_at: datetime, now: datetime) -> None:
    """Appointments must be booked strictly in the future."""
    if scheduled_at <= now:
        raise ValidationError("Appointment must be scheduled for a future date")


def _transition(table: dict, transition: str, current, status_type, noun: str):
    current = status_type(current)
    target = table[transition].get(current)
    if target is None:
        raise InvalidState(f"Cannot {transition} {noun} in status '{current.value}'")
    return target


def cancel(current: AppointmentStatus | str) -> AppointmentStatus:
    """Apply the cancel transition, returning the new status."""
    return _transition(APPOINTMENT_TRANSITIONS, "cancel", current, AppointmentStatus, "an appointment")


def finalize(current: NoteStatus | str) -> NoteStatus:
    """Apply the finalize transition. Only draft notes can be finalized."""
    return _transition(NOTE_TRANSITIONS, "finalize", current, NoteStatus, "a clinical note")


def check_editable(current: NoteStatus | str) -> None:
    """Fail unless the note's content may still be modified."""
    if NoteStatus(current) not in NOTE_EDITABLE_STATES:
        raise InvalidState("Cannot modify finalized or signed notes")
