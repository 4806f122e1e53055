"""Authorization policy evaluator.

Pure decision function mapping (actor, action, ownership) to a structured
allow/deny. Every action has exactly one rule in RULES; orchestrators never
compare roles themselves.
"""

from dataclasses import dataclass
from enum import Enum

from careledger.identity import Actor, Role


class Action(str, Enum):
    """Operations gated by the policy evaluator."""
    CREATE_APPOINTMENT = "create_appointment"
    CANCEL_APPOINTMENT = "cancel_appointment"
    VIEW_APPOINTMENT = "view_appointment"
    LIST_UPCOMING_APPOINTMENTS = "list_upcoming_appointments"
    CREATE_CLINICAL_NOTE = "create_clinical_note"
    UPDATE_CLINICAL_NOTE = "update_clinical_note"
    FINALIZE_CLINICAL_NOTE = "finalize_clinical_note"
    VIEW_CLINICAL_NOTE = "view_clinical_note"
    LIST_CLINICAL_NOTES = "list_clinical_notes"
    VIEW_PATIENT = "view_patient"
    UPDATE_PATIENT = "update_patient"


class DenyReason(str, Enum):
    ROLE_NOT_PERMITTED = "role_not_permitted"
    NOT_OWN_RECORD = "not_own_record"
    NOT_PARTICIPANT = "not_participant"
    NOT_AUTHOR = "not_author"


@dataclass(frozen=True)
class ResourceOwnership:
    """Who the targeted resource belongs to."""
    patient_id: str | None = None
    clinician_id: str | None = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None
    message: str = ""

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "Decision":
        return cls(allowed=False, reason=reason, message=message)


def _create_appointment(actor: Actor, ownership: ResourceOwnership) -> Decision:
    if actor.role is not Role.PATIENT:
        return Decision.deny(DenyReason.ROLE_NOT_PERMITTED, "Only patients can book appointments")
    if ownership.patient_id != actor.id:
        return Decision.deny(DenyReason.NOT_OWN_RECORD, "Can only create appointments for yourself")
    return Decision.allow()


def _appointment_participant(actor: Actor, ownership: ResourceOwnership) -> Decision:
    if actor.role is Role.PATIENT and ownership.patient_id == actor.id:
        return Decision.allow()
    if actor.role is Role.CLINICIAN and ownership.clinician_id == actor.id:
        return Decision.allow()
    return Decision.deny(DenyReason.NOT_PARTICIPANT, "Not a participant in this appointment")


def _list_upcoming(actor: Actor, ownership: ResourceOwnership) -> Decision:
    if actor.role is not Role.PATIENT:
        return Decision.deny(DenyReason.ROLE_NOT_PERMITTED, "Only patients can list upcoming appointments")
    if ownership.patient_id != actor.id:
        return Decision.deny(DenyReason.NOT_OWN_RECORD, "Can only view your own appointments")
    return Decision.allow()


def _create_note(actor: Actor, ownership: ResourceOwnership) -> Decision:
    if actor.role is not Role.CLINICIAN:
        return Decision.deny(DenyReason.ROLE_NOT_PERMITTED, "Only clinicians can create clinical notes")
    return Decision.allow()


def _note_author(actor: Actor, ownership: ResourceOwnership) -> Decision:
    if actor.role is Role.CLINICIAN and ownership.clinician_id == actor.id:
        return Decision.allow()
    return Decision.deny(DenyReason.NOT_AUTHOR, "Can only modify your own notes")


def _view_note(actor: Actor, ownership: ResourceOwnership) -> Decision:
    if actor.role is Role.PATIENT and ownership.patient_id == actor.id:
        return Decision.allow()
    if actor.role is Role.CLINICIAN and ownership.clinician_id == actor.id:
        return Decision.allow()
    return Decision.deny(DenyReason.NOT_PARTICIPANT, "Can only view your own medical records")


def _list_notes(actor: Actor, ownership: ResourceOwnership) -> Decision:
    # Clinicians may list; the orchestrator narrows results to their own notes.
    if actor.role is Role.CLINICIAN:
        return Decision.allow()
    if ownership.patient_id == actor.id:
        return Decision.allow()
    return Decision.deny(DenyReason.NOT_OWN_RECORD, "Can only view your own medical records")


def _own_profile(actor: Actor, ownership: ResourceOwnership) -> Decision:
    if actor.role is Role.PATIENT and ownership.patient_id == actor.id:
        return Decision.allow()
    return Decision.deny(DenyReason.NOT_OWN_RECORD, "Cannot access other patients data")


RULES = {
    Action.CREATE_APPOINTMENT: _create_appointment,
    Action.CANCEL_APPOINTMENT: _appointment_participant,
    Action.VIEW_APPOINTMENT: _appointment_participant,
    Action.LIST_UPCOMING_APPOINTMENTS: _list_upcoming,
    Action.CREATE_CLINICAL_NOTE: _create_note,
    Action.UPDATE_CLINICAL_NOTE: _note_author,
    Action.FINALIZE_CLINICAL_NOTE: _note_author,
    Action.VIEW_CLINICAL_NOTE: _view_note,
    Action.LIST_CLINICAL_NOTES: _list_notes,
    Action.VIEW_PATIENT: _own_profile,
    Action.UPDATE_PATIENT: _own_profile,
}

_unruled = set(Action) - set(RULES)
if _unruled:
    raise RuntimeError(f"Actions without a policy rule: {sorted(a.value for a in _unruled)}")


def authorize(actor: Actor, action: Action, ownership: ResourceOwnership | None = None) -> Decision:
    """Decide whether actor may perform action on a resource with the given ownership."""
    return RULES[action](actor, ownership or ResourceOwnership())
