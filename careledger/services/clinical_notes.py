"""Clinical note lifecycle orchestration."""

from careledger import state_machine
from careledger.audit import AuditAction, ResourceType
from careledger.database.appointment_repository import AppointmentRepository
from careledger.database.clinical_note_repository import ClinicalNote, ClinicalNoteRepository
from careledger.errors import Conflict, NotFound, ValidationError, storage_guard
from careledger.identity import RequestContext
from careledger.policy import Action, ResourceOwnership
from careledger.schemas import (
    ClinicalNoteCreate,
    ClinicalNoteSummary,
    ClinicalNoteUpdate,
    ClinicalNoteView,
    parse_payload,
)
from careledger.services.base import LifecycleService
from careledger.state_machine import NoteStatus


class ClinicalNoteService(LifecycleService):
    """Author, edit, finalize and read clinical notes."""

    def __init__(
        self,
        notes: ClinicalNoteRepository | None = None,
        appointments: AppointmentRepository | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.notes = notes or ClinicalNoteRepository()
        self.appointments = appointments or AppointmentRepository()

    def create_clinical_note(self, ctx: RequestContext, payload) -> ClinicalNoteSummary:
        """Start a draft note for an appointment.

        The calling clinician becomes the author; the patient is taken from
        the appointment, never from the payload.
        """
        data = parse_payload(ClinicalNoteCreate, payload)
        actor = self._authorize(
            ctx,
            Action.CREATE_CLINICAL_NOTE,
            AuditAction.CREATE,
            ResourceType.CLINICAL_NOTE,
            ResourceOwnership(),
        )

        with storage_guard("clinical_note.create"):
            appointment = self.appointments.get_by_id(data.appointment_id)
            if appointment is None:
                raise NotFound("Appointment not found")
            if self.notes.find_by_appointment(appointment.id) is not None:
                raise Conflict("A clinical note already exists for this appointment")

            content = data.model_dump(exclude={"appointment_id"})
            note = self.notes.create(ClinicalNote(
                id="",
                appointment_id=appointment.id,
                patient_id=appointment.patient_id,
                clinician_id=actor.id,
                status=NoteStatus.DRAFT.value,
                **content,
            ))

        self._audit_success(
            ctx,
            AuditAction.CREATE,
            ResourceType.CLINICAL_NOTE,
            f"Clinical note created for patient {note.patient_id}",
            resource_id=note.id,
            new_values={"appointment_id": note.appointment_id, "status": note.status},
        )
        self._log(ctx).info(
            "Clinical note created",
            note_id=note.id,
            patient_id=note.patient_id,
            clinician_id=note.clinician_id,
        )
        return ClinicalNoteSummary.model_validate(note)

    def update_clinical_note(self, ctx: RequestContext, note_id: str, payload) -> ClinicalNoteSummary:
        """Edit content fields of a draft note. Only its author may do so."""
        data = parse_payload(ClinicalNoteUpdate, payload)
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        note = self._load(note_id)
        self._authorize(
            ctx,
            Action.UPDATE_CLINICAL_NOTE,
            AuditAction.UPDATE,
            ResourceType.CLINICAL_NOTE,
            self._ownership(note),
            resource_id=note.id,
        )
        state_machine.check_editable(note.status)

        changes = self._what_changed(note, updates)
        with storage_guard("clinical_note.update"):
            updated = self.notes.update_content(note.id, updates)
        if updated is None:
            raise NotFound("Clinical note not found")

        self._audit_success(
            ctx,
            AuditAction.UPDATE,
            ResourceType.CLINICAL_NOTE,
            "Clinical note updated",
            resource_id=note.id,
            old_values={field: change["old"] for field, change in changes.items()},
            new_values={field: change["new"] for field, change in changes.items()},
        )
        self._log(ctx).info("Clinical note updated", note_id=note.id, fields=sorted(changes))
        return ClinicalNoteSummary.model_validate(updated)

    def finalize_clinical_note(self, ctx: RequestContext, note_id: str) -> ClinicalNoteSummary:
        """Move a draft note to finalized. Only its author may do so."""
        note = self._load(note_id)
        self._authorize(
            ctx,
            Action.FINALIZE_CLINICAL_NOTE,
            AuditAction.FINALIZE,
            ResourceType.CLINICAL_NOTE,
            self._ownership(note),
            resource_id=note.id,
        )
        new_status = state_machine.finalize(note.status)

        with storage_guard("clinical_note.finalize"):
            updated = self.notes.set_status(note.id, new_status.value)
        if updated is None:
            raise NotFound("Clinical note not found")

        self._audit_success(
            ctx,
            AuditAction.FINALIZE,
            ResourceType.CLINICAL_NOTE,
            "Clinical note finalized",
            resource_id=note.id,
            old_values={"status": note.status},
            new_values={"status": updated.status},
        )
        self._log(ctx).info("Clinical note finalized", note_id=note.id)
        return ClinicalNoteSummary.model_validate(updated)

    def get_clinical_note(self, ctx: RequestContext, note_id: str) -> ClinicalNoteView:
        return self._view(ctx, self._load(note_id))

    def get_clinical_note_for_appointment(self, ctx: RequestContext, appointment_id: str) -> ClinicalNoteView:
        with storage_guard("clinical_note.get"):
            note = self.notes.find_by_appointment(appointment_id)
        if note is None:
            raise NotFound("Clinical note not found")
        return self._view(ctx, note)

    def list_clinical_notes_for_patient(self, ctx: RequestContext, patient_id: str) -> list[ClinicalNoteView]:
        """A patient's notes. Clinicians only ever see the notes they authored."""
        actor = self._authorize(
            ctx,
            Action.LIST_CLINICAL_NOTES,
            AuditAction.VIEW,
            ResourceType.CLINICAL_NOTE,
            ResourceOwnership(patient_id=patient_id),
        )
        author = actor.id if actor.is_clinician else None
        with storage_guard("clinical_note.list"):
            notes = self.notes.find_by_patient(patient_id, clinician_id=author)

        self._audit_success(
            ctx, AuditAction.VIEW, ResourceType.CLINICAL_NOTE,
            f"Listed clinical notes for patient {patient_id}",
        )
        return [ClinicalNoteView.model_validate(n) for n in notes]

    def _view(self, ctx: RequestContext, note: ClinicalNote) -> ClinicalNoteView:
        self._authorize(
            ctx,
            Action.VIEW_CLINICAL_NOTE,
            AuditAction.VIEW,
            ResourceType.CLINICAL_NOTE,
            self._ownership(note),
            resource_id=note.id,
        )
        self._audit_success(
            ctx, AuditAction.VIEW, ResourceType.CLINICAL_NOTE, "Clinical note viewed",
            resource_id=note.id,
        )
        return ClinicalNoteView.model_validate(note)

    def _load(self, note_id: str) -> ClinicalNote:
        with storage_guard("clinical_note.get"):
            note = self.notes.get_by_id(note_id)
        if note is None:
            raise NotFound("Clinical note not found")
        return note

    @staticmethod
    def _ownership(note: ClinicalNote) -> ResourceOwnership:
        return ResourceOwnership(patient_id=note.patient_id, clinician_id=note.clinician_id)

    @staticmethod
    def _what_changed(note: ClinicalNote, updates: dict) -> dict:
        """Compare current note content with new data, return differences."""
        changes = {}
        for field, new_value in updates.items():
            current_value = getattr(note, field, None)
            if current_value != new_value:
                changes[field] = {"old": current_value, "new": new_value}
        return changes
