"""Patient profile reads and edits. Patients only ever see their own profile."""

from careledger.audit import AuditAction, ResourceType
from careledger.database.patient_repository import Patient, PatientRepository
from careledger.errors import NotFound, ValidationError, storage_guard
from careledger.identity import RequestContext
from careledger.policy import Action, ResourceOwnership
from careledger.schemas import PatientProfileUpdate, PatientView, parse_payload
from careledger.services.base import LifecycleService


class PatientService(LifecycleService):
    def __init__(self, patients: PatientRepository | None = None, **kwargs):
        super().__init__(**kwargs)
        self.patients = patients or PatientRepository()

    def get_patient(self, ctx: RequestContext, patient_id: str) -> PatientView:
        self._authorize(
            ctx,
            Action.VIEW_PATIENT,
            AuditAction.VIEW,
            ResourceType.PATIENT,
            ResourceOwnership(patient_id=patient_id),
            resource_id=patient_id,
        )
        patient = self._load(patient_id)

        self._audit_success(
            ctx, AuditAction.VIEW, ResourceType.PATIENT, "Patient data accessed",
            resource_id=patient.id,
        )
        return PatientView.model_validate(patient)

    def update_patient(self, ctx: RequestContext, patient_id: str, payload) -> PatientView:
        """Change profile fields, auditing only the fields whose value changed."""
        data = parse_payload(PatientProfileUpdate, payload)
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        self._authorize(
            ctx,
            Action.UPDATE_PATIENT,
            AuditAction.UPDATE,
            ResourceType.PATIENT,
            ResourceOwnership(patient_id=patient_id),
            resource_id=patient_id,
        )
        patient = self._load(patient_id)

        changes = {
            field: (getattr(patient, field), value)
            for field, value in updates.items()
            if getattr(patient, field) != value
        }
        with storage_guard("patient.update"):
            updated = self.patients.update(patient.id, updates)
        if updated is None:
            raise NotFound("Patient not found")

        self._audit_success(
            ctx,
            AuditAction.UPDATE,
            ResourceType.PATIENT,
            "Patient updated",
            resource_id=patient.id,
            old_values={field: old for field, (old, _) in changes.items()},
            new_values={field: new for field, (_, new) in changes.items()},
        )
        self._log(ctx).info("Patient updated", patient_id=patient.id, fields=sorted(changes))
        return PatientView.model_validate(updated)

    def _load(self, patient_id: str) -> Patient:
        with storage_guard("patient.get"):
            patient = self.patients.get_by_id(patient_id)
        if patient is None:
            raise NotFound("Patient not found")
        return patient
