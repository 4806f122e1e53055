"""Appointment lifecycle orchestration."""

from careledger import state_machine
from careledger.audit import AuditAction, ResourceType
from careledger.config import get_settings
from careledger.database.appointment_repository import Appointment, AppointmentRepository
from careledger.database.clinician_repository import ClinicianRepository
from careledger.database.connection import to_iso
from careledger.database.patient_repository import PatientRepository
from careledger.errors import NotFound, storage_guard
from careledger.identity import RequestContext
from careledger.policy import Action, ResourceOwnership
from careledger.schemas import AppointmentRequest, AppointmentView, parse_payload
from careledger.services.base import LifecycleService
from careledger.state_machine import AppointmentStatus


class AppointmentService(LifecycleService):
    """Create, cancel and read appointments on behalf of an actor."""

    def __init__(
        self,
        appointments: AppointmentRepository | None = None,
        patients: PatientRepository | None = None,
        clinicians: ClinicianRepository | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.appointments = appointments or AppointmentRepository()
        self.patients = patients or PatientRepository()
        self.clinicians = clinicians or ClinicianRepository()

    def create_appointment(self, ctx: RequestContext, payload) -> AppointmentView:
        """Book an appointment. Patients may only book for themselves."""
        data = parse_payload(AppointmentRequest, payload)
        self._authorize(
            ctx,
            Action.CREATE_APPOINTMENT,
            AuditAction.CREATE,
            ResourceType.APPOINTMENT,
            ResourceOwnership(patient_id=data.patient_id, clinician_id=data.clinician_id),
        )

        with storage_guard("appointment.create"):
            if self.patients.get_by_id(data.patient_id) is None:
                raise NotFound("Patient not found")
            if self.clinicians.get_by_id(data.clinician_id) is None:
                raise NotFound("Clinician not found")

        state_machine.check_schedulable(data.scheduled_at, self.clock())

        with storage_guard("appointment.create"):
            appointment = self.appointments.create(Appointment(
                id="",
                patient_id=data.patient_id,
                clinician_id=data.clinician_id,
                scheduled_at=to_iso(data.scheduled_at),
                duration_minutes=data.duration_minutes,
                reason_for_visit=data.reason_for_visit,
                appointment_type=data.appointment_type,
                status=AppointmentStatus.SCHEDULED.value,
            ))

        self._audit_success(
            ctx,
            AuditAction.CREATE,
            ResourceType.APPOINTMENT,
            f"Appointment created between patient {data.patient_id} and clinician {data.clinician_id}",
            resource_id=appointment.id,
            new_values={
                "status": appointment.status,
                "scheduled_at": appointment.scheduled_at,
                "clinician_id": appointment.clinician_id,
            },
        )
        self._log(ctx).info(
            "Appointment created",
            appointment_id=appointment.id,
            patient_id=appointment.patient_id,
            clinician_id=appointment.clinician_id,
        )
        return AppointmentView.model_validate(appointment)

    def cancel_appointment(self, ctx: RequestContext, appointment_id: str) -> AppointmentView:
        """Cancel an appointment as its patient or clinician.

        The status write is unconditional: cancelling an already cancelled
        appointment succeeds again and is audited again.
        """
        appointment = self._load(appointment_id)
        self._authorize(
            ctx,
            Action.CANCEL_APPOINTMENT,
            AuditAction.CANCEL,
            ResourceType.APPOINTMENT,
            self._ownership(appointment),
            resource_id=appointment.id,
        )

        new_status = state_machine.cancel(appointment.status)

        with storage_guard("appointment.cancel"):
            updated = self.appointments.update_status(appointment.id, new_status.value)
        if updated is None:
            # Deleted between the read and the write
            raise NotFound("Appointment not found")

        self._audit_success(
            ctx,
            AuditAction.CANCEL,
            ResourceType.APPOINTMENT,
            "Appointment cancelled",
            resource_id=appointment.id,
            old_values={"status": appointment.status},
            new_values={"status": updated.status},
        )
        self._log(ctx).info("Appointment cancelled", appointment_id=appointment.id)
        return AppointmentView.model_validate(updated)

    def get_appointment(self, ctx: RequestContext, appointment_id: str) -> AppointmentView:
        appointment = self._load(appointment_id)
        self._authorize(
            ctx,
            Action.VIEW_APPOINTMENT,
            AuditAction.VIEW,
            ResourceType.APPOINTMENT,
            self._ownership(appointment),
            resource_id=appointment.id,
        )
        self._audit_success(
            ctx, AuditAction.VIEW, ResourceType.APPOINTMENT, "Appointment viewed",
            resource_id=appointment.id,
        )
        return AppointmentView.model_validate(appointment)

    def list_upcoming_appointments(self, ctx: RequestContext, patient_id: str) -> list[AppointmentView]:
        """Appointments for the calling patient scheduled after now, earliest first."""
        self._authorize(
            ctx,
            Action.LIST_UPCOMING_APPOINTMENTS,
            AuditAction.VIEW,
            ResourceType.APPOINTMENT,
            ResourceOwnership(patient_id=patient_id),
        )

        with storage_guard("appointment.list_upcoming"):
            appointments = self.appointments.find_upcoming(
                patient_id, to_iso(self.clock()), limit=get_settings().upcoming_limit
            )

        self._audit_success(
            ctx, AuditAction.VIEW, ResourceType.APPOINTMENT,
            "Retrieved upcoming appointments",
        )
        return [AppointmentView.model_validate(a) for a in appointments]

    def _load(self, appointment_id: str) -> Appointment:
        with storage_guard("appointment.get"):
            appointment = self.appointments.get_by_id(appointment_id)
        if appointment is None:
            raise NotFound("Appointment not found")
        return appointment

    @staticmethod
    def _ownership(appointment: Appointment) -> ResourceOwnership:
        return ResourceOwnership(patient_id=appointment.patient_id, clinician_id=appointment.clinician_id)
