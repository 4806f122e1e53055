"""Appointment repository."""

import uuid
from dataclasses import dataclass

from .connection import get_connection, to_iso, utcnow


@dataclass
class Appointment:
    id: str
    patient_id: str
    clinician_id: str
    scheduled_at: str
    duration_minutes: int = 30
    reason_for_visit: str | None = None
    appointment_type: str = "in-person"
    status: str = "scheduled"
    created_at: str | None = None
    updated_at: str | None = None


class AppointmentRepository:
    """Repository for appointment rows."""

    def create(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment."""
        conn = get_connection()
        cursor = conn.cursor()

        appointment.id = appointment.id or str(uuid.uuid4())
        now = to_iso(utcnow())

        try:
            cursor.execute(
                """INSERT INTO appointments
                   (id, patient_id, clinician_id, scheduled_at, duration_minutes,
                    reason_for_visit, appointment_type, status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    appointment.id, appointment.patient_id, appointment.clinician_id,
                    appointment.scheduled_at, appointment.duration_minutes,
                    appointment.reason_for_visit, appointment.appointment_type,
                    appointment.status, now, now,
                ),
            )
            conn.commit()
        finally:
            conn.close()

        appointment.created_at = now
        appointment.updated_at = now
        return appointment

    def get_by_id(self, appointment_id: str) -> Appointment | None:
        """Get an appointment by ID."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM appointments WHERE id = ?", (appointment_id,))
        row = cursor.fetchone()
        conn.close()
        return self._row_to_appointment(row) if row else None

    def find_upcoming(self, patient_id: str, after: str, limit: int = 10) -> list[Appointment]:
        """Appointments for a patient scheduled strictly after the given UTC timestamp."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """SELECT * FROM appointments
               WHERE patient_id = ?
                 AND scheduled_at > ?
               ORDER BY scheduled_at
               LIMIT ?""",
            (patient_id, after, limit),
        )
        rows = cursor.fetchall()
        conn.close()
        return [self._row_to_appointment(row) for row in rows]

    def update_status(self, appointment_id: str, status: str) -> Appointment | None:
        """Set the appointment status unconditionally."""
        conn = get_connection()
        try:
            conn.execute(
                "UPDATE appointments SET status = ?, updated_at = ? WHERE id = ?",
                (status, to_iso(utcnow()), appointment_id),
            )
            conn.commit()
        finally:
            conn.close()
        return self.get_by_id(appointment_id)

    def _row_to_appointment(self, row) -> Appointment:
        """Convert a database row to an Appointment object."""
        return Appointment(
            id=row["id"],
            patient_id=row["patient_id"],
            clinician_id=row["clinician_id"],
            scheduled_at=row["scheduled_at"],
            duration_minutes=row["duration_minutes"],
            reason_for_visit=row["reason_for_visit"],
            appointment_type=row["appointment_type"],
            status=row["status"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
