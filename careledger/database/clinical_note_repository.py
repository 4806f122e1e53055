"""Clinical note repository."""

import uuid
from dataclasses import dataclass

from .connection import get_connection, to_iso, utcnow


@dataclass
class ClinicalNote:
    id: str
    appointment_id: str
    patient_id: str
    clinician_id: str
    chief_complaint: str | None = None
    history_of_present_illness: str | None = None
    physical_exam: str | None = None
    assessment: str | None = None
    plan: str | None = None
    medications: str | None = None
    follow_up: str | None = None
    status: str = "draft"
    created_at: str | None = None
    updated_at: str | None = None


class ClinicalNoteRepository:
    """Repository for clinical note rows."""

    # Clinical content fields (status changes go through set_status)
    CONTENT_FIELDS = [
        "chief_complaint", "history_of_present_illness", "physical_exam",
        "assessment", "plan", "medications", "follow_up",
    ]

    def create(self, note: ClinicalNote) -> ClinicalNote:
        """Insert a new clinical note."""
        conn = get_connection()
        cursor = conn.cursor()

        note.id = note.id or str(uuid.uuid4())
        now = to_iso(utcnow())

        try:
            cursor.execute(
                """INSERT INTO clinical_notes
                   (id, appointment_id, patient_id, clinician_id, chief_complaint,
                    history_of_present_illness, physical_exam, assessment, plan,
                    medications, follow_up, status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    note.id, note.appointment_id, note.patient_id, note.clinician_id,
                    note.chief_complaint, note.history_of_present_illness,
                    note.physical_exam, note.assessment, note.plan, note.medications,
                    note.follow_up, note.status, now, now,
                ),
            )
            conn.commit()
        finally:
            conn.close()

        note.created_at = now
        note.updated_at = now
        return note

    def get_by_id(self, note_id: str) -> ClinicalNote | None:
        """Get a clinical note by ID."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM clinical_notes WHERE id = ?", (note_id,))
        row = cursor.fetchone()
        conn.close()
        return self._row_to_note(row) if row else None

    def find_by_appointment(self, appointment_id: str) -> ClinicalNote | None:
        """Get the note for an appointment (at most one exists)."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM clinical_notes WHERE appointment_id = ?", (appointment_id,))
        row = cursor.fetchone()
        conn.close()
        return self._row_to_note(row) if row else None

    def find_by_patient(self, patient_id: str, clinician_id: str | None = None) -> list[ClinicalNote]:
        """Notes for a patient, newest first, optionally limited to one author."""
        conn = get_connection()
        cursor = conn.cursor()

        query = "SELECT * FROM clinical_notes WHERE patient_id = ?"
        params = [patient_id]
        if clinician_id:
            query += " AND clinician_id = ?"
            params.append(clinician_id)
        query += " ORDER BY created_at DESC"

        cursor.execute(query, params)
        rows = cursor.fetchall()
        conn.close()
        return [self._row_to_note(row) for row in rows]

    def update_content(self, note_id: str, updates: dict) -> ClinicalNote | None:
        """Update clinical content fields."""
        valid_updates = {k: v for k, v in updates.items() if k in self.CONTENT_FIELDS}

        if valid_updates:
            set_clause = ", ".join(f"{field} = ?" for field in valid_updates)
            set_clause += ", updated_at = ?"
            values = list(valid_updates.values()) + [to_iso(utcnow()), note_id]

            conn = get_connection()
            try:
                conn.execute(f"UPDATE clinical_notes SET {set_clause} WHERE id = ?", values)
                conn.commit()
            finally:
                conn.close()

        return self.get_by_id(note_id)

    def set_status(self, note_id: str, status: str) -> ClinicalNote | None:
        """Set the note status unconditionally."""
        conn = get_connection()
        try:
            conn.execute(
                "UPDATE clinical_notes SET status = ?, updated_at = ? WHERE id = ?",
                (status, to_iso(utcnow()), note_id),
            )
            conn.commit()
        finally:
            conn.close()
        return self.get_by_id(note_id)

    def _row_to_note(self, row) -> ClinicalNote:
        """Convert a database row to a ClinicalNote object."""
        return ClinicalNote(
            id=row["id"],
            appointment_id=row["appointment_id"],
            patient_id=row["patient_id"],
            clinician_id=row["clinician_id"],
            chief_complaint=row["chief_complaint"],
            history_of_present_illness=row["history_of_present_illness"],
            physical_exam=row["physical_exam"],
            assessment=row["assessment"],
            plan=row["plan"],
            medications=row["medications"],
            follow_up=row["follow_up"],
            status=row["status"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
