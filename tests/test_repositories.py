"""Tests for the SQLite repositories."""

import sqlite3

import pytest

from careledger.database import (
    Appointment,
    AppointmentRepository,
    ClinicalNote,
    ClinicalNoteRepository,
    ClinicianRepository,
    PatientRepository,
    get_connection,
)
from careledger.errors import Conflict, DependencyFailure, storage_guard


@pytest.fixture
def appointment(p1, d1):
    return AppointmentRepository().create(Appointment(
        id="", patient_id=p1.id, clinician_id=d1.id, scheduled_at="2030-02-01T10:00:00.000000+00:00",
    ))


class TestPatientRepository:
    """Tests for patient rows."""

    def test_find_by_email_ignores_case(self, p1):
        """Test that email lookup is case-insensitive."""
        patient = PatientRepository().find_by_email("ALICE@mail.com")
        assert patient is not None
        assert patient.id == p1.id

    def test_update_ignores_unknown_fields(self, p1):
        """Test that update only writes whitelisted fields."""
        repo = PatientRepository()
        updated = repo.update(p1.id, {"city": "Austin", "password_hash": "evil"})
        assert updated.city == "Austin"
        assert updated.password_hash == "not-a-real-hash"

    def test_email_verified_is_bool(self, p1):
        """Test that email_verified reads back as a bool."""
        assert PatientRepository().get_by_id(p1.id).email_verified is False


class TestClinicianRepository:
    """Tests for clinician rows."""

    def test_find_by_license(self, d1):
        """Test that a clinician is found by license number."""
        assert ClinicianRepository().find_by_license_number("LIC-clinician-1").id == d1.id

    def test_specialization_search_skips_inactive(self, d1, d2):
        """Test that inactive clinicians are left out of the search."""
        repo = ClinicianRepository()
        conn = get_connection()
        conn.execute("UPDATE clinicians SET status = 'inactive' WHERE id = ?", (d2.id,))
        conn.commit()
        conn.close()
        assert [c.id for c in repo.find_by_specialization("family")] == [d1.id]


class TestAppointmentRepository:
    """Tests for appointment rows."""

    def test_defaults(self, appointment):
        """Test that a new appointment gets its default status and duration."""
        stored = AppointmentRepository().get_by_id(appointment.id)
        assert stored.status == "scheduled"
        assert stored.duration_minutes == 30
        assert stored.created_at == stored.updated_at

    def test_update_status_returns_fresh_row(self, appointment):
        """Test that update_status returns the updated row."""
        updated = AppointmentRepository().update_status(appointment.id, "cancelled")
        assert updated.status == "cancelled"

    def test_update_status_missing_row(self):
        """Test that update_status on a missing id returns None."""
        assert AppointmentRepository().update_status("missing", "cancelled") is None

    def test_unknown_patient_violates_foreign_key(self, d1):
        """Test that an unknown patient id is refused by the foreign key."""
        with pytest.raises(sqlite3.IntegrityError):
            AppointmentRepository().create(Appointment(
                id="", patient_id="ghost", clinician_id=d1.id, scheduled_at="2030-02-01T10:00:00.000000+00:00",
            ))


class TestClinicalNoteRepository:
    """Tests for clinical note rows."""

    def test_one_note_per_appointment(self, appointment):
        """Test that a second note for an appointment is refused."""
        repo = ClinicalNoteRepository()
        note = ClinicalNote(id="", appointment_id=appointment.id,
                            patient_id=appointment.patient_id, clinician_id=appointment.clinician_id)
        repo.create(note)
        with pytest.raises(sqlite3.IntegrityError):
            repo.create(ClinicalNote(id="", appointment_id=appointment.id,
                                     patient_id=appointment.patient_id, clinician_id=appointment.clinician_id))

    def test_update_content_cannot_touch_status(self, appointment):
        """Test that content updates leave the status alone."""
        repo = ClinicalNoteRepository()
        note = repo.create(ClinicalNote(id="", appointment_id=appointment.id,
                                        patient_id=appointment.patient_id,
                                        clinician_id=appointment.clinician_id))
        updated = repo.update_content(note.id, {"plan": "Rest", "status": "signed"})
        assert updated.plan == "Rest"
        assert updated.status == "draft"

    def test_deleting_appointment_cascades(self, appointment):
        """Test that removing an appointment removes its note."""
        repo = ClinicalNoteRepository()
        note = repo.create(ClinicalNote(id="", appointment_id=appointment.id,
                                        patient_id=appointment.patient_id,
                                        clinician_id=appointment.clinician_id))
        conn = get_connection()
        conn.execute("DELETE FROM appointments WHERE id = ?", (appointment.id,))
        conn.commit()
        conn.close()
        assert repo.get_by_id(note.id) is None


class TestStorageGuard:
    """Tests for storage error translation."""

    def test_integrity_error_becomes_conflict(self):
        """Test that an integrity error surfaces as Conflict."""
        with pytest.raises(Conflict):
            with storage_guard("test"):
                raise sqlite3.IntegrityError("UNIQUE constraint failed")

    def test_other_errors_become_dependency_failure(self):
        """Test that other SQLite errors surface as DependencyFailure."""
        with pytest.raises(DependencyFailure) as exc:
            with storage_guard("test"):
                raise sqlite3.OperationalError("database is locked")
        assert exc.value.to_dict()["code"] == "DEPENDENCY_FAILURE"

    def test_domain_errors_pass_through(self):
        """Test that non-storage errors pass through untouched."""
        with pytest.raises(KeyError):
            with storage_guard("test"):
                raise KeyError("not storage")
