from .connection import get_connection, init_database
from .patient_repository import Patient, PatientRepository
from .clinician_repository import Clinician, ClinicianRepository
from .appointment_repository import Appointment, AppointmentRepository
from .clinical_note_repository import ClinicalNote, ClinicalNoteRepository
from .audit_repository import AuditRecord, AuditRepository

__all__ = [
    "get_connection", "init_database",
    "Patient", "PatientRepository",
    "Clinician", "ClinicianRepository",
    "Appointment", "AppointmentRepository",
    "ClinicalNote", "ClinicalNoteRepository",
    "AuditRecord", "AuditRepository",
]
