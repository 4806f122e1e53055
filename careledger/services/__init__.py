from .appointments import AppointmentService
from .clinical_notes import ClinicalNoteService
from .patients import PatientService
from .registration import RegistrationService

__all__ = ["AppointmentService", "ClinicalNoteService", "PatientService", "RegistrationService"]
