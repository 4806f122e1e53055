"""Seed the database with sample accounts and an appointment.

Everything goes through the orchestrators, so the seed itself is audited.
"""

from datetime import timedelta

from careledger.database import init_database
from careledger.database.connection import utcnow
from careledger.errors import Conflict
from careledger.identity import RequestContext
from careledger.services import AppointmentService, RegistrationService

SEED_PASSWORD = "Password123!"

MOCK_PATIENTS = [
    {
        "email": "john.smith@mail.com",
        "first_name": "John",
        "last_name": "Smith",
        "date_of_birth": "1985-03-15",
        "phone": "555-0101",
        "gender": "male",
        "address": "123 Main St",
        "city": "San Francisco",
        "state": "CA",
        "zip_code": "94102",
    },
    {
        "email": "sarah.j@mail.com",
        "first_name": "Sarah",
        "last_name": "Johnson",
        "date_of_birth": "1992-07-22",
        "phone": "555-0102",
        "gender": "female",
        "city": "Oakland",
        "state": "CA",
    },
]

MOCK_CLINICIANS = [
    {
        "email": "dr.patel@clinic.org",
        "first_name": "Priya",
        "last_name": "Patel",
        "license_number": "CA-MD-100231",
        "specialization": "Family Medicine",
        "bio": "Primary care with a focus on preventive medicine.",
        "phone": "555-0201",
    },
    {
        "email": "dr.okafor@clinic.org",
        "first_name": "Daniel",
        "last_name": "Okafor",
        "license_number": "CA-MD-100877",
        "specialization": "Orthopedics",
        "phone": "555-0202",
    },
]


def seed_database():
    """Initialize and seed the database with mock data."""
    print("Initializing database...")
    init_database()

    registration = RegistrationService()
    appointments = AppointmentService()
    ctx = RequestContext(ip_address="127.0.0.1")

    print("Creating mock patients...")
    patients = []
    for patient in MOCK_PATIENTS:
        try:
            result = registration.register_patient(ctx, {**patient, "password": SEED_PASSWORD})
            print(f"  Created {patient['first_name']} {patient['last_name']}")
        except Conflict:
            result = registration.login_patient(ctx, {"email": patient["email"], "password": SEED_PASSWORD})
            print(f"  Skipping {patient['first_name']} {patient['last_name']} (already exists)")
        patients.append(result)

    print("Creating mock clinicians...")
    clinicians = []
    for clinician in MOCK_CLINICIANS:
        try:
            result = registration.register_clinician(ctx, {**clinician, "password": SEED_PASSWORD})
            print(f"  Created Dr. {clinician['last_name']}")
        except Conflict:
            result = registration.login_clinician(ctx, {"email": clinician["email"], "password": SEED_PASSWORD})
            print(f"  Skipping Dr. {clinician['last_name']} (already exists)")
        clinicians.append(result)

    print("Booking a sample appointment...")
    patient = patients[0]
    patient_ctx = RequestContext(actor=registration.authenticate(patient.token), ip_address="127.0.0.1")
    tomorrow = (utcnow() + timedelta(days=1)).replace(hour=16, minute=0, second=0, microsecond=0)
    appointment = appointments.create_appointment(patient_ctx, {
        "patient_id": patient.account.id,
        "clinician_id": clinicians[0].account.id,
        "scheduled_at": tomorrow,
        "reason_for_visit": "Annual physical",
    })
    print(f"  Booked {appointment.id} at {appointment.scheduled_at}")

    print("\nDatabase seeded successfully!")
    print(f"  - {len(patients)} patients")
    print(f"  - {len(clinicians)} clinicians")
    print(f"  - sample password: {SEED_PASSWORD}")


if __name__ == "__main__":
    seed_database()
