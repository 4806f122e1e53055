"""Patient repository with CRUD operations."""

import uuid
from dataclasses import dataclass

from .connection import get_connection, to_iso, utcnow


@dataclass
class Patient:
    id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    date_of_birth: str
    phone: str
    gender: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    status: str = "active"
    email_verified: bool = False
    created_at: str | None = None
    updated_at: str | None = None


class PatientRepository:
    """Repository for patient account rows."""

    # Fields that can be updated
    PATIENT_FIELDS = [
        "first_name", "last_name", "date_of_birth", "phone", "gender",
        "address", "city", "state", "zip_code", "status", "email_verified",
    ]

    def create(self, patient: Patient) -> Patient:
        """Insert a new patient account."""
        conn = get_connection()
        cursor = conn.cursor()

        patient.id = patient.id or str(uuid.uuid4())
        now = to_iso(utcnow())

        try:
            cursor.execute("""
                INSERT INTO patients (
                    id, email, password_hash, first_name, last_name, date_of_birth,
                    phone, gender, address, city, state, zip_code, status,
                    email_verified, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                patient.id, patient.email, patient.password_hash, patient.first_name,
                patient.last_name, patient.date_of_birth, patient.phone, patient.gender,
                patient.address, patient.city, patient.state, patient.zip_code,
                patient.status, int(patient.email_verified), now, now
            ))
            conn.commit()
        finally:
            conn.close()

        patient.created_at = now
        patient.updated_at = now
        return patient

    def get_by_id(self, patient_id: str) -> Patient | None:
        """Get a patient by ID."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM patients WHERE id = ?", (patient_id,))
        row = cursor.fetchone()
        conn.close()
        return self._row_to_patient(row) if row else None

    def find_by_email(self, email: str) -> Patient | None:
        """Find a patient by their unique email."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM patients WHERE LOWER(email) = LOWER(?)", (email,))
        row = cursor.fetchone()
        conn.close()
        return self._row_to_patient(row) if row else None

    def update(self, patient_id: str, updates: dict) -> Patient | None:
        """Update allowed patient fields."""
        valid_updates = {k: v for k, v in updates.items() if k in self.PATIENT_FIELDS}
        if "email_verified" in valid_updates:
            valid_updates["email_verified"] = int(bool(valid_updates["email_verified"]))

        if valid_updates:
            set_clause = ", ".join(f"{field} = ?" for field in valid_updates)
            set_clause += ", updated_at = ?"
            values = list(valid_updates.values()) + [to_iso(utcnow()), patient_id]

            conn = get_connection()
            try:
                conn.execute(f"UPDATE patients SET {set_clause} WHERE id = ?", values)
                conn.commit()
            finally:
                conn.close()

        return self.get_by_id(patient_id)

    def _row_to_patient(self, row) -> Patient:
        """Convert a database row to a Patient object."""
        return Patient(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            date_of_birth=row["date_of_birth"],
            phone=row["phone"],
            gender=row["gender"],
            address=row["address"],
            city=row["city"],
            state=row["state"],
            zip_code=row["zip_code"],
            status=row["status"],
            email_verified=bool(row["email_verified"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
