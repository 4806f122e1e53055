"""Clinician repository with directory queries."""

import uuid
from dataclasses import dataclass

from .connection import get_connection, to_iso, utcnow


@dataclass
class Clinician:
    id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    license_number: str
    specialization: str
    phone: str
    bio: str | None = None
    status: str = "active"
    email_verified: bool = False
    created_at: str | None = None
    updated_at: str | None = None


class ClinicianRepository:
    """Repository for clinician account rows."""

    def create(self, clinician: Clinician) -> Clinician:
        """Insert a new clinician account."""
        conn = get_connection()
        cursor = conn.cursor()

        clinician.id = clinician.id or str(uuid.uuid4())
        now = to_iso(utcnow())

        try:
            cursor.execute(
                """INSERT INTO clinicians
                   (id, email, password_hash, first_name, last_name, license_number,
                    specialization, bio, phone, status, email_verified,
                    created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    clinician.id, clinician.email, clinician.password_hash,
                    clinician.first_name, clinician.last_name, clinician.license_number,
                    clinician.specialization, clinician.bio, clinician.phone,
                    clinician.status, int(clinician.email_verified), now, now,
                ),
            )
            conn.commit()
        finally:
            conn.close()

        clinician.created_at = now
        clinician.updated_at = now
        return clinician

    def get_by_id(self, clinician_id: str) -> Clinician | None:
        """Get a clinician by ID."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM clinicians WHERE id = ?", (clinician_id,))
        row = cursor.fetchone()
        conn.close()
        return self._row_to_clinician(row) if row else None

    def find_by_email(self, email: str) -> Clinician | None:
        """Find a clinician by their unique email."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM clinicians WHERE LOWER(email) = LOWER(?)", (email,))
        row = cursor.fetchone()
        conn.close()
        return self._row_to_clinician(row) if row else None

    def find_by_license_number(self, license_number: str) -> Clinician | None:
        """Find a clinician by their unique license number."""
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM clinicians WHERE license_number = ?", (license_number,))
        row = cursor.fetchone()
        conn.close()
        return self._row_to_clinician(row) if row else None

    def find_by_specialization(self, specialization: str | None = None, limit: int = 20) -> list[Clinician]:
        """List active clinicians, optionally filtered by specialization."""
        conn = get_connection()
        cursor = conn.cursor()

        query = "SELECT * FROM clinicians WHERE status = 'active'"
        params = []

        if specialization:
            query += " AND specialization LIKE ?"
            params.append(f"%{specialization}%")

        query += " ORDER BY last_name, first_name LIMIT ?"
        params.append(limit)

        cursor.execute(query, params)
        rows = cursor.fetchall()
        conn.close()

        return [self._row_to_clinician(row) for row in rows]

    def _row_to_clinician(self, row) -> Clinician:
        """Convert a database row to a Clinician object."""
        return Clinician(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            license_number=row["license_number"],
            specialization=row["specialization"],
            bio=row["bio"],
            phone=row["phone"],
            status=row["status"],
            email_verified=bool(row["email_verified"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
