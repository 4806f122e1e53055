"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from careledger.database import (
    AuditRepository,
    Clinician,
    ClinicianRepository,
    Patient,
    PatientRepository,
    get_connection,
    init_database,
)
from careledger.identity import Actor, RequestContext, Role

# Fixed "now" used by every service under test
NOW = datetime(2030, 1, 15, 9, 0, tzinfo=timezone.utc)
TOMORROW = NOW + timedelta(days=1)
YESTERDAY = NOW - timedelta(days=1)


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the package at a fresh SQLite file for every test."""
    monkeypatch.setenv("CARELEDGER_DB_PATH", str(tmp_path / "careledger-test.db"))
    monkeypatch.setenv("CARELEDGER_JWT_SECRET", "test-secret")
    init_database()
    yield tmp_path / "careledger-test.db"


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def audit_repo():
    return AuditRepository()


def _make_patient(patient_id: str, first_name: str) -> Actor:
    PatientRepository().create(Patient(
        id=patient_id,
        email=f"{first_name.lower()}@mail.com",
        password_hash="not-a-real-hash",
        first_name=first_name,
        last_name="Tester",
        date_of_birth="1990-01-01",
        phone="555-0100",
        gender="other",
    ))
    return Actor(id=patient_id, role=Role.PATIENT)


def _make_clinician(clinician_id: str, last_name: str) -> Actor:
    ClinicianRepository().create(Clinician(
        id=clinician_id,
        email=f"dr.{last_name.lower()}@clinic.org",
        password_hash="not-a-real-hash",
        first_name="Test",
        last_name=last_name,
        license_number=f"LIC-{clinician_id}",
        specialization="Family Medicine",
        phone="555-0200",
    ))
    return Actor(id=clinician_id, role=Role.CLINICIAN)


@pytest.fixture
def p1():
    """Patient who books appointments in most scenarios."""
    return _make_patient("patient-1", "Alice")


@pytest.fixture
def p2():
    """A second patient with no relation to p1's records."""
    return _make_patient("patient-2", "Bob")


@pytest.fixture
def d1():
    """Clinician attending p1's appointments."""
    return _make_clinician("clinician-1", "House")


@pytest.fixture
def d2():
    """A clinician who is not a participant in p1's appointments."""
    return _make_clinician("clinician-2", "Quinn")


def ctx_for(actor: Actor | None = None) -> RequestContext:
    """A fresh request context, so each call gets its own correlation id."""
    return RequestContext(actor=actor, ip_address="10.0.0.1")


def count_rows(table: str, where: str = "", params: tuple = ()) -> int:
    """Count rows straight from SQLite, bypassing the repositories."""
    conn = get_connection()
    total = conn.execute(f"SELECT COUNT(*) FROM {table} {where}", params).fetchone()[0]
    conn.close()
    return total
