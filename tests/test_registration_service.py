"""Tests for registration, login and token resolution."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from careledger.database import ClinicianRepository, PatientRepository
from careledger.errors import AuthenticationError, Conflict, NotFound, ValidationError
from careledger.identity import Role
from careledger.security import CredentialService
from careledger.services import RegistrationService
from conftest import count_rows, ctx_for

PATIENT_PAYLOAD = {
    "email": "jane.doe@mail.com",
    "password": "s3cure-pass",
    "first_name": "Jane",
    "last_name": "Doe",
    "date_of_birth": "1988-04-02",
    "phone": "555-0142",
    "gender": "female",
}

CLINICIAN_PAYLOAD = {
    "email": "dr.wu@clinic.org",
    "password": "s3cure-pass",
    "first_name": "Lin",
    "last_name": "Wu",
    "license_number": "CA-MD-55501",
    "specialization": "Cardiology",
    "phone": "555-0177",
}


@pytest.fixture
def service():
    return RegistrationService()


class TestRegistration:
    """Tests for account registration."""

    def test_register_patient(self, service, audit_repo):
        """Test that registration stores a hashed password and audits REGISTER success."""
        ctx = ctx_for()
        result = service.register_patient(ctx, PATIENT_PAYLOAD)

        assert result.token
        assert result.account.role == "patient"
        assert result.account.email == "jane.doe@mail.com"
        assert not hasattr(result.account, "password_hash")

        stored = PatientRepository().get_by_id(result.account.id)
        assert stored.password_hash != PATIENT_PAYLOAD["password"]

        records = audit_repo.find(correlation_id=ctx.correlation_id)
        assert [(r.action, r.status) for r in records] == [("REGISTER", "success")]
        assert records[0].actor_id == result.account.id
        assert records[0].new_values == {"email": "jane.doe@mail.com"}

    def test_duplicate_email_conflicts(self, service, audit_repo):
        """Test that a taken email conflicts and the failure is audited as anonymous."""
        service.register_patient(ctx_for(), PATIENT_PAYLOAD)
        ctx = ctx_for()
        with pytest.raises(Conflict):
            service.register_patient(ctx, PATIENT_PAYLOAD)

        records = audit_repo.find(correlation_id=ctx.correlation_id)
        assert [(r.actor_id, r.status) for r in records] == [("anonymous", "failure")]

    def test_invalid_patient_payload(self, service):
        """Test that a short password fails validation."""
        with pytest.raises(ValidationError, match="password"):
            service.register_patient(ctx_for(), {**PATIENT_PAYLOAD, "password": "short"})

    def test_email_taken_after_precheck_is_still_audited(self, service, audit_repo):
        """Test that a unique-constraint conflict still writes the failure record."""
        service.register_patient(ctx_for(), PATIENT_PAYLOAD)
        ctx = ctx_for()
        with patch.object(PatientRepository, "find_by_email", return_value=None), \
             pytest.raises(Conflict):
            service.register_patient(ctx, PATIENT_PAYLOAD)

        records = audit_repo.find(correlation_id=ctx.correlation_id)
        assert [(r.action, r.actor_id, r.status) for r in records] == [("REGISTER", "anonymous", "failure")]
        assert count_rows("patients", "WHERE email = ?", ("jane.doe@mail.com",)) == 1

    def test_clinician_taken_after_precheck_is_still_audited(self, service, audit_repo):
        """Test that a clinician insert conflict still writes the failure record."""
        service.register_clinician(ctx_for(), CLINICIAN_PAYLOAD)
        ctx = ctx_for()
        with patch.object(ClinicianRepository, "find_by_email", return_value=None), \
             patch.object(ClinicianRepository, "find_by_license_number", return_value=None), \
             pytest.raises(Conflict):
            service.register_clinician(ctx, CLINICIAN_PAYLOAD)

        records = audit_repo.find(correlation_id=ctx.correlation_id)
        assert [(r.action, r.status) for r in records] == [("REGISTER", "failure")]

    def test_register_clinician(self, service):
        """Test that a clinician registers with their specialization."""
        result = service.register_clinician(ctx_for(), CLINICIAN_PAYLOAD)
        assert result.account.role == "clinician"
        assert result.account.specialization == "Cardiology"

    def test_duplicate_license_conflicts(self, service):
        """Test that a taken license number conflicts."""
        service.register_clinician(ctx_for(), CLINICIAN_PAYLOAD)
        with pytest.raises(Conflict, match="License"):
            service.register_clinician(ctx_for(), {**CLINICIAN_PAYLOAD, "email": "other@clinic.org"})


class TestLogin:
    """Tests for login and token handling."""

    @pytest.fixture(autouse=True)
    def registered(self, service):
        service.register_patient(ctx_for(), PATIENT_PAYLOAD)
        service.register_clinician(ctx_for(), CLINICIAN_PAYLOAD)

    def test_patient_login(self, service, audit_repo):
        """Test that a patient logs in and LOGIN success is audited."""
        ctx = ctx_for()
        result = service.login_patient(ctx, {"email": "jane.doe@mail.com", "password": "s3cure-pass"})
        assert result.account.first_name == "Jane"
        records = audit_repo.find(correlation_id=ctx.correlation_id)
        assert [(r.action, r.status) for r in records] == [("LOGIN", "success")]

    def test_clinician_login(self, service):
        """Test that a clinician logs in."""
        result = service.login_clinician(ctx_for(), {"email": "dr.wu@clinic.org", "password": "s3cure-pass"})
        assert result.account.role == "clinician"

    def test_wrong_password(self, service, audit_repo):
        """Test that a bad password is rejected and audited."""
        ctx = ctx_for()
        with pytest.raises(AuthenticationError) as exc:
            service.login_patient(ctx, {"email": "jane.doe@mail.com", "password": "wrong-pass"})

        assert exc.value.code == "INVALID_CREDENTIALS"
        records = audit_repo.find(correlation_id=ctx.correlation_id)
        assert [(r.action, r.status) for r in records] == [("LOGIN", "failure")]

    def test_unknown_email_has_same_message(self, service):
        """Test that an unknown email gets the same generic message."""
        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            service.login_patient(ctx_for(), {"email": "nobody@mail.com", "password": "whatever"})

    def test_patient_cannot_log_in_as_clinician(self, service):
        """Test that patient credentials do not open a clinician session."""
        with pytest.raises(AuthenticationError):
            service.login_clinician(ctx_for(), {"email": "jane.doe@mail.com", "password": "s3cure-pass"})

    def test_inactive_account(self, service):
        """Test that a suspended account cannot log in."""
        patient = PatientRepository().find_by_email("jane.doe@mail.com")
        PatientRepository().update(patient.id, {"status": "suspended"})
        with pytest.raises(AuthenticationError):
            service.login_patient(ctx_for(), {"email": "jane.doe@mail.com", "password": "s3cure-pass"})

    def test_token_resolves_to_actor(self, service):
        """Test that an issued token resolves back to the account."""
        result = service.login_patient(ctx_for(), {"email": "jane.doe@mail.com", "password": "s3cure-pass"})
        actor = service.authenticate(result.token)
        assert actor.id == result.account.id
        assert actor.role is Role.PATIENT

    def test_missing_token(self, service):
        """Test that an empty token is rejected as MISSING_TOKEN."""
        with pytest.raises(AuthenticationError) as exc:
            service.authenticate("")
        assert exc.value.code == "MISSING_TOKEN"

    def test_tampered_token(self, service):
        """Test that a malformed token is rejected as INVALID_TOKEN."""
        with pytest.raises(AuthenticationError) as exc:
            service.authenticate("not.a.token")
        assert exc.value.code == "INVALID_TOKEN"

    def test_expired_token(self, service):
        """Test that an expired token is rejected."""
        token = CredentialService().issue(
            {"sub": "someone", "role": "patient"}, expires_delta=timedelta(minutes=-5)
        )
        with pytest.raises(AuthenticationError):
            service.authenticate(token)

    def test_token_from_other_secret_rejected(self, service):
        """Test that a token signed with another secret is rejected."""
        token = CredentialService(secret_key="another-secret").issue({"sub": "x", "role": "patient"})
        with pytest.raises(AuthenticationError):
            service.authenticate(token)


class TestClinicianDirectory:
    """Tests for clinician lookup."""

    def test_list_and_get(self, service):
        """Test that clinicians are searchable and retrievable."""
        created = service.register_clinician(ctx_for(), CLINICIAN_PAYLOAD)
        listed = service.list_clinicians("cardio")
        assert [c.id for c in listed] == [created.account.id]
        assert service.get_clinician(created.account.id).last_name == "Wu"

    def test_get_unknown(self, service):
        """Test that an unknown clinician raises NotFound."""
        with pytest.raises(NotFound):
            service.get_clinician("missing")

    def test_directory_is_not_audited(self, service):
        """Test that directory reads write no audit records."""
        service.list_clinicians()
        assert count_rows("audit_logs") == 0
