"""Registration, login and token-to-actor resolution."""

import structlog

from careledger.audit import AuditAction, AuditLedger, AuditStatus, ResourceType
from careledger.database.clinician_repository import Clinician, ClinicianRepository
from careledger.database.patient_repository import Patient, PatientRepository
from careledger.errors import AuthenticationError, Conflict, NotFound, storage_guard
from careledger.identity import Actor, RequestContext, Role, actor_from_claims
from careledger.schemas import (
    AccountView,
    AuthResult,
    ClinicianDirectoryEntry,
    ClinicianRegistration,
    LoginRequest,
    PatientRegistration,
    parse_payload,
)
from careledger.security import CredentialService

logger = structlog.get_logger(__name__)

ANONYMOUS = "anonymous"


class RegistrationService:
    """Account lifecycle for patients and clinicians.

    Registration and login run before an Actor exists, so audit records for
    failed attempts carry the actor id "anonymous" (or the matched account
    id when a known account fails its password check).
    """

    def __init__(
        self,
        patients: PatientRepository | None = None,
        clinicians: ClinicianRepository | None = None,
        credentials: CredentialService | None = None,
        ledger: AuditLedger | None = None,
    ):
        self.patients = patients or PatientRepository()
        self.clinicians = clinicians or ClinicianRepository()
        self.credentials = credentials or CredentialService()
        self.ledger = ledger or AuditLedger()

    # Registration

    def register_patient(self, ctx: RequestContext, payload) -> AuthResult:
        data = parse_payload(PatientRegistration, payload)
        log = logger.bind(correlation_id=ctx.correlation_id)

        with storage_guard("patient.register"):
            existing = self.patients.find_by_email(data.email)
        if existing:
            self._record_failure(ctx, Role.PATIENT, AuditAction.REGISTER, ResourceType.PATIENT,
                                 "Patient registration failed - email already exists")
            raise Conflict("Email already registered")

        try:
            with storage_guard("patient.register"):
                patient = self.patients.create(Patient(
                    id="",
                    email=data.email,
                    password_hash=self.credentials.hash(data.password),
                    first_name=data.first_name,
                    last_name=data.last_name,
                    date_of_birth=data.date_of_birth.isoformat(),
                    phone=data.phone,
                    gender=data.gender,
                    address=data.address,
                    city=data.city,
                    state=data.state,
                    zip_code=data.zip_code,
                ))
        except Conflict:
            # Lost a race with a concurrent registration of the same email
            self._record_failure(ctx, Role.PATIENT, AuditAction.REGISTER, ResourceType.PATIENT,
                                 "Patient registration failed - email already exists")
            raise

        self._record_success(ctx, patient.id, Role.PATIENT, AuditAction.REGISTER, ResourceType.PATIENT,
                             "Patient registered successfully", new_values={"email": patient.email})
        log.info("Patient registered", patient_id=patient.id)
        return self._auth_result(patient, Role.PATIENT)

    def register_clinician(self, ctx: RequestContext, payload) -> AuthResult:
        data = parse_payload(ClinicianRegistration, payload)
        log = logger.bind(correlation_id=ctx.correlation_id)

        with storage_guard("clinician.register"):
            email_taken = self.clinicians.find_by_email(data.email) is not None
            license_taken = self.clinicians.find_by_license_number(data.license_number) is not None
        if email_taken or license_taken:
            what = "email" if email_taken else "license number"
            self._record_failure(ctx, Role.CLINICIAN, AuditAction.REGISTER, ResourceType.CLINICIAN,
                                 f"Clinician registration failed - {what} already exists")
            raise Conflict(f"{what.capitalize()} already registered")

        try:
            with storage_guard("clinician.register"):
                clinician = self.clinicians.create(Clinician(
                    id="",
                    email=data.email,
                    password_hash=self.credentials.hash(data.password),
                    first_name=data.first_name,
                    last_name=data.last_name,
                    license_number=data.license_number,
                    specialization=data.specialization,
                    bio=data.bio,
                    phone=data.phone,
                ))
        except Conflict:
            self._record_failure(ctx, Role.CLINICIAN, AuditAction.REGISTER, ResourceType.CLINICIAN,
                                 "Clinician registration failed - email or license number already exists")
            raise

        self._record_success(ctx, clinician.id, Role.CLINICIAN, AuditAction.REGISTER, ResourceType.CLINICIAN,
                             "Clinician registered successfully", new_values={"email": clinician.email})
        log.info("Clinician registered", clinician_id=clinician.id)
        return self._auth_result(clinician, Role.CLINICIAN)

    # Login

    def login_patient(self, ctx: RequestContext, payload) -> AuthResult:
        data = parse_payload(LoginRequest, payload)
        with storage_guard("patient.login"):
            patient = self.patients.find_by_email(data.email)
        return self._login(ctx, patient, data.password, Role.PATIENT, ResourceType.PATIENT)

    def login_clinician(self, ctx: RequestContext, payload) -> AuthResult:
        data = parse_payload(LoginRequest, payload)
        with storage_guard("clinician.login"):
            clinician = self.clinicians.find_by_email(data.email)
        return self._login(ctx, clinician, data.password, Role.CLINICIAN, ResourceType.CLINICIAN)

    def authenticate(self, token: str) -> Actor:
        """Resolve a bearer token into the Actor for a request."""
        if not token:
            raise AuthenticationError("Missing authentication token", code="MISSING_TOKEN")
        return actor_from_claims(self.credentials.validate(token))

    # Directory

    def get_clinician(self, clinician_id: str) -> ClinicianDirectoryEntry:
        with storage_guard("clinician.get"):
            clinician = self.clinicians.get_by_id(clinician_id)
        if clinician is None:
            raise NotFound("Clinician not found")
        return ClinicianDirectoryEntry.model_validate(clinician)

    def list_clinicians(self, specialization: str | None = None) -> list[ClinicianDirectoryEntry]:
        with storage_guard("clinician.list"):
            clinicians = self.clinicians.find_by_specialization(specialization)
        return [ClinicianDirectoryEntry.model_validate(c) for c in clinicians]

    # Private helpers

    def _login(self, ctx: RequestContext, account, password: str, role: Role,
               resource_type: ResourceType) -> AuthResult:
        log = logger.bind(correlation_id=ctx.correlation_id)

        if account is None:
            self._record_failure(ctx, role, AuditAction.LOGIN, resource_type,
                                 f"Login failed - {role.value} not found")
            raise AuthenticationError("Invalid email or password")

        if not self.credentials.verify(password, account.password_hash):
            self._record_failure(ctx, role, AuditAction.LOGIN, resource_type,
                                 "Login failed - invalid password", actor_id=account.id)
            raise AuthenticationError("Invalid email or password")

        if account.status != "active":
            self._record_failure(ctx, role, AuditAction.LOGIN, resource_type,
                                 "Login failed - inactive account", actor_id=account.id)
            raise AuthenticationError("Invalid email or password")

        self._record_success(ctx, account.id, role, AuditAction.LOGIN, resource_type,
                             f"{role.value.capitalize()} logged in successfully")
        log.info("Account logged in", account_id=account.id, role=role.value)
        return self._auth_result(account, role)

    def _auth_result(self, account, role: Role) -> AuthResult:
        token = self.credentials.issue({"sub": account.id, "email": account.email, "role": role.value})
        return AuthResult(
            token=token,
            account=AccountView(
                id=account.id,
                email=account.email,
                first_name=account.first_name,
                last_name=account.last_name,
                role=role.value,
                specialization=getattr(account, "specialization", None),
            ),
        )

    def _record_failure(self, ctx: RequestContext, role: Role, action: AuditAction,
                        resource_type: ResourceType, description: str,
                        actor_id: str = ANONYMOUS) -> None:
        self.ledger.record(
            actor_id, role.value, action, resource_type, description,
            status=AuditStatus.FAILURE,
            resource_id=None if actor_id == ANONYMOUS else actor_id,
            ip_address=ctx.ip_address,
            correlation_id=ctx.correlation_id,
        )
        logger.warning(description, correlation_id=ctx.correlation_id, role=role.value)

    def _record_success(self, ctx: RequestContext, account_id: str, role: Role, action: AuditAction,
                        resource_type: ResourceType, description: str,
                        new_values: dict | None = None) -> None:
        self.ledger.record(
            account_id, role.value, action, resource_type, description,
            status=AuditStatus.SUCCESS,
            resource_id=account_id,
            new_values=new_values,
            ip_address=ctx.ip_address,
            correlation_id=ctx.correlation_id,
        )
