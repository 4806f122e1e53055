"""Request payloads and sanitized response projections."""

from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError as PydanticValidationError, field_validator

from careledger.errors import ValidationError


def parse_payload(model: type[BaseModel], data):
    """Validate raw input into a payload model, raising the public ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        details = ", ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(details) from e


# =============================================================================
# Registration / login
# =============================================================================


class PatientRegistration(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    date_of_birth: date
    phone: str = Field(..., min_length=1)
    gender: Literal["male", "female", "other"]
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class ClinicianRegistration(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    license_number: str = Field(..., min_length=1)
    specialization: str = Field(..., min_length=1)
    bio: str | None = None
    phone: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class PatientProfileUpdate(BaseModel):
    """Profile fields a patient may change. Email, status and password are not among them."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: str | None = Field(None, min_length=1)
    last_name: str | None = Field(None, min_length=1)
    phone: str | None = Field(None, min_length=1)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    @field_validator("first_name", "last_name", "phone")
    @classmethod
    def not_cleared(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("cannot be cleared")
        return v


# =============================================================================
# Appointments
# =============================================================================


class AppointmentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    patient_id: str = Field(..., min_length=1)
    clinician_id: str = Field(..., min_length=1)
    scheduled_at: datetime
    duration_minutes: int = Field(30, gt=0, le=480)
    reason_for_visit: str | None = None
    appointment_type: Literal["in-person", "remote"] = "in-person"

    @field_validator("scheduled_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


# =============================================================================
# Clinical notes
# =============================================================================


class ClinicalNoteContent(BaseModel):
    """The clinical content fields of a note."""
    model_config = ConfigDict(extra="forbid")

    chief_complaint: str | None = None
    history_of_present_illness: str | None = None
    physical_exam: str | None = None
    assessment: str | None = None
    plan: str | None = None
    medications: str | None = None
    follow_up: str | None = None


class ClinicalNoteCreate(ClinicalNoteContent):
    appointment_id: str = Field(..., min_length=1)


class ClinicalNoteUpdate(ClinicalNoteContent):
    pass


# =============================================================================
# Projections (never carry credential hashes)
# =============================================================================


class AppointmentView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    clinician_id: str
    scheduled_at: str
    duration_minutes: int
    reason_for_visit: str | None = None
    appointment_type: str
    status: str


class ClinicalNoteSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    appointment_id: str
    patient_id: str
    clinician_id: str
    status: str


class ClinicalNoteView(ClinicalNoteSummary):
    chief_complaint: str | None = None
    history_of_present_illness: str | None = None
    physical_exam: str | None = None
    assessment: str | None = None
    plan: str | None = None
    medications: str | None = None
    follow_up: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class AccountView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    role: Literal["patient", "clinician"]
    specialization: str | None = None


class PatientView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    date_of_birth: str
    phone: str
    gender: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class ClinicianDirectoryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    specialization: str
    bio: str | None = None
    phone: str


class AuthResult(BaseModel):
    token: str
    account: AccountView
