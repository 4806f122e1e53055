"""Identity context attached to every incoming operation."""

import uuid
from dataclasses import dataclass, field
from enum import Enum

from careledger.errors import AuthenticationError


class Role(str, Enum):
    """Actor classes known to the policy evaluator."""
    PATIENT = "patient"
    CLINICIAN = "clinician"


@dataclass(frozen=True)
class Actor:
    """An authenticated party. Rebuilt per request, never persisted."""
    id: str
    role: Role

    @property
    def is_clinician(self) -> bool:
        return self.role is Role.CLINICIAN


def actor_from_claims(claims: dict) -> Actor:
    """Build an Actor from verified token claims."""
    subject = claims.get("sub")
    role = claims.get("role")
    if not subject or not role:
        raise AuthenticationError("Token missing identity claims", code="INVALID_TOKEN")
    try:
        return Actor(id=str(subject), role=Role(role))
    except ValueError:
        raise AuthenticationError("Token carries an unknown role", code="INVALID_TOKEN")


@dataclass(frozen=True)
class RequestContext:
    """Per-call context threaded explicitly through orchestrators."""
    actor: Actor | None = None
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    ip_address: str | None = None

    def require_actor(self) -> Actor:
        if self.actor is None:
            raise AuthenticationError("Authentication required", code="MISSING_AUTH")
        return self.actor

    @property
    def actor_id(self) -> str:
        return self.actor.id if self.actor else "anonymous"
