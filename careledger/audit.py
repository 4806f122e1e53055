"""Audit ledger writer.

Every authorization decision and completed mutation is recorded here. The
write is best-effort and sits outside the primary mutation's transaction: if
it fails, the failure is reported on the operational log and swallowed, so
an already-committed result is never rolled back or turned into an error.
Gaps in the compliance record are possible when the ledger store is down.
"""

from enum import Enum
from typing import Any

import structlog

from careledger.database.audit_repository import AuditRecord, AuditRepository

logger = structlog.get_logger(__name__)


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    CANCEL = "CANCEL"
    FINALIZE = "FINALIZE"
    VIEW = "VIEW"
    REGISTER = "REGISTER"
    LOGIN = "LOGIN"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class ResourceType(str, Enum):
    APPOINTMENT = "appointment"
    CLINICAL_NOTE = "clinical_note"
    PATIENT = "patient"
    CLINICIAN = "clinician"


def _value(item: Any) -> Any:
    return item.value if isinstance(item, Enum) else item


class AuditLedger:
    """Append-only recorder of access decisions and their outcomes."""

    def __init__(self, repository: AuditRepository | None = None):
        self.repository = repository or AuditRepository()

    def record(
        self,
        actor_id: str,
        actor_role: str | None,
        action: AuditAction | str,
        resource_type: ResourceType | str,
        description: str,
        *,
        status: AuditStatus | str = AuditStatus.SUCCESS,
        resource_id: str | None = None,
        old_values: dict | None = None,
        new_values: dict | None = None,
        ip_address: str | None = None,
        correlation_id: str | None = None,
    ) -> AuditRecord | None:
        """Append one record. Returns None when the ledger write failed."""
        record = AuditRecord(
            id="",
            actor_id=actor_id,
            actor_role=_value(actor_role),
            action=_value(action),
            resource_type=_value(resource_type),
            resource_id=resource_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=ip_address,
            correlation_id=correlation_id,
            description=description,
            status=_value(status),
        )
        try:
            saved = self.repository.insert(record)
        except Exception as e:
            # The trail write is what failed, so only the operational log can carry this.
            logger.error(
                "Failed to record audit log",
                error=str(e),
                actor_id=actor_id,
                action=record.action,
                resource_type=record.resource_type,
                resource_id=resource_id,
                correlation_id=correlation_id,
            )
            return None

        logger.info(
            "Audit log recorded",
            actor_id=actor_id,
            action=record.action,
            resource_type=record.resource_type,
            status=record.status,
            correlation_id=correlation_id,
        )
        return saved

    # Compliance reporting queries

    def for_resource_type(self, resource_type: ResourceType | str, limit: int = 50) -> list[AuditRecord]:
        return self.repository.find(resource_type=_value(resource_type), limit=limit)

    def for_actor(self, actor_id: str, limit: int = 50) -> list[AuditRecord]:
        return self.repository.find(actor_id=actor_id, limit=limit)

    def for_resource(self, resource_type: ResourceType | str, resource_id: str) -> list[AuditRecord]:
        return self.repository.find(resource_type=_value(resource_type), resource_id=resource_id, limit=None)

    def for_correlation_id(self, correlation_id: str) -> list[AuditRecord]:
        return self.repository.find(correlation_id=correlation_id, limit=None)

    def recent(self, limit: int = 50) -> list[AuditRecord]:
        return self.repository.find(limit=limit)
