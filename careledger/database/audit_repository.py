"""Append-only audit ledger storage.

Only insert and query methods exist here; the table also carries triggers
that reject UPDATE and DELETE.
"""

import json
import uuid
from dataclasses import dataclass

from .connection import get_connection, to_iso, utcnow


@dataclass
class AuditRecord:
    id: str
    actor_id: str
    actor_role: str | None
    action: str
    resource_type: str
    description: str
    status: str
    resource_id: str | None = None
    old_values: dict | None = None
    new_values: dict | None = None
    ip_address: str | None = None
    correlation_id: str | None = None
    created_at: str | None = None


class AuditRepository:
    """Insert and query audit ledger rows."""

    def insert(self, record: AuditRecord) -> AuditRecord:
        """Append a record to the ledger."""
        record.id = record.id or str(uuid.uuid4())
        record.created_at = record.created_at or to_iso(utcnow())

        conn = get_connection()
        try:
            conn.execute(
                """INSERT INTO audit_logs
                   (id, actor_id, actor_role, action, resource_type, resource_id,
                    old_values, new_values, ip_address, correlation_id,
                    description, status, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record.id, record.actor_id, record.actor_role, record.action,
                    record.resource_type, record.resource_id,
                    self._dump(record.old_values), self._dump(record.new_values),
                    record.ip_address, record.correlation_id, record.description,
                    record.status, record.created_at,
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return record

    def find(
        self,
        actor_id: str | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        correlation_id: str | None = None,
        limit: int | None = 50,
    ) -> list[AuditRecord]:
        """Query the ledger, newest first."""
        conn = get_connection()
        cursor = conn.cursor()

        query = "SELECT * FROM audit_logs WHERE 1 = 1"
        params = []

        if actor_id:
            query += " AND actor_id = ?"
            params.append(actor_id)
        if resource_type:
            query += " AND resource_type = ?"
            params.append(resource_type)
        if resource_id:
            query += " AND resource_id = ?"
            params.append(resource_id)
        if correlation_id:
            query += " AND correlation_id = ?"
            params.append(correlation_id)

        # rowid breaks ties between records written within the same microsecond
        query += " ORDER BY created_at DESC, rowid DESC"
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        cursor.execute(query, params)
        rows = cursor.fetchall()
        conn.close()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _dump(values: dict | None) -> str | None:
        return json.dumps(values, default=str, sort_keys=True) if values is not None else None

    def _row_to_record(self, row) -> AuditRecord:
        """Convert a database row to an AuditRecord object."""
        return AuditRecord(
            id=row["id"],
            actor_id=row["actor_id"],
            actor_role=row["actor_role"],
            action=row["action"],
            resource_type=row["resource_type"],
            resource_id=row["resource_id"],
            old_values=json.loads(row["old_values"]) if row["old_values"] else None,
            new_values=json.loads(row["new_values"]) if row["new_values"] else None,
            ip_address=row["ip_address"],
            correlation_id=row["correlation_id"],
            description=row["description"],
            status=row["status"],
            created_at=row["created_at"],
        )
