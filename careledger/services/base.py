"""Shared orchestration steps: authorize-or-deny and audit emission."""

from datetime import datetime
from typing import Callable

import structlog

from careledger.audit import AuditAction, AuditLedger, AuditStatus, ResourceType
from careledger.database.connection import utcnow
from careledger.errors import PermissionDenied
from careledger.identity import Actor, RequestContext
from careledger.policy import Action, ResourceOwnership, authorize

logger = structlog.get_logger(__name__)


class LifecycleService:
    """Base for orchestrators that sequence authorization, mutation and audit."""

    def __init__(self, ledger: AuditLedger | None = None, clock: Callable[[], datetime] = utcnow):
        self.ledger = ledger or AuditLedger()
        self.clock = clock

    def _log(self, ctx: RequestContext):
        """A logger bound to this call only; shared logger state is never mutated."""
        return logger.bind(correlation_id=ctx.correlation_id, actor_id=ctx.actor_id)

    def _authorize(
        self,
        ctx: RequestContext,
        action: Action,
        audit_action: AuditAction,
        resource_type: ResourceType,
        ownership: ResourceOwnership,
        resource_id: str | None = None,
    ) -> Actor:
        """Authorize the caller or record the denial and raise PermissionDenied."""
        actor = ctx.require_actor()
        decision = authorize(actor, action, ownership)
        if decision.allowed:
            return actor

        self._log(ctx).warning(
            "Unauthorized access attempt",
            action=action.value,
            reason=decision.reason.value,
            role=actor.role.value,
            resource_type=resource_type.value,
            resource_id=resource_id,
        )
        self.ledger.record(
            actor.id,
            actor.role.value,
            audit_action,
            resource_type,
            f"Denied {action.value}: {decision.message}",
            status=AuditStatus.FAILURE,
            resource_id=resource_id,
            ip_address=ctx.ip_address,
            correlation_id=ctx.correlation_id,
        )
        raise PermissionDenied(decision.message, reason=decision.reason.value)

    def _audit_success(
        self,
        ctx: RequestContext,
        audit_action: AuditAction,
        resource_type: ResourceType,
        description: str,
        resource_id: str | None = None,
        old_values: dict | None = None,
        new_values: dict | None = None,
    ) -> None:
        actor = ctx.require_actor()
        self.ledger.record(
            actor.id,
            actor.role.value,
            audit_action,
            resource_type,
            description,
            status=AuditStatus.SUCCESS,
            resource_id=resource_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=ctx.ip_address,
            correlation_id=ctx.correlation_id,
        )
