"""
Audit Logger Service
Records administrative actions with actor identity, request context and
before/after snapshots. Snapshots are redacted and sanitized before they
are stored.
"""

import logging
from typing import Any, Literal, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models_audit import AuditLog
from ..utils.sanitization import sanitize_for_logging, sanitize_text

logger = logging.getLogger(__name__)

AuditAction = Literal["create", "update", "delete", "read", "login", "logout", "export"]
ActorRole = Literal["patient", "provider", "admin", "super_admin"]

# Snapshots nest at most this deep
SNAPSHOT_MAX_DEPTH = 5


class AuditActor(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[ActorRole] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    session_id: Optional[str] = None


class AuditLogger:
    """Writes audit rows; constructed with the session it writes through."""

    def __init__(self, db: Session):
        self.db = db

    def log_action(
        self,
        actor: AuditActor,
        action: AuditAction,
        resource: str,
        resource_id: str,
        before: Optional[dict[str, Any]] = None,
        after: Optional[dict[str, Any]] = None,
        description: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Append an audit entry.

        A failed write is logged and swallowed so that auditing never breaks
        the operation being audited.

        Returns:
            The stored AuditLog, or None if the write failed
        """
        changes = None
        if before is not None or after is not None:
            changes = {
                "before": sanitize_for_logging(before or {}, max_depth=SNAPSHOT_MAX_DEPTH),
                "after": sanitize_for_logging(after or {}, max_depth=SNAPSHOT_MAX_DEPTH),
            }

        entry = AuditLog(
            actor_id=actor.user_id,
            actor_name=actor.name,
            actor_email=actor.email,
            actor_role=actor.role,
            action=action,
            resource=resource,
            resource_id=str(resource_id),
            changes=changes,
            description=sanitize_text(description, max_length=1000) if description else None,
            ip_address=actor.ip_address or "unknown",
            user_agent=(actor.user_agent or "unknown")[:500],
            session_id=actor.session_id,
        )

        try:
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create audit log for {action} {resource}/{resource_id}: {e}")
            return None

        logger.debug(f"📝 Audit: {actor.user_id} {action} {resource}/{resource_id}")
        return entry

    def log_create(self, actor: AuditActor, resource: str, resource_id: str, data: dict[str, Any]):
        return self.log_action(
            actor,
            "create",
            resource,
            resource_id,
            before={},
            after=data,
            description=f"Created {resource} with ID {resource_id}",
        )

    def log_update(
        self,
        actor: AuditActor,
        resource: str,
        resource_id: str,
        before: dict[str, Any],
        after: dict[str, Any],
    ):
        return self.log_action(
            actor,
            "update",
            resource,
            resource_id,
            before=before,
            after=after,
            description=f"Updated {resource} with ID {resource_id}",
        )

    def log_delete(self, actor: AuditActor, resource: str, resource_id: str, data: dict[str, Any]):
        return self.log_action(
            actor,
            "delete",
            resource,
            resource_id,
            before=data,
            after={},
            description=f"Deleted {resource} with ID {resource_id}",
        )

    def log_read(
        self,
        actor: AuditActor,
        resource: str,
        resource_id: str,
        description: Optional[str] = None,
    ):
        """Record access to sensitive data"""
        return self.log_action(
            actor,
            "read",
            resource,
            resource_id,
            description=description or f"Accessed {resource} with ID {resource_id}",
        )

    def query_logs(
        self,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditLog]:
        query = self.db.query(AuditLog)
        if resource:
            query = query.filter(AuditLog.resource == resource)
        if resource_id:
            query = query.filter(AuditLog.resource_id == resource_id)
        if actor_id:
            query = query.filter(AuditLog.actor_id == actor_id)
        return query.order_by(AuditLog.id.desc()).limit(limit).all()
