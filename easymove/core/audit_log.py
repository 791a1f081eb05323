"""Audit trail for staff actions"""
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from easymove.models.audit import Audit
from easymove.core.enums import AuditAction
from easymove.core.metrics import audit_logs_created
from easymove.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    user_id: Optional[int],
    action: AuditAction,
    payload=None,
    resource: Optional[str] = None,
) -> None:
    """Stage an audit row in the caller's transaction.

    The payload itself is not stored, only its hash. Failures are logged and
    never abort the action being audited.
    """
    try:
        if payload is None:
            payload_dict = {}
        elif hasattr(payload, "model_dump"):
            payload_dict = payload.model_dump(exclude_unset=True)
        elif isinstance(payload, dict):
            payload_dict = payload
        else:
            payload_dict = {}

        audit_record = Audit(
            user_id=int(user_id) if user_id is not None else None,
            action=str(action),
            resource=resource,
            payload_hash=payload_hash(payload_dict),
        )

        db.add(audit_record)
        await db.flush()
        audit_logs_created.labels(action=str(action)).inc()

    except Exception as e:
        logger.error(f"Audit logging failed for action {action}: {e}", exc_info=True)


async def log_login(db: AsyncSession, user_id: int, username: str) -> None:
    await log_audit(db, user_id, AuditAction.LOGIN, {"username": username})
