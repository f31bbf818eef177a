"""Audit trail of security-relevant actions. Writes are best-effort."""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cayden_gateway.infrastructure.database.models import AuditLog
from cayden_gateway.infrastructure.observability.metrics import side_effect_failure_counter


class AuditAction(str, Enum):
    DEPOSIT = "DEPOSIT"
    TRANSFER = "TRANSFER"
    ADVANCE_REQUESTED = "ADVANCE_REQUESTED"
    ADVANCE_FUNDED = "ADVANCE_FUNDED"
    ADVANCE_REPAID = "ADVANCE_REPAID"
    BANK_LINKED = "BANK_LINKED"
    BANK_VERIFIED = "BANK_VERIFIED"
    BANK_REMOVED = "BANK_REMOVED"
    PIN_SET = "PIN_SET"
    PIN_CHANGED = "PIN_CHANGED"
    PIN_REMOVED = "PIN_REMOVED"
    PIN_VERIFIED = "PIN_VERIFIED"
    PIN_FAILED = "PIN_FAILED"
    REGISTER = "REGISTER"


def record_audit(
    db: Session,
    user_id: Optional[str],
    action: AuditAction,
    details: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> None:
    """Persist an audit row in its own commit; a failure is logged and never raised"""
    try:
        db.add(
            AuditLog(
                user_id=user_id,
                action=action.value,
                details=details,
                ip_address=ip_address,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        side_effect_failure_counter.labels(kind="audit").inc()
        logging.error(f"Failed to write audit log: {e}", extra={"user_id": user_id, "action": action.value})
