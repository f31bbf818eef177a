"""In-app notifications. Creation is a best-effort side effect of money movement."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cayden_gateway.domain.models import Notification
from cayden_gateway.infrastructure.database.models import Notification as NotificationRow
from cayden_gateway.infrastructure.database.repositories import to_notification
from cayden_gateway.infrastructure.observability.metrics import side_effect_failure_counter


def create_notification(
    db: Session,
    user_id: str,
    type: str,
    title: str,
    message: str,
    action_target: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    try:
        db.add(
            NotificationRow(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                action_target=action_target,
                payload=metadata,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        side_effect_failure_counter.labels(kind="notification").inc()
        logging.warning(f"Failed to create notification: {e}", extra={"user_id": user_id, "type": type})


def list_notifications(db: Session, user_id: str, limit: int = 50) -> List[Notification]:
    rows = (
        db.query(NotificationRow)
        .filter(NotificationRow.user_id == user_id)
        .order_by(NotificationRow.created_at.desc())
        .limit(limit)
        .all()
    )
    return [to_notification(row) for row in rows]
