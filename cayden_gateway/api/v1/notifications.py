"""GET /v1/notifications - latest in-app notifications"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cayden_gateway.api.dependencies import RequestContext, get_request_context
from cayden_gateway.api.v1.schemas import NotificationResponse
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.services.notifications import list_notifications

router = APIRouter()


@router.get("/notifications", response_model=List[NotificationResponse])
def get_notifications(
    limit: int = Query(default=50, ge=1, le=100),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return [NotificationResponse.from_domain(n) for n in list_notifications(db, ctx.user_id, limit=limit)]
