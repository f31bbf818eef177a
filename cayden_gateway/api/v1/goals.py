"""Savings goals"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cayden_gateway.api.dependencies import RequestContext, get_request_context
from cayden_gateway.api.v1.schemas import (
    DeletedResponse,
    GoalCreateRequest,
    GoalFundRequest,
    GoalFundResponse,
    GoalResponse,
    GoalUpdateRequest,
)
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.services import goals as goal_service
from cayden_gateway.utils.money import to_cents, to_dollars

router = APIRouter()


@router.get("/goals", response_model=List[GoalResponse])
def list_goals(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return [GoalResponse.from_domain(g) for g in goal_service.list_goals(db, ctx.user_id)]


@router.post("/goals", response_model=GoalResponse, status_code=201)
def create_goal(body: GoalCreateRequest, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    goal = goal_service.create_goal(
        db,
        ctx.user_id,
        name=body.name,
        target_cents=to_cents(body.target_amount),
        target_date=body.target_date,
        auto_fund_cents=to_cents(body.auto_fund_amount),
        auto_fund_enabled=body.auto_fund_enabled,
        icon=body.icon,
    )
    return GoalResponse.from_domain(goal)


@router.put("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(
    goal_id: str,
    body: GoalUpdateRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    goal = goal_service.update_goal(
        db,
        ctx.user_id,
        goal_id,
        name=body.name,
        target_cents=to_cents(body.target_amount) if body.target_amount is not None else None,
        target_date=body.target_date,
        auto_fund_cents=to_cents(body.auto_fund_amount) if body.auto_fund_amount is not None else None,
        auto_fund_enabled=body.auto_fund_enabled,
        icon=body.icon,
        status=body.status,
    )
    return GoalResponse.from_domain(goal)


@router.delete("/goals/{goal_id}", response_model=DeletedResponse)
def delete_goal(goal_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    goal_service.delete_goal(db, ctx.user_id, goal_id)
    return DeletedResponse()


@router.post("/goals/{goal_id}/fund", response_model=GoalFundResponse)
def fund_goal(
    goal_id: str,
    body: GoalFundRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    result = goal_service.fund_goal(db, ctx.user_id, goal_id, to_cents(body.amount))
    return GoalFundResponse(
        goal_id=result.goal_id,
        funded=to_dollars(result.funded_cents),
        current_amount=to_dollars(result.current_cents),
        target_amount=to_dollars(result.target_cents),
        progress=result.progress,
        status=result.status,
    )
