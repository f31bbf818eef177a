"""ExtraCash advances: eligibility, request, repayment"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cayden_gateway.api.dependencies import RequestContext, get_pin_token, get_request_context
from cayden_gateway.api.v1.schemas import (
    AdvanceRequest,
    AdvanceResponse,
    EligibilityFactorsResponse,
    EligibilityResponse,
    RepayResponse,
)
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.services import advances as advance_service
from cayden_gateway.services.eligibility import check_eligibility
from cayden_gateway.services.linked_accounts import has_verified_linked_account
from cayden_gateway.utils.money import to_cents, to_dollars

router = APIRouter()


@router.get("/advances/eligibility", response_model=EligibilityResponse)
def get_eligibility(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    result = check_eligibility(db, ctx.user_id)
    return EligibilityResponse(
        eligible=result.eligible,
        score=result.score,
        max_amount=to_dollars(result.max_amount_cents),
        factors=EligibilityFactorsResponse(
            income_consistency=result.factors.income_consistency,
            average_balance=result.factors.average_balance,
            spending_patterns=result.factors.spending_patterns,
            account_age=result.factors.account_age,
            repayment_history=result.factors.repayment_history,
        ),
        message=result.message,
        has_linked_bank=has_verified_linked_account(db, ctx.user_id),
    )


@router.post("/advances", response_model=AdvanceResponse, status_code=201)
def request_advance(
    body: AdvanceRequest,
    ctx: RequestContext = Depends(get_request_context),
    pin_token: Optional[str] = Depends(get_pin_token),
    db: Session = Depends(get_db),
):
    """
    Request an advance.

    Above $100, callers with a PIN must send a fresh `x-pin-token`
    (from POST /v1/pin/verify); otherwise 401 with requirePin=true.
    """
    advance = advance_service.request_advance(
        db,
        ctx.user_id,
        to_cents(body.amount),
        delivery_speed=body.delivery_speed,
        tip_cents=to_cents(body.tip),
        pin_token=pin_token,
    )
    return AdvanceResponse.from_domain(advance)


@router.get("/advances", response_model=List[AdvanceResponse])
def list_advances(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return [AdvanceResponse.from_domain(a) for a in advance_service.list_advances(db, ctx.user_id)]


@router.get("/advances/{advance_id}", response_model=AdvanceResponse)
def get_advance(advance_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return AdvanceResponse.from_domain(advance_service.get_advance(db, ctx.user_id, advance_id))


@router.post("/advances/{advance_id}/repay", response_model=RepayResponse)
def repay_advance(advance_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    result = advance_service.repay_advance(db, ctx.user_id, advance_id)
    return RepayResponse(
        repaid=result.repaid,
        amount_repaid=to_dollars(result.amount_repaid_cents),
        new_balance=to_dollars(result.new_balance_cents),
    )
