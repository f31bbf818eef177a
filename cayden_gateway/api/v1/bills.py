"""Recurring bills and bill pay"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cayden_gateway.api.dependencies import RequestContext, get_request_context
from cayden_gateway.api.v1.schemas import (
    BillCreateRequest,
    BillPaymentResponse,
    BillResponse,
    BillSummaryResponse,
    BillUpdateRequest,
    DeletedResponse,
    PayBillResponse,
)
from cayden_gateway.domain.models import BillStatus
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.services import bills as bill_service
from cayden_gateway.utils.money import to_cents, to_dollars

router = APIRouter()


@router.get("/bills", response_model=List[BillResponse])
def list_bills(
    status: Optional[BillStatus] = Query(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    bills = bill_service.list_bills(db, ctx.user_id, status=status.value if status else None)
    return [BillResponse.from_domain(b) for b in bills]


@router.post("/bills", response_model=BillResponse, status_code=201)
def create_bill(body: BillCreateRequest, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    bill = bill_service.create_bill(
        db,
        ctx.user_id,
        account_id=body.account_id,
        name=body.name,
        category=body.category,
        amount_cents=to_cents(body.amount),
        due_day=body.due_day,
        frequency=body.frequency,
        auto_pay=body.auto_pay,
        icon=body.icon,
    )
    return BillResponse.from_domain(bill)


@router.get("/bills/summary", response_model=BillSummaryResponse)
def get_summary(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    summary = bill_service.bill_summary(db, ctx.user_id)
    return BillSummaryResponse(
        total_bills=summary.total_bills,
        total_monthly_estimate=to_dollars(summary.total_monthly_estimate_cents),
        upcoming_this_month=summary.upcoming_this_month,
        upcoming_total=to_dollars(summary.upcoming_total_cents),
        auto_pay_count=summary.auto_pay_count,
    )


@router.get("/bills/payments", response_model=List[BillPaymentResponse])
def get_payment_history(
    bill_id: Optional[str] = Query(default=None, alias="billId"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Latest 50 payments, optionally for one bill"""
    return [BillPaymentResponse.from_domain(p) for p in bill_service.payment_history(db, ctx.user_id, bill_id)]


@router.put("/bills/{bill_id}", response_model=BillResponse)
def update_bill(
    bill_id: str,
    body: BillUpdateRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    bill = bill_service.update_bill(
        db,
        ctx.user_id,
        bill_id,
        name=body.name,
        category=body.category,
        amount_cents=to_cents(body.amount) if body.amount is not None else None,
        frequency=body.frequency,
        due_day=body.due_day,
        auto_pay=body.auto_pay,
        status=body.status,
        icon=body.icon,
    )
    return BillResponse.from_domain(bill)


@router.delete("/bills/{bill_id}", response_model=DeletedResponse)
def delete_bill(bill_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    bill_service.delete_bill(db, ctx.user_id, bill_id)
    return DeletedResponse()


@router.post("/bills/{bill_id}/pay", response_model=PayBillResponse)
def pay_bill(bill_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    result = bill_service.pay_bill(db, ctx.user_id, bill_id)
    return PayBillResponse(
        payment=BillPaymentResponse.from_domain(result.payment),
        new_balance=to_dollars(result.new_balance_cents),
        transaction_id=result.transaction_id,
    )
