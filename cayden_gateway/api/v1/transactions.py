"""Transaction history, spending summary, simulated purchases"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cayden_gateway.api.dependencies import RequestContext, get_request_context
from cayden_gateway.api.v1.schemas import (
    CategorySpendResponse,
    PaginationResponse,
    PurchaseRequest,
    PurchaseResponse,
    RoundUpResponse,
    SpendingSummaryResponse,
    TransactionListResponse,
    TransactionResponse,
)
from cayden_gateway.domain.models import EntryCategory, SpendingCategory
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.services import transactions as transaction_service
from cayden_gateway.utils.money import to_cents, to_dollars

router = APIRouter()


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    account_id: Optional[str] = Query(default=None, alias="accountId"),
    category: Optional[EntryCategory] = Query(default=None),
    spending_category: Optional[SpendingCategory] = Query(default=None, alias="spendingCategory"),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    result = transaction_service.list_transactions(
        db,
        ctx.user_id,
        account_id=account_id,
        category=category.value if category else None,
        spending_category=spending_category.value if spending_category else None,
        start=start_date,
        end=end_date,
        page=page,
        limit=limit,
    )
    return TransactionListResponse(
        transactions=[TransactionResponse.from_domain(t) for t in result.transactions],
        pagination=PaginationResponse(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get("/transactions/summary", response_model=SpendingSummaryResponse)
def get_spending_summary(
    month: Optional[str] = Query(default=None, description="YYYY-MM, defaults to the current month"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    summary = transaction_service.spending_summary(db, ctx.user_id, month)
    return SpendingSummaryResponse(
        month=summary.month,
        total_spent=to_dollars(summary.total_spent_cents),
        categories=[
            CategorySpendResponse(
                category=c.category,
                total=to_dollars(c.total_cents),
                count=c.count,
                percentage=c.percentage,
            )
            for c in summary.categories
        ],
    )


@router.post("/transactions/simulate", response_model=PurchaseResponse, status_code=201)
def simulate_purchase(body: PurchaseRequest, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    """Card purchase; roundUp is null when no skim happened"""
    result = transaction_service.simulate_purchase(
        db,
        ctx.user_id,
        body.account_id,
        to_cents(body.amount),
        body.merchant_name,
        body.spending_category,
        description=body.description,
    )
    round_up = None
    if result.round_up is not None:
        round_up = RoundUpResponse(
            id=result.round_up.id,
            amount=to_dollars(result.round_up.amount_cents),
            description=result.round_up.description,
        )
    return PurchaseResponse(transaction=TransactionResponse.from_domain(result.transaction), round_up=round_up)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return TransactionResponse.from_domain(transaction_service.get_transaction(db, ctx.user_id, transaction_id))
