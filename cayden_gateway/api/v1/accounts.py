"""Accounts: balances, deposits, transfers, round-up setting"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cayden_gateway.api.dependencies import RequestContext, get_idempotency_key, get_request_context
from cayden_gateway.api.v1.schemas import (
    AccountResponse,
    DepositRequest,
    DepositResponse,
    ReconciliationResponse,
    RoundUpToggleResponse,
    TransactionResponse,
    TransferRequest,
    TransferResponse,
)
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.services import accounts as account_service
from cayden_gateway.utils.money import to_cents, to_dollars

router = APIRouter()


@router.get("/accounts", response_model=List[AccountResponse])
def list_accounts(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return [AccountResponse.from_domain(a) for a in account_service.list_accounts(db, ctx.user_id)]


@router.post("/accounts/savings", response_model=AccountResponse, status_code=201)
def create_savings_account(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return AccountResponse.from_domain(account_service.create_savings_account(db, ctx.user_id))


@router.post("/accounts/transfer", response_model=TransferResponse)
def transfer(
    body: TransferRequest,
    ctx: RequestContext = Depends(get_request_context),
    idempotency_key: Optional[str] = Depends(get_idempotency_key),
    db: Session = Depends(get_db),
):
    """
    Move money out of one of the caller's accounts.

    The destination may belong to another user. Send an Idempotency-Key
    header to make retries safe.
    """
    result = account_service.transfer(
        db,
        ctx.user_id,
        body.from_account_id,
        body.to_account_id,
        to_cents(body.amount),
        description=body.description,
        idempotency_key=idempotency_key,
    )
    return TransferResponse(
        from_balance=to_dollars(result.from_balance_cents),
        to_balance=to_dollars(result.to_balance_cents),
        reference_id=result.reference_id,
    )


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return AccountResponse.from_domain(account_service.get_account(db, ctx.user_id, account_id))


@router.post("/accounts/{account_id}/deposit", response_model=DepositResponse)
def deposit(
    account_id: str,
    body: DepositRequest,
    ctx: RequestContext = Depends(get_request_context),
    idempotency_key: Optional[str] = Depends(get_idempotency_key),
    db: Session = Depends(get_db),
):
    result = account_service.deposit(
        db,
        ctx.user_id,
        account_id,
        to_cents(body.amount),
        description=body.description,
        idempotency_key=idempotency_key,
    )
    return DepositResponse(
        transaction=TransactionResponse.from_domain(result.transaction),
        new_balance=to_dollars(result.new_balance_cents),
    )


@router.patch("/accounts/{account_id}/round-up", response_model=RoundUpToggleResponse)
def toggle_round_up(account_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return RoundUpToggleResponse(round_up_enabled=account_service.toggle_round_up(db, ctx.user_id, account_id))


@router.get("/accounts/{account_id}/reconciliation", response_model=ReconciliationResponse)
def reconcile(account_id: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    """Replay the account's transaction log against its stored balance"""
    result = account_service.reconcile_account(db, ctx.user_id, account_id)
    return ReconciliationResponse(
        account_id=result.account_id,
        balance=to_dollars(result.balance_cents),
        replayed_balance=to_dollars(result.replayed_balance_cents),
        entries=result.entries,
        consistent=result.consistent,
    )
