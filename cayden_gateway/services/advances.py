"""ExtraCash advance use cases: request, fund, repay, and the overdue sweep"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from cayden_gateway.domain.advances import (
    MIN_ADVANCE_CENTS,
    OVERDUE_ELIGIBLE_STATUSES,
    REPAYABLE_STATUSES,
    calculate_fee,
    ensure_transition,
    initial_status,
    repayment_date_for,
)
from cayden_gateway.domain.exceptions import BadRequestError, DomainException, NotFoundError
from cayden_gateway.domain.models import (
    AccountType,
    Advance,
    AdvanceStatus,
    DeliverySpeed,
    EntryCategory,
)
from cayden_gateway.infrastructure.database import models as orm
from cayden_gateway.infrastructure.database.ledger import ledger_transaction, require
from cayden_gateway.infrastructure.database.repositories import AdvanceRepository, to_advance
from cayden_gateway.infrastructure.observability.logging import log_advance
from cayden_gateway.infrastructure.observability.metrics import record_advance_declined, record_advance_request
from cayden_gateway.services.audit import AuditAction, record_audit
from cayden_gateway.services.eligibility import check_eligibility
from cayden_gateway.services.linked_accounts import has_verified_linked_account
from cayden_gateway.services.notifications import create_notification
from cayden_gateway.services.pin import require_pin_for_amount
from cayden_gateway.utils.date_utils import utc_today, utcnow
from cayden_gateway.utils.money import format_usd

NO_LINKED_BANK_MESSAGE = (
    "You must link and verify a bank account before requesting an advance. "
    "Go to More → Bank Accounts to get started."
)


@dataclass
class RepaymentResult:
    repaid: bool
    amount_repaid_cents: int
    new_balance_cents: int


@dataclass
class FundingResult:
    advance_id: str
    funded: bool
    new_balance_cents: int


def request_advance(
    db: Session,
    user_id: str,
    amount_cents: int,
    delivery_speed: str = DeliverySpeed.STANDARD.value,
    tip_cents: int = 0,
    pin_token: Optional[str] = None,
) -> Advance:
    """
    Request an ExtraCash advance.

    Express advances are credited to checking in the same transaction and
    come back `funded`; standard ones come back `approved` and wait for the
    funding job. The checking row is locked before the outstanding-advance
    check so two concurrent requests from one user can't both pass it.
    """
    if tip_cents < 0:
        raise BadRequestError("Tip cannot be negative")

    if not has_verified_linked_account(db, user_id):
        record_advance_declined()
        raise BadRequestError(NO_LINKED_BANK_MESSAGE)

    require_pin_for_amount(db, user_id, amount_cents, pin_token)

    with ledger_transaction(db, "advance_request") as ledger:
        checking = require(
            ledger.lock_account_by_type(user_id, AccountType.CHECKING.value),
            "Checking account not found",
        )

        eligibility = check_eligibility(db, user_id, checking=checking)
        if not eligibility.eligible:
            record_advance_declined()
            raise BadRequestError(eligibility.message)

        if amount_cents < MIN_ADVANCE_CENTS or amount_cents > eligibility.max_amount_cents:
            raise BadRequestError(
                f"Amount must be between ${MIN_ADVANCE_CENTS // 100} and ${eligibility.max_amount_cents // 100}"
            )

        status = initial_status(delivery_speed)
        advance = orm.Advance(
            user_id=user_id,
            account_id=checking.id,
            amount_cents=amount_cents,
            fee_cents=calculate_fee(amount_cents, delivery_speed),
            tip_cents=tip_cents,
            status=status,
            delivery_speed=delivery_speed,
            eligibility_score=eligibility.score,
            repayment_date=repayment_date_for(utc_today()),
        )
        db.add(advance)
        db.flush()

        if status == AdvanceStatus.FUNDED.value:
            advance.funded_at = utcnow()
            ledger.credit(
                checking,
                amount_cents,
                EntryCategory.ADVANCE,
                "ExtraCash Advance - Express",
                reference_id=advance.id,
            )

        result = to_advance(advance)

    record_advance_request(result.status, amount_cents)
    log_advance(user_id, result.id, result.status, amount_cents, result.eligibility_score)
    record_audit(
        db,
        user_id,
        AuditAction.ADVANCE_REQUESTED,
        {"advanceId": result.id, "amountCents": amount_cents, "deliverySpeed": delivery_speed},
    )
    return result


def fund_pending_advance(db: Session, advance_id: str) -> FundingResult:
    """Fund one approved (standard) advance. Job entry point, not exposed over HTTP."""
    with ledger_transaction(db, "advance_fund") as ledger:
        advances = AdvanceRepository(db)
        advance = advances.lock(advance_id)
        if not advance or advance.status != AdvanceStatus.APPROVED.value:
            raise NotFoundError("Approved advance not found")

        ensure_transition(advance.status, AdvanceStatus.FUNDED.value)
        account = require(ledger.lock_account(advance.account_id), "Checking account not found")
        ledger.credit(
            account,
            advance.amount_cents,
            EntryCategory.ADVANCE,
            "ExtraCash Advance - Standard",
            reference_id=advance.id,
        )
        advance.status = AdvanceStatus.FUNDED.value
        advance.funded_at = utcnow()

        user_id = advance.user_id
        amount_cents = advance.amount_cents
        result = FundingResult(advance_id=advance.id, funded=True, new_balance_cents=account.balance_cents)

    record_audit(db, user_id, AuditAction.ADVANCE_FUNDED, {"advanceId": advance_id, "amountCents": amount_cents})
    create_notification(
        db,
        user_id,
        "advance",
        "Advance Funded",
        f"Your ExtraCash advance of {format_usd(amount_cents)} has been deposited.",
        action_target="extracash",
        metadata={"advanceId": advance_id},
    )
    return result


def fund_pending_advances(db: Session) -> List[str]:
    """Fund every approved advance; one failure doesn't stop the rest"""
    funded = []
    for advance_id in AdvanceRepository(db).ids_in_status(AdvanceStatus.APPROVED.value):
        try:
            fund_pending_advance(db, advance_id)
            funded.append(advance_id)
        except DomainException as e:
            logging.warning(
                f"Skipping advance funding: {e.message}",
                extra={"advance_id": advance_id, "step": "fund_pending"},
            )
    return funded


def repay_advance(db: Session, user_id: str, advance_id: str) -> RepaymentResult:
    """Debit amount + fee + tip from checking. Balance and status stay put on failure."""
    with ledger_transaction(db, "advance_repay") as ledger:
        advance = AdvanceRepository(db).lock(advance_id)
        if not advance or advance.user_id != user_id or advance.status not in REPAYABLE_STATUSES:
            raise NotFoundError("Active advance not found")

        account = require(ledger.lock_account(advance.account_id), "Checking account not found")
        total_due = advance.amount_cents + advance.fee_cents + advance.tip_cents
        if account.balance_cents < total_due:
            raise BadRequestError(f"Insufficient funds. Need {format_usd(total_due)} to repay.")

        ensure_transition(advance.status, AdvanceStatus.REPAID.value)
        ledger.debit(
            account,
            total_due,
            EntryCategory.REPAYMENT,
            "ExtraCash Repayment",
            reference_id=advance.id,
        )
        advance.status = AdvanceStatus.REPAID.value
        advance.repaid_at = utcnow()

        result = RepaymentResult(repaid=True, amount_repaid_cents=total_due, new_balance_cents=account.balance_cents)

    record_audit(db, user_id, AuditAction.ADVANCE_REPAID, {"advanceId": advance_id, "amountCents": total_due})
    return result


def mark_overdue_advances(db: Session, today: Optional[date] = None) -> List[str]:
    """Move funded / repayment_scheduled advances past their repayment date to overdue"""
    today = today or utc_today()
    marked = []
    for advance in AdvanceRepository(db).past_due(OVERDUE_ELIGIBLE_STATUSES, today):
        ensure_transition(advance.status, AdvanceStatus.OVERDUE.value)
        advance.status = AdvanceStatus.OVERDUE.value
        marked.append(advance.id)
    db.commit()

    logging.info("Overdue sweep finished", extra={"step": "mark_overdue", "count": len(marked), "as_of": today.isoformat()})
    return marked


def list_advances(db: Session, user_id: str) -> List[Advance]:
    return [to_advance(row) for row in AdvanceRepository(db).list_for_user(user_id)]


def get_advance(db: Session, user_id: str, advance_id: str) -> Advance:
    row = AdvanceRepository(db).get_for_user(user_id, advance_id)
    if not row:
        raise NotFoundError("Advance not found")
    return to_advance(row)
