"""Transaction history, spending summaries, and simulated card purchases with round-up"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cayden_gateway.domain.exceptions import BadRequestError, DomainException, NotFoundError
from cayden_gateway.domain.models import AccountType, EntryCategory, LedgerEntry
from cayden_gateway.infrastructure.database.ledger import ledger_transaction, require
from cayden_gateway.infrastructure.database.repositories import (
    AccountRepository,
    TransactionRepository,
    to_entry,
)
from cayden_gateway.infrastructure.observability.metrics import round_up_skipped_counter
from cayden_gateway.utils.date_utils import add_months, utcnow
from cayden_gateway.utils.money import progress_percent, round_up_cents


@dataclass
class PurchaseResult:
    transaction: LedgerEntry
    round_up: Optional[LedgerEntry] = None


@dataclass
class TransactionPage:
    transactions: List[LedgerEntry]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass
class CategorySpend:
    category: str
    total_cents: int
    count: int
    percentage: float


@dataclass
class SpendingSummary:
    month: str
    total_spent_cents: int
    categories: List[CategorySpend] = field(default_factory=list)


def list_transactions(
    db: Session,
    user_id: str,
    account_id: Optional[str] = None,
    category: Optional[str] = None,
    spending_category: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
) -> TransactionPage:
    rows, total = TransactionRepository(db).search(
        user_id,
        account_id=account_id,
        category=category,
        spending_category=spending_category,
        start=start,
        end=end,
        page=page,
        limit=limit,
    )
    return TransactionPage(transactions=[to_entry(row) for row in rows], page=page, limit=limit, total=total)


def get_transaction(db: Session, user_id: str, transaction_id: str) -> LedgerEntry:
    row = TransactionRepository(db).get_for_user(user_id, transaction_id)
    if not row:
        raise NotFoundError("Transaction not found")
    return to_entry(row)


def _month_start(month: Optional[str]) -> datetime:
    if not month:
        now = utcnow()
        return datetime(now.year, now.month, 1)
    try:
        return datetime.strptime(month, "%Y-%m")
    except ValueError:
        raise BadRequestError("Month must be in YYYY-MM format") from None


def spending_summary(db: Session, user_id: str, month: Optional[str] = None) -> SpendingSummary:
    """Purchase debits in one calendar month, grouped by spending category"""
    start = _month_start(month)
    end = add_months(start, 1)

    rows = TransactionRepository(db).spending_by_category(user_id, start, end)
    total_spent = sum(total for _, total, _ in rows)

    return SpendingSummary(
        month=start.strftime("%Y-%m"),
        total_spent_cents=total_spent,
        categories=[
            CategorySpend(
                category=category,
                total_cents=total,
                count=count,
                percentage=progress_percent(total, total_spent),
            )
            for category, total, count in rows
        ],
    )


def simulate_purchase(
    db: Session,
    user_id: str,
    account_id: str,
    amount_cents: int,
    merchant_name: str,
    spending_category: str,
    description: Optional[str] = None,
) -> PurchaseResult:
    """
    Debit a card purchase, then skim the round-up into savings.

    The purchase commits on its own. The round-up runs afterwards in a
    separate ledger transaction; if it can't happen the purchase stands
    and round_up is None.
    """
    if amount_cents <= 0:
        raise BadRequestError("Amount must be positive")

    with ledger_transaction(db, "purchase") as ledger:
        account = require(ledger.lock_account(account_id, user_id=user_id), "Account not found")
        if account.balance_cents < amount_cents:
            raise BadRequestError("Insufficient funds")

        entry = ledger.debit(
            account,
            amount_cents,
            EntryCategory.PURCHASE,
            description or f"Purchase at {merchant_name}",
            merchant_name=merchant_name,
            spending_category=spending_category,
        )
        purchase = to_entry(entry)
        round_up_enabled = bool(account.round_up_enabled)

    round_up = None
    if round_up_enabled:
        round_up = _apply_round_up(db, user_id, purchase, merchant_name)
    return PurchaseResult(transaction=purchase, round_up=round_up)


def _skip_round_up(reason: str, purchase: LedgerEntry) -> None:
    round_up_skipped_counter.labels(reason=reason).inc()
    logging.info(
        "Round-up skipped",
        extra={"step": "round_up", "reason": reason, "purchase_id": purchase.id},
    )


def _apply_round_up(db: Session, user_id: str, purchase: LedgerEntry, merchant_name: str) -> Optional[LedgerEntry]:
    """Best-effort skim; returns the savings credit row or None"""
    skim_cents = round_up_cents(purchase.amount_cents)
    if skim_cents <= 0:
        _skip_round_up("whole_dollar", purchase)
        return None

    savings_row = AccountRepository(db).get_by_type(user_id, AccountType.SAVINGS.value)
    if savings_row is None:
        _skip_round_up("no_savings_account", purchase)
        return None
    if savings_row.id == purchase.account_id:
        _skip_round_up("same_account", purchase)
        return None

    try:
        with ledger_transaction(db, "round_up") as ledger:
            locked = ledger.lock_accounts([purchase.account_id, savings_row.id])
            source = locked[purchase.account_id]
            savings = locked[savings_row.id]
            if source.balance_cents < skim_cents:
                _skip_round_up("insufficient_funds", purchase)
                return None

            description = f"Round-up from {merchant_name}"
            ledger.debit(source, skim_cents, EntryCategory.ROUND_UP, description, reference_id=purchase.id)
            credit = ledger.credit(savings, skim_cents, EntryCategory.ROUND_UP, description, reference_id=purchase.id)
            result = to_entry(credit)
    except (DomainException, SQLAlchemyError, KeyError) as e:
        round_up_skipped_counter.labels(reason="failed").inc()
        logging.warning(
            f"Round-up failed, purchase kept: {e}",
            extra={"step": "round_up", "purchase_id": purchase.id, "user_id": user_id},
        )
        return None

    return result
