"""Recurring bills: CRUD, manual payment from an owned account, and summaries"""

import calendar
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from cayden_gateway.domain.bills import calculate_next_due_date, icon_for_category, monthly_estimate_cents
from cayden_gateway.domain.exceptions import BadRequestError, NotFoundError
from cayden_gateway.domain.models import (
    Bill,
    BillFrequency,
    BillPayment,
    BillStatus,
    EntryCategory,
    SpendingCategory,
)
from cayden_gateway.infrastructure.database import models as orm
from cayden_gateway.infrastructure.database.ledger import ledger_transaction, require
from cayden_gateway.infrastructure.database.repositories import (
    AccountRepository,
    BillRepository,
    to_bill,
    to_bill_payment,
)
from cayden_gateway.services.notifications import create_notification
from cayden_gateway.utils.date_utils import utc_today
from cayden_gateway.utils.money import format_usd

PAYMENT_HISTORY_LIMIT = 50


@dataclass
class BillPaymentResult:
    payment: BillPayment
    new_balance_cents: int
    transaction_id: str


@dataclass
class BillSummary:
    total_bills: int
    total_monthly_estimate_cents: int
    upcoming_this_month: int
    upcoming_total_cents: int
    auto_pay_count: int


def _validate_due_day(due_day: int) -> None:
    if due_day < 1 or due_day > 31:
        raise BadRequestError("Due day must be between 1 and 31")


def list_bills(db: Session, user_id: str, status: Optional[str] = None) -> List[Bill]:
    return [to_bill(row) for row in BillRepository(db).list_for_user(user_id, status=status)]


def create_bill(
    db: Session,
    user_id: str,
    account_id: str,
    name: str,
    category: str,
    amount_cents: int,
    due_day: int,
    frequency: str = BillFrequency.MONTHLY.value,
    auto_pay: bool = False,
    icon: Optional[str] = None,
) -> Bill:
    if not AccountRepository(db).get_for_user(user_id, account_id):
        raise NotFoundError("Account not found")
    _validate_due_day(due_day)
    if amount_cents <= 0:
        raise BadRequestError("Amount must be positive")

    bill = orm.Bill(
        user_id=user_id,
        account_id=account_id,
        name=name,
        category=category,
        amount_cents=amount_cents,
        frequency=frequency,
        due_day=due_day,
        auto_pay=auto_pay,
        icon=icon or icon_for_category(category),
        next_due_date=calculate_next_due_date(due_day, frequency, utc_today()),
        status=BillStatus.ACTIVE.value,
    )
    db.add(bill)
    db.commit()
    return to_bill(bill)


def update_bill(
    db: Session,
    user_id: str,
    bill_id: str,
    name: Optional[str] = None,
    category: Optional[str] = None,
    amount_cents: Optional[int] = None,
    frequency: Optional[str] = None,
    due_day: Optional[int] = None,
    auto_pay: Optional[bool] = None,
    status: Optional[str] = None,
    icon: Optional[str] = None,
) -> Bill:
    """Partial update; a new due day also recomputes the next due date"""
    bill = BillRepository(db).get_for_user(user_id, bill_id)
    if not bill:
        raise NotFoundError("Bill not found")
    if amount_cents is not None and amount_cents <= 0:
        raise BadRequestError("Amount must be positive")

    if name is not None:
        bill.name = name
    if category is not None:
        bill.category = category
    if amount_cents is not None:
        bill.amount_cents = amount_cents
    if frequency is not None:
        bill.frequency = frequency
    if auto_pay is not None:
        bill.auto_pay = auto_pay
    if status is not None:
        bill.status = status
    if icon is not None:
        bill.icon = icon
    if due_day is not None:
        _validate_due_day(due_day)
        bill.due_day = due_day
        bill.next_due_date = calculate_next_due_date(due_day, bill.frequency, utc_today())

    db.commit()
    return to_bill(bill)


def delete_bill(db: Session, user_id: str, bill_id: str) -> None:
    bill = BillRepository(db).get_for_user(user_id, bill_id)
    if not bill:
        raise NotFoundError("Bill not found")
    db.delete(bill)
    db.commit()


def pay_bill(db: Session, user_id: str, bill_id: str) -> BillPaymentResult:
    """
    Pay an active bill from its account.

    One purchase debit tagged `bills` plus a bill-payment row, then the
    next due date moves on. The notification afterwards is best-effort.
    """
    today = utc_today()

    with ledger_transaction(db, "bill_pay") as ledger:
        bill = BillRepository(db).get_for_user(user_id, bill_id)
        if not bill:
            raise NotFoundError("Bill not found")
        if bill.status != BillStatus.ACTIVE.value:
            raise BadRequestError("Bill is not active")

        account = require(ledger.lock_account(bill.account_id, user_id=user_id), "Account not found")
        if account.balance_cents < bill.amount_cents:
            raise BadRequestError("Insufficient funds to pay this bill")

        entry = ledger.debit(
            account,
            bill.amount_cents,
            EntryCategory.PURCHASE,
            f"Bill Payment - {bill.name}",
            merchant_name=bill.name,
            spending_category=SpendingCategory.BILLS.value,
        )
        payment = orm.BillPayment(
            bill_id=bill.id,
            user_id=user_id,
            transaction_id=entry.id,
            amount_cents=bill.amount_cents,
            status="completed",
        )
        db.add(payment)
        bill.last_paid_date = today
        bill.next_due_date = calculate_next_due_date(bill.due_day, bill.frequency, today)
        db.flush()

        bill_name = bill.name
        amount_cents = bill.amount_cents
        result = BillPaymentResult(
            payment=to_bill_payment(payment, bill),
            new_balance_cents=account.balance_cents,
            transaction_id=entry.id,
        )

    create_notification(
        db,
        user_id,
        "bill",
        "Bill Paid",
        f"Your {bill_name} payment of {format_usd(amount_cents)} has been processed.",
        action_target="bills",
        metadata={"billId": bill_id, "amountCents": amount_cents},
    )
    return result


def payment_history(db: Session, user_id: str, bill_id: Optional[str] = None) -> List[BillPayment]:
    rows = BillRepository(db).payments_for_user(user_id, bill_id=bill_id, limit=PAYMENT_HISTORY_LIMIT)
    return [to_bill_payment(payment, bill) for payment, bill in rows]


def bill_summary(db: Session, user_id: str, today: Optional[date] = None) -> BillSummary:
    """Totals over active bills; "upcoming" means due on or before the end of this month"""
    today = today or utc_today()
    end_of_month = date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])

    bills = list_bills(db, user_id, status=BillStatus.ACTIVE.value)
    upcoming = [b for b in bills if b.next_due_date and b.next_due_date <= end_of_month]

    return BillSummary(
        total_bills=len(bills),
        total_monthly_estimate_cents=monthly_estimate_cents(bills),
        upcoming_this_month=len(upcoming),
        upcoming_total_cents=sum(b.amount_cents for b in upcoming),
        auto_pay_count=sum(1 for b in bills if b.auto_pay),
    )
