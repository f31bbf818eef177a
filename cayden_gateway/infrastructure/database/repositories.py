"""Data access layer; maps ORM rows to domain records at the boundary"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from cayden_gateway.infrastructure.database import models as orm
from cayden_gateway.infrastructure.security.crypto import decrypt_field
from cayden_gateway.domain import models as domain


def to_account(row: orm.Account) -> domain.Account:
    return domain.Account(
        id=row.id,
        user_id=row.user_id,
        account_type=row.account_type,
        account_number=row.account_number,
        routing_number=row.routing_number,
        balance_cents=row.balance_cents,
        status=row.status,
        round_up_enabled=bool(row.round_up_enabled),
        created_at=row.created_at,
    )


def to_entry(row: orm.LedgerTransaction) -> domain.LedgerEntry:
    return domain.LedgerEntry(
        id=row.id,
        account_id=row.account_id,
        type=row.type,
        category=row.category,
        amount_cents=row.amount_cents,
        balance_after_cents=row.balance_after_cents,
        description=row.description,
        merchant_name=row.merchant_name,
        spending_category=row.spending_category,
        reference_id=row.reference_id,
        created_at=row.created_at,
    )


def to_advance(row: orm.Advance) -> domain.Advance:
    return domain.Advance(
        id=row.id,
        user_id=row.user_id,
        account_id=row.account_id,
        amount_cents=row.amount_cents,
        fee_cents=row.fee_cents,
        tip_cents=row.tip_cents,
        status=row.status,
        delivery_speed=row.delivery_speed,
        eligibility_score=row.eligibility_score or 0,
        repayment_date=row.repayment_date,
        funded_at=row.funded_at,
        repaid_at=row.repaid_at,
        created_at=row.created_at,
    )


def to_goal(row: orm.Goal) -> domain.Goal:
    return domain.Goal(
        id=row.id,
        user_id=row.user_id,
        account_id=row.account_id,
        name=row.name,
        target_cents=row.target_cents,
        current_cents=row.current_cents,
        auto_fund_cents=row.auto_fund_cents,
        auto_fund_enabled=bool(row.auto_fund_enabled),
        target_date=row.target_date,
        status=row.status,
        icon=row.icon,
        created_at=row.created_at,
    )


def to_bill(row: orm.Bill) -> domain.Bill:
    return domain.Bill(
        id=row.id,
        user_id=row.user_id,
        account_id=row.account_id,
        name=row.name,
        category=row.category,
        amount_cents=row.amount_cents,
        frequency=row.frequency,
        due_day=row.due_day,
        auto_pay=bool(row.auto_pay),
        status=row.status,
        icon=row.icon,
        next_due_date=row.next_due_date,
        last_paid_date=row.last_paid_date,
        created_at=row.created_at,
    )


def to_bill_payment(row: orm.BillPayment, bill: Optional[orm.Bill] = None) -> domain.BillPayment:
    return domain.BillPayment(
        id=row.id,
        bill_id=row.bill_id,
        user_id=row.user_id,
        transaction_id=row.transaction_id,
        amount_cents=row.amount_cents,
        status=row.status,
        paid_at=row.paid_at,
        bill_name=bill.name if bill else None,
        bill_category=bill.category if bill else None,
    )


def to_linked_account(row: orm.LinkedAccount) -> domain.LinkedAccount:
    return domain.LinkedAccount(
        id=row.id,
        user_id=row.user_id,
        bank_name=row.bank_name,
        account_holder_name=decrypt_field(row.account_holder_name),
        account_number_last4=row.account_number_last4,
        routing_number=decrypt_field(row.routing_number),
        account_type=row.account_type,
        verification_status=row.verification_status,
        is_primary=bool(row.is_primary),
        institution_id=row.institution_id,
        created_at=row.created_at,
    )


def to_notification(row: orm.Notification) -> domain.Notification:
    return domain.Notification(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        title=row.title,
        message=row.message,
        action_target=row.action_target,
        metadata=row.payload or {},
        is_read=bool(row.is_read),
        created_at=row.created_at,
    )


class UserRepository:
    """Repository for users"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[orm.User]:
        return self.db.get(orm.User, user_id)

    def get_by_email(self, email: str) -> Optional[orm.User]:
        return self.db.query(orm.User).filter(orm.User.email == email).first()


class AccountRepository:
    """Read-side queries for accounts; writes go through the ledger"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> List[orm.Account]:
        return (
            self.db.query(orm.Account)
            .filter(orm.Account.user_id == user_id)
            .order_by(orm.Account.created_at.asc())
            .all()
        )

    def get_for_user(self, user_id: str, account_id: str) -> Optional[orm.Account]:
        return (
            self.db.query(orm.Account)
            .filter(orm.Account.id == account_id, orm.Account.user_id == user_id)
            .first()
        )

    def get_by_type(self, user_id: str, account_type: str) -> Optional[orm.Account]:
        return (
            self.db.query(orm.Account)
            .filter(orm.Account.user_id == user_id, orm.Account.account_type == account_type)
            .order_by(orm.Account.created_at.asc())
            .first()
        )

    def number_exists(self, account_number: str) -> bool:
        return (
            self.db.query(orm.Account.id).filter(orm.Account.account_number == account_number).first()
            is not None
        )


class TransactionRepository:
    """Repository for transaction-log rows"""

    def __init__(self, db: Session):
        self.db = db

    def _for_user(self, user_id: str):
        return (
            self.db.query(orm.LedgerTransaction)
            .join(orm.Account, orm.LedgerTransaction.account_id == orm.Account.id)
            .filter(orm.Account.user_id == user_id)
        )

    def get_for_user(self, user_id: str, transaction_id: str) -> Optional[orm.LedgerTransaction]:
        return self._for_user(user_id).filter(orm.LedgerTransaction.id == transaction_id).first()

    def find_by_idempotency_key(self, account_id: str, key: str) -> Optional[orm.LedgerTransaction]:
        return (
            self.db.query(orm.LedgerTransaction)
            .filter(
                orm.LedgerTransaction.account_id == account_id,
                orm.LedgerTransaction.idempotency_key == key,
            )
            .first()
        )

    def find_counterpart(self, reference_id: str, exclude_id: str) -> Optional[orm.LedgerTransaction]:
        """Other leg of a transfer sharing the same reference id"""
        return (
            self.db.query(orm.LedgerTransaction)
            .filter(
                orm.LedgerTransaction.reference_id == reference_id,
                orm.LedgerTransaction.id != exclude_id,
            )
            .first()
        )

    def search(
        self,
        user_id: str,
        account_id: Optional[str] = None,
        category: Optional[str] = None,
        spending_category: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[orm.LedgerTransaction], int]:
        """Filtered, newest-first page of the caller's transactions plus the total count"""
        query = self._for_user(user_id)
        if account_id:
            query = query.filter(orm.LedgerTransaction.account_id == account_id)
        if category:
            query = query.filter(orm.LedgerTransaction.category == category)
        if spending_category:
            query = query.filter(orm.LedgerTransaction.spending_category == spending_category)
        if start:
            query = query.filter(orm.LedgerTransaction.created_at >= start)
        if end:
            query = query.filter(orm.LedgerTransaction.created_at <= end)

        total = query.count()
        rows = (
            query.order_by(orm.LedgerTransaction.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
            .all()
        )
        return rows, total

    def history_for_account(self, account_id: str) -> List[orm.LedgerTransaction]:
        """Whole log for one account in posting order"""
        return (
            self.db.query(orm.LedgerTransaction)
            .filter(orm.LedgerTransaction.account_id == account_id)
            .order_by(orm.LedgerTransaction.created_at.asc())
            .all()
        )

    def deposits_since(self, account_id: str, since: datetime) -> List[orm.LedgerTransaction]:
        return (
            self.db.query(orm.LedgerTransaction)
            .filter(
                orm.LedgerTransaction.account_id == account_id,
                orm.LedgerTransaction.category == domain.EntryCategory.DEPOSIT.value,
                orm.LedgerTransaction.type == domain.EntryType.CREDIT.value,
                orm.LedgerTransaction.created_at >= since,
            )
            .all()
        )

    def debit_total_since(self, account_id: str, since: datetime) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(orm.LedgerTransaction.amount_cents), 0))
            .filter(
                orm.LedgerTransaction.account_id == account_id,
                orm.LedgerTransaction.type == domain.EntryType.DEBIT.value,
                orm.LedgerTransaction.created_at >= since,
            )
            .scalar()
        )
        return int(total or 0)

    def spending_by_category(self, user_id: str, start: datetime, end: datetime) -> List[Tuple[str, int, int]]:
        """(spending_category, total_cents, count) for purchase debits in [start, end)"""
        rows = (
            self.db.query(
                orm.LedgerTransaction.spending_category,
                func.sum(orm.LedgerTransaction.amount_cents),
                func.count(orm.LedgerTransaction.id),
            )
            .join(orm.Account, orm.LedgerTransaction.account_id == orm.Account.id)
            .filter(
                orm.Account.user_id == user_id,
                orm.LedgerTransaction.type == domain.EntryType.DEBIT.value,
                orm.LedgerTransaction.category == domain.EntryCategory.PURCHASE.value,
                orm.LedgerTransaction.spending_category.isnot(None),
                orm.LedgerTransaction.created_at >= start,
                orm.LedgerTransaction.created_at < end,
            )
            .group_by(orm.LedgerTransaction.spending_category)
            .all()
        )
        return [(category, int(total), int(count)) for category, total, count in rows]


class AdvanceRepository:
    """Repository for advances"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> List[orm.Advance]:
        return (
            self.db.query(orm.Advance)
            .filter(orm.Advance.user_id == user_id)
            .order_by(orm.Advance.created_at.desc())
            .all()
        )

    def get_for_user(self, user_id: str, advance_id: str) -> Optional[orm.Advance]:
        return (
            self.db.query(orm.Advance)
            .filter(orm.Advance.id == advance_id, orm.Advance.user_id == user_id)
            .first()
        )

    def lock(self, advance_id: str) -> Optional[orm.Advance]:
        return (
            self.db.query(orm.Advance)
            .filter(orm.Advance.id == advance_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def find_in_statuses(self, user_id: str, statuses: Iterable[str]) -> Optional[orm.Advance]:
        return (
            self.db.query(orm.Advance)
            .filter(orm.Advance.user_id == user_id, orm.Advance.status.in_(list(statuses)))
            .first()
        )

    def count_by_status(self, user_id: str, status: str) -> int:
        return (
            self.db.query(orm.Advance)
            .filter(orm.Advance.user_id == user_id, orm.Advance.status == status)
            .count()
        )

    def ids_in_status(self, status: str) -> List[str]:
        return [row.id for row in self.db.query(orm.Advance.id).filter(orm.Advance.status == status).all()]

    def past_due(self, statuses: Iterable[str], before) -> List[orm.Advance]:
        return (
            self.db.query(orm.Advance)
            .filter(orm.Advance.status.in_(list(statuses)), orm.Advance.repayment_date < before)
            .with_for_update()
            .all()
        )


class GoalRepository:
    """Repository for savings goals"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> List[orm.Goal]:
        return (
            self.db.query(orm.Goal)
            .filter(orm.Goal.user_id == user_id)
            .order_by(orm.Goal.created_at.desc())
            .all()
        )

    def get_for_user(self, user_id: str, goal_id: str, for_update: bool = False) -> Optional[orm.Goal]:
        query = self.db.query(orm.Goal).filter(orm.Goal.id == goal_id, orm.Goal.user_id == user_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()


class BillRepository:
    """Repository for bills and their payments"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str, status: Optional[str] = None) -> List[orm.Bill]:
        query = self.db.query(orm.Bill).filter(orm.Bill.user_id == user_id)
        if status:
            query = query.filter(orm.Bill.status == status)
        return query.order_by(orm.Bill.next_due_date.asc()).all()

    def get_for_user(self, user_id: str, bill_id: str) -> Optional[orm.Bill]:
        return (
            self.db.query(orm.Bill)
            .filter(orm.Bill.id == bill_id, orm.Bill.user_id == user_id)
            .first()
        )

    def payments_for_user(self, user_id: str, bill_id: Optional[str] = None, limit: int = 50) -> List[Tuple[orm.BillPayment, orm.Bill]]:
        query = (
            self.db.query(orm.BillPayment, orm.Bill)
            .join(orm.Bill, orm.BillPayment.bill_id == orm.Bill.id)
            .filter(orm.BillPayment.user_id == user_id)
        )
        if bill_id:
            query = query.filter(orm.BillPayment.bill_id == bill_id)
        return query.order_by(orm.BillPayment.paid_at.desc()).limit(limit).all()


class LinkedAccountRepository:
    """Repository for external bank references"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> List[orm.LinkedAccount]:
        return (
            self.db.query(orm.LinkedAccount)
            .filter(orm.LinkedAccount.user_id == user_id)
            .order_by(orm.LinkedAccount.created_at.desc())
            .all()
        )

    def get_for_user(self, user_id: str, linked_id: str) -> Optional[orm.LinkedAccount]:
        return (
            self.db.query(orm.LinkedAccount)
            .filter(orm.LinkedAccount.id == linked_id, orm.LinkedAccount.user_id == user_id)
            .first()
        )

    def find_same_bank_last4(self, user_id: str, bank_name: str, last4: str) -> List[orm.LinkedAccount]:
        return (
            self.db.query(orm.LinkedAccount)
            .filter(
                orm.LinkedAccount.user_id == user_id,
                orm.LinkedAccount.bank_name == bank_name,
                orm.LinkedAccount.account_number_last4 == last4,
            )
            .all()
        )

    def verified_for_user(self, user_id: str) -> List[orm.LinkedAccount]:
        return (
            self.db.query(orm.LinkedAccount)
            .filter(
                orm.LinkedAccount.user_id == user_id,
                orm.LinkedAccount.verification_status == domain.VerificationStatus.VERIFIED.value,
            )
            .order_by(orm.LinkedAccount.created_at.asc())
            .all()
        )

    def primary_for_user(self, user_id: str) -> Optional[orm.LinkedAccount]:
        return (
            self.db.query(orm.LinkedAccount)
            .filter(orm.LinkedAccount.user_id == user_id, orm.LinkedAccount.is_primary.is_(True))
            .first()
        )
