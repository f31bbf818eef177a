"""Ledger primitives: every balance change and its log row commit or roll back together.

Usage:
    with ledger_transaction(db, "deposit") as ledger:
        account = ledger.lock_account(account_id, user_id=user_id)
        ledger.credit(account, amount_cents, EntryCategory.DEPOSIT, "Direct Deposit")

Balances are only ever read through lock_account()/lock_accounts() inside the
block, so the check-then-update runs under the row lock (SELECT ... FOR UPDATE).
"""

import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional

from sqlalchemy.orm import Query, Session

from cayden_gateway.domain.exceptions import BadRequestError, NotFoundError
from cayden_gateway.domain.models import AccountStatus, EntryCategory, EntryType
from cayden_gateway.infrastructure.database.models import Account, LedgerTransaction
from cayden_gateway.infrastructure.observability.logging import log_ledger_operation
from cayden_gateway.infrastructure.observability.metrics import record_ledger_operation


@dataclass
class TransferLegs:
    """Debit and credit rows of one logical transfer"""

    debit: LedgerTransaction
    credit: LedgerTransaction
    reference_id: str


class Ledger:
    """Balance mutations bound to one open database transaction"""

    def __init__(self, db: Session):
        self.db = db

    def account_query(self, account_id: str, user_id: Optional[str] = None) -> Query:
        """SELECT ... FOR UPDATE for one account; user_id scopes it to its owner"""
        query = self.db.query(Account).filter(Account.id == account_id)
        if user_id is not None:
            query = query.filter(Account.user_id == user_id)
        return query.with_for_update().populate_existing()

    def account_by_type_query(self, user_id: str, account_type: str) -> Query:
        return (
            self.db.query(Account)
            .filter(Account.user_id == user_id, Account.account_type == account_type)
            .order_by(Account.created_at.asc())
            .with_for_update()
            .populate_existing()
        )

    def lock_account(self, account_id: str, user_id: Optional[str] = None) -> Optional[Account]:
        return self.account_query(account_id, user_id=user_id).first()

    def lock_account_by_type(self, user_id: str, account_type: str) -> Optional[Account]:
        return self.account_by_type_query(user_id, account_type).first()

    def lock_accounts(self, account_ids: Iterable[str]) -> Dict[str, Account]:
        """Lock several accounts in ascending id order so concurrent transfers can't deadlock"""
        locked: Dict[str, Account] = {}
        for account_id in sorted(set(account_ids)):
            account = self.lock_account(account_id)
            if account is not None:
                locked[account_id] = account
        return locked

    def _post(
        self,
        account: Account,
        entry_type: EntryType,
        category: EntryCategory,
        amount_cents: int,
        description: Optional[str],
        reference_id: Optional[str] = None,
        merchant_name: Optional[str] = None,
        spending_category: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> LedgerTransaction:
        if amount_cents <= 0:
            raise BadRequestError("Amount must be positive")
        if account.status != AccountStatus.ACTIVE.value:
            raise BadRequestError(f"Account is {account.status}")

        if entry_type == EntryType.DEBIT:
            new_balance = account.balance_cents - amount_cents
            if new_balance < 0:
                raise BadRequestError("Insufficient funds")
        else:
            new_balance = account.balance_cents + amount_cents

        account.balance_cents = new_balance
        entry = LedgerTransaction(
            account_id=account.id,
            type=entry_type.value,
            category=category.value,
            amount_cents=amount_cents,
            description=description,
            merchant_name=merchant_name,
            spending_category=spending_category,
            reference_id=reference_id,
            balance_after_cents=new_balance,
            idempotency_key=idempotency_key,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def credit(self, account: Account, amount_cents: int, category: EntryCategory, description: Optional[str], **kwargs) -> LedgerTransaction:
        return self._post(account, EntryType.CREDIT, category, amount_cents, description, **kwargs)

    def debit(self, account: Account, amount_cents: int, category: EntryCategory, description: Optional[str], **kwargs) -> LedgerTransaction:
        """Raises BadRequestError('Insufficient funds') before touching the balance"""
        return self._post(account, EntryType.DEBIT, category, amount_cents, description, **kwargs)

    def transfer(
        self,
        source: Account,
        destination: Account,
        amount_cents: int,
        category: EntryCategory,
        debit_description: str,
        credit_description: str,
        idempotency_key: Optional[str] = None,
    ) -> TransferLegs:
        """Debit + credit sharing a fresh reference id; both rows or neither"""
        if source.id == destination.id:
            raise BadRequestError("Cannot transfer to the same account")

        reference_id = str(uuid.uuid4())
        debit = self.debit(
            source,
            amount_cents,
            category,
            debit_description,
            reference_id=reference_id,
            idempotency_key=idempotency_key,
        )
        credit = self.credit(destination, amount_cents, category, credit_description, reference_id=reference_id)
        return TransferLegs(debit=debit, credit=credit, reference_id=reference_id)


@contextmanager
def ledger_transaction(db: Session, operation: str) -> Iterator[Ledger]:
    """
    Scoped ledger unit of work.

    Commits when the block exits normally, rolls back and re-raises on any
    exception. Outcome and latency are recorded for every exit path.
    """
    start_time = time.perf_counter()
    try:
        yield Ledger(db)
        db.commit()
    except Exception as e:
        db.rollback()
        duration = time.perf_counter() - start_time
        record_ledger_operation(operation, committed=False, duration_seconds=duration)
        log_ledger_operation(operation, committed=False, duration_ms=duration * 1000, error=str(e))
        raise

    duration = time.perf_counter() - start_time
    record_ledger_operation(operation, committed=True, duration_seconds=duration)
    log_ledger_operation(operation, committed=True, duration_ms=duration * 1000)


def require(account: Optional[Account], message: str) -> Account:
    """NotFound guard for lock_* lookups"""
    if account is None:
        raise NotFoundError(message)
    return account
