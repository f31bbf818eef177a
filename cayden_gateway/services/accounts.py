"""Account use cases: registration, savings, deposits and transfers"""

import secrets
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from cayden_gateway.domain.exceptions import BadRequestError, NotFoundError
from cayden_gateway.domain.models import Account, AccountType, EntryCategory, EntryType, LedgerEntry
from cayden_gateway.infrastructure.database import models as orm
from cayden_gateway.infrastructure.database.ledger import ledger_transaction, require
from cayden_gateway.infrastructure.database.repositories import (
    AccountRepository,
    TransactionRepository,
    UserRepository,
    to_account,
    to_entry,
)
from cayden_gateway.infrastructure.security.passwords import hash_secret
from cayden_gateway.services.audit import AuditAction, record_audit

ROUTING_NUMBER = "021000089"


@dataclass
class DepositResult:
    transaction: LedgerEntry
    new_balance_cents: int
    replayed: bool = False


@dataclass
class TransferResult:
    from_balance_cents: int
    to_balance_cents: int
    reference_id: str
    replayed: bool = False


@dataclass
class Reconciliation:
    account_id: str
    balance_cents: int
    replayed_balance_cents: int
    entries: int

    @property
    def consistent(self) -> bool:
        return self.balance_cents == self.replayed_balance_cents


def generate_account_number(db: Session) -> str:
    """12 random digits, unique across accounts"""
    repo = AccountRepository(db)
    while True:
        number = str(secrets.randbelow(9 * 10**11) + 10**11)
        if not repo.number_exists(number):
            return number


def _new_account(db: Session, user_id: str, account_type: AccountType) -> orm.Account:
    account = orm.Account(
        user_id=user_id,
        account_type=account_type.value,
        account_number=generate_account_number(db),
        routing_number=ROUTING_NUMBER,
        balance_cents=0,
    )
    db.add(account)
    db.flush()
    return account


def register_user(db: Session, email: str, password: str, full_name: Optional[str] = None) -> str:
    """Create a user together with their checking account; returns the user id"""
    if UserRepository(db).get_by_email(email):
        raise BadRequestError("Email is already registered")

    user = orm.User(email=email, full_name=full_name, password_hash=hash_secret(password))
    db.add(user)
    db.flush()
    _new_account(db, user.id, AccountType.CHECKING)
    db.commit()

    record_audit(db, user.id, AuditAction.REGISTER)
    return user.id


def ensure_savings_account(db: Session, user_id: str) -> orm.Account:
    """Existing savings account, or a new one flushed into the current transaction"""
    existing = AccountRepository(db).get_by_type(user_id, AccountType.SAVINGS.value)
    if existing:
        return existing
    return _new_account(db, user_id, AccountType.SAVINGS)


def create_savings_account(db: Session, user_id: str) -> Account:
    if AccountRepository(db).get_by_type(user_id, AccountType.SAVINGS.value):
        raise BadRequestError("You already have a savings account")
    account = _new_account(db, user_id, AccountType.SAVINGS)
    db.commit()
    return to_account(account)


def list_accounts(db: Session, user_id: str) -> List[Account]:
    return [to_account(row) for row in AccountRepository(db).list_for_user(user_id)]


def get_account(db: Session, user_id: str, account_id: str) -> Account:
    row = AccountRepository(db).get_for_user(user_id, account_id)
    if not row:
        raise NotFoundError("Account not found")
    return to_account(row)


def toggle_round_up(db: Session, user_id: str, account_id: str) -> bool:
    row = AccountRepository(db).get_for_user(user_id, account_id)
    if not row:
        raise NotFoundError("Account not found")
    row.round_up_enabled = not row.round_up_enabled
    db.commit()
    return row.round_up_enabled


def _ensure_replay_matches(previous: orm.LedgerTransaction, category: EntryCategory, entry_type: EntryType) -> None:
    """An idempotency key only replays the kind of operation that first used it"""
    if previous.category != category.value or previous.type != entry_type.value:
        raise BadRequestError("Idempotency key already used for a different operation")


def deposit(
    db: Session,
    user_id: str,
    account_id: str,
    amount_cents: int,
    description: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> DepositResult:
    """
    Credit an owned account and log one credit/deposit row.

    A repeated idempotency key on the same account returns the original
    result instead of posting again.
    """
    if amount_cents <= 0:
        raise BadRequestError("Amount must be positive")

    with ledger_transaction(db, "deposit") as ledger:
        account = require(ledger.lock_account(account_id, user_id=user_id), "Account not found")

        if idempotency_key:
            previous = TransactionRepository(db).find_by_idempotency_key(account.id, idempotency_key)
            if previous:
                _ensure_replay_matches(previous, EntryCategory.DEPOSIT, EntryType.CREDIT)
                return DepositResult(
                    transaction=to_entry(previous),
                    new_balance_cents=previous.balance_after_cents,
                    replayed=True,
                )

        entry = ledger.credit(
            account,
            amount_cents,
            EntryCategory.DEPOSIT,
            description or "Direct Deposit",
            idempotency_key=idempotency_key,
        )
        result = DepositResult(transaction=to_entry(entry), new_balance_cents=account.balance_cents)

    record_audit(db, user_id, AuditAction.DEPOSIT, {"accountId": account_id, "amountCents": amount_cents})
    return result


def transfer(
    db: Session,
    user_id: str,
    from_account_id: str,
    to_account_id: str,
    amount_cents: int,
    description: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> TransferResult:
    """
    Move money from an owned account to any account (P2P allowed).

    Both balance updates and both log rows commit together; a missing
    destination rolls back the source debit too.
    """
    if amount_cents <= 0:
        raise BadRequestError("Amount must be positive")
    if from_account_id == to_account_id:
        raise BadRequestError("Cannot transfer to the same account")

    with ledger_transaction(db, "transfer") as ledger:
        locked = ledger.lock_accounts([from_account_id, to_account_id])
        source = locked.get(from_account_id)
        if source is None or source.user_id != user_id:
            raise NotFoundError("Source account not found")

        if idempotency_key:
            repo = TransactionRepository(db)
            previous = repo.find_by_idempotency_key(source.id, idempotency_key)
            if previous:
                _ensure_replay_matches(previous, EntryCategory.TRANSFER, EntryType.DEBIT)
                counterpart = repo.find_counterpart(previous.reference_id, previous.id)
                return TransferResult(
                    from_balance_cents=previous.balance_after_cents,
                    to_balance_cents=counterpart.balance_after_cents if counterpart else 0,
                    reference_id=previous.reference_id,
                    replayed=True,
                )

        if source.balance_cents < amount_cents:
            raise BadRequestError("Insufficient funds")

        destination = require(locked.get(to_account_id), "Destination account not found")

        legs = ledger.transfer(
            source,
            destination,
            amount_cents,
            EntryCategory.TRANSFER,
            description or f"Transfer to {destination.account_number}",
            description or f"Transfer from {source.account_number}",
            idempotency_key=idempotency_key,
        )
        result = TransferResult(
            from_balance_cents=source.balance_cents,
            to_balance_cents=destination.balance_cents,
            reference_id=legs.reference_id,
        )

    record_audit(
        db,
        user_id,
        AuditAction.TRANSFER,
        {"fromAccountId": from_account_id, "toAccountId": to_account_id, "amountCents": amount_cents},
    )
    return result


def reconcile_account(db: Session, user_id: str, account_id: str) -> Reconciliation:
    """Replay the account's log in posting order and compare with the stored balance"""
    account = AccountRepository(db).get_for_user(user_id, account_id)
    if not account:
        raise NotFoundError("Account not found")

    replayed = 0
    entries = TransactionRepository(db).history_for_account(account_id)
    for entry in entries:
        if entry.type == EntryType.CREDIT.value:
            replayed += entry.amount_cents
        else:
            replayed -= entry.amount_cents

    return Reconciliation(
        account_id=account_id,
        balance_cents=account.balance_cents,
        replayed_balance_cents=replayed,
        entries=len(entries),
    )
