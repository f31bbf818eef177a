"""External bank references. Linking is simulated; nothing talks to a real bank."""

import re
from dataclasses import dataclass
from typing import List

from sqlalchemy.orm import Session

from cayden_gateway.domain.exceptions import BadRequestError, ConflictError, NotFoundError
from cayden_gateway.domain.models import LinkedAccount, VerificationStatus
from cayden_gateway.infrastructure.database import models as orm
from cayden_gateway.infrastructure.database.repositories import LinkedAccountRepository, to_linked_account
from cayden_gateway.infrastructure.security.crypto import decrypt_field, encrypt
from cayden_gateway.services.audit import AuditAction, record_audit

ROUTING_PATTERN = re.compile(r"^\d{9}$")
LAST4_PATTERN = re.compile(r"^\d{4}$")


@dataclass
class LinkAccountInput:
    bank_name: str
    account_holder_name: str
    account_number_last4: str
    routing_number: str
    account_type: str = "checking"


def link_account(db: Session, user_id: str, data: LinkAccountInput) -> LinkedAccount:
    if not ROUTING_PATTERN.match(data.routing_number):
        raise BadRequestError("Routing number must be exactly 9 digits")
    if not LAST4_PATTERN.match(data.account_number_last4):
        raise BadRequestError("Account number last 4 must be exactly 4 digits")

    repo = LinkedAccountRepository(db)
    # Routing numbers are stored encrypted, so duplicates are compared after decryption
    for existing in repo.find_same_bank_last4(user_id, data.bank_name, data.account_number_last4):
        if decrypt_field(existing.routing_number) == data.routing_number:
            raise ConflictError("This bank account is already linked")

    row = orm.LinkedAccount(
        user_id=user_id,
        bank_name=data.bank_name,
        account_holder_name=encrypt(data.account_holder_name),
        account_number_last4=data.account_number_last4,
        routing_number=encrypt(data.routing_number),
        account_type=data.account_type,
        verification_status=VerificationStatus.PENDING.value,
        is_primary=False,
    )
    db.add(row)
    db.commit()

    record_audit(db, user_id, AuditAction.BANK_LINKED, {"bankName": data.bank_name, "accountType": data.account_type})
    return to_linked_account(row)


def list_linked_accounts(db: Session, user_id: str) -> List[LinkedAccount]:
    return [to_linked_account(row) for row in LinkedAccountRepository(db).list_for_user(user_id)]


def get_linked_account(db: Session, user_id: str, linked_id: str) -> LinkedAccount:
    row = LinkedAccountRepository(db).get_for_user(user_id, linked_id)
    if not row:
        raise NotFoundError("Linked account not found")
    return to_linked_account(row)


def verify_linked_account(db: Session, user_id: str, linked_id: str) -> LinkedAccount:
    """Instant simulated verification; the first verified account becomes primary"""
    repo = LinkedAccountRepository(db)
    row = repo.get_for_user(user_id, linked_id)
    if not row:
        raise NotFoundError("Linked account not found")
    if row.verification_status == VerificationStatus.VERIFIED.value:
        raise BadRequestError("Account is already verified")

    row.verification_status = VerificationStatus.VERIFIED.value
    if repo.primary_for_user(user_id) is None:
        row.is_primary = True
    db.commit()

    record_audit(db, user_id, AuditAction.BANK_VERIFIED, {"accountId": linked_id, "bankName": row.bank_name})
    return to_linked_account(row)


def set_primary_account(db: Session, user_id: str, linked_id: str) -> LinkedAccount:
    repo = LinkedAccountRepository(db)
    row = repo.get_for_user(user_id, linked_id)
    if not row or row.verification_status != VerificationStatus.VERIFIED.value:
        raise NotFoundError("Verified linked account not found")

    for other in repo.list_for_user(user_id):
        other.is_primary = other.id == row.id
    db.commit()
    return to_linked_account(row)


def unlink_account(db: Session, user_id: str, linked_id: str) -> None:
    repo = LinkedAccountRepository(db)
    row = repo.get_for_user(user_id, linked_id)
    if not row:
        raise NotFoundError("Linked account not found")

    was_primary = bool(row.is_primary)
    bank_name = row.bank_name
    db.delete(row)
    db.flush()

    if was_primary:
        remaining = repo.verified_for_user(user_id)
        if remaining:
            remaining[0].is_primary = True
    db.commit()

    record_audit(db, user_id, AuditAction.BANK_REMOVED, {"accountId": linked_id, "bankName": bank_name})


def has_verified_linked_account(db: Session, user_id: str) -> bool:
    return bool(LinkedAccountRepository(db).verified_for_user(user_id))
