"""Transaction PIN: a 4-digit secret that unlocks short-lived verification tokens"""

import re
from typing import Optional

from sqlalchemy.orm import Session

from cayden_gateway.config import settings
from cayden_gateway.domain.exceptions import BadRequestError, UnauthorizedError
from cayden_gateway.infrastructure.database import models as orm
from cayden_gateway.infrastructure.database.repositories import UserRepository
from cayden_gateway.infrastructure.security.passwords import hash_secret, verify_secret
from cayden_gateway.infrastructure.security.tokens import create_pin_token, verify_pin_token
from cayden_gateway.services.audit import AuditAction, record_audit

PIN_PATTERN = re.compile(r"^\d{4}$")
PIN_REQUIRED_MESSAGE = "PIN verification required for advances over $100"


def _validate_format(pin: str) -> None:
    if not PIN_PATTERN.match(pin or ""):
        raise BadRequestError("PIN must be exactly 4 digits")


def _user_with_password(db: Session, user_id: str, password: str) -> orm.User:
    user = UserRepository(db).get(user_id)
    if not user:
        raise BadRequestError("User not found")
    if not verify_secret(password, user.password_hash):
        raise UnauthorizedError("Invalid password")
    return user


def has_pin(db: Session, user_id: str) -> bool:
    user = UserRepository(db).get(user_id)
    return bool(user and user.pin_hash)


def set_pin(db: Session, user_id: str, pin: str, password: str) -> None:
    _validate_format(pin)
    user = _user_with_password(db, user_id, password)

    is_update = bool(user.pin_hash)
    user.pin_hash = hash_secret(pin)
    db.commit()

    record_audit(db, user_id, AuditAction.PIN_CHANGED if is_update else AuditAction.PIN_SET)


def verify_pin(db: Session, user_id: str, pin: str) -> str:
    """Check the PIN and issue a pin-verify token valid for pin_token_ttl_seconds"""
    _validate_format(pin)
    user = UserRepository(db).get(user_id)
    if not user or not user.pin_hash:
        raise BadRequestError("PIN not set")

    if not verify_secret(pin, user.pin_hash):
        record_audit(db, user_id, AuditAction.PIN_FAILED)
        raise UnauthorizedError("Invalid PIN")

    record_audit(db, user_id, AuditAction.PIN_VERIFIED)
    return create_pin_token(user_id)


def remove_pin(db: Session, user_id: str, password: str) -> None:
    user = _user_with_password(db, user_id, password)
    user.pin_hash = None
    db.commit()

    record_audit(db, user_id, AuditAction.PIN_REMOVED)


def require_pin_for_amount(db: Session, user_id: str, amount_cents: int, pin_token: Optional[str]) -> None:
    """
    Gate large advances behind a fresh PIN check.

    Only applies above pin_required_above_cents and only to users who have
    set a PIN. Any token problem surfaces as 401 with requirePin=True.
    """
    if amount_cents <= settings.pin_required_above_cents:
        return
    if not has_pin(db, user_id):
        return

    if not pin_token:
        raise UnauthorizedError(PIN_REQUIRED_MESSAGE, extra={"requirePin": True})
    try:
        verify_pin_token(pin_token, user_id)
    except UnauthorizedError as e:
        raise UnauthorizedError(e.message, extra={"requirePin": True}) from e
