"""JWT access tokens and short-lived PIN verification tokens"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from cayden_gateway.config import settings
from cayden_gateway.domain.exceptions import UnauthorizedError

ACCESS_TOKEN_TYPE = "access"
PIN_TOKEN_TYPE = "pin-verify"


def _encode(user_id: str, token_type: str, ttl_seconds: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def create_access_token(user_id: str, ttl_seconds: int | None = None) -> str:
    return _encode(user_id, ACCESS_TOKEN_TYPE, ttl_seconds or settings.access_token_ttl_seconds)


def create_pin_token(user_id: str, ttl_seconds: int | None = None) -> str:
    return _encode(user_id, PIN_TOKEN_TYPE, ttl_seconds or settings.pin_token_ttl_seconds)


def decode_access_token(token: str) -> str:
    """
    Validate a bearer token and return the user id it was issued for.

    Raises:
        UnauthorizedError: expired, tampered, or not an access token
    """
    try:
        payload = _decode(token)
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Invalid or expired token") from e

    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        raise UnauthorizedError("Invalid or expired token")
    return payload["sub"]


def verify_pin_token(token: str, user_id: str) -> None:
    """
    Check a PIN token issued by POST /v1/pin/verify.

    Raises:
        UnauthorizedError: expired/invalid token or issued for another user
    """
    try:
        payload = _decode(token)
    except jwt.PyJWTError as e:
        raise UnauthorizedError("PIN token expired or invalid. Please re-verify your PIN.") from e

    if payload.get("type") != PIN_TOKEN_TYPE:
        raise UnauthorizedError("Invalid PIN token")
    if payload.get("sub") != user_id:
        raise UnauthorizedError("PIN token does not match authenticated user")
