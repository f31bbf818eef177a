"""Dependency injection for FastAPI endpoints"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from cayden_gateway.domain.exceptions import UnauthorizedError
from cayden_gateway.infrastructure.database.repositories import UserRepository
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.infrastructure.security.tokens import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Authenticated caller for one request; never shared between requests"""

    user_id: str
    request_id: str


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_request_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> RequestContext:
    """Resolve the caller from `Authorization: Bearer <jwt>`"""
    if credentials is None:
        raise UnauthorizedError("Authentication required")

    user_id = decode_access_token(credentials.credentials)
    if UserRepository(db).get(user_id) is None:
        raise UnauthorizedError("Invalid or expired token")

    return RequestContext(user_id=user_id, request_id=get_request_id(request))


def get_pin_token(x_pin_token: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_pin_token


def get_idempotency_key(idempotency_key: Optional[str] = Header(default=None)) -> Optional[str]:
    """Client-supplied request id for safe retries of money movement"""
    if idempotency_key is not None:
        idempotency_key = idempotency_key.strip()[:128] or None
    return idempotency_key
