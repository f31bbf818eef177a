"""Domain-specific exceptions"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer, carries the HTTP status it maps to"""

    status_code = 500

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class BadRequestError(DomainException):
    """Invalid input or business-rule violation (insufficient funds, ineligible, ...)"""

    status_code = 400


class UnauthorizedError(DomainException):
    """Bearer token or PIN token missing, expired or invalid"""

    status_code = 401


class NotFoundError(DomainException):
    """Entity doesn't exist or doesn't belong to the caller"""

    status_code = 404


class ConflictError(DomainException):
    """Entity already exists (duplicate linked account)"""

    status_code = 409


class InvalidTransitionError(BadRequestError):
    """Advance status change not allowed by the state machine"""

    pass
