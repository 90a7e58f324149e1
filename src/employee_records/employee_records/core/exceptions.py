from __future__ import annotations

from typing import Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, details: Sequence[str] = ()):
        super().__init__(message)
        self.details = list(details)


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    code = "AUTHENTICATION_FAILED"


class AuthenticationRequired(AuthenticationError):
    """Raised when a protected operation is called without a valid actor."""

    code = "AUTHENTICATION_REQUIRED"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "FORBIDDEN"


class InsufficientRole(AuthorizationError):
    code = "INSUFFICIENT_ROLE"


class AccessDenied(AuthorizationError):
    """The record exists but the caller's role may not see it."""

    code = "ACCESS_DENIED"


class NotFound(DomainError):
    code = "NOT_FOUND"


class AlreadyExists(DomainError):
    code = "ALREADY_EXISTS"


class StoreFailure(DomainError):
    """Raised when the underlying record store rejects an operation."""

    code = "STORE_FAILURE"


class UnknownFieldError(StoreFailure):
    code = "UNKNOWN_FIELD"


class DuplicateKeyError(StoreFailure):
    code = "ALREADY_EXISTS"


class VersionConflict(StoreFailure):
    """A version-checked write lost against a concurrent update."""

    code = "VERSION_CONFLICT"
