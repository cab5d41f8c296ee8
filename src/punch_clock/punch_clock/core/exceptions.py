from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation"


class SequenceViolation(DomainError):
    """Raised when a punch is repeated or arrives out of turn."""

    code = "sequence_violation"

    def __init__(self, message: str, *, rule, expected_kind=None):
        super().__init__(message)
        self.rule = rule
        self.expected_kind = expected_kind


class NotFoundError(DomainError):
    """Raised when a referenced punch or request does not exist."""

    code = "not_found"


class InvalidStateTransition(DomainError):
    """Raised when a correction request is not in a state that allows the action."""

    code = "invalid_state"


class AuthenticationError(DomainError):
    """Raised when a token cannot be verified."""

    code = "unauthenticated"


class AuthorizationError(DomainError):
    """Raised when a subject lacks permission for an action."""

    code = "forbidden"


class DuplicateRecordError(DomainError):
    """Raised by repositories when a unique constraint rejects an insert."""

    code = "duplicate"

    def __init__(self, message: str, *, constraint: Optional[str] = None):
        super().__init__(message)
        self.constraint = constraint


class TransientNetworkError(Exception):
    """Timeout, unreachable endpoint or server-side failure seen by the client."""
