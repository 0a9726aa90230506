from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    code = "DOMAIN_ERROR"
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, **detail):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401
    code = "AUTHENTICATION_ERROR"
    default_message = "Invalid username or password"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    code = "AUTHORIZATION_ERROR"
    default_message = "You are not allowed to perform this action"


class NotFoundError(DomainError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class StateConflictError(DomainError):
    """The record is not in a state that permits the requested transition."""

    code = "STATE_CONFLICT"


# Attendance


class AlreadyCheckedIn(StateConflictError):
    code = "ALREADY_CHECKED_IN"
    default_message = "Already checked in today"


class NoCheckInFound(StateConflictError):
    code = "NO_CHECK_IN_FOUND"
    default_message = "No check-in record found for today"


class AlreadyCheckedOut(StateConflictError):
    code = "ALREADY_CHECKED_OUT"
    default_message = "Already checked out today"


class ReCheckInNotAllowed(StateConflictError):
    code = "RE_CHECK_IN_NOT_ALLOWED"
    default_message = "Re-check-in is not allowed"


class NoReCheckInFound(StateConflictError):
    code = "NO_RE_CHECK_IN_FOUND"
    default_message = "No re-check-in record found for today"


class AlreadyReCheckedOut(StateConflictError):
    code = "ALREADY_RE_CHECKED_OUT"
    default_message = "Already re-checked out today"


class SessionTooShort(StateConflictError):
    code = "SESSION_TOO_SHORT"
    default_message = "Session is too short to close"


# Leave


class InvalidDate(ValidationError):
    code = "INVALID_DATE"
    default_message = "Invalid date format"


class PastDate(ValidationError):
    code = "PAST_DATE"
    default_message = "From date cannot be in the past"


class InvertedRange(ValidationError):
    code = "INVERTED_RANGE"
    default_message = "To date cannot be before from date"


class OverlapConflict(StateConflictError):
    code = "OVERLAP_CONFLICT"
    default_message = "You have overlapping leave requests for these dates"


class LeaveNotFound(NotFoundError):
    code = "LEAVE_NOT_FOUND"
    default_message = "Leave request not found"


class NotPending(StateConflictError):
    code = "NOT_PENDING"
    default_message = "Leave request is not pending"


class CancelNotAllowed(StateConflictError):
    code = "CANCEL_NOT_ALLOWED"
    default_message = "Leave request can no longer be cancelled"
