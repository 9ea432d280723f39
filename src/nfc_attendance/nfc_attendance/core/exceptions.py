class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"
    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class EventTypeRequired(ValidationError):
    """A bare tap reached a service that only accepts explicit check-in/check-out."""

    code = "EVENT_TYPE_REQUIRED"


class TagNotFound(DomainError):
    """No binding exists for the tag."""

    code = "TAG_NOT_FOUND"
    http_status = 404


class TagInactive(DomainError):
    """The tag exists but its status is not active."""

    code = "TAG_INACTIVE"


class TagUnassigned(DomainError):
    """The tag is active but not bound to an employee."""

    code = "TAG_NOT_ASSIGNED"


class EmployeeNotFound(DomainError):
    code = "EMPLOYEE_NOT_FOUND"
    http_status = 404


class InvalidTimestamp(DomainError):
    code = "INVALID_TIMESTAMP"


class NoActiveCheckIn(DomainError):
    """Close event with nothing open to close for that employee/day."""

    code = "NO_ACTIVE_CHECKIN"
    http_status = 409


class DayAlreadyClosed(DomainError):
    """Open event after the day's record was already closed."""

    code = "DAY_ALREADY_CLOSED"
    http_status = 409


class DuplicateRecordError(Exception):
    """Raised by a store when a unique constraint rejects a write."""
