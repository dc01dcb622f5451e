"""Domain error codes for the bookings module."""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class ErrorKind(Enum):
    """How an error surfaces to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVICE = "service"


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_FIELDS = "MISSING_FIELDS"
    INVALID_BOOKING_ID = "INVALID_BOOKING_ID"
    INVALID_CLASS_ID = "INVALID_CLASS_ID"
    INVALID_DATE = "INVALID_DATE"
    INVALID_FILTER = "INVALID_FILTER"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_PHONE = "INVALID_PHONE"
    CLASS_INACTIVE = "CLASS_INACTIVE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    CANCELLATION_REASON_NOT_ALLOWED = "CANCELLATION_REASON_NOT_ALLOWED"
    BOOKING_PAST_DATE = "BOOKING_PAST_DATE"
    BOOKING_DATE_OUT_OF_RANGE = "BOOKING_DATE_OUT_OF_RANGE"
    BOOKING_CLASS_FULL = "BOOKING_CLASS_FULL"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    CLASS_NOT_FOUND = "CLASS_NOT_FOUND"
    CONFLICT = "CONFLICT"
    SERVICE_ERROR = "SERVICE_ERROR"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    kind: ClassVar[ErrorKind] = ErrorKind.VALIDATION

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised for malformed input or a violated precondition."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, code: ErrorCode = ErrorCode.VALIDATION_ERROR) -> None:
        super().__init__(code=code, message=message)


class BusinessRuleError(ValidationError):
    """A validation failure carrying a stable, machine-readable code."""


class PastParticipationDateError(BusinessRuleError):
    def __init__(self) -> None:
        super().__init__(
            "Participation date must be from tomorrow onwards",
            ErrorCode.BOOKING_PAST_DATE,
        )


class DateOutOfRangeError(BusinessRuleError):
    def __init__(self) -> None:
        super().__init__(
            "Participation date must be within the class date range",
            ErrorCode.BOOKING_DATE_OUT_OF_RANGE,
        )


class ClassFullError(BusinessRuleError):
    """Raised when a class has no confirmed seats left."""

    def __init__(self, class_id: str, message: str = "Class is at maximum capacity") -> None:
        super().__init__(message, ErrorCode.BOOKING_CLASS_FULL)
        self.class_id = class_id


class InvalidTransitionError(ValidationError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCode.INVALID_STATUS_TRANSITION)


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, code: ErrorCode) -> None:
        super().__init__(code=code, message=message)


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str) -> None:
        super().__init__("Booking not found", ErrorCode.BOOKING_NOT_FOUND)
        self.booking_id = booking_id


class ClassNotFoundError(NotFoundError):
    def __init__(self, class_id: str, message: str = "Class not found") -> None:
        super().__init__(message, ErrorCode.CLASS_NOT_FOUND)
        self.class_id = class_id


class ConflictError(DomainError):
    """The record changed between reading and writing it."""

    kind = ErrorKind.CONFLICT

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.CONFLICT, message=message)


class ServiceError(DomainError):
    """Unexpected failure. The cause is logged, never exposed."""

    kind = ErrorKind.SERVICE

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.SERVICE_ERROR, message=message)
