from enum import StrEnum


class ErrorCode(StrEnum):
    PAST_DATE = "PAST_DATE"
    UNAVAILABLE_DATE = "UNAVAILABLE_DATE"
    INVALID_DURATION = "INVALID_DURATION"
    INVALID_CAPACITY = "INVALID_CAPACITY"
    SLOT_CONFLICT = "SLOT_CONFLICT"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    LIFECYCLE_VIOLATION = "LIFECYCLE_VIOLATION"
    CANCELLATION_CUTOFF = "CANCELLATION_CUTOFF"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    PENDING_LIMIT = "PENDING_LIMIT"
    DATE_ALREADY_BLOCKED = "DATE_ALREADY_BLOCKED"
    STORAGE_ERROR = "STORAGE_ERROR"


class ReservationError(Exception):
    """Base class for errors the caller can act on."""

    code: ErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PastDateError(ReservationError):
    code = ErrorCode.PAST_DATE


class UnavailableDateError(ReservationError):
    code = ErrorCode.UNAVAILABLE_DATE


class InvalidDurationError(ReservationError):
    code = ErrorCode.INVALID_DURATION


class InvalidCapacityError(ReservationError):
    code = ErrorCode.INVALID_CAPACITY


class SlotConflictError(ReservationError):
    code = ErrorCode.SLOT_CONFLICT


class ResourceNotFoundError(ReservationError):
    code = ErrorCode.RESOURCE_NOT_FOUND


class ReservationNotFoundError(ReservationError):
    code = ErrorCode.RESERVATION_NOT_FOUND


class LifecycleViolationError(ReservationError):
    code = ErrorCode.LIFECYCLE_VIOLATION


class CancellationCutoffError(ReservationError):
    code = ErrorCode.CANCELLATION_CUTOFF


class VersionConflictError(ReservationError):
    code = ErrorCode.VERSION_CONFLICT


class ForbiddenActionError(ReservationError):
    code = ErrorCode.FORBIDDEN


class PendingLimitError(ReservationError):
    code = ErrorCode.PENDING_LIMIT


class DateAlreadyBlockedError(ReservationError):
    code = ErrorCode.DATE_ALREADY_BLOCKED


class StorageError(ReservationError):
    code = ErrorCode.STORAGE_ERROR
