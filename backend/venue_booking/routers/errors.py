import logging

from fastapi import HTTPException, status

from ..domain.errors import ErrorCode, ReservationError

logger = logging.getLogger(__name__)

STATUS_FOR_CODE: dict[ErrorCode, int] = {
    ErrorCode.PAST_DATE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.UNAVAILABLE_DATE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_DURATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_CAPACITY: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.SLOT_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RESERVATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.LIFECYCLE_VIOLATION: status.HTTP_409_CONFLICT,
    ErrorCode.CANCELLATION_CUTOFF: status.HTTP_403_FORBIDDEN,
    ErrorCode.VERSION_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.PENDING_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.DATE_ALREADY_BLOCKED: status.HTTP_409_CONFLICT,
    ErrorCode.STORAGE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_LEVEL_FOR_CODE: dict[ErrorCode, int] = {
    ErrorCode.STORAGE_ERROR: logging.WARNING,
    ErrorCode.LIFECYCLE_VIOLATION: logging.ERROR,
}


def to_http_exception(exc: ReservationError) -> HTTPException:
    """Map a domain error to its HTTP status with a machine-readable body."""
    logger.log(_LEVEL_FOR_CODE.get(exc.code, logging.INFO), "%s: %s", exc.code.value, exc.message)
    return HTTPException(
        status_code=STATUS_FOR_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
        detail={"code": exc.code.value, "message": exc.message},
    )
