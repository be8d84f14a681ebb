"""Mapping of domain errors to HTTP responses.

Only the error code, the user-safe message and the structured details
leave the service; internals never do.
"""

from rest_framework import status
from rest_framework.response import Response

from bookings.domain.errors import DomainError, ErrorCode

STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.SCHEDULE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_BOOKED: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_AVAILABLE: status.HTTP_409_CONFLICT,
    ErrorCode.INSUFFICIENT_FUNDS: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.DEADLINE_EXPIRED: status.HTTP_410_GONE,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
}


def error_response(error: DomainError) -> Response:
    http_status = STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST)
    body = {
        "error": {
            "code": error.code.value,
            "message": error.message,
            "details": error.details,
        }
    }
    response = Response(body, status=http_status)
    if error.retryable:
        response["Retry-After"] = "1"
    return response
