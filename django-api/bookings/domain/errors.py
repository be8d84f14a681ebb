"""Domain error codes for the bookings module."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    DEADLINE_EXPIRED = "DEADLINE_EXPIRED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ALREADY_BOOKED = "ALREADY_BOOKED"
    NOT_AVAILABLE = "NOT_AVAILABLE"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def retryable(self) -> bool:
        return self.code is ErrorCode.STORE_UNAVAILABLE

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """Raised when an occurrence, enrollment, series or transaction is unknown."""

    def __init__(self, entity: str, identifier: object) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{entity.capitalize()} not found",
            details={"entity": entity, "id": str(identifier)},
        )


class InvalidTransitionError(DomainError):
    """Raised when an operation is illegal for the current status."""

    def __init__(self, operation: str, status: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Cannot {operation} while {status}",
            details={"operation": operation, "status": status},
        )


class ScheduleConflictError(DomainError):
    """Raised when a proposed window overlaps another live occurrence."""

    def __init__(self, overlap_kind: str, conflicting: dict[str, Any]) -> None:
        super().__init__(
            code=ErrorCode.SCHEDULE_CONFLICT,
            message="The selected time slot conflicts with another session",
            details={"overlap_kind": overlap_kind, "conflicting_occurrence": conflicting},
        )


class CapacityExceededError(DomainError):
    def __init__(self, occurrence_id: object, max_students: int) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message="Session is already full",
            details={"occurrence_id": str(occurrence_id), "max_students": max_students},
        )


class InsufficientFundsError(DomainError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            code=ErrorCode.INSUFFICIENT_FUNDS,
            message=f"Insufficient PC. You need {required} PC but only have {available}.",
            details={"required": required, "available": available},
        )


class DeadlineExpiredError(DomainError):
    def __init__(self, deadline: object, refunded: int) -> None:
        super().__init__(
            code=ErrorCode.DEADLINE_EXPIRED,
            message="Response deadline has passed; the session was cancelled",
            details={"deadline": str(deadline), "refunded": refunded},
        )


class StoreUnavailableError(DomainError):
    """Transient store failure; the only error callers may retry."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            code=ErrorCode.STORE_UNAVAILABLE,
            message="Storage is temporarily unavailable",
            details={"reason": reason},
        )


class ValidationError(DomainError):
    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(code=ErrorCode.VALIDATION_ERROR, message=message, details=details)


class AlreadyBookedError(DomainError):
    def __init__(self, student_id: str, occurrence_id: object) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_BOOKED,
            message="You have already booked this session",
            details={"student_id": student_id, "occurrence_id": str(occurrence_id)},
        )


class NotAvailableError(DomainError):
    def __init__(self, occurrence_id: object, status: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_AVAILABLE,
            message="Session is not available for booking",
            details={"occurrence_id": str(occurrence_id), "status": status},
        )
