from bookings.domain.models import (
    ACTIVE_ENROLLMENT_STATUSES,
    BOOKABLE_STATUSES,
    LIVE_STATUSES,
    ClassKind,
    Decision,
    Enrollment,
    EnrollmentStatus,
    Frequency,
    Notification,
    Occurrence,
    PaymentPlan,
    SessionSeries,
    SessionStatus,
    Transaction,
    TransactionKind,
    TransactionStatus,
    Wallet,
)
from bookings.domain.result import Err, Ok, Result
from bookings.domain.value_objects import (
    EnrollmentId,
    Money,
    OccurrenceId,
    SeriesId,
    TimeWindow,
    Venue,
)

__all__ = [
    "ACTIVE_ENROLLMENT_STATUSES",
    "BOOKABLE_STATUSES",
    "LIVE_STATUSES",
    "ClassKind",
    "Decision",
    "Enrollment",
    "EnrollmentStatus",
    "Frequency",
    "Notification",
    "Occurrence",
    "PaymentPlan",
    "SessionSeries",
    "SessionStatus",
    "Transaction",
    "TransactionKind",
    "TransactionStatus",
    "Wallet",
    "Err",
    "Ok",
    "Result",
    "EnrollmentId",
    "Money",
    "OccurrenceId",
    "SeriesId",
    "TimeWindow",
    "Venue",
]
