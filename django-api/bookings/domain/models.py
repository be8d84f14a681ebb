"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in bookings/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from bookings.domain.value_objects import (
    EnrollmentId,
    Money,
    OccurrenceId,
    SeriesId,
    TimeWindow,
    Venue,
)


class SessionStatus(str, Enum):
    PUBLISHED = "published"
    PUBCON = "pubcon"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


# Statuses that still occupy a coach's calendar.
LIVE_STATUSES = frozenset(
    {
        SessionStatus.PUBLISHED,
        SessionStatus.PUBCON,
        SessionStatus.CONFIRMED,
        SessionStatus.RESCHEDULED,
    }
)

BOOKABLE_STATUSES = frozenset({SessionStatus.PUBLISHED, SessionStatus.PUBCON})


class ClassKind(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"


class Frequency(str, Enum):
    SINGLE = "single"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PaymentPlan(str, Enum):
    FULL = "full_package"
    FIRST_WEEK = "first_week"


class EnrollmentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    ATTENDED = "attended"
    ABSENT = "absent"
    CANCELLED = "cancelled"
    COACH_CANCELLED = "coach_cancelled"


# Enrollments that still hold a seat.
ACTIVE_ENROLLMENT_STATUSES = frozenset({EnrollmentStatus.PAID, EnrollmentStatus.UNPAID})


class TransactionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Decision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True)
class SessionSeries:
    """Domain representation of a published series (the session group)."""

    id: SeriesId
    coach_id: str
    frequency: Frequency
    starts_on: date


@dataclass(frozen=True)
class Occurrence:
    """Domain representation of one bookable calendar occurrence."""

    id: OccurrenceId
    series_id: SeriesId
    coach_id: str
    sport: str
    window: TimeWindow
    venue: Venue
    kind: ClassKind
    max_students: int
    price: Money
    price_per_hour: Decimal
    duration: str
    day_of_week: str
    description: str = ""
    students_attending: int = 0
    status: SessionStatus = SessionStatus.PUBLISHED
    reschedule_deadline: datetime | None = None

    def __post_init__(self) -> None:
        if self.max_students < 1:
            raise ValueError("Occurrence needs room for at least one student")
        if self.kind is ClassKind.INDIVIDUAL and self.max_students != 1:
            raise ValueError("Individual classes take exactly one student")
        if not 0 <= self.students_attending <= self.max_students:
            raise ValueError("Occupancy outside capacity")

    @property
    def is_full(self) -> bool:
        return self.students_attending >= self.max_students


@dataclass(frozen=True)
class Enrollment:
    """A student's binding to one occurrence."""

    id: EnrollmentId
    occurrence_id: OccurrenceId
    series_id: SeriesId
    student_id: str
    status: EnrollmentStatus
    paid_credits: int = 0
    reschedule_accepted: bool = False

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ENROLLMENT_STATUSES


@dataclass(frozen=True)
class Wallet:
    """Credit balance for one user."""

    user_id: str
    balance: int = 0

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError("Wallet balance cannot be negative")


@dataclass(frozen=True)
class Transaction:
    """Ledger entry. Only the pending status may change after creation."""

    user_id: str
    amount: int
    kind: TransactionKind
    description: str
    status: TransactionStatus = TransactionStatus.COMPLETED
    external_reference: str | None = None
    id: int | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Notification:
    user_id: str
    kind: str
    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    id: int | None = None
    created_at: datetime | None = None
