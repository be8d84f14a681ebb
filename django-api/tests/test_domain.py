"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

from datetime import date, time
from decimal import Decimal
from uuid import uuid4

import pytest

from bookings.domain import (
    ClassKind,
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Money,
    Occurrence,
    OccurrenceId,
    SeriesId,
    SessionStatus,
    TimeWindow,
    Venue,
    Wallet,
)
from bookings.domain.errors import ErrorCode, InsufficientFundsError, StoreUnavailableError, ValidationError

from conftest import SGT


def occurrence(**overrides) -> Occurrence:
    fields = dict(
        id=OccurrenceId.new(),
        series_id=SeriesId.new(),
        coach_id="coach-1",
        sport="Tennis",
        window=TimeWindow(date(2026, 3, 3), time(10), time(11)),
        venue=Venue("1 Stadium Drive", "397718"),
        kind=ClassKind.GROUP,
        max_students=2,
        price=Money(Decimal("8")),
        price_per_hour=Decimal("8.00"),
        duration="1 hour",
        day_of_week="Tuesday",
    )
    fields.update(overrides)
    return Occurrence(**fields)


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_zero(self):
        assert Money(Decimal("0")).amount == Decimal("0")

    def test_money_rejects_negative_amount(self):
        """Money raises ValueError for negative amount."""
        with pytest.raises(ValueError):
            Money(Decimal("-0.01"))

    def test_money_str_format(self):
        assert str(Money(Decimal("8.5"))) == "8.50"

    @pytest.mark.parametrize(
        ("amount", "credits"),
        [("8", 40), ("8.10", 41), ("8.30", 42), ("0.01", 0), ("0.10", 1)],
    )
    def test_to_credits_rounds_half_up(self, amount, credits):
        assert Money(Decimal(amount)).to_credits(Decimal("5")) == credits


class TestIds:
    def test_from_string_valid_uuid(self):
        raw = uuid4()
        assert OccurrenceId.from_string(str(raw)).value == raw

    def test_from_string_invalid_uuid(self):
        """from_string raises ValueError for malformed UUID."""
        with pytest.raises(ValueError):
            EnrollmentId.from_string("not-a-uuid")

    def test_str_is_plain_uuid(self):
        raw = uuid4()
        assert str(SeriesId(raw)) == str(raw)


class TestTimeWindow:
    def test_rejects_end_before_start(self):
        with pytest.raises(ValueError):
            TimeWindow(date(2026, 3, 3), time(11), time(10))

    def test_rejects_empty_window(self):
        with pytest.raises(ValueError):
            TimeWindow(date(2026, 3, 3), time(10), time(10))

    def test_minutes(self):
        assert TimeWindow(date(2026, 3, 3), time(9, 15), time(10, 45)).minutes == 90

    def test_starts_and_ends_in_zone(self):
        window = TimeWindow(date(2026, 3, 3), time(10), time(11))
        assert window.starts_at(SGT).utcoffset().total_seconds() == 8 * 3600
        assert window.ends_at(SGT).hour == 11


class TestOccurrence:
    """Occupancy invariants."""

    def test_individual_must_take_exactly_one(self):
        with pytest.raises(ValueError):
            occurrence(kind=ClassKind.INDIVIDUAL, max_students=2)

    def test_attending_cannot_exceed_capacity(self):
        with pytest.raises(ValueError):
            occurrence(students_attending=3)

    def test_attending_cannot_be_negative(self):
        with pytest.raises(ValueError):
            occurrence(students_attending=-1)

    def test_is_full(self):
        assert occurrence(students_attending=2).is_full
        assert not occurrence(students_attending=1).is_full

    def test_terminal_statuses(self):
        assert SessionStatus.COMPLETED.is_terminal
        assert SessionStatus.CANCELLED.is_terminal
        assert not SessionStatus.RESCHEDULED.is_terminal


class TestEnrollmentAndWallet:
    def test_active_enrollment_statuses(self):
        base = dict(
            id=EnrollmentId.new(),
            occurrence_id=OccurrenceId.new(),
            series_id=SeriesId.new(),
            student_id="student-1",
        )
        assert Enrollment(status=EnrollmentStatus.UNPAID, **base).is_active
        assert Enrollment(status=EnrollmentStatus.PAID, **base).is_active
        assert not Enrollment(status=EnrollmentStatus.COACH_CANCELLED, **base).is_active

    def test_wallet_balance_cannot_be_negative(self):
        with pytest.raises(ValueError):
            Wallet(user_id="student-1", balance=-1)


class TestErrors:
    def test_only_store_unavailable_is_retryable(self):
        assert StoreUnavailableError("lock timeout").retryable
        assert not InsufficientFundsError(required=40, available=10).retryable

    def test_errors_carry_codes_and_details(self):
        error = ValidationError("Price must be positive", price="0.00")
        assert error.code is ErrorCode.VALIDATION_ERROR
        assert error.details == {"price": "0.00"}
        assert str(error) == "VALIDATION_ERROR: Price must be positive"
