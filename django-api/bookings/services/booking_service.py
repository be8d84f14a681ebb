"""Booking engine: seat reservation, payment and student self-cancellation."""

import logging
from dataclasses import replace

from bookings.domain import (
    ACTIVE_ENROLLMENT_STATUSES,
    BOOKABLE_STATUSES,
    ClassKind,
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Frequency,
    Occurrence,
    OccurrenceId,
    PaymentPlan,
    SessionSeries,
    SessionStatus,
    Transaction,
)
from bookings.domain.errors import (
    AlreadyBookedError,
    CapacityExceededError,
    InvalidTransitionError,
    NotAvailableError,
    NotFoundError,
    ValidationError,
)
from bookings.domain.outcomes import BookingCancellation, BookingResult
from bookings.services import ledger, pricing
from bookings.services.base import BaseService, returns_result
from bookings.stores.interfaces import LedgerStore, SessionStore

logger = logging.getLogger(__name__)

CANCELLABLE_BY_STUDENT = frozenset({SessionStatus.PUBLISHED, SessionStatus.PUBCON, SessionStatus.CONFIRMED})


def take_seat(occurrence: Occurrence) -> Occurrence:
    """Occupancy after one more student joins."""
    if occurrence.kind is ClassKind.INDIVIDUAL:
        return replace(occurrence, students_attending=1, status=SessionStatus.CONFIRMED)
    attending = occurrence.students_attending + 1
    status = SessionStatus.CONFIRMED if attending >= occurrence.max_students else SessionStatus.PUBCON
    return replace(occurrence, students_attending=attending, status=status)


def release_seat(occurrence: Occurrence) -> Occurrence:
    """Occupancy after one student leaves of their own accord."""
    if occurrence.kind is ClassKind.INDIVIDUAL:
        return replace(occurrence, students_attending=0, status=SessionStatus.CANCELLED)
    attending = max(0, occurrence.students_attending - 1)
    status = SessionStatus.PUBLISHED if attending == 0 else SessionStatus.PUBCON
    return replace(occurrence, students_attending=attending, status=status)


def cancel_enrollments(
    sessions: SessionStore, wallets: LedgerStore, occurrence: Occurrence, reason: str
) -> list[tuple[Enrollment, Transaction | None]]:
    """Mark every seat-holding enrollment coach_cancelled, refunding paid ones.

    Wallets are locked in student id order.
    """
    cancelled = []
    active = sessions.list_enrollments(occurrence.id, ACTIVE_ENROLLMENT_STATUSES)
    for enrollment in sorted(active, key=lambda e: e.student_id):
        refund = None
        if enrollment.status is EnrollmentStatus.PAID and enrollment.paid_credits > 0:
            _, refund = ledger.credit(
                wallets,
                enrollment.student_id,
                enrollment.paid_credits,
                f"Refund for {occurrence.sport} session on {occurrence.window.date} ({reason})",
            )
        enrollment = replace(enrollment, status=EnrollmentStatus.COACH_CANCELLED, reschedule_accepted=False)
        sessions.save_enrollment(enrollment)
        cancelled.append((enrollment, refund))
    return cancelled


def check_bookable(occurrence: Occurrence) -> None:
    if occurrence.kind is ClassKind.GROUP and occurrence.is_full:
        raise CapacityExceededError(occurrence.id, occurrence.max_students)
    if occurrence.status not in BOOKABLE_STATUSES:
        raise NotAvailableError(occurrence.id, occurrence.status.value)


class BookingService(BaseService):
    """Service for reserving and paying for occurrences."""

    @returns_result
    def book(
        self,
        occurrence_id: OccurrenceId,
        student_id: str,
        session_type: Frequency = Frequency.SINGLE,
        payment_plan: PaymentPlan = PaymentPlan.FULL,
    ) -> BookingResult:
        """Reserve one occurrence, or every occurrence of its series for package types.

        Raises:
            NotFoundError: If the occurrence does not exist.
            ValidationError: If the package type or payment plan does not fit the series.
            AlreadyBookedError: If the student already holds a seat.
            CapacityExceededError: If a group occurrence is already full.
            NotAvailableError: If an occurrence is not published or partially filled.
            InsufficientFundsError: If the wallet cannot cover the charge.
        """
        with self.transaction() as outbox:
            anchor = self._sessions.get_occurrence(occurrence_id)
            if anchor is None:
                raise NotFoundError("occurrence", occurrence_id)

            if session_type is Frequency.SINGLE:
                if payment_plan is not PaymentPlan.FULL:
                    raise ValidationError("Single sessions are paid in full", payment_plan=payment_plan.value)
                targets = [self._sessions.get_occurrence(occurrence_id, for_update=True)]
                paid_ids = {occurrence_id}
            else:
                series = self._series_for(anchor, session_type)
                targets = self._sessions.list_series_occurrences(series.id, for_update=True)
                paid_ids = self._paid_ids(series, targets, payment_plan)

            self._check_not_enrolled(student_id, anchor, targets, session_type)
            for occurrence in targets:
                check_bookable(occurrence)

            prices = [o.price for o in targets if o.id in paid_ids]
            charge = pricing.total_credits(prices, self._config.credits_per_unit)
            ledger.ensure_funds(self._ledger, self._ledger.get_wallet(student_id, for_update=True), charge)

            booked: list[Occurrence] = []
            enrollments: list[Enrollment] = []
            for occurrence in targets:
                updated = take_seat(occurrence)
                self._sessions.save_occurrence(updated)
                paid = occurrence.id in paid_ids
                enrollment = Enrollment(
                    id=EnrollmentId.new(),
                    occurrence_id=occurrence.id,
                    series_id=occurrence.series_id,
                    student_id=student_id,
                    status=EnrollmentStatus.PAID if paid else EnrollmentStatus.UNPAID,
                    paid_credits=pricing.credits_for(occurrence.price, self._config.credits_per_unit) if paid else 0,
                )
                self._sessions.add_enrollment(enrollment)
                booked.append(updated)
                enrollments.append(enrollment)

            entry: Transaction | None = None
            wallet = self._ledger.get_wallet(student_id, for_update=True)
            if charge > 0:
                wallet, entry = ledger.debit(
                    self._ledger,
                    student_id,
                    charge,
                    f"Booked {len(prices)} {anchor.sport} session(s) ({charge} PC)",
                )

            outbox.add(
                anchor.coach_id,
                "new_booking",
                title="New Booking",
                message=f"A student booked your {anchor.sport} session.",
                occurrence_ids=[str(o.id) for o in booked],
                student_id=student_id,
            )

        logger.info(
            "booked student=%s occurrences=%s charged=%s", student_id, len(booked), charge
        )
        return BookingResult(
            occurrences=tuple(booked),
            enrollments=tuple(enrollments),
            charged_credits=charge,
            balance=wallet.balance,
            transaction=entry,
        )

    @returns_result
    def cancel_booking(self, occurrence_id: OccurrenceId, student_id: str) -> BookingCancellation:
        """Student gives up their seat; refunds only ahead of the cutoff.

        Raises:
            NotFoundError: If the occurrence or the student's enrollment does not exist.
            InvalidTransitionError: If the occurrence or enrollment can no longer be cancelled.
        """
        with self.transaction() as outbox:
            occurrence = self._sessions.get_occurrence(occurrence_id, for_update=True)
            if occurrence is None:
                raise NotFoundError("occurrence", occurrence_id)
            enrollment = self._sessions.find_enrollment(occurrence_id, student_id)
            if enrollment is None:
                raise NotFoundError("enrollment", f"{occurrence_id}/{student_id}")
            if occurrence.status not in CANCELLABLE_BY_STUDENT:
                raise InvalidTransitionError("cancel booking", occurrence.status.value)
            if not enrollment.is_active:
                raise InvalidTransitionError("cancel booking", enrollment.status.value)

            starts_at = occurrence.window.starts_at(self._config.time_zone)
            eligible = starts_at - self.now() >= self._config.refund_cutoff
            refund: Transaction | None = None
            if eligible and enrollment.status is EnrollmentStatus.PAID and enrollment.paid_credits > 0:
                _, refund = ledger.credit(
                    self._ledger,
                    student_id,
                    enrollment.paid_credits,
                    f"Refund for cancelled {occurrence.sport} session on {occurrence.window.date}",
                )

            enrollment = replace(enrollment, status=EnrollmentStatus.CANCELLED)
            self._sessions.save_enrollment(enrollment)
            occurrence = release_seat(occurrence)
            self._sessions.save_occurrence(occurrence)
            outbox.add(
                occurrence.coach_id,
                "booking_cancelled",
                title="Booking Cancelled",
                message=f"A student cancelled their {occurrence.sport} session on {occurrence.window.date}.",
                occurrence_id=str(occurrence.id),
                student_id=student_id,
            )

        return BookingCancellation(
            occurrence=occurrence,
            enrollment=enrollment,
            refund=refund,
            refund_eligible=eligible,
        )

    def _series_for(self, anchor: Occurrence, session_type: Frequency) -> SessionSeries:
        series = self._sessions.get_series(anchor.series_id)
        if series is None:
            raise NotFoundError("series", anchor.series_id)
        if series.frequency is not session_type:
            raise ValidationError(
                f"Session frequency mismatch. Expected {session_type.value}, got {series.frequency.value}",
                expected=session_type.value,
                actual=series.frequency.value,
            )
        return series

    def _paid_ids(
        self, series: SessionSeries, targets: list[Occurrence], plan: PaymentPlan
    ) -> set[OccurrenceId]:
        if plan is PaymentPlan.FULL:
            return {o.id for o in targets}
        if series.frequency is not Frequency.WEEKLY:
            raise ValidationError("Only weekly packages can be paid week by week", payment_plan=plan.value)
        cutoff = series.starts_on + self._config.partial_payment_window
        return {o.id for o in targets if series.starts_on <= o.window.date < cutoff}

    def _check_not_enrolled(
        self,
        student_id: str,
        anchor: Occurrence,
        targets: list[Occurrence],
        session_type: Frequency,
    ) -> None:
        if session_type is not Frequency.SINGLE:
            if self._sessions.student_in_series(anchor.series_id, student_id):
                raise AlreadyBookedError(student_id, anchor.series_id)
            return
        for occurrence in targets:
            if self._sessions.find_enrollment(occurrence.id, student_id) is not None:
                raise AlreadyBookedError(student_id, occurrence.id)
