"""Coach-side class lifecycle: start, end, payout, attendance and cancellation."""

import logging
from dataclasses import replace

from bookings.domain import (
    ACTIVE_ENROLLMENT_STATUSES,
    Enrollment,
    EnrollmentStatus,
    Occurrence,
    OccurrenceId,
    SessionStatus,
)
from bookings.domain.errors import InvalidTransitionError, NotFoundError, ValidationError
from bookings.domain.outcomes import ClassCancellation, ClassEnded, Payout
from bookings.services import ledger, pricing
from bookings.services.base import BaseService, returns_result
from bookings.services.booking_service import cancel_enrollments

logger = logging.getLogger(__name__)

ATTENDANCE_STATUSES = frozenset({SessionStatus.CONFIRMED, SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED})

ATTENDANCE_CODES = {
    "present": EnrollmentStatus.ATTENDED,
    "late": EnrollmentStatus.ATTENDED,
    "absent": EnrollmentStatus.ABSENT,
}

WITHDRAWN_STATUSES = frozenset({EnrollmentStatus.CANCELLED, EnrollmentStatus.COACH_CANCELLED})


def payout_reference(occurrence_id: OccurrenceId) -> str:
    return f"payout:{occurrence_id}"


class LifecycleService(BaseService):
    """Service for running a class once it is booked."""

    def _owned(self, occurrence_id: OccurrenceId, coach_id: str) -> Occurrence:
        occurrence = self._sessions.get_occurrence(occurrence_id, for_update=True)
        if occurrence is None or occurrence.coach_id != coach_id:
            raise NotFoundError("occurrence", occurrence_id)
        return occurrence

    @returns_result
    def start(self, occurrence_id: OccurrenceId, coach_id: str) -> Occurrence:
        with self.transaction() as outbox:
            occurrence = self._owned(occurrence_id, coach_id)
            if occurrence.status is not SessionStatus.CONFIRMED:
                raise InvalidTransitionError("start class", occurrence.status.value)
            occurrence = replace(occurrence, status=SessionStatus.IN_PROGRESS)
            self._sessions.save_occurrence(occurrence)
            for enrollment in self._sessions.list_enrollments(occurrence.id, ACTIVE_ENROLLMENT_STATUSES):
                outbox.add(
                    enrollment.student_id,
                    "class_started",
                    title="Class Started",
                    message=f"Your {occurrence.sport} class has started.",
                    occurrence_id=str(occurrence.id),
                )
        logger.info("class_started occurrence=%s", occurrence.id)
        return occurrence

    @returns_result
    def end(self, occurrence_id: OccurrenceId, coach_id: str) -> ClassEnded:
        """Complete a running class; everyone still holding a seat counts as attended.

        Raises:
            NotFoundError: If the occurrence does not exist or belongs to another coach.
            InvalidTransitionError: If the class is not in progress.
        """
        with self.transaction():
            occurrence = self._owned(occurrence_id, coach_id)
            if occurrence.status is not SessionStatus.IN_PROGRESS:
                raise InvalidTransitionError("end class", occurrence.status.value)
            for enrollment in self._sessions.list_enrollments(occurrence.id, ACTIVE_ENROLLMENT_STATUSES):
                self._sessions.save_enrollment(replace(enrollment, status=EnrollmentStatus.ATTENDED))
            occurrence = replace(occurrence, status=SessionStatus.COMPLETED)
            self._sessions.save_occurrence(occurrence)
            attended = self._sessions.list_enrollments(occurrence.id, [EnrollmentStatus.ATTENDED])

        earnings = len(attended) * pricing.credits_for(occurrence.price, self._config.credits_per_unit)
        logger.info("class_ended occurrence=%s attended=%s earnings=%s", occurrence.id, len(attended), earnings)
        return ClassEnded(occurrence=occurrence, attended=tuple(attended), earnings=earnings)

    @returns_result
    def payout(self, occurrence_id: OccurrenceId, coach_id: str) -> Payout:
        """Credit the coach for a completed class, at most once.

        Raises:
            NotFoundError: If the occurrence does not exist or belongs to another coach.
            InvalidTransitionError: If the class is not completed.
            ValidationError: If nobody attended.
        """
        reference = payout_reference(occurrence_id)
        with self.transaction():
            occurrence = self._owned(occurrence_id, coach_id)
            if occurrence.status is not SessionStatus.COMPLETED:
                raise InvalidTransitionError("pay out", occurrence.status.value)
            existing = self._ledger.get_transaction_by_reference(reference)
            if existing is not None:
                return Payout(transaction=existing, already_paid=True)

            attended = self._sessions.list_enrollments(occurrence.id, [EnrollmentStatus.ATTENDED])
            if not attended:
                raise ValidationError("No attended students to pay out", occurrence_id=str(occurrence.id))
            amount = len(attended) * pricing.credits_for(occurrence.price, self._config.credits_per_unit)
            _, entry = ledger.credit(
                self._ledger,
                coach_id,
                amount,
                f"Earnings for {occurrence.sport} session on {occurrence.window.date} ({len(attended)} student(s))",
                external_reference=reference,
            )
        logger.info("payout occurrence=%s coach=%s amount=%s", occurrence.id, coach_id, amount)
        return Payout(transaction=entry, already_paid=False)

    @returns_result
    def submit_attendance(
        self, occurrence_id: OccurrenceId, coach_id: str, marks: dict[str, str]
    ) -> list[Enrollment]:
        """Apply attendance codes per student.

        ``present`` and ``late`` count as attended, ``absent`` as absent;
        any other code puts the enrollment back to unpaid.

        Raises:
            NotFoundError: If the occurrence does not exist or belongs to another coach.
            InvalidTransitionError: If attendance cannot be taken in the current status.
            ValidationError: If a student holds no enrollment in the occurrence.
        """
        with self.transaction():
            occurrence = self._owned(occurrence_id, coach_id)
            if occurrence.status not in ATTENDANCE_STATUSES:
                raise InvalidTransitionError("submit attendance", occurrence.status.value)

            targets = []
            for student_id in marks:
                enrollment = self._sessions.find_enrollment(occurrence.id, student_id)
                if enrollment is None or enrollment.status in WITHDRAWN_STATUSES:
                    raise ValidationError("Student is not enrolled in this session", student_id=student_id)
                targets.append(enrollment)

            updated = []
            for enrollment in targets:
                status = ATTENDANCE_CODES.get(marks[enrollment.student_id].lower(), EnrollmentStatus.UNPAID)
                enrollment = replace(enrollment, status=status)
                self._sessions.save_enrollment(enrollment)
                updated.append(enrollment)
        return updated

    @returns_result
    def cancel(self, occurrence_id: OccurrenceId, coach_id: str) -> ClassCancellation:
        """Coach cancels the occurrence; every paid student is refunded in full.

        Raises:
            NotFoundError: If the occurrence does not exist or belongs to another coach.
            InvalidTransitionError: If the occurrence is already completed or cancelled.
        """
        with self.transaction() as outbox:
            occurrence = self._owned(occurrence_id, coach_id)
            if occurrence.status.is_terminal:
                raise InvalidTransitionError("cancel", occurrence.status.value)
            cancelled = cancel_enrollments(self._sessions, self._ledger, occurrence, "cancelled by coach")
            occurrence = replace(occurrence, status=SessionStatus.CANCELLED, reschedule_deadline=None)
            self._sessions.save_occurrence(occurrence)
            for enrollment, refund in cancelled:
                refunded = refund.amount if refund else 0
                outbox.add(
                    enrollment.student_id,
                    "session_cancelled",
                    title="Session Cancelled",
                    message=(
                        f"Your {occurrence.sport} session on {occurrence.window.date} was cancelled by the coach. "
                        f"{refunded} PC has been refunded to your wallet."
                    ),
                    occurrence_id=str(occurrence.id),
                    refunded=refunded,
                )

        logger.info("class_cancelled occurrence=%s students=%s", occurrence.id, len(cancelled))
        return ClassCancellation(
            occurrence=occurrence,
            enrollments=tuple(e for e, _ in cancelled),
            refunds=tuple(r for _, r in cancelled if r is not None),
        )
