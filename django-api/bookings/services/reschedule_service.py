"""Coach-initiated reschedule proposals and the students' answers.

Flow:
- ``propose`` moves an individual occurrence to a new window, marks it
  ``rescheduled`` and sets a deadline equal to the new end time
- ``respond`` accepts (back to ``confirmed`` once everyone agreed) or
  rejects (cancelled with a refund)
- answers arriving after the deadline resolve as a rejection; the
  ``resolve_expired`` sweep does the same for proposals nobody answered
"""

import logging
from dataclasses import replace
from datetime import datetime

from bookings.domain import (
    ACTIVE_ENROLLMENT_STATUSES,
    LIVE_STATUSES,
    ClassKind,
    Decision,
    Enrollment,
    EnrollmentId,
    Money,
    Occurrence,
    OccurrenceId,
    SessionStatus,
    TimeWindow,
    Transaction,
    Venue,
)
from bookings.domain.errors import (
    DeadlineExpiredError,
    InvalidTransitionError,
    NotFoundError,
    ScheduleConflictError,
    ValidationError,
)
from bookings.domain.outcomes import RescheduleOutcome, RescheduleProposal
from bookings.services import conflicts, pricing
from bookings.services.base import BaseService, Outbox, returns_result
from bookings.services.booking_service import cancel_enrollments

logger = logging.getLogger(__name__)

RESCHEDULABLE_STATUSES = frozenset({SessionStatus.CONFIRMED, SessionStatus.PUBCON})


class RescheduleService(BaseService):
    """Service for the propose/respond reschedule handshake."""

    @returns_result
    def propose(
        self,
        occurrence_id: OccurrenceId,
        coach_id: str,
        new_window: TimeWindow,
        new_price: Money | None = None,
        new_venue: Venue | None = None,
    ) -> RescheduleProposal:
        """Move an occurrence and ask every enrolled student to confirm.

        Raises:
            NotFoundError: If the occurrence does not exist or belongs to another coach.
            InvalidTransitionError: If the occurrence is not an individual confirmed/pubcon class.
            ValidationError: If the new date is not after today or the new price is not positive.
            ScheduleConflictError: If the new window overlaps another live occurrence.
        """
        with self.transaction() as outbox:
            occurrence = self._sessions.get_occurrence(occurrence_id, for_update=True)
            if occurrence is None or occurrence.coach_id != coach_id:
                raise NotFoundError("occurrence", occurrence_id)
            if occurrence.kind is not ClassKind.INDIVIDUAL:
                raise InvalidTransitionError("reschedule a group class", occurrence.status.value)
            if occurrence.status not in RESCHEDULABLE_STATUSES:
                raise InvalidTransitionError("reschedule", occurrence.status.value)
            if new_window.date <= self.now().date():
                raise ValidationError("New date must be after today", date=new_window.date.isoformat())
            if new_price is not None and new_price.amount <= 0:
                raise ValidationError("Price must be positive", price=str(new_price))

            same_day = self._sessions.list_coach_occurrences(coach_id, new_window.date, LIVE_STATUSES)
            conflict = conflicts.find_conflict(new_window, same_day, exclude=occurrence.id)
            if conflict is not None:
                raise ScheduleConflictError(conflict.kind.value, conflict.describe())

            previous_date = occurrence.window.date.isoformat()
            price = new_price or occurrence.price
            deadline = new_window.ends_at(self._config.time_zone)
            occurrence = replace(
                occurrence,
                window=new_window,
                venue=new_venue or occurrence.venue,
                price=price,
                price_per_hour=pricing.price_per_hour(price, new_window),
                duration=pricing.duration_label(new_window),
                day_of_week=pricing.day_of_week(new_window.date),
                status=SessionStatus.RESCHEDULED,
                reschedule_deadline=deadline,
            )
            self._sessions.save_occurrence(occurrence)

            students = []
            for enrollment in self._sessions.list_enrollments(occurrence.id, ACTIVE_ENROLLMENT_STATUSES):
                self._sessions.save_enrollment(replace(enrollment, reschedule_accepted=False))
                students.append(enrollment.student_id)
                outbox.add(
                    enrollment.student_id,
                    "session_reschedule",
                    title="Session Rescheduled",
                    message=(
                        f"Your {occurrence.sport} session on {previous_date} has been moved to "
                        f"{new_window.date} {new_window.start:%H:%M}. Please respond before "
                        f"{deadline:%Y-%m-%d %H:%M}."
                    ),
                    occurrence_id=str(occurrence.id),
                    enrollment_id=str(enrollment.id),
                    previous_date=previous_date,
                    new_date=new_window.date.isoformat(),
                    start_time=new_window.start.isoformat(timespec="minutes"),
                    end_time=new_window.end.isoformat(timespec="minutes"),
                    deadline=deadline.isoformat(),
                )

        logger.info(
            "reschedule_proposed occurrence=%s from=%s to=%s students=%s",
            occurrence.id,
            previous_date,
            new_window.date,
            len(students),
        )
        return RescheduleProposal(
            occurrence=occurrence,
            previous_date=previous_date,
            deadline=deadline,
            notified_students=tuple(students),
        )

    @returns_result
    def respond(
        self,
        occurrence_id: OccurrenceId,
        enrollment_id: EnrollmentId,
        student_id: str,
        decision: Decision,
    ) -> RescheduleOutcome:
        """Record a student's answer to a pending reschedule.

        A late answer still cancels and refunds; that outcome is committed
        before ``DeadlineExpiredError`` is returned.

        Raises:
            NotFoundError: If the occurrence or the student's enrollment does not exist.
            InvalidTransitionError: If no reschedule is pending.
            DeadlineExpiredError: If the deadline has passed.
        """
        expired: DeadlineExpiredError | None = None
        with self.transaction() as outbox:
            occurrence = self._sessions.get_occurrence(occurrence_id, for_update=True)
            if occurrence is None:
                raise NotFoundError("occurrence", occurrence_id)
            enrollment = self._sessions.get_enrollment(enrollment_id)
            if (
                enrollment is None
                or enrollment.student_id != student_id
                or enrollment.occurrence_id != occurrence.id
            ):
                raise NotFoundError("enrollment", enrollment_id)
            if occurrence.status is not SessionStatus.RESCHEDULED:
                raise InvalidTransitionError("respond to reschedule", occurrence.status.value)
            if not enrollment.is_active:
                raise InvalidTransitionError("respond to reschedule", enrollment.status.value)

            deadline = occurrence.reschedule_deadline
            if deadline is not None and self.now() > deadline:
                occurrence, enrollment, refund = self._cancel(occurrence, enrollment, outbox, "expired")
                expired = DeadlineExpiredError(deadline, refund.amount if refund else 0)
            elif decision is Decision.ACCEPT:
                occurrence, enrollment = self._accept(occurrence, enrollment, outbox)
                refund = None
            else:
                occurrence, enrollment, refund = self._cancel(occurrence, enrollment, outbox, "rejected")

        if expired is not None:
            raise expired
        logger.info(
            "reschedule_answered occurrence=%s student=%s decision=%s", occurrence.id, student_id, decision.value
        )
        return RescheduleOutcome(occurrence=occurrence, enrollment=enrollment, decision=decision, refund=refund)

    @returns_result
    def resolve_expired(self, now: datetime | None = None) -> list[Occurrence]:
        """Cancel and refund every reschedule whose deadline passed unanswered."""
        now = now or self.now()
        resolved = []
        for candidate in self._sessions.list_occurrences_by_status(SessionStatus.RESCHEDULED):
            if candidate.reschedule_deadline is None or now <= candidate.reschedule_deadline:
                continue
            with self.transaction() as outbox:
                occurrence = self._sessions.get_occurrence(candidate.id, for_update=True)
                if occurrence is None or occurrence.status is not SessionStatus.RESCHEDULED:
                    continue
                occurrence, _ = self._cancel_occurrence(occurrence, outbox, "expired")
            resolved.append(occurrence)
            logger.info("reschedule_expired occurrence=%s deadline=%s", occurrence.id, candidate.reschedule_deadline)
        return resolved

    def _accept(
        self, occurrence: Occurrence, enrollment: Enrollment, outbox: Outbox
    ) -> tuple[Occurrence, Enrollment]:
        enrollment = replace(enrollment, reschedule_accepted=True)
        self._sessions.save_enrollment(enrollment)
        active = self._sessions.list_enrollments(occurrence.id, ACTIVE_ENROLLMENT_STATUSES)
        if all(e.reschedule_accepted for e in active):
            occurrence = replace(occurrence, status=SessionStatus.CONFIRMED, reschedule_deadline=None)
            self._sessions.save_occurrence(occurrence)
        outbox.add(
            occurrence.coach_id,
            "reschedule_response",
            title="Reschedule Accepted",
            message=f"A student accepted the new time for your {occurrence.sport} session on {occurrence.window.date}.",
            occurrence_id=str(occurrence.id),
            student_id=enrollment.student_id,
            decision=Decision.ACCEPT.value,
        )
        return occurrence, enrollment

    def _cancel(
        self, occurrence: Occurrence, enrollment: Enrollment, outbox: Outbox, reason: str
    ) -> tuple[Occurrence, Enrollment, Transaction | None]:
        occurrence, cancelled = self._cancel_occurrence(occurrence, outbox, reason)
        for updated, refund in cancelled:
            if updated.id == enrollment.id:
                return occurrence, updated, refund
        return occurrence, enrollment, None

    def _cancel_occurrence(
        self, occurrence: Occurrence, outbox: Outbox, reason: str
    ) -> tuple[Occurrence, list[tuple[Enrollment, Transaction | None]]]:
        cancelled = cancel_enrollments(self._sessions, self._ledger, occurrence, f"reschedule {reason}")
        occurrence = replace(occurrence, status=SessionStatus.CANCELLED, reschedule_deadline=None)
        self._sessions.save_occurrence(occurrence)
        for enrollment, refund in cancelled:
            refunded = refund.amount if refund else 0
            outbox.add(
                occurrence.coach_id,
                "reschedule_response",
                title="Reschedule Rejected" if reason == "rejected" else "Reschedule Expired",
                message=(
                    f"The reschedule of your {occurrence.sport} session on {occurrence.window.date} "
                    f"was {reason}; the session is cancelled and {refunded} PC was refunded."
                ),
                occurrence_id=str(occurrence.id),
                student_id=enrollment.student_id,
                decision=Decision.REJECT.value,
                refunded=refunded,
            )
        return occurrence, cancelled
