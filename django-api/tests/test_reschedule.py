"""Unit tests for the reschedule handshake (scenarios B, C and D)."""

from datetime import datetime, time, timedelta
from decimal import Decimal

import pytest

from bookings.domain import (
    ClassKind,
    Decision,
    EnrollmentStatus,
    Err,
    Money,
    Ok,
    SessionStatus,
)
from bookings.domain.errors import ErrorCode

from conftest import COACH, SGT, STUDENT, TODAY, window

NEW_DAY = TODAY + timedelta(days=3)


@pytest.fixture
def booked(publish, fund, booking):
    """A confirmed individual occurrence paid 40 PC from a 50 PC wallet."""
    occurrence = publish(price="8")
    fund(STUDENT, 50)
    assert isinstance(booking.book(occurrence.id, STUDENT), Ok)
    return occurrence


@pytest.fixture
def proposed(booked, reschedule, sessions):
    result = reschedule.propose(booked.id, COACH, window(NEW_DAY, "14:00", "15:00"))
    assert isinstance(result, Ok), result
    enrollment = sessions.find_enrollment(booked.id, STUDENT)
    return result.value, enrollment


class TestPropose:
    def test_conflict_leaves_occurrence_untouched(self, booked, publish, reschedule, sessions, notifier):
        """Scenario B."""
        publish(on=NEW_DAY, start="09:30", end="10:30")

        result = reschedule.propose(booked.id, COACH, window(NEW_DAY, "10:00", "11:00"))

        assert isinstance(result, Err)
        assert result.error.code is ErrorCode.SCHEDULE_CONFLICT
        assert result.error.details["overlap_kind"] == "requested_session_starts_during_and_extends_beyond"
        assert result.error.details["conflicting_occurrence"]["start_time"] == "09:30"
        assert sessions.get_occurrence(booked.id).status is SessionStatus.CONFIRMED
        assert notifier.list_for_user(STUDENT) == []

    def test_back_to_back_is_allowed(self, booked, publish, reschedule):
        publish(on=NEW_DAY, start="09:30", end="10:30")

        result = reschedule.propose(booked.id, COACH, window(NEW_DAY, "10:30", "11:30"))

        assert isinstance(result, Ok)

    def test_success_moves_and_notifies(self, proposed, notifier):
        proposal, enrollment = proposed

        assert proposal.occurrence.status is SessionStatus.RESCHEDULED
        assert proposal.occurrence.window.date == NEW_DAY
        assert proposal.occurrence.day_of_week == "Thursday"
        assert proposal.deadline == datetime.combine(NEW_DAY, time(15), tzinfo=SGT)
        assert proposal.notified_students == (STUDENT,)
        assert not enrollment.reschedule_accepted
        [message] = notifier.list_for_user(STUDENT)
        assert message.kind == "session_reschedule"
        assert message.payload["enrollment_id"] == str(enrollment.id)
        assert message.payload["deadline"] == proposal.deadline.isoformat()

    def test_price_and_duration_are_recomputed(self, booked, reschedule):
        result = reschedule.propose(
            booked.id, COACH, window(NEW_DAY, "14:00", "15:30"), new_price=Money(Decimal("12"))
        )

        occurrence = result.value.occurrence
        assert occurrence.duration == "1h 30m"
        assert occurrence.price_per_hour == Decimal("8.00")

    def test_new_date_must_be_after_today(self, booked, reschedule):
        result = reschedule.propose(booked.id, COACH, window(TODAY, "14:00", "15:00"))

        assert result.error.code is ErrorCode.VALIDATION_ERROR

    def test_only_the_owning_coach(self, booked, reschedule):
        result = reschedule.propose(booked.id, "coach-2", window(NEW_DAY, "14:00", "15:00"))

        assert result.error.code is ErrorCode.NOT_FOUND

    def test_group_classes_cannot_be_rescheduled(self, publish, fund, booking, reschedule):
        occurrence = publish(kind=ClassKind.GROUP, max_students=2)
        fund(STUDENT, 50)
        booking.book(occurrence.id, STUDENT)

        result = reschedule.propose(occurrence.id, COACH, window(NEW_DAY, "14:00", "15:00"))

        assert result.error.code is ErrorCode.INVALID_TRANSITION

    def test_unbooked_occurrence_cannot_be_rescheduled(self, publish, reschedule):
        occurrence = publish()

        result = reschedule.propose(occurrence.id, COACH, window(NEW_DAY, "14:00", "15:00"))

        assert result.error.code is ErrorCode.INVALID_TRANSITION


class TestRespond:
    def test_accept_restores_confirmed(self, proposed, reschedule, notifier):
        proposal, enrollment = proposed

        result = reschedule.respond(proposal.occurrence.id, enrollment.id, STUDENT, Decision.ACCEPT)

        assert isinstance(result, Ok)
        assert result.value.occurrence.status is SessionStatus.CONFIRMED
        assert result.value.occurrence.reschedule_deadline is None
        assert result.value.enrollment.reschedule_accepted
        assert result.value.refund is None
        message = notifier.list_for_user(COACH)[0]
        assert message.kind == "reschedule_response"
        assert message.payload["decision"] == "accept"

    def test_reject_cancels_and_refunds(self, proposed, reschedule, sessions, wallets, notifier):
        """Scenario C."""
        proposal, enrollment = proposed

        result = reschedule.respond(proposal.occurrence.id, enrollment.id, STUDENT, Decision.REJECT)

        assert isinstance(result, Ok)
        assert result.value.refund.amount == 40
        assert sessions.get_occurrence(proposal.occurrence.id).status is SessionStatus.CANCELLED
        assert sessions.get_enrollment(enrollment.id).status is EnrollmentStatus.COACH_CANCELLED
        assert wallets.get_wallet(STUDENT).balance == 50
        latest = notifier.list_for_user(COACH)[0]
        assert latest.payload["decision"] == "reject"
        assert latest.payload["refunded"] == 40

    def test_late_answer_is_resolved_as_rejection(self, proposed, reschedule, sessions, wallets, clock):
        """Scenario D."""
        proposal, enrollment = proposed
        clock.set(proposal.deadline + timedelta(minutes=1))

        result = reschedule.respond(proposal.occurrence.id, enrollment.id, STUDENT, Decision.ACCEPT)

        assert isinstance(result, Err)
        assert result.error.code is ErrorCode.DEADLINE_EXPIRED
        assert result.error.details["refunded"] == 40
        assert sessions.get_occurrence(proposal.occurrence.id).status is SessionStatus.CANCELLED
        assert sessions.get_enrollment(enrollment.id).status is EnrollmentStatus.COACH_CANCELLED
        assert wallets.get_wallet(STUDENT).balance == 50

    def test_answer_at_the_deadline_still_counts(self, proposed, reschedule, clock):
        proposal, enrollment = proposed
        clock.set(proposal.deadline)

        result = reschedule.respond(proposal.occurrence.id, enrollment.id, STUDENT, Decision.ACCEPT)

        assert isinstance(result, Ok)

    def test_other_students_cannot_answer(self, proposed, reschedule):
        proposal, enrollment = proposed

        result = reschedule.respond(proposal.occurrence.id, enrollment.id, "student-2", Decision.ACCEPT)

        assert result.error.code is ErrorCode.NOT_FOUND

    def test_nothing_pending(self, booked, reschedule, sessions):
        enrollment = sessions.find_enrollment(booked.id, STUDENT)

        result = reschedule.respond(booked.id, enrollment.id, STUDENT, Decision.ACCEPT)

        assert result.error.code is ErrorCode.INVALID_TRANSITION


class TestResolveExpired:
    def test_sweep_cancels_unanswered_proposals(self, proposed, reschedule, sessions, wallets):
        proposal, enrollment = proposed

        result = reschedule.resolve_expired(now=proposal.deadline + timedelta(hours=1))

        assert [o.id for o in result.value] == [proposal.occurrence.id]
        assert sessions.get_occurrence(proposal.occurrence.id).status is SessionStatus.CANCELLED
        assert sessions.get_enrollment(enrollment.id).status is EnrollmentStatus.COACH_CANCELLED
        assert wallets.get_wallet(STUDENT).balance == 50

    def test_sweep_ignores_live_deadlines(self, proposed, reschedule, sessions):
        proposal, _ = proposed

        result = reschedule.resolve_expired()

        assert result.value == []
        assert sessions.get_occurrence(proposal.occurrence.id).status is SessionStatus.RESCHEDULED
