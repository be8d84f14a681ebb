"""Unit tests for LifecycleService: start, end, payout, attendance, cancel."""

import pytest

from bookings.domain import ClassKind, EnrollmentStatus, Frequency, Ok, PaymentPlan, SessionStatus, TransactionKind
from bookings.domain.errors import ErrorCode
from bookings.services.lifecycle_service import payout_reference

from conftest import COACH


@pytest.fixture
def group_class(publish, fund, booking):
    """A full two-seat group class, 40 PC per seat."""
    occurrence = publish(kind=ClassKind.GROUP, max_students=2, price="8")
    for student in ("s1", "s2"):
        fund(student, 50)
        assert isinstance(booking.book(occurrence.id, student), Ok)
    return occurrence


@pytest.fixture
def completed_class(group_class, lifecycle):
    lifecycle.start(group_class.id, COACH)
    result = lifecycle.end(group_class.id, COACH)
    assert isinstance(result, Ok)
    return group_class


class TestStartAndEnd:
    def test_start_requires_confirmed(self, publish, lifecycle):
        occurrence = publish()

        result = lifecycle.start(occurrence.id, COACH)

        assert result.error.code is ErrorCode.INVALID_TRANSITION

    def test_start_notifies_students(self, group_class, lifecycle, notifier):
        result = lifecycle.start(group_class.id, COACH)

        assert result.value.status is SessionStatus.IN_PROGRESS
        assert [n.kind for n in notifier.list_for_user("s1")] == ["class_started"]

    def test_end_marks_everyone_attended(self, group_class, lifecycle, sessions):
        lifecycle.start(group_class.id, COACH)

        result = lifecycle.end(group_class.id, COACH)

        assert result.value.occurrence.status is SessionStatus.COMPLETED
        assert result.value.earnings == 80
        assert {e.status for e in sessions.list_enrollments(group_class.id)} == {EnrollmentStatus.ATTENDED}

    def test_end_requires_in_progress(self, group_class, lifecycle):
        result = lifecycle.end(group_class.id, COACH)

        assert result.error.code is ErrorCode.INVALID_TRANSITION

    def test_other_coach_is_refused(self, group_class, lifecycle):
        result = lifecycle.start(group_class.id, "coach-2")

        assert result.error.code is ErrorCode.NOT_FOUND


class TestPayout:
    def test_payout_credits_the_coach_once(self, completed_class, lifecycle, wallets):
        first = lifecycle.payout(completed_class.id, COACH)
        second = lifecycle.payout(completed_class.id, COACH)

        assert not first.value.already_paid
        assert first.value.transaction.amount == 80
        assert first.value.transaction.kind is TransactionKind.DEPOSIT
        assert first.value.transaction.external_reference == payout_reference(completed_class.id)
        assert second.value.already_paid
        assert second.value.transaction.id == first.value.transaction.id
        assert wallets.get_wallet(COACH).balance == 80
        assert len(wallets.list_transactions(COACH)) == 1

    def test_payout_requires_completed(self, group_class, lifecycle):
        result = lifecycle.payout(group_class.id, COACH)

        assert result.error.code is ErrorCode.INVALID_TRANSITION

    def test_absent_students_are_not_paid_for(self, group_class, lifecycle):
        lifecycle.start(group_class.id, COACH)
        lifecycle.submit_attendance(group_class.id, COACH, {"s2": "absent"})
        lifecycle.end(group_class.id, COACH)

        result = lifecycle.payout(group_class.id, COACH)

        assert result.value.transaction.amount == 40


class TestAttendance:
    def test_codes_map_to_statuses(self, group_class, lifecycle):
        result = lifecycle.submit_attendance(group_class.id, COACH, {"s1": "late", "s2": "excused"})

        statuses = {e.student_id: e.status for e in result.value}
        assert statuses == {"s1": EnrollmentStatus.ATTENDED, "s2": EnrollmentStatus.UNPAID}

    def test_unknown_student_rejects_the_whole_sheet(self, group_class, lifecycle, sessions):
        result = lifecycle.submit_attendance(group_class.id, COACH, {"s1": "present", "ghost": "present"})

        assert result.error.code is ErrorCode.VALIDATION_ERROR
        assert sessions.find_enrollment(group_class.id, "s1").status is EnrollmentStatus.PAID

    def test_not_allowed_before_confirmation(self, publish, fund, booking, lifecycle):
        occurrence = publish(kind=ClassKind.GROUP, max_students=3)
        fund("s1", 50)
        booking.book(occurrence.id, "s1")

        result = lifecycle.submit_attendance(occurrence.id, COACH, {"s1": "present"})

        assert result.error.code is ErrorCode.INVALID_TRANSITION


class TestCoachCancel:
    def test_cancel_refunds_every_paid_student(self, group_class, lifecycle, wallets, notifier):
        result = lifecycle.cancel(group_class.id, COACH)

        assert result.value.occurrence.status is SessionStatus.CANCELLED
        assert {e.status for e in result.value.enrollments} == {EnrollmentStatus.COACH_CANCELLED}
        assert [r.amount for r in result.value.refunds] == [40, 40]
        assert wallets.get_wallet("s1").balance == 50
        assert wallets.get_wallet("s2").balance == 50
        assert notifier.list_for_user("s1")[0].kind == "session_cancelled"

    def test_unpaid_enrollments_get_nothing_back(self, publish_weekly, fund, booking, lifecycle, wallets):
        _, occurrences = publish_weekly(weeks=2, price="8")
        fund("s1", 40)
        booking.book(occurrences[0].id, "s1", session_type=Frequency.WEEKLY, payment_plan=PaymentPlan.FIRST_WEEK)

        result = lifecycle.cancel(occurrences[1].id, COACH)

        assert result.value.refunds == ()
        assert wallets.get_wallet("s1").balance == 0

    def test_terminal_occurrences_cannot_be_cancelled(self, completed_class, lifecycle):
        result = lifecycle.cancel(completed_class.id, COACH)

        assert result.error.code is ErrorCode.INVALID_TRANSITION
