"""Integration tests for the HTTP surface backed by the Django stores."""

from datetime import timedelta

import pytest
from django.core.management import call_command
from django.utils import timezone
from rest_framework.test import APIClient

from bookings import models

COACH = "coach-api"
STUDENT = "student-api"
GATEWAY_TOKEN = "callback-secret"


def as_user(client: APIClient, user_id: str) -> APIClient:
    client.credentials(HTTP_X_USER_ID=user_id)
    return client


def occurrence_payload(days_ahead: int = 5, start: str = "10:00", end: str = "11:00", **overrides) -> dict:
    payload = {
        "sport": "Tennis",
        "date": (timezone.localdate() + timedelta(days=days_ahead)).isoformat(),
        "start_time": start,
        "end_time": end,
        "address": "1 Stadium Drive",
        "postal_code": "397718",
        "class_kind": "individual",
        "max_students": 1,
        "price": "8.00",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def coach(api_client) -> APIClient:
    return as_user(api_client, COACH)


@pytest.fixture
def student() -> APIClient:
    return as_user(APIClient(), STUDENT)


@pytest.fixture
def published(coach) -> dict:
    response = coach.post("/api/occurrences", occurrence_payload(), format="json")
    assert response.status_code == 201, response.data
    return response.data["occurrences"][0]


@pytest.fixture
def gateway(settings) -> APIClient:
    """Client presenting the payment gateway's callback token."""
    settings.BOOKINGS = {**settings.BOOKINGS, "GATEWAY_CALLBACK_TOKEN": GATEWAY_TOKEN}
    client = APIClient()
    client.credentials(HTTP_X_GATEWAY_TOKEN=GATEWAY_TOKEN)
    return client


@pytest.fixture
def funded_student(student, gateway) -> APIClient:
    response = student.post("/api/wallet/top-up", {"amount": "10.00", "payment_method": "paynow-qr"}, format="json")
    assert response.status_code == 201, response.data
    assert response.data["status"] == "pending"
    settled = gateway.post(
        "/api/wallet/settlements",
        {"reference": response.data["external_reference"], "status": "completed"},
        format="json",
    )
    assert settled.status_code == 200, settled.data
    return student


@pytest.mark.django_db
class TestAuthentication:
    def test_missing_user_header_is_unauthorized(self, api_client):
        response = api_client.get("/api/wallet")

        assert response.status_code == 401


@pytest.mark.django_db
class TestPublishAndBook:
    """Tests for POST /api/occurrences and /api/occurrences/{id}/book"""

    def test_publish_returns_derived_fields(self, published):
        assert published["status"] == "published"
        assert published["duration"] == "1 hour"
        assert published["price_per_hour"] == "8.00"

    def test_invalid_window_is_bad_request(self, coach):
        response = coach.post("/api/occurrences", occurrence_payload(start="11:00", end="10:00"), format="json")

        assert response.status_code == 400
        assert response.data["error"]["code"] == "VALIDATION_ERROR"

    def test_booking_debits_wallet(self, published, funded_student):
        response = funded_student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")

        assert response.status_code == 201, response.data
        assert response.data["charged_credits"] == 40
        assert response.data["balance"] == 10
        assert response.data["occurrences"][0]["status"] == "confirmed"
        assert models.Enrollment.objects.get(student_id=STUDENT).status == "paid"
        assert models.Wallet.objects.get(pk=STUDENT).balance == 10

    def test_insufficient_funds_is_payment_required(self, published, student):
        response = student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")

        assert response.status_code == 402
        assert response.data["error"]["details"] == {"required": 40, "available": 0}
        assert not models.Enrollment.objects.exists()

    def test_unknown_occurrence_is_not_found(self, funded_student):
        response = funded_student.post(
            "/api/occurrences/00000000-0000-0000-0000-000000000000/book", {}, format="json"
        )

        assert response.status_code == 404

    def test_second_booking_conflicts(self, published, funded_student):
        funded_student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")

        response = funded_student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")

        assert response.status_code == 409
        assert response.data["error"]["code"] == "ALREADY_BOOKED"


@pytest.mark.django_db
class TestRescheduleFlow:
    def test_propose_and_reject_refunds(self, published, funded_student, coach):
        booked = funded_student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")
        enrollment_id = booked.data["enrollments"][0]["id"]
        new_date = (timezone.localdate() + timedelta(days=6)).isoformat()

        proposal = coach.post(
            f"/api/occurrences/{published['id']}/reschedule",
            {"date": new_date, "start_time": "14:00", "end_time": "15:00"},
            format="json",
        )
        assert proposal.status_code == 200, proposal.data
        assert proposal.data["occurrence"]["status"] == "rescheduled"

        notices = funded_student.get("/api/notifications")
        assert notices.data[0]["kind"] == "session_reschedule"

        answer = funded_student.post(
            f"/api/occurrences/{published['id']}/reschedule/respond",
            {"enrollment_id": enrollment_id, "decision": "reject"},
            format="json",
        )
        assert answer.status_code == 200, answer.data
        assert answer.data["refund"]["amount"] == 40
        assert funded_student.get("/api/wallet").data["balance"] == 50

    def test_overlap_is_conflict(self, published, funded_student, coach):
        funded_student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")
        coach.post("/api/occurrences", occurrence_payload(days_ahead=6, start="09:30", end="10:30"), format="json")

        response = coach.post(
            f"/api/occurrences/{published['id']}/reschedule",
            {
                "date": (timezone.localdate() + timedelta(days=6)).isoformat(),
                "start_time": "10:00",
                "end_time": "11:00",
            },
            format="json",
        )

        assert response.status_code == 409
        assert response.data["error"]["code"] == "SCHEDULE_CONFLICT"
        assert models.Occurrence.objects.get(pk=published["id"]).status == "confirmed"


@pytest.mark.django_db
class TestLifecycleAndPayout:
    def test_full_class_lifecycle(self, published, funded_student, coach):
        base = f"/api/occurrences/{published['id']}"
        funded_student.post(f"{base}/book", {}, format="json")

        assert coach.post(f"{base}/start").status_code == 200
        ended = coach.post(f"{base}/end")
        assert ended.data["earnings"] == 40
        first = coach.post(f"{base}/payout")
        second = coach.post(f"{base}/payout")

        assert first.data["already_paid"] is False
        assert second.data["already_paid"] is True
        assert coach.get("/api/wallet").data["balance"] == 40
        assert models.Transaction.objects.filter(external_reference=f"payout:{published['id']}").count() == 1

    def test_students_cannot_start_classes(self, published, funded_student):
        response = funded_student.post(f"/api/occurrences/{published['id']}/start")

        assert response.status_code == 404

    def test_coach_cancel_refunds(self, published, funded_student, coach):
        funded_student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")

        response = coach.post(f"/api/occurrences/{published['id']}/cancel")

        assert response.status_code == 200
        assert [r["amount"] for r in response.data["refunds"]] == [40]
        assert funded_student.get("/api/wallet").data["balance"] == 50


@pytest.mark.django_db
class TestWalletEndpoints:
    def test_withdraw_and_settle(self, funded_student, gateway):
        withdrawal = funded_student.post(
            "/api/wallet/withdrawals", {"credits": 20, "destination": "PayNow 91234567"}, format="json"
        )
        assert withdrawal.status_code == 201, withdrawal.data
        assert withdrawal.data["status"] == "pending"
        assert withdrawal.data["external_reference"].startswith("PN")

        settled = gateway.post(
            "/api/wallet/settlements",
            {"reference": withdrawal.data["external_reference"], "status": "completed"},
            format="json",
        )

        assert settled.data["status"] == "completed"
        assert funded_student.get("/api/wallet").data["balance"] == 30
        amounts = [t["amount"] for t in funded_student.get("/api/wallet/transactions").data]
        assert amounts == [-20, 50]

    def test_top_up_waits_for_the_gateway(self, student):
        response = student.post(
            "/api/wallet/top-up", {"amount": "99999.00", "payment_method": "made-up"}, format="json"
        )

        assert response.status_code == 201
        assert response.data["status"] == "pending"
        assert response.data["external_reference"].startswith("PC")
        assert student.get("/api/wallet").data["balance"] == 0

    def test_top_up_requires_a_payment_method(self, student):
        response = student.post("/api/wallet/top-up", {"amount": "10.00", "reference": "made-up"}, format="json")

        assert response.status_code == 400
        assert not models.Transaction.objects.exists()

    def test_users_cannot_settle_transactions(self, funded_student, gateway):
        """Settlement is the gateway callback; a user identity is not accepted."""
        withdrawal = funded_student.post(
            "/api/wallet/withdrawals", {"credits": 50, "destination": "PayNow 91234567"}, format="json"
        )
        reference = withdrawal.data["external_reference"]
        intruder = as_user(APIClient(), "someone-else")

        by_other = intruder.post("/api/wallet/settlements", {"reference": reference, "status": "failed"}, format="json")
        by_owner = funded_student.post(
            "/api/wallet/settlements", {"reference": reference, "status": "failed"}, format="json"
        )

        assert by_other.status_code == 401
        assert by_owner.status_code == 401
        assert models.Transaction.objects.get(external_reference=reference).status == "pending"

    def test_wrong_gateway_token_is_refused(self, funded_student, gateway):
        withdrawal = funded_student.post(
            "/api/wallet/withdrawals", {"credits": 20, "destination": "PayNow 91234567"}, format="json"
        )
        forged = APIClient()
        forged.credentials(HTTP_X_GATEWAY_TOKEN="guessed")

        response = forged.post(
            "/api/wallet/settlements",
            {"reference": withdrawal.data["external_reference"], "status": "failed"},
            format="json",
        )

        assert response.status_code == 401

    def test_settlements_are_closed_without_a_configured_token(self, settings):
        settings.BOOKINGS = {**settings.BOOKINGS, "GATEWAY_CALLBACK_TOKEN": ""}
        client = APIClient()
        client.credentials(HTTP_X_GATEWAY_TOKEN="anything")

        response = client.post("/api/wallet/settlements", {"reference": "PC1", "status": "completed"}, format="json")

        assert response.status_code == 401

    def test_replayed_settlement(self, funded_student, gateway):
        [deposit] = models.Transaction.objects.filter(wallet_id=STUDENT)

        response = gateway.post(
            "/api/wallet/settlements", {"reference": deposit.external_reference, "status": "completed"}, format="json"
        )

        assert response.status_code == 200
        assert funded_student.get("/api/wallet").data["balance"] == 50

    def test_mark_notifications_read(self, published, funded_student, coach):
        funded_student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")

        response = coach.post("/api/notifications/read", {}, format="json")

        assert response.data == {"updated": 1}
        assert coach.get("/api/notifications?unread=true").data == []


@pytest.mark.django_db
class TestResolveExpiredCommand:
    def test_command_cancels_expired_proposals(self, published, funded_student, coach):
        funded_student.post(f"/api/occurrences/{published['id']}/book", {}, format="json")
        coach.post(
            f"/api/occurrences/{published['id']}/reschedule",
            {
                "date": (timezone.localdate() + timedelta(days=6)).isoformat(),
                "start_time": "14:00",
                "end_time": "15:00",
            },
            format="json",
        )
        models.Occurrence.objects.filter(pk=published["id"]).update(
            reschedule_deadline=timezone.now() - timedelta(minutes=1)
        )

        call_command("resolve_expired_reschedules")

        assert models.Occurrence.objects.get(pk=published["id"]).status == "cancelled"
        assert models.Wallet.objects.get(pk=STUDENT).balance == 50
