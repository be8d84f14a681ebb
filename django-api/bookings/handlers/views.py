"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from uuid import UUID

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.serializers import Serializer
from rest_framework.views import APIView

from bookings.domain import (
    Decision,
    EnrollmentId,
    Err,
    Frequency,
    Money,
    OccurrenceId,
    PaymentPlan,
    Result,
    TransactionStatus,
    Venue,
)
from bookings.domain.errors import DomainError, ValidationError
from bookings.handlers import serializers as s
from bookings.handlers.authentication import GatewayTokenAuthentication
from bookings.handlers.errors import error_response
from bookings.services import dependencies


class ServiceView(APIView):
    """Base view: parses input, renders ``Ok`` values and maps ``Err`` to HTTP."""

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            return error_response(exc)
        return super().handle_exception(exc)

    def user_id(self, request: Request) -> str:
        return request.user.user_id

    def parse(self, serializer_class, request: Request) -> tuple[Serializer, dict]:
        serializer = serializer_class(data=request.data)
        if not serializer.is_valid():
            raise ValidationError("Invalid request", fields=serializer.errors)
        return serializer, serializer.validated_data

    def render(self, result: Result, serializer_class, status_code: int = status.HTTP_200_OK) -> Response:
        if isinstance(result, Err):
            return error_response(result.error)
        return Response(serializer_class(result.value).data, status=status_code)


class OccurrenceCreateView(ServiceView):
    """Handler for POST /api/occurrences"""

    def post(self, request: Request) -> Response:
        serializer, data = self.parse(s.OccurrenceInputSerializer, request)
        result = dependencies.get_catalog_service().publish(self.user_id(request), serializer.to_draft(data))
        return self.render(result, s.PublishedSerializer, status.HTTP_201_CREATED)


class SeriesCreateView(ServiceView):
    """Handler for POST /api/series"""

    def post(self, request: Request) -> Response:
        serializer, data = self.parse(s.SeriesInputSerializer, request)
        result = dependencies.get_catalog_service().publish_series(
            self.user_id(request),
            Frequency(data["frequency"]),
            data["starts_on"],
            serializer.to_drafts(data),
        )
        return self.render(result, s.PublishedSerializer, status.HTTP_201_CREATED)


class BookView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/book"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        _, data = self.parse(s.BookInputSerializer, request)
        result = dependencies.get_booking_service().book(
            OccurrenceId(occurrence_id),
            self.user_id(request),
            session_type=Frequency(data["session_type"]),
            payment_plan=PaymentPlan(data["payment_plan"]),
        )
        return self.render(result, s.BookingResultSerializer, status.HTTP_201_CREATED)


class CancelBookingView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/cancel-booking"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        result = dependencies.get_booking_service().cancel_booking(OccurrenceId(occurrence_id), self.user_id(request))
        return self.render(result, s.BookingCancellationSerializer)


class RescheduleView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/reschedule"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        serializer, data = self.parse(s.RescheduleInputSerializer, request)
        venue = None
        if "address" in data:
            venue = Venue(address=data["address"], postal_code=data["postal_code"])
        price = Money(data["price"]) if "price" in data else None
        result = dependencies.get_reschedule_service().propose(
            OccurrenceId(occurrence_id),
            self.user_id(request),
            serializer.to_window(data),
            new_price=price,
            new_venue=venue,
        )
        return self.render(result, s.RescheduleProposalSerializer)


class RescheduleResponseView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/reschedule/respond"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        _, data = self.parse(s.RespondInputSerializer, request)
        result = dependencies.get_reschedule_service().respond(
            OccurrenceId(occurrence_id),
            EnrollmentId(data["enrollment_id"]),
            self.user_id(request),
            Decision(data["decision"]),
        )
        return self.render(result, s.RescheduleOutcomeSerializer)


class StartClassView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/start"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        result = dependencies.get_lifecycle_service().start(OccurrenceId(occurrence_id), self.user_id(request))
        return self.render(result, s.OccurrenceSerializer)


class EndClassView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/end"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        result = dependencies.get_lifecycle_service().end(OccurrenceId(occurrence_id), self.user_id(request))
        return self.render(result, s.ClassEndedSerializer)


class PayoutView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/payout"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        result = dependencies.get_lifecycle_service().payout(OccurrenceId(occurrence_id), self.user_id(request))
        return self.render(result, s.PayoutSerializer)


class AttendanceView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/attendance"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        _, data = self.parse(s.AttendanceInputSerializer, request)
        result = dependencies.get_lifecycle_service().submit_attendance(
            OccurrenceId(occurrence_id), self.user_id(request), data["attendance"]
        )
        if isinstance(result, Err):
            return error_response(result.error)
        return Response(s.EnrollmentSerializer(result.value, many=True).data)


class CancelClassView(ServiceView):
    """Handler for POST /api/occurrences/{occurrence_id}/cancel"""

    def post(self, request: Request, occurrence_id: UUID) -> Response:
        result = dependencies.get_lifecycle_service().cancel(OccurrenceId(occurrence_id), self.user_id(request))
        return self.render(result, s.ClassCancellationSerializer)


class WalletView(ServiceView):
    """Handler for GET /api/wallet"""

    def get(self, request: Request) -> Response:
        return self.render(dependencies.get_wallet_service().get_wallet(self.user_id(request)), s.WalletSerializer)


class TransactionListView(ServiceView):
    """Handler for GET /api/wallet/transactions"""

    def get(self, request: Request) -> Response:
        result = dependencies.get_wallet_service().list_transactions(self.user_id(request))
        if isinstance(result, Err):
            return error_response(result.error)
        return Response(s.TransactionSerializer(result.value, many=True).data)


class TopUpView(ServiceView):
    """Handler for POST /api/wallet/top-up"""

    def post(self, request: Request) -> Response:
        _, data = self.parse(s.TopUpInputSerializer, request)
        result = dependencies.get_wallet_service().top_up(
            self.user_id(request), Money(data["amount"]), data["payment_method"]
        )
        return self.render(result, s.TransactionSerializer, status.HTTP_201_CREATED)


class WithdrawView(ServiceView):
    """Handler for POST /api/wallet/withdrawals"""

    def post(self, request: Request) -> Response:
        _, data = self.parse(s.WithdrawInputSerializer, request)
        result = dependencies.get_wallet_service().withdraw(
            self.user_id(request), data["credits"], data["destination"]
        )
        return self.render(result, s.TransactionSerializer, status.HTTP_201_CREATED)


class SettlementView(ServiceView):
    """Handler for POST /api/wallet/settlements (payment gateway callback)"""

    authentication_classes = [GatewayTokenAuthentication]

    def post(self, request: Request) -> Response:
        _, data = self.parse(s.SettleInputSerializer, request)
        result = dependencies.get_wallet_service().settle(data["reference"], TransactionStatus(data["status"]))
        return self.render(result, s.TransactionSerializer)


class NotificationListView(ServiceView):
    """Handler for GET /api/notifications"""

    def get(self, request: Request) -> Response:
        unread_only = request.query_params.get("unread", "").lower() in ("1", "true")
        notifications = dependencies.get_notifier().list_for_user(self.user_id(request), unread_only=unread_only)
        return Response(s.NotificationSerializer(notifications, many=True).data)


class NotificationReadView(ServiceView):
    """Handler for POST /api/notifications/read"""

    def post(self, request: Request) -> Response:
        _, data = self.parse(s.MarkReadInputSerializer, request)
        updated = dependencies.get_notifier().mark_read(self.user_id(request), data.get("notification_id"))
        return Response({"updated": updated})
