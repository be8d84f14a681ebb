"""Django ORM implementation of the stores.

Rows read with ``for_update=True`` are locked with ``select_for_update()``
until the surrounding ``transaction.atomic()`` block commits, which
serializes concurrent read-modify-write of occupancy and balances.
"""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from decimal import Decimal
from itertools import count
from typing import Any

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from bookings import models
from bookings.domain import (
    ClassKind,
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Frequency,
    Money,
    Notification,
    Occurrence,
    OccurrenceId,
    SeriesId,
    SessionSeries,
    SessionStatus,
    TimeWindow,
    Transaction,
    TransactionKind,
    TransactionStatus,
    Venue,
    Wallet,
)
from bookings.domain.errors import AlreadyBookedError, StoreUnavailableError, ValidationError
from bookings.stores.interfaces import (
    GatewayReceipt,
    LedgerStore,
    NotificationStore,
    Notifier,
    PaymentGateway,
    SessionStore,
)

logger = logging.getLogger(__name__)


@contextmanager
def _atomic() -> Iterator[None]:
    try:
        with transaction.atomic():
            yield
    except IntegrityError:
        raise
    except DatabaseError as exc:
        logger.warning("store_unavailable: %s", exc)
        raise StoreUnavailableError(type(exc).__name__) from exc


def _to_series(row: models.SessionSeries) -> SessionSeries:
    return SessionSeries(
        id=SeriesId(row.id),
        coach_id=row.coach_id,
        frequency=Frequency(row.frequency),
        starts_on=row.starts_on,
    )


def _to_occurrence(row: models.Occurrence) -> Occurrence:
    return Occurrence(
        id=OccurrenceId(row.id),
        series_id=SeriesId(row.series_id),
        coach_id=row.coach_id,
        sport=row.sport,
        window=TimeWindow(date=row.date, start=row.start_time, end=row.end_time),
        venue=Venue(address=row.address, postal_code=row.postal_code),
        kind=ClassKind(row.class_kind),
        max_students=row.max_students,
        price=Money(row.price),
        price_per_hour=row.price_per_hour,
        duration=row.duration,
        day_of_week=row.day_of_week,
        description=row.description,
        students_attending=row.students_attending,
        status=SessionStatus(row.status),
        reschedule_deadline=row.reschedule_deadline,
    )


def _occurrence_fields(occurrence: Occurrence) -> dict[str, Any]:
    return {
        "series_id": occurrence.series_id.value,
        "coach_id": occurrence.coach_id,
        "sport": occurrence.sport,
        "date": occurrence.window.date,
        "start_time": occurrence.window.start,
        "end_time": occurrence.window.end,
        "duration": occurrence.duration,
        "day_of_week": occurrence.day_of_week,
        "address": occurrence.venue.address,
        "postal_code": occurrence.venue.postal_code,
        "class_kind": occurrence.kind.value,
        "max_students": occurrence.max_students,
        "students_attending": occurrence.students_attending,
        "price": occurrence.price.amount,
        "price_per_hour": occurrence.price_per_hour,
        "description": occurrence.description,
        "status": occurrence.status.value,
        "reschedule_deadline": occurrence.reschedule_deadline,
    }


def _to_enrollment(row: models.Enrollment) -> Enrollment:
    return Enrollment(
        id=EnrollmentId(row.id),
        occurrence_id=OccurrenceId(row.occurrence_id),
        series_id=SeriesId(row.series_id),
        student_id=row.student_id,
        status=EnrollmentStatus(row.status),
        paid_credits=row.paid_credits,
        reschedule_accepted=row.reschedule_accepted,
    )


def _to_transaction(row: models.Transaction) -> Transaction:
    return Transaction(
        id=row.id,
        user_id=row.wallet_id,
        amount=row.amount,
        kind=TransactionKind(row.kind),
        description=row.description,
        status=TransactionStatus(row.status),
        external_reference=row.external_reference,
        created_at=row.created_at,
    )


def _to_notification(row: models.Notification) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        kind=row.kind,
        title=row.title,
        message=row.message,
        payload=row.payload,
        is_read=row.is_read,
        created_at=row.created_at,
    )


class DjangoSessionStore(SessionStore):
    """Occurrence and enrollment store backed by the Django ORM."""

    def atomic(self):
        return _atomic()

    def add_series(self, series: SessionSeries, occurrences: list[Occurrence]) -> None:
        models.SessionSeries.objects.create(
            id=series.id.value,
            coach_id=series.coach_id,
            frequency=series.frequency.value,
            starts_on=series.starts_on,
        )
        models.Occurrence.objects.bulk_create(
            [models.Occurrence(id=o.id.value, **_occurrence_fields(o)) for o in occurrences]
        )

    def get_series(self, series_id: SeriesId) -> SessionSeries | None:
        row = models.SessionSeries.objects.filter(pk=series_id.value).first()
        return _to_series(row) if row else None

    def get_occurrence(self, occurrence_id: OccurrenceId, *, for_update: bool = False) -> Occurrence | None:
        queryset = models.Occurrence.objects.filter(pk=occurrence_id.value)
        if for_update:
            queryset = queryset.select_for_update()
        row = queryset.first()
        return _to_occurrence(row) if row else None

    def list_series_occurrences(self, series_id: SeriesId, *, for_update: bool = False) -> list[Occurrence]:
        queryset = models.Occurrence.objects.filter(series_id=series_id.value)
        if for_update:
            queryset = queryset.select_for_update()
        return [_to_occurrence(row) for row in queryset.order_by("date", "start_time")]

    def list_coach_occurrences(self, coach_id, on, statuses: Iterable[SessionStatus]) -> list[Occurrence]:
        queryset = models.Occurrence.objects.filter(
            coach_id=coach_id,
            date=on,
            status__in=[status.value for status in statuses],
        ).order_by("start_time")
        return [_to_occurrence(row) for row in queryset]

    def list_occurrences_by_status(self, status: SessionStatus) -> list[Occurrence]:
        return [_to_occurrence(row) for row in models.Occurrence.objects.filter(status=status.value)]

    def save_occurrence(self, occurrence: Occurrence) -> None:
        models.Occurrence.objects.filter(pk=occurrence.id.value).update(
            updated_at=timezone.now(), **_occurrence_fields(occurrence)
        )

    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        row = models.Enrollment.objects.filter(pk=enrollment_id.value).first()
        return _to_enrollment(row) if row else None

    def find_enrollment(self, occurrence_id: OccurrenceId, student_id: str) -> Enrollment | None:
        row = models.Enrollment.objects.filter(occurrence_id=occurrence_id.value, student_id=student_id).first()
        return _to_enrollment(row) if row else None

    def list_enrollments(
        self, occurrence_id: OccurrenceId, statuses: Iterable[EnrollmentStatus] | None = None
    ) -> list[Enrollment]:
        queryset = models.Enrollment.objects.filter(occurrence_id=occurrence_id.value)
        if statuses is not None:
            queryset = queryset.filter(status__in=[status.value for status in statuses])
        return [_to_enrollment(row) for row in queryset.order_by("created_at")]

    def student_in_series(self, series_id: SeriesId, student_id: str) -> bool:
        return models.Enrollment.objects.filter(series_id=series_id.value, student_id=student_id).exists()

    def add_enrollment(self, enrollment: Enrollment) -> None:
        try:
            with transaction.atomic():
                models.Enrollment.objects.create(
                    id=enrollment.id.value,
                    occurrence_id=enrollment.occurrence_id.value,
                    series_id=enrollment.series_id.value,
                    student_id=enrollment.student_id,
                    status=enrollment.status.value,
                    paid_credits=enrollment.paid_credits,
                    reschedule_accepted=enrollment.reschedule_accepted,
                )
        except IntegrityError as exc:
            raise AlreadyBookedError(enrollment.student_id, enrollment.occurrence_id) from exc

    def save_enrollment(self, enrollment: Enrollment) -> None:
        models.Enrollment.objects.filter(pk=enrollment.id.value).update(
            status=enrollment.status.value,
            paid_credits=enrollment.paid_credits,
            reschedule_accepted=enrollment.reschedule_accepted,
            updated_at=timezone.now(),
        )


class DjangoLedgerStore(LedgerStore):
    """Wallet and transaction store backed by the Django ORM."""

    def atomic(self):
        return _atomic()

    def get_wallet(self, user_id: str, *, for_update: bool = False) -> Wallet:
        row, created = models.Wallet.objects.get_or_create(user_id=user_id)
        if created:
            logger.info("wallet_created user=%s", user_id)
        if for_update:
            row = models.Wallet.objects.select_for_update().get(pk=user_id)
        return Wallet(user_id=row.user_id, balance=row.balance)

    def save_wallet(self, wallet: Wallet) -> None:
        models.Wallet.objects.filter(pk=wallet.user_id).update(balance=wallet.balance, updated_at=timezone.now())

    def add_transaction(self, entry: Transaction) -> Transaction:
        try:
            with transaction.atomic():
                row = models.Transaction.objects.create(
                    wallet_id=entry.user_id,
                    amount=entry.amount,
                    kind=entry.kind.value,
                    description=entry.description,
                    status=entry.status.value,
                    external_reference=entry.external_reference,
                )
        except IntegrityError as exc:
            if entry.external_reference is None:
                raise
            raise ValidationError("Payment reference already used", reference=entry.external_reference) from exc
        return _to_transaction(row)

    def save_transaction(self, transaction: Transaction) -> None:
        models.Transaction.objects.filter(pk=transaction.id).update(
            status=transaction.status.value,
            external_reference=transaction.external_reference,
            updated_at=timezone.now(),
        )

    def get_transaction_by_reference(self, reference: str, *, for_update: bool = False) -> Transaction | None:
        queryset = models.Transaction.objects.filter(external_reference=reference)
        if for_update:
            queryset = queryset.select_for_update()
        row = queryset.first()
        return _to_transaction(row) if row else None

    def list_transactions(self, user_id: str) -> list[Transaction]:
        return [_to_transaction(row) for row in models.Transaction.objects.filter(wallet_id=user_id)]


class DjangoNotifier(Notifier, NotificationStore):
    """Persists notifications; push delivery happens outside this service."""

    def send(self, user_id: str, kind: str, payload: dict[str, Any]) -> None:
        models.Notification.objects.create(
            user_id=user_id,
            kind=kind,
            title=payload.get("title", kind),
            message=payload.get("message", ""),
            payload=payload,
        )

    def list_for_user(self, user_id: str, *, unread_only: bool = False) -> list[Notification]:
        queryset = models.Notification.objects.filter(user_id=user_id)
        if unread_only:
            queryset = queryset.filter(is_read=False)
        return [_to_notification(row) for row in queryset]

    def mark_read(self, user_id: str, notification_id: int | None = None) -> int:
        queryset = models.Notification.objects.filter(user_id=user_id, is_read=False)
        if notification_id is not None:
            queryset = queryset.filter(pk=notification_id)
        return queryset.update(is_read=True)


class ManualTransferGateway(PaymentGateway):
    """Issues PayNow-style references and leaves both directions pending.

    The payment provider reports the outcome later through the settlement
    callback, which calls ``WalletService.settle``.
    """

    _sequence = count(1)

    def _reference(self, prefix: str) -> str:
        return f"{prefix}{timezone.now():%Y%m%d%H%M%S}{next(self._sequence):04d}"

    def collect(self, amount: Decimal, payment_method: str) -> GatewayReceipt:
        reference = self._reference("PC")
        logger.info("collection_requested reference=%s amount=%s method=%s", reference, amount, payment_method)
        return GatewayReceipt(reference=reference, status=TransactionStatus.PENDING)

    def transfer(self, amount: Decimal, destination: str) -> GatewayReceipt:
        reference = self._reference("PN")
        logger.info("transfer_requested reference=%s amount=%s destination=%s", reference, amount, destination)
        return GatewayReceipt(reference=reference, status=TransactionStatus.PENDING)
