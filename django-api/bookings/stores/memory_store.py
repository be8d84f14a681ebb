"""In-process implementation of the stores.

Both stores share one ``MemoryDatabase`` so a service call that touches
occurrences and wallets still commits or rolls back as a unit. Whole
transactions are serialized behind a single re-entrant lock, which is
stricter than per-row locking but gives the same guarantees.
"""

import itertools
import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from bookings.domain import (
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Notification,
    Occurrence,
    OccurrenceId,
    SeriesId,
    SessionSeries,
    SessionStatus,
    Transaction,
    TransactionStatus,
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


class MemoryDatabase:
    """Tables held in dicts; values are immutable domain objects."""

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._lock = threading.RLock()
        self._depth = 0
        self.series: dict[SeriesId, SessionSeries] = {}
        self.occurrences: dict[OccurrenceId, Occurrence] = {}
        self.enrollments: dict[EnrollmentId, Enrollment] = {}
        self.wallets: dict[str, Wallet] = {}
        self.transactions: dict[int, Transaction] = {}
        self._ids = itertools.count(1)

    def _tables(self) -> tuple[dict, ...]:
        return (self.series, self.occurrences, self.enrollments, self.wallets, self.transactions)

    @contextmanager
    def guard(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self.timeout):
            raise StoreUnavailableError("timed out waiting for the store lock")
        try:
            yield
        finally:
            self._lock.release()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self.guard():
            snapshot = [dict(table) for table in self._tables()] if self._depth == 0 else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if snapshot is not None:
                    for table, saved in zip(self._tables(), snapshot):
                        table.clear()
                        table.update(saved)
                raise
            finally:
                self._depth -= 1

    def next_id(self) -> int:
        return next(self._ids)


class MemorySessionStore(SessionStore):
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    def atomic(self):
        return self._db.atomic()

    def add_series(self, series: SessionSeries, occurrences: list[Occurrence]) -> None:
        with self._db.guard():
            self._db.series[series.id] = series
            for occurrence in occurrences:
                self._db.occurrences[occurrence.id] = occurrence

    def get_series(self, series_id: SeriesId) -> SessionSeries | None:
        with self._db.guard():
            return self._db.series.get(series_id)

    def get_occurrence(self, occurrence_id: OccurrenceId, *, for_update: bool = False) -> Occurrence | None:
        with self._db.guard():
            return self._db.occurrences.get(occurrence_id)

    def list_series_occurrences(self, series_id: SeriesId, *, for_update: bool = False) -> list[Occurrence]:
        with self._db.guard():
            found = [o for o in self._db.occurrences.values() if o.series_id == series_id]
        return sorted(found, key=lambda o: (o.window.date, o.window.start))

    def list_coach_occurrences(
        self, coach_id: str, on: date, statuses: Iterable[SessionStatus]
    ) -> list[Occurrence]:
        wanted = set(statuses)
        with self._db.guard():
            found = [
                o
                for o in self._db.occurrences.values()
                if o.coach_id == coach_id and o.window.date == on and o.status in wanted
            ]
        return sorted(found, key=lambda o: o.window.start)

    def list_occurrences_by_status(self, status: SessionStatus) -> list[Occurrence]:
        with self._db.guard():
            return [o for o in self._db.occurrences.values() if o.status is status]

    def save_occurrence(self, occurrence: Occurrence) -> None:
        with self._db.guard():
            self._db.occurrences[occurrence.id] = occurrence

    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        with self._db.guard():
            return self._db.enrollments.get(enrollment_id)

    def find_enrollment(self, occurrence_id: OccurrenceId, student_id: str) -> Enrollment | None:
        with self._db.guard():
            for enrollment in self._db.enrollments.values():
                if enrollment.occurrence_id == occurrence_id and enrollment.student_id == student_id:
                    return enrollment
        return None

    def list_enrollments(
        self, occurrence_id: OccurrenceId, statuses: Iterable[EnrollmentStatus] | None = None
    ) -> list[Enrollment]:
        wanted = set(statuses) if statuses is not None else None
        with self._db.guard():
            return [
                e
                for e in self._db.enrollments.values()
                if e.occurrence_id == occurrence_id and (wanted is None or e.status in wanted)
            ]

    def student_in_series(self, series_id: SeriesId, student_id: str) -> bool:
        with self._db.guard():
            return any(
                e.series_id == series_id and e.student_id == student_id
                for e in self._db.enrollments.values()
            )

    def add_enrollment(self, enrollment: Enrollment) -> None:
        with self._db.guard():
            if self.find_enrollment(enrollment.occurrence_id, enrollment.student_id) is not None:
                raise AlreadyBookedError(enrollment.student_id, enrollment.occurrence_id)
            self._db.enrollments[enrollment.id] = enrollment

    def save_enrollment(self, enrollment: Enrollment) -> None:
        with self._db.guard():
            self._db.enrollments[enrollment.id] = enrollment


class MemoryLedgerStore(LedgerStore):
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    def atomic(self):
        return self._db.atomic()

    def get_wallet(self, user_id: str, *, for_update: bool = False) -> Wallet:
        with self._db.guard():
            return self._db.wallets.setdefault(user_id, Wallet(user_id=user_id))

    def save_wallet(self, wallet: Wallet) -> None:
        with self._db.guard():
            self._db.wallets[wallet.user_id] = wallet

    def add_transaction(self, transaction: Transaction) -> Transaction:
        with self._db.guard():
            reference = transaction.external_reference
            if reference is not None and self.get_transaction_by_reference(reference) is not None:
                raise ValidationError("Payment reference already used", reference=reference)
            stored = replace(
                transaction,
                id=self._db.next_id(),
                created_at=datetime.now(timezone.utc),
            )
            self._db.transactions[stored.id] = stored
            return stored

    def save_transaction(self, transaction: Transaction) -> None:
        with self._db.guard():
            self._db.transactions[transaction.id] = transaction

    def get_transaction_by_reference(self, reference: str, *, for_update: bool = False) -> Transaction | None:
        with self._db.guard():
            for transaction in self._db.transactions.values():
                if transaction.external_reference == reference:
                    return transaction
        return None

    def list_transactions(self, user_id: str) -> list[Transaction]:
        with self._db.guard():
            found = [t for t in self._db.transactions.values() if t.user_id == user_id]
        return sorted(found, key=lambda t: t.id, reverse=True)


class MemoryNotifier(Notifier, NotificationStore):
    """Records notifications in a list."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []
        self._lock = threading.Lock()

    def send(self, user_id: str, kind: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self.sent.append(
                Notification(
                    id=len(self.sent) + 1,
                    user_id=user_id,
                    kind=kind,
                    title=payload.get("title", kind),
                    message=payload.get("message", ""),
                    payload=payload,
                )
            )

    def list_for_user(self, user_id: str, *, unread_only: bool = False) -> list[Notification]:
        return [n for n in reversed(self.sent) if n.user_id == user_id and not (unread_only and n.is_read)]

    def mark_read(self, user_id: str, notification_id: int | None = None) -> int:
        count = 0
        with self._lock:
            for index, notification in enumerate(self.sent):
                if notification.user_id != user_id or notification.is_read:
                    continue
                if notification_id is not None and notification.id != notification_id:
                    continue
                self.sent[index] = replace(notification, is_read=True)
                count += 1
        return count


class MemoryPaymentGateway(PaymentGateway):
    """Gateway double answering collections and transfers with fixed statuses."""

    def __init__(
        self,
        status: TransactionStatus = TransactionStatus.PENDING,
        collect_status: TransactionStatus = TransactionStatus.COMPLETED,
    ) -> None:
        self.status = status
        self.collect_status = collect_status
        self.collections: list[tuple[Decimal, str]] = []
        self.transfers: list[tuple[Decimal, str]] = []

    def collect(self, amount: Decimal, payment_method: str) -> GatewayReceipt:
        self.collections.append((amount, payment_method))
        return GatewayReceipt(reference=f"MEMIN{len(self.collections):06d}", status=self.collect_status)

    def transfer(self, amount: Decimal, destination: str) -> GatewayReceipt:
        self.transfers.append((amount, destination))
        return GatewayReceipt(reference=f"MEM{len(self.transfers):06d}", status=self.status)
