"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Every mutation made by
one service call happens inside ``atomic()``; rows read with
``for_update=True`` stay locked until the outermost block exits.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

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


class SessionStore(ABC):
    """Interface for occurrence and enrollment persistence."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Commit every mutation inside the block together, or none."""
        ...

    @abstractmethod
    def add_series(self, series: SessionSeries, occurrences: list[Occurrence]) -> None:
        ...

    @abstractmethod
    def get_series(self, series_id: SeriesId) -> SessionSeries | None:
        ...

    @abstractmethod
    def get_occurrence(self, occurrence_id: OccurrenceId, *, for_update: bool = False) -> Occurrence | None:
        """Return an occurrence by ID, or None if not found."""
        ...

    @abstractmethod
    def list_series_occurrences(self, series_id: SeriesId, *, for_update: bool = False) -> list[Occurrence]:
        """Return a series' occurrences ordered by date and start time."""
        ...

    @abstractmethod
    def list_coach_occurrences(
        self, coach_id: str, on: date, statuses: Iterable[SessionStatus]
    ) -> list[Occurrence]:
        ...

    @abstractmethod
    def list_occurrences_by_status(self, status: SessionStatus) -> list[Occurrence]:
        ...

    @abstractmethod
    def save_occurrence(self, occurrence: Occurrence) -> None:
        ...

    @abstractmethod
    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        ...

    @abstractmethod
    def find_enrollment(self, occurrence_id: OccurrenceId, student_id: str) -> Enrollment | None:
        ...

    @abstractmethod
    def list_enrollments(
        self, occurrence_id: OccurrenceId, statuses: Iterable[EnrollmentStatus] | None = None
    ) -> list[Enrollment]:
        ...

    @abstractmethod
    def student_in_series(self, series_id: SeriesId, student_id: str) -> bool:
        """Check if a student holds any enrollment in the series."""
        ...

    @abstractmethod
    def add_enrollment(self, enrollment: Enrollment) -> None:
        """Insert an enrollment.

        Raises:
            AlreadyBookedError: If the (student, occurrence) pair exists.
        """
        ...

    @abstractmethod
    def save_enrollment(self, enrollment: Enrollment) -> None:
        ...


class LedgerStore(ABC):
    """Interface for wallet and transaction persistence."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        ...

    @abstractmethod
    def get_wallet(self, user_id: str, *, for_update: bool = False) -> Wallet:
        """Return the user's wallet, creating an empty one on first access."""
        ...

    @abstractmethod
    def save_wallet(self, wallet: Wallet) -> None:
        ...

    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Append a ledger entry and return it with its assigned id."""
        ...

    @abstractmethod
    def save_transaction(self, transaction: Transaction) -> None:
        ...

    @abstractmethod
    def get_transaction_by_reference(self, reference: str, *, for_update: bool = False) -> Transaction | None:
        ...

    @abstractmethod
    def list_transactions(self, user_id: str) -> list[Transaction]:
        """Return a wallet's transactions, newest first."""
        ...


class Notifier(ABC):
    """Outbound notifications. Delivery is fire-and-forget for callers."""

    @abstractmethod
    def send(self, user_id: str, kind: str, payload: dict) -> None:
        ...


class NotificationStore(ABC):
    """Read side of persisted notifications."""

    @abstractmethod
    def list_for_user(self, user_id: str, *, unread_only: bool = False) -> list[Notification]:
        ...

    @abstractmethod
    def mark_read(self, user_id: str, notification_id: int | None = None) -> int:
        """Mark one (or every) notification of the user as read; return the count."""
        ...


@dataclass(frozen=True)
class GatewayReceipt:
    reference: str
    status: TransactionStatus


class PaymentGateway(ABC):
    """External money movement; only the reference and status are recorded."""

    @abstractmethod
    def collect(self, amount: Decimal, payment_method: str) -> GatewayReceipt:
        """Charge the payer. A ``completed`` receipt means the funds were captured."""
        ...

    @abstractmethod
    def transfer(self, amount: Decimal, destination: str) -> GatewayReceipt:
        ...
