"""Values returned inside ``Ok`` by the service operations."""

from dataclasses import dataclass
from datetime import datetime

from bookings.domain.models import Decision, Enrollment, Occurrence, Transaction, Wallet


@dataclass(frozen=True)
class BookingResult:
    occurrences: tuple[Occurrence, ...]
    enrollments: tuple[Enrollment, ...]
    charged_credits: int
    balance: int
    transaction: Transaction | None


@dataclass(frozen=True)
class BookingCancellation:
    occurrence: Occurrence
    enrollment: Enrollment
    refund: Transaction | None
    refund_eligible: bool


@dataclass(frozen=True)
class RescheduleProposal:
    occurrence: Occurrence
    previous_date: str
    deadline: datetime
    notified_students: tuple[str, ...]


@dataclass(frozen=True)
class RescheduleOutcome:
    occurrence: Occurrence
    enrollment: Enrollment
    decision: Decision
    refund: Transaction | None


@dataclass(frozen=True)
class ClassEnded:
    occurrence: Occurrence
    attended: tuple[Enrollment, ...]
    earnings: int


@dataclass(frozen=True)
class Payout:
    transaction: Transaction
    already_paid: bool


@dataclass(frozen=True)
class ClassCancellation:
    occurrence: Occurrence
    enrollments: tuple[Enrollment, ...]
    refunds: tuple[Transaction, ...]


@dataclass(frozen=True)
class Reconciliation:
    wallet: Wallet
    ledger_total: int

    @property
    def balanced(self) -> bool:
        return self.wallet.balance == self.ledger_total
