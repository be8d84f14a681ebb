"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from rest_framework.test import APIClient

from bookings.config import BookingConfig
from bookings.domain import ClassKind, Frequency, Money, Ok, TimeWindow, Venue
from bookings.services import (
    BookingService,
    CatalogService,
    LifecycleService,
    OccurrenceDraft,
    RescheduleService,
    WalletService,
)
from bookings.services import ledger
from bookings.stores.memory_store import (
    MemoryDatabase,
    MemoryLedgerStore,
    MemoryNotifier,
    MemoryPaymentGateway,
    MemorySessionStore,
)

SGT = ZoneInfo("Asia/Singapore")

# Monday morning; every scenario below happens later this week or next.
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=SGT)
TODAY = NOW.date()
TOMORROW = TODAY + timedelta(days=1)

COACH = "coach-1"
STUDENT = "student-1"


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def set(self, moment: datetime) -> None:
        self.current = moment


def window(on: date, start: str, end: str) -> TimeWindow:
    return TimeWindow(date=on, start=time.fromisoformat(start), end=time.fromisoformat(end))


def draft(
    on: date = TOMORROW,
    start: str = "10:00",
    end: str = "11:00",
    price: str = "8",
    kind: ClassKind = ClassKind.INDIVIDUAL,
    max_students: int = 1,
    sport: str = "Tennis",
) -> OccurrenceDraft:
    return OccurrenceDraft(
        sport=sport,
        window=window(on, start, end),
        venue=Venue(address="1 Stadium Drive", postal_code="397718"),
        kind=kind,
        max_students=max_students,
        price=Money(Decimal(price)),
    )


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def config() -> BookingConfig:
    return BookingConfig(time_zone=SGT)


@pytest.fixture
def memory_db() -> MemoryDatabase:
    return MemoryDatabase(timeout=2.0)


@pytest.fixture
def sessions(memory_db) -> MemorySessionStore:
    return MemorySessionStore(memory_db)


@pytest.fixture
def wallets(memory_db) -> MemoryLedgerStore:
    return MemoryLedgerStore(memory_db)


@pytest.fixture
def notifier() -> MemoryNotifier:
    return MemoryNotifier()


@pytest.fixture
def gateway() -> MemoryPaymentGateway:
    return MemoryPaymentGateway()


@pytest.fixture
def catalog(sessions, wallets, notifier, config, clock) -> CatalogService:
    return CatalogService(sessions, wallets, notifier, config=config, clock=clock)


@pytest.fixture
def booking(sessions, wallets, notifier, config, clock) -> BookingService:
    return BookingService(sessions, wallets, notifier, config=config, clock=clock)


@pytest.fixture
def reschedule(sessions, wallets, notifier, config, clock) -> RescheduleService:
    return RescheduleService(sessions, wallets, notifier, config=config, clock=clock)


@pytest.fixture
def lifecycle(sessions, wallets, notifier, config, clock) -> LifecycleService:
    return LifecycleService(sessions, wallets, notifier, config=config, clock=clock)


@pytest.fixture
def wallet_service(sessions, wallets, notifier, gateway, config, clock) -> WalletService:
    return WalletService(sessions, wallets, notifier, gateway, config=config, clock=clock)


@pytest.fixture
def fund(wallets):
    """Give a user credits through a completed deposit."""

    def _fund(user_id: str, credits: int) -> None:
        with wallets.atomic():
            ledger.credit(wallets, user_id, credits, "Test deposit")

    return _fund


@pytest.fixture
def publish(catalog):
    """Publish one occurrence and return it."""

    def _publish(**kwargs):
        result = catalog.publish(kwargs.pop("coach_id", COACH), draft(**kwargs))
        assert isinstance(result, Ok), result
        _, occurrences = result.value
        return occurrences[0]

    return _publish


@pytest.fixture
def publish_weekly(catalog):
    """Publish a weekly series of ``weeks`` occurrences starting on ``starts_on``."""

    def _publish(starts_on: date = TOMORROW, weeks: int = 4, **kwargs):
        drafts = [draft(on=starts_on + timedelta(weeks=n), **kwargs) for n in range(weeks)]
        result = catalog.publish_series(COACH, Frequency.WEEKLY, starts_on, drafts)
        assert isinstance(result, Ok), result
        return result.value

    return _publish
