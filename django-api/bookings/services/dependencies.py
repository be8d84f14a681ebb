"""Service providers wired to the Django stores."""

from bookings.config import BookingConfig
from bookings.services.booking_service import BookingService
from bookings.services.catalog_service import CatalogService
from bookings.services.lifecycle_service import LifecycleService
from bookings.services.reschedule_service import RescheduleService
from bookings.services.wallet_service import WalletService
from bookings.stores.django_store import (
    DjangoLedgerStore,
    DjangoNotifier,
    DjangoSessionStore,
    ManualTransferGateway,
)


def get_notifier() -> DjangoNotifier:
    return DjangoNotifier()


def _stores() -> tuple[DjangoSessionStore, DjangoLedgerStore, DjangoNotifier, BookingConfig]:
    return DjangoSessionStore(), DjangoLedgerStore(), get_notifier(), BookingConfig.from_settings()


def get_catalog_service() -> CatalogService:
    sessions, ledger, notifier, config = _stores()
    return CatalogService(sessions, ledger, notifier, config=config)


def get_booking_service() -> BookingService:
    sessions, ledger, notifier, config = _stores()
    return BookingService(sessions, ledger, notifier, config=config)


def get_reschedule_service() -> RescheduleService:
    sessions, ledger, notifier, config = _stores()
    return RescheduleService(sessions, ledger, notifier, config=config)


def get_lifecycle_service() -> LifecycleService:
    sessions, ledger, notifier, config = _stores()
    return LifecycleService(sessions, ledger, notifier, config=config)


def get_wallet_service() -> WalletService:
    sessions, ledger, notifier, config = _stores()
    return WalletService(sessions, ledger, notifier, ManualTransferGateway(), config=config)
