from bookings.services.booking_service import BookingService
from bookings.services.catalog_service import CatalogService, OccurrenceDraft
from bookings.services.lifecycle_service import LifecycleService
from bookings.services.reschedule_service import RescheduleService
from bookings.services.wallet_service import WalletService

__all__ = [
    "BookingService",
    "CatalogService",
    "LifecycleService",
    "OccurrenceDraft",
    "RescheduleService",
    "WalletService",
]
