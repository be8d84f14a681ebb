"""Typed view of the ``BOOKINGS`` settings dict."""

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Self
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class BookingConfig:
    credits_per_unit: Decimal = Decimal("5")
    refund_cutoff: timedelta = timedelta(hours=12)
    partial_payment_window: timedelta = timedelta(days=7)
    time_zone: ZoneInfo = ZoneInfo("Asia/Singapore")

    @classmethod
    def from_settings(cls) -> Self:
        from django.conf import settings

        options = getattr(settings, "BOOKINGS", {})
        defaults = cls()
        return cls(
            credits_per_unit=Decimal(str(options.get("CREDITS_PER_UNIT", defaults.credits_per_unit))),
            refund_cutoff=timedelta(
                hours=float(options.get("REFUND_CUTOFF_HOURS", defaults.refund_cutoff / timedelta(hours=1)))
            ),
            partial_payment_window=timedelta(
                days=int(options.get("PARTIAL_PAYMENT_DAYS", defaults.partial_payment_window.days))
            ),
            time_zone=ZoneInfo(options.get("TIME_ZONE", settings.TIME_ZONE)),
        )
