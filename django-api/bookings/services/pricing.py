"""Time arithmetic and price derivations shared by publishing, booking and rescheduling."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from bookings.domain.value_objects import Money, TimeWindow

_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def duration_label(window: TimeWindow) -> str:
    """Human label for a window's length, e.g. ``1 hour``, ``1h 30m``, ``45 minutes``."""
    hours, minutes = divmod(window.minutes, 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    return f"{minutes} minutes"


def price_per_hour(price: Money, window: TimeWindow) -> Decimal:
    hours = Decimal(window.minutes) / Decimal(60)
    return (price.amount / hours).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def day_of_week(on: date) -> str:
    return _DAYS[on.weekday()]


def credits_for(price: Money, credits_per_unit: Decimal) -> int:
    return price.to_credits(credits_per_unit)


def total_credits(prices: list[Money], credits_per_unit: Decimal) -> int:
    """Sum of per-occurrence credits, so each enrollment's share refunds exactly."""
    return sum(credits_for(price, credits_per_unit) for price in prices)
