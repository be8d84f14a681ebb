from bookings.handlers.views import (
    AttendanceView,
    BookView,
    CancelBookingView,
    CancelClassView,
    EndClassView,
    NotificationListView,
    NotificationReadView,
    OccurrenceCreateView,
    PayoutView,
    RescheduleResponseView,
    RescheduleView,
    SeriesCreateView,
    SettlementView,
    StartClassView,
    TopUpView,
    TransactionListView,
    WalletView,
    WithdrawView,
)

__all__ = [
    "AttendanceView",
    "BookView",
    "CancelBookingView",
    "CancelClassView",
    "EndClassView",
    "NotificationListView",
    "NotificationReadView",
    "OccurrenceCreateView",
    "PayoutView",
    "RescheduleResponseView",
    "RescheduleView",
    "SeriesCreateView",
    "SettlementView",
    "StartClassView",
    "TopUpView",
    "TransactionListView",
    "WalletView",
    "WithdrawView",
]
