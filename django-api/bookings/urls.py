from django.urls import path

from bookings.handlers import (
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

urlpatterns = [
    path("occurrences", OccurrenceCreateView.as_view(), name="occurrence-create"),
    path("series", SeriesCreateView.as_view(), name="series-create"),
    path("occurrences/<uuid:occurrence_id>/book", BookView.as_view(), name="occurrence-book"),
    path(
        "occurrences/<uuid:occurrence_id>/cancel-booking",
        CancelBookingView.as_view(),
        name="occurrence-cancel-booking",
    ),
    path("occurrences/<uuid:occurrence_id>/reschedule", RescheduleView.as_view(), name="occurrence-reschedule"),
    path(
        "occurrences/<uuid:occurrence_id>/reschedule/respond",
        RescheduleResponseView.as_view(),
        name="occurrence-reschedule-respond",
    ),
    path("occurrences/<uuid:occurrence_id>/start", StartClassView.as_view(), name="occurrence-start"),
    path("occurrences/<uuid:occurrence_id>/end", EndClassView.as_view(), name="occurrence-end"),
    path("occurrences/<uuid:occurrence_id>/payout", PayoutView.as_view(), name="occurrence-payout"),
    path("occurrences/<uuid:occurrence_id>/attendance", AttendanceView.as_view(), name="occurrence-attendance"),
    path("occurrences/<uuid:occurrence_id>/cancel", CancelClassView.as_view(), name="occurrence-cancel"),
    path("wallet", WalletView.as_view(), name="wallet"),
    path("wallet/transactions", TransactionListView.as_view(), name="wallet-transactions"),
    path("wallet/top-up", TopUpView.as_view(), name="wallet-top-up"),
    path("wallet/withdrawals", WithdrawView.as_view(), name="wallet-withdraw"),
    path("wallet/settlements", SettlementView.as_view(), name="wallet-settle"),
    path("notifications", NotificationListView.as_view(), name="notification-list"),
    path("notifications/read", NotificationReadView.as_view(), name="notification-read"),
]
