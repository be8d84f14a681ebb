from django.contrib import admin

from bookings.models import Enrollment, Notification, Occurrence, SessionSeries, Transaction, Wallet


class OccurrenceInline(admin.TabularInline):
    model = Occurrence
    extra = 0
    fields = ["date", "start_time", "end_time", "status", "students_attending", "max_students"]
    readonly_fields = fields
    can_delete = False


class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    fk_name = "occurrence"
    extra = 0
    fields = ["student_id", "status", "paid_credits", "reschedule_accepted"]
    readonly_fields = fields
    can_delete = False


class TransactionInline(admin.TabularInline):
    model = Transaction
    extra = 0
    fields = ["amount", "kind", "status", "description", "external_reference", "created_at"]
    readonly_fields = fields
    can_delete = False


@admin.register(SessionSeries)
class SessionSeriesAdmin(admin.ModelAdmin):
    list_display = ["id", "coach_id", "frequency", "starts_on"]
    list_filter = ["frequency"]
    search_fields = ["coach_id"]
    inlines = [OccurrenceInline]


@admin.register(Occurrence)
class OccurrenceAdmin(admin.ModelAdmin):
    list_display = ["sport", "coach_id", "date", "start_time", "end_time", "class_kind", "status"]
    list_filter = ["status", "class_kind", "date"]
    search_fields = ["coach_id", "sport"]
    inlines = [EnrollmentInline]


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ["student_id", "occurrence", "status", "paid_credits"]
    list_filter = ["status"]
    search_fields = ["student_id"]


# Balances change only through the services; the ledger is read-only here.
@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ["user_id", "balance", "currency", "updated_at"]
    search_fields = ["user_id"]
    readonly_fields = ["balance"]
    inlines = [TransactionInline]


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ["id", "wallet", "amount", "kind", "status", "external_reference", "created_at"]
    list_filter = ["kind", "status"]
    search_fields = ["wallet__user_id", "external_reference"]

    def has_change_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["user_id", "kind", "title", "is_read", "created_at"]
    list_filter = ["kind", "is_read"]
    search_fields = ["user_id"]
