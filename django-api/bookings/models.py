"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Nothing here is ever deleted; cancelled rows stay for the refund trail.
"""

import uuid

from django.db import models
from django.db.models import F, Q


class SessionSeries(models.Model):
    """Persistence model for a published series (shared sessionGroupId)."""

    class Frequency(models.TextChoices):
        SINGLE = "single"
        WEEKLY = "weekly"
        MONTHLY = "monthly"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    coach_id = models.CharField(max_length=64, db_index=True)
    frequency = models.CharField(max_length=16, choices=Frequency.choices)
    starts_on = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "session series"

    def __str__(self) -> str:
        return f"{self.frequency} series from {self.starts_on}"


class Occurrence(models.Model):
    """Persistence model for one bookable calendar occurrence."""

    class Status(models.TextChoices):
        PUBLISHED = "published"
        PUBCON = "pubcon"
        CONFIRMED = "confirmed"
        RESCHEDULED = "rescheduled"
        IN_PROGRESS = "in_progress"
        COMPLETED = "completed"
        CANCELLED = "cancelled"

    class Kind(models.TextChoices):
        INDIVIDUAL = "individual"
        GROUP = "group"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    series = models.ForeignKey(SessionSeries, on_delete=models.PROTECT, related_name="occurrences")
    coach_id = models.CharField(max_length=64)
    sport = models.CharField(max_length=100)
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    duration = models.CharField(max_length=32)
    day_of_week = models.CharField(max_length=16)
    address = models.CharField(max_length=255)
    postal_code = models.CharField(max_length=16)
    class_kind = models.CharField(max_length=16, choices=Kind.choices)
    max_students = models.PositiveIntegerField()
    students_attending = models.PositiveIntegerField(default=0)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    price_per_hour = models.DecimalField(max_digits=10, decimal_places=2)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PUBLISHED)
    reschedule_deadline = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date", "start_time"]
        indexes = [
            models.Index(fields=["coach_id", "date"], name="occurrence_coach_date_idx"),
            models.Index(fields=["series", "date"], name="occurrence_series_date_idx"),
            models.Index(fields=["status"], name="occurrence_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(students_attending__lte=F("max_students")),
                name="occurrence_attending_within_capacity",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.sport} {self.date} {self.start_time}-{self.end_time}"


class Enrollment(models.Model):
    """Persistence model for a student's seat on an occurrence."""

    class Status(models.TextChoices):
        UNPAID = "unpaid"
        PAID = "paid"
        ATTENDED = "attended"
        ABSENT = "absent"
        CANCELLED = "cancelled"
        COACH_CANCELLED = "coach_cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    occurrence = models.ForeignKey(Occurrence, on_delete=models.PROTECT, related_name="enrollments")
    series = models.ForeignKey(SessionSeries, on_delete=models.PROTECT, related_name="enrollments")
    student_id = models.CharField(max_length=64)
    status = models.CharField(max_length=16, choices=Status.choices)
    paid_credits = models.PositiveIntegerField(default=0)
    reschedule_accepted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["series", "student_id"], name="enrollment_series_student_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["occurrence", "student_id"], name="unique_enrollment_per_student"),
        ]

    def __str__(self) -> str:
        return f"{self.student_id} - {self.status}"


class Wallet(models.Model):
    """Persistence model for a user's credit balance."""

    user_id = models.CharField(max_length=64, primary_key=True)
    balance = models.BigIntegerField(default=0)
    currency = models.CharField(max_length=8, default="PC")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(balance__gte=0), name="wallet_balance_non_negative"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}: {self.balance} {self.currency}"


class Transaction(models.Model):
    """Persistence model for ledger entries."""

    class Kind(models.TextChoices):
        DEPOSIT = "deposit"
        WITHDRAWAL = "withdrawal"

    class Status(models.TextChoices):
        PENDING = "pending"
        COMPLETED = "completed"
        FAILED = "failed"

    id = models.BigAutoField(primary_key=True)
    wallet = models.ForeignKey(Wallet, on_delete=models.PROTECT, related_name="transactions")
    amount = models.BigIntegerField()
    kind = models.CharField(max_length=16, choices=Kind.choices)
    description = models.TextField()
    status = models.CharField(max_length=16, choices=Status.choices)
    external_reference = models.CharField(max_length=128, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["wallet", "status"], name="transaction_wallet_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.amount} ({self.status})"


class Notification(models.Model):
    """Persistence model for user notifications."""

    id = models.BigAutoField(primary_key=True)
    user_id = models.CharField(max_length=64)
    kind = models.CharField(max_length=64)
    title = models.CharField(max_length=255)
    message = models.TextField()
    payload = models.JSONField(default=dict)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user_id", "is_read"], name="notification_user_read_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}: {self.title}"
