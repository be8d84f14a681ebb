import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SessionSeries",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("coach_id", models.CharField(db_index=True, max_length=64)),
                (
                    "frequency",
                    models.CharField(
                        choices=[("single", "Single"), ("weekly", "Weekly"), ("monthly", "Monthly")],
                        max_length=16,
                    ),
                ),
                ("starts_on", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name_plural": "session series",
            },
        ),
        migrations.CreateModel(
            name="Wallet",
            fields=[
                ("user_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("balance", models.BigIntegerField(default=0)),
                ("currency", models.CharField(default="PC", max_length=8)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("balance__gte", 0)),
                        name="wallet_balance_non_negative",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=64)),
                ("kind", models.CharField(max_length=64)),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField()),
                ("payload", models.JSONField(default=dict)),
                ("is_read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["user_id", "is_read"], name="notification_user_read_idx")],
            },
        ),
        migrations.CreateModel(
            name="Occurrence",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("coach_id", models.CharField(max_length=64)),
                ("sport", models.CharField(max_length=100)),
                ("date", models.DateField()),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("duration", models.CharField(max_length=32)),
                ("day_of_week", models.CharField(max_length=16)),
                ("address", models.CharField(max_length=255)),
                ("postal_code", models.CharField(max_length=16)),
                (
                    "class_kind",
                    models.CharField(
                        choices=[("individual", "Individual"), ("group", "Group")],
                        max_length=16,
                    ),
                ),
                ("max_students", models.PositiveIntegerField()),
                ("students_attending", models.PositiveIntegerField(default=0)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("price_per_hour", models.DecimalField(decimal_places=2, max_digits=10)),
                ("description", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("published", "Published"),
                            ("pubcon", "Pubcon"),
                            ("confirmed", "Confirmed"),
                            ("rescheduled", "Rescheduled"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="published",
                        max_length=16,
                    ),
                ),
                ("reschedule_deadline", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "series",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="occurrences",
                        to="bookings.sessionseries",
                    ),
                ),
            ],
            options={
                "ordering": ["date", "start_time"],
                "indexes": [
                    models.Index(fields=["coach_id", "date"], name="occurrence_coach_date_idx"),
                    models.Index(fields=["series", "date"], name="occurrence_series_date_idx"),
                    models.Index(fields=["status"], name="occurrence_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("students_attending__lte", models.F("max_students"))),
                        name="occurrence_attending_within_capacity",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("student_id", models.CharField(max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("unpaid", "Unpaid"),
                            ("paid", "Paid"),
                            ("attended", "Attended"),
                            ("absent", "Absent"),
                            ("cancelled", "Cancelled"),
                            ("coach_cancelled", "Coach Cancelled"),
                        ],
                        max_length=16,
                    ),
                ),
                ("paid_credits", models.PositiveIntegerField(default=0)),
                ("reschedule_accepted", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "occurrence",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="enrollments",
                        to="bookings.occurrence",
                    ),
                ),
                (
                    "series",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="enrollments",
                        to="bookings.sessionseries",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["series", "student_id"], name="enrollment_series_student_idx")
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("occurrence", "student_id"),
                        name="unique_enrollment_per_student",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("amount", models.BigIntegerField()),
                (
                    "kind",
                    models.CharField(
                        choices=[("deposit", "Deposit"), ("withdrawal", "Withdrawal")],
                        max_length=16,
                    ),
                ),
                ("description", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")],
                        max_length=16,
                    ),
                ),
                ("external_reference", models.CharField(blank=True, max_length=128, null=True, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "wallet",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="bookings.wallet",
                    ),
                ),
            ],
            options={
                "ordering": ["-id"],
                "indexes": [models.Index(fields=["wallet", "status"], name="transaction_wallet_status_idx")],
            },
        ),
    ]
