"""Serializers for request parsing and for rendering domain models.

Input serializers only check format; business rules stay in the services.
Output serializers read attributes straight off the frozen domain objects.
"""

from rest_framework import serializers

from bookings.domain import (
    ClassKind,
    Decision,
    Frequency,
    Money,
    PaymentPlan,
    TimeWindow,
    TransactionStatus,
    Venue,
)
from bookings.services.catalog_service import OccurrenceDraft


def _choices(enum) -> list[str]:
    return [member.value for member in enum]


class WindowInputSerializer(serializers.Serializer):
    date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()

    def validate(self, attrs):
        if attrs["start_time"] >= attrs["end_time"]:
            raise serializers.ValidationError({"end_time": "End time must be after start time."})
        return attrs

    def to_window(self, attrs) -> TimeWindow:
        return TimeWindow(date=attrs["date"], start=attrs["start_time"], end=attrs["end_time"])


class OccurrenceInputSerializer(WindowInputSerializer):
    """Coach input for one occurrence."""

    sport = serializers.CharField(max_length=100)
    address = serializers.CharField(max_length=255)
    postal_code = serializers.CharField(max_length=16)
    class_kind = serializers.ChoiceField(choices=_choices(ClassKind))
    max_students = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def to_draft(self, attrs) -> OccurrenceDraft:
        return OccurrenceDraft(
            sport=attrs["sport"],
            window=self.to_window(attrs),
            venue=Venue(address=attrs["address"], postal_code=attrs["postal_code"]),
            kind=ClassKind(attrs["class_kind"]),
            max_students=attrs["max_students"],
            price=Money(attrs["price"]),
            description=attrs["description"],
        )


class SeriesInputSerializer(serializers.Serializer):
    frequency = serializers.ChoiceField(choices=[Frequency.WEEKLY.value, Frequency.MONTHLY.value])
    starts_on = serializers.DateField()
    occurrences = OccurrenceInputSerializer(many=True)

    def to_drafts(self, attrs) -> list[OccurrenceDraft]:
        item = OccurrenceInputSerializer()
        return [item.to_draft(draft) for draft in attrs["occurrences"]]


class BookInputSerializer(serializers.Serializer):
    session_type = serializers.ChoiceField(choices=_choices(Frequency), default=Frequency.SINGLE.value)
    payment_plan = serializers.ChoiceField(choices=_choices(PaymentPlan), default=PaymentPlan.FULL.value)


class RescheduleInputSerializer(WindowInputSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    address = serializers.CharField(max_length=255, required=False)
    postal_code = serializers.CharField(max_length=16, required=False)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if ("address" in attrs) != ("postal_code" in attrs):
            raise serializers.ValidationError("Address and postal code must be changed together.")
        return attrs


class RespondInputSerializer(serializers.Serializer):
    enrollment_id = serializers.UUIDField()
    decision = serializers.ChoiceField(choices=_choices(Decision))


class AttendanceInputSerializer(serializers.Serializer):
    attendance = serializers.DictField(child=serializers.CharField(max_length=16), allow_empty=False)


class TopUpInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    payment_method = serializers.CharField(max_length=128)


class WithdrawInputSerializer(serializers.Serializer):
    credits = serializers.IntegerField(min_value=1)
    destination = serializers.CharField(max_length=255)


class SettleInputSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=[TransactionStatus.COMPLETED.value, TransactionStatus.FAILED.value])


class MarkReadInputSerializer(serializers.Serializer):
    notification_id = serializers.IntegerField(required=False)


class EnumField(serializers.Field):
    def to_representation(self, value) -> str:
        return value.value


class OccurrenceSerializer(serializers.Serializer):
    """Serializer for the Occurrence domain model."""

    id = serializers.CharField()
    series_id = serializers.CharField()
    coach_id = serializers.CharField()
    sport = serializers.CharField()
    date = serializers.DateField(source="window.date")
    start_time = serializers.TimeField(source="window.start", format="%H:%M")
    end_time = serializers.TimeField(source="window.end", format="%H:%M")
    duration = serializers.CharField()
    day_of_week = serializers.CharField()
    address = serializers.CharField(source="venue.address")
    postal_code = serializers.CharField(source="venue.postal_code")
    class_kind = EnumField(source="kind")
    max_students = serializers.IntegerField()
    students_attending = serializers.IntegerField()
    price = serializers.DecimalField(source="price.amount", max_digits=10, decimal_places=2)
    price_per_hour = serializers.DecimalField(max_digits=10, decimal_places=2)
    description = serializers.CharField()
    status = EnumField()
    reschedule_deadline = serializers.DateTimeField(allow_null=True)


class EnrollmentSerializer(serializers.Serializer):
    id = serializers.CharField()
    occurrence_id = serializers.CharField()
    series_id = serializers.CharField()
    student_id = serializers.CharField()
    status = EnumField()
    paid_credits = serializers.IntegerField()
    reschedule_accepted = serializers.BooleanField()


class WalletSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    balance = serializers.IntegerField()


class TransactionSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    amount = serializers.IntegerField()
    kind = EnumField()
    status = EnumField()
    description = serializers.CharField()
    external_reference = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField(allow_null=True)


class NotificationSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    kind = serializers.CharField()
    title = serializers.CharField()
    message = serializers.CharField()
    payload = serializers.DictField()
    is_read = serializers.BooleanField()
    created_at = serializers.DateTimeField(allow_null=True)


class BookingResultSerializer(serializers.Serializer):
    occurrences = OccurrenceSerializer(many=True)
    enrollments = EnrollmentSerializer(many=True)
    charged_credits = serializers.IntegerField()
    balance = serializers.IntegerField()
    transaction = TransactionSerializer(allow_null=True)


class BookingCancellationSerializer(serializers.Serializer):
    occurrence = OccurrenceSerializer()
    enrollment = EnrollmentSerializer()
    refund = TransactionSerializer(allow_null=True)
    refund_eligible = serializers.BooleanField()


class RescheduleProposalSerializer(serializers.Serializer):
    occurrence = OccurrenceSerializer()
    previous_date = serializers.CharField()
    deadline = serializers.DateTimeField()
    notified_students = serializers.ListField(child=serializers.CharField())


class RescheduleOutcomeSerializer(serializers.Serializer):
    occurrence = OccurrenceSerializer()
    enrollment = EnrollmentSerializer()
    decision = EnumField()
    refund = TransactionSerializer(allow_null=True)


class ClassEndedSerializer(serializers.Serializer):
    occurrence = OccurrenceSerializer()
    attended = EnrollmentSerializer(many=True)
    earnings = serializers.IntegerField()


class PayoutSerializer(serializers.Serializer):
    transaction = TransactionSerializer()
    already_paid = serializers.BooleanField()


class ClassCancellationSerializer(serializers.Serializer):
    occurrence = OccurrenceSerializer()
    enrollments = EnrollmentSerializer(many=True)
    refunds = TransactionSerializer(many=True)


class PublishedSerializer(serializers.Serializer):
    """Renders the ``(series, occurrences)`` pair returned by publishing."""

    def to_representation(self, instance):
        series, occurrences = instance
        return {
            "series_id": str(series.id),
            "frequency": series.frequency.value,
            "starts_on": series.starts_on.isoformat(),
            "occurrences": OccurrenceSerializer(occurrences, many=True).data,
        }
