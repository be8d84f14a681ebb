"""Unit tests for publishing occurrences and series."""

from datetime import timedelta

from bookings.domain import ClassKind, Frequency, Ok, SessionStatus

from conftest import COACH, TODAY, TOMORROW, draft


class TestPublish:
    def test_single_publish_derives_labels(self, catalog, sessions):
        result = catalog.publish(COACH, draft(start="10:00", end="11:30", price="45"))

        assert isinstance(result, Ok)
        series, [occurrence] = result.value
        assert series.frequency is Frequency.SINGLE
        assert occurrence.series_id == series.id
        assert occurrence.status is SessionStatus.PUBLISHED
        assert occurrence.duration == "1h 30m"
        assert str(occurrence.price_per_hour) == "30.00"
        assert occurrence.day_of_week == "Tuesday"
        assert sessions.get_occurrence(occurrence.id) == occurrence

    def test_individual_classes_take_one_student(self, catalog):
        result = catalog.publish(COACH, draft(kind=ClassKind.INDIVIDUAL, max_students=3))

        assert result.error.details == {"max_students": 3}

    def test_price_must_be_positive(self, catalog):
        result = catalog.publish(COACH, draft(price="0"))

        assert result.error.message == "Price must be positive"


class TestPublishSeries:
    def test_occurrences_share_one_series(self, catalog, sessions):
        drafts = [draft(on=TOMORROW + timedelta(weeks=n)) for n in range(3)]

        series, occurrences = catalog.publish_series(COACH, Frequency.WEEKLY, TOMORROW, drafts).value

        assert {o.series_id for o in occurrences} == {series.id}
        assert sessions.list_series_occurrences(series.id) == occurrences

    def test_empty_series_is_refused(self, catalog):
        result = catalog.publish_series(COACH, Frequency.WEEKLY, TOMORROW, [])

        assert not result.is_ok

    def test_occurrence_before_start_is_refused(self, catalog):
        result = catalog.publish_series(COACH, Frequency.MONTHLY, TOMORROW, [draft(on=TODAY)])

        assert result.error.details == {"starts_on": TOMORROW.isoformat()}
