"""Coach publishing of single occurrences and recurring series."""

import logging
from dataclasses import dataclass
from datetime import date

from bookings.domain import (
    ClassKind,
    Frequency,
    Money,
    Occurrence,
    OccurrenceId,
    SeriesId,
    SessionSeries,
    TimeWindow,
    Venue,
)
from bookings.domain.errors import ValidationError
from bookings.services import pricing
from bookings.services.base import BaseService, returns_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OccurrenceDraft:
    """Coach input for one occurrence, validated when published."""

    sport: str
    window: TimeWindow
    venue: Venue
    kind: ClassKind
    max_students: int
    price: Money
    description: str = ""


class CatalogService(BaseService):
    """Service for publishing bookable occurrences."""

    @returns_result
    def publish(self, coach_id: str, draft: OccurrenceDraft) -> tuple[SessionSeries, list[Occurrence]]:
        return self._publish(coach_id, Frequency.SINGLE, draft.window.date, [draft])

    @returns_result
    def publish_series(
        self,
        coach_id: str,
        frequency: Frequency,
        starts_on: date,
        drafts: list[OccurrenceDraft],
    ) -> tuple[SessionSeries, list[Occurrence]]:
        """Publish a weekly or monthly series; every occurrence shares one series id.

        Raises:
            ValidationError: If the series is empty, single-frequency, or a draft is invalid.
        """
        if frequency is Frequency.SINGLE:
            raise ValidationError("Use publish for single occurrences", frequency=frequency.value)
        if not drafts:
            raise ValidationError("A series needs at least one occurrence")
        if any(draft.window.date < starts_on for draft in drafts):
            raise ValidationError("Occurrences cannot precede the series start date", starts_on=str(starts_on))
        return self._publish(coach_id, frequency, starts_on, drafts)

    def _publish(
        self,
        coach_id: str,
        frequency: Frequency,
        starts_on: date,
        drafts: list[OccurrenceDraft],
    ) -> tuple[SessionSeries, list[Occurrence]]:
        series = SessionSeries(id=SeriesId.new(), coach_id=coach_id, frequency=frequency, starts_on=starts_on)
        occurrences = [self._build(series, draft) for draft in drafts]
        with self.transaction():
            self._sessions.add_series(series, occurrences)
        logger.info(
            "series_published id=%s coach=%s frequency=%s occurrences=%s",
            series.id,
            coach_id,
            frequency.value,
            len(occurrences),
        )
        return series, occurrences

    def _build(self, series: SessionSeries, draft: OccurrenceDraft) -> Occurrence:
        if not draft.sport.strip():
            raise ValidationError("Sport is required")
        if draft.price.amount <= 0:
            raise ValidationError("Price must be positive", price=str(draft.price))
        if draft.max_students < 1:
            raise ValidationError("Capacity must be at least one", max_students=draft.max_students)
        if draft.kind is ClassKind.INDIVIDUAL and draft.max_students != 1:
            raise ValidationError("Individual classes take exactly one student", max_students=draft.max_students)
        return Occurrence(
            id=OccurrenceId.new(),
            series_id=series.id,
            coach_id=series.coach_id,
            sport=draft.sport,
            window=draft.window,
            venue=draft.venue,
            kind=draft.kind,
            max_students=draft.max_students,
            price=draft.price,
            price_per_hour=pricing.price_per_hour(draft.price, draft.window),
            duration=pricing.duration_label(draft.window),
            day_of_week=pricing.day_of_week(draft.window.date),
            description=draft.description,
        )
