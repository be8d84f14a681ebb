"""Time-overlap detection for a coach's calendar.

Windows are half-open: ``[start, end)``. Two windows on the same date
overlap iff ``s1 < e2 and s2 < e1``, so back-to-back sessions that only
touch at a boundary are allowed.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from bookings.domain.models import LIVE_STATUSES, Occurrence
from bookings.domain.value_objects import OccurrenceId, TimeWindow


class OverlapKind(str, Enum):
    REQUESTED_INSIDE_EXISTING = "requested_session_completely_inside_existing"
    EXISTING_INSIDE_REQUESTED = "existing_session_completely_inside_requested"
    STARTS_BEFORE_AND_OVERLAPS = "requested_session_starts_before_and_overlaps"
    STARTS_DURING_AND_EXTENDS_BEYOND = "requested_session_starts_during_and_extends_beyond"
    NONE = "none"


@dataclass(frozen=True)
class Conflict:
    occurrence: Occurrence
    kind: OverlapKind

    def describe(self) -> dict[str, str]:
        window = self.occurrence.window
        return {
            "occurrence_id": str(self.occurrence.id),
            "series_id": str(self.occurrence.series_id),
            "sport": self.occurrence.sport,
            "date": window.date.isoformat(),
            "start_time": window.start.isoformat(timespec="minutes"),
            "end_time": window.end.isoformat(timespec="minutes"),
        }


def overlaps(candidate: TimeWindow, other: TimeWindow) -> bool:
    if candidate.date != other.date:
        return False
    return candidate.start < other.end and other.start < candidate.end


def has_overlap(candidate: TimeWindow, existing: Iterable[TimeWindow]) -> bool:
    return any(overlaps(candidate, other) for other in existing)


def classify(candidate: TimeWindow, existing: TimeWindow) -> OverlapKind:
    """Describe how ``candidate`` overlaps ``existing``; diagnostic only."""
    if not overlaps(candidate, existing):
        return OverlapKind.NONE
    if candidate.start >= existing.start and candidate.end <= existing.end:
        return OverlapKind.REQUESTED_INSIDE_EXISTING
    if existing.start >= candidate.start and existing.end <= candidate.end:
        return OverlapKind.EXISTING_INSIDE_REQUESTED
    if candidate.start < existing.start:
        return OverlapKind.STARTS_BEFORE_AND_OVERLAPS
    return OverlapKind.STARTS_DURING_AND_EXTENDS_BEYOND


def find_conflict(
    candidate: TimeWindow,
    occurrences: Iterable[Occurrence],
    exclude: OccurrenceId | None = None,
) -> Conflict | None:
    """Return the first live occurrence that overlaps ``candidate``, if any."""
    for occurrence in occurrences:
        if occurrence.id == exclude or occurrence.status not in LIVE_STATUSES:
            continue
        if overlaps(candidate, occurrence.window):
            return Conflict(occurrence=occurrence, kind=classify(candidate, occurrence.window))
    return None
