"""
Handle meet entry rules for team entry optimization
"""
from typing import Any, Iterable, List, Tuple
from dataclasses import dataclass

from entry_optimization.config import (
    POINTS_TABLE, MAX_EVENTS_PER_ATHLETE, DISTANCE_DOUBLE_EVENTS,
    MAX_EXTRA_RUNNING_EVENTS
)
from rankings_pipeline.result_utils import is_track_event, is_field_event


@dataclass
class AthleteEventScore:
    """One candidate entry for an athlete"""
    athlete: str
    team: str
    event: str
    current_rank: int
    projected_place: int  # == current_rank for the simple method
    points: int


def get_points(place: Any) -> int:
    """
    Points scored for a finishing place

    Places outside the table (6th and beyond, zero, negative, non-integer
    or missing) score 0.
    """
    if isinstance(place, bool):
        return 0
    try:
        return POINTS_TABLE.get(place, 0)
    except TypeError:
        return 0


class EntryConstraintHandler:
    """Enforce the per-athlete entry limits"""

    def __init__(self):
        self.max_events = MAX_EVENTS_PER_ATHLETE
        self.distance_double = DISTANCE_DOUBLE_EVENTS
        self.max_extra_running = MAX_EXTRA_RUNNING_EVENTS

    def has_distance_double(self, events: Iterable[str]) -> bool:
        """Both distance events (1600 and 800) are entered"""
        events = set(events)
        return all(event in events for event in self.distance_double)

    def validate_entry(self, events: Iterable[str]) -> Tuple[bool, List[str]]:
        """
        Validate an athlete's event list against the entry rules

        Rules:
            1. At most MAX_EVENTS_PER_ATHLETE events
            2. With the distance double (1600 + 800), at most one more
               running event
            3. With the distance double and a full entry, at least one
               field event

        Args:
            events: Event codes

        Returns:
            Tuple of (is_valid, error_messages)
        """
        events = list(events)
        errors = []

        # 1. Entry cap
        if len(events) > self.max_events:
            errors.append(f"Athlete may enter at most {self.max_events} events, has {len(events)}")

        # 2-3. Distance double
        if self.has_distance_double(events):
            other_running = [
                e for e in events
                if is_track_event(e) and e not in self.distance_double
            ]
            if len(other_running) > self.max_extra_running:
                errors.append(
                    f"Distance double allows {self.max_extra_running} other running event, "
                    f"has {len(other_running)} ({', '.join(other_running)})"
                )

            if len(events) == self.max_events:
                field_events = [e for e in events if is_field_event(e)]
                if not field_events:
                    errors.append("Distance double with a full entry needs a field event")

        return len(errors) == 0, errors

    def is_valid_combination(self, events: Iterable[str]) -> bool:
        """Check an event combination, never raises"""
        is_valid, _ = self.validate_entry(events)
        return is_valid

    def calculate_entry_points(self, scores: List[AthleteEventScore]) -> int:
        """Total projected points of a set of entries"""
        return sum(score.points for score in scores)
