"""
Competition prediction for the advanced entry optimizer
"""
from typing import Any, Dict, List, Set, Tuple

from entry_optimization.config import LIKELY_ENTRANTS_PER_TEAM
from rankings_pipeline.ranking_store import EventCategory, rank_sort_value

EntrantKey = Tuple[str, str]  # (athlete, team)


class CompetitionPredictor:
    """
    Estimate who will actually line up in each event

    Every team is assumed to enter only its best few athletes per event,
    so a raw season rank overstates the real competition. An athlete's
    projected place is 1 + the number of better-ranked likely entrants.
    """

    def __init__(self, entrants_per_team: int = LIKELY_ENTRANTS_PER_TEAM):
        self.entrants_per_team = entrants_per_team

    def likely_entrants_for_event(self, category: EventCategory) -> Set[EntrantKey]:
        """Top ranked athletes of every team in one event"""
        rows = sorted(category.rankings, key=lambda row: rank_sort_value(row.rank))

        team_athletes: Dict[str, List[str]] = {}
        for row in rows:
            team_athletes.setdefault(row.team, []).append(row.athlete)

        likely = set()
        for team, athletes in team_athletes.items():
            for athlete in athletes[:min(self.entrants_per_team, len(athletes))]:
                likely.add((athlete, team))
        return likely

    def predict_likely_entrants(self, categories: List[EventCategory]) -> Dict[str, Set[EntrantKey]]:
        """
        Likely entrants of every event

        Args:
            categories: All event categories of one gender/grade (all teams)

        Returns:
            event code -> set of (athlete, team)
        """
        return {
            category.event_code: self.likely_entrants_for_event(category)
            for category in categories
        }

    def calculate_projected_place(self, category: EventCategory, current_rank: Any,
                                  likely_entrants: Set[EntrantKey]) -> int:
        """
        Projected place for an athlete with the given rank in this event

        Args:
            category: Event rankings (all teams)
            current_rank: The athlete's season rank in the event
            likely_entrants: Likely entrants of this event

        Returns:
            1 + number of strictly better-ranked likely entrants
        """
        rank = rank_sort_value(current_rank)
        if rank == float('inf'):
            # Unranked rows keep their raw value and score nothing
            return current_rank
        competitors_ahead = sum(
            1 for row in category.rankings
            if rank_sort_value(row.rank) < rank and (row.athlete, row.team) in likely_entrants
        )
        return competitors_ahead + 1
