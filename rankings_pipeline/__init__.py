"""
Rankings pipeline for track & field meet results

Turns tidy result tables into season-long event and relay rankings per
gender and grade, per-athlete histories and per-team meet recaps, and
serves the rankings back to the entry optimizer.

Key components:
- EventRankingsBuilder: best-mark rankings from a result DataFrame
- RelayRankingsBuilder: best-time rankings per relay squad
- AthleteResultsBuilder: every athlete's marks grouped by meet date
- TeamResultsExtractor: one team's results grouped by meet
- RankingStore: JSON season store
- match_team_name / find_team_name: resolve a team query
"""

from .ranking_store import (
    RankingStore, RankingRow, EventCategory,
    RelayRanking, RelayCategory, AthleteHistory,
    RankingsNotFoundError, TeamNotFoundError, AmbiguousTeamError,
    match_team_name, find_team_name
)
from .rankings_builder import EventRankingsBuilder
from .relay_rankings import RelayRankingsBuilder
from .athlete_results import AthleteResultsBuilder
from .team_results import TeamResultsExtractor

__all__ = [
    'RankingStore',
    'RankingRow',
    'EventCategory',
    'RelayRanking',
    'RelayCategory',
    'AthleteHistory',
    'RankingsNotFoundError',
    'TeamNotFoundError',
    'AmbiguousTeamError',
    'match_team_name',
    'find_team_name',
    'EventRankingsBuilder',
    'RelayRankingsBuilder',
    'AthleteResultsBuilder',
    'TeamResultsExtractor'
]
