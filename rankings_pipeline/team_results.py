"""
Meet-by-meet recaps for one team
"""
import pandas as pd
from typing import Any, Dict, List, Optional

from rankings_pipeline.config import RELAY_LEG_COLUMNS, RELAY_GRADE_COLUMNS
from rankings_pipeline.ranking_store import RankingStore, gender_label, match_team_name
from rankings_pipeline.rankings_builder import EventRankingsBuilder
from rankings_pipeline.relay_rankings import RelayRankingsBuilder, determine_relay_grade
from rankings_pipeline.result_utils import parse_place


class TeamResultsExtractor:
    """Group a team's individual and relay results by meet"""

    def __init__(self, store: RankingStore = None):
        self.store = store or RankingStore()
        self.results_builder = EventRankingsBuilder(self.store)
        self.relay_builder = RelayRankingsBuilder(self.store)

    def _prepare(self, results: pd.DataFrame, relays: Optional[pd.DataFrame]):
        individual = self.results_builder.prepare_results(results)
        if relays is None or relays.empty:
            relay_df = pd.DataFrame(columns=individual.columns)
        else:
            relay_df = self.relay_builder.prepare_relays(relays)
        return individual, relay_df

    def get_unique_teams(self, results: pd.DataFrame,
                         relays: Optional[pd.DataFrame] = None) -> List[str]:
        """Sorted names of every team with a valid individual or relay result"""
        individual, relay_df = self._prepare(results, relays)
        teams = set(individual['team']) | set(relay_df['team'])
        return sorted(team for team in teams if team)

    def extract_team_results(self, results: pd.DataFrame, team_query: str,
                             relays: Optional[pd.DataFrame] = None) -> List[Dict[str, Any]]:
        """
        One recap per meet the team competed in

        Args:
            results: Individual result table
            team_query: Team name or part of it (see match_team_name)
            relays: Optional relay table

        Returns:
            Meets sorted by date, each with its individual results sorted
            by grade then event and its relay results sorted the same way
        """
        individual, relay_df = self._prepare(results, relays)
        team = match_team_name(set(individual['team']) | set(relay_df['team']), team_query)

        individual = individual[individual['team'] == team]
        relay_df = relay_df[relay_df['team'] == team]

        meets: Dict[tuple, Dict[str, Any]] = {}

        for (date, meet), group in individual.groupby(['date', 'meet'], sort=True):
            entry = meets.setdefault((date, meet), self._meet_entry(team, meet, date))
            entry['results'] = sorted(
                (
                    {
                        'athlete': row['athlete'],
                        'event': row['event'],
                        'result': row['result'],
                        'place': parse_place(row['place']),
                        'gender': gender_label(row['gender']),
                        'grade': row['grade']
                    }
                    for _, row in group.iterrows()
                ),
                key=lambda r: (r['grade'], r['event'])
            )

        for (date, meet), group in relay_df.groupby(['date', 'meet'], sort=True):
            entry = meets.setdefault((date, meet), self._meet_entry(team, meet, date))
            relay_results = []
            for _, row in group.iterrows():
                athletes = [row[col] for col in RELAY_LEG_COLUMNS if row[col]]
                grades = [row[col] for col, name in zip(RELAY_GRADE_COLUMNS, RELAY_LEG_COLUMNS)
                          if row[name]]
                relay_results.append({
                    'event': row['event'],
                    'result': row['result'],
                    'place': parse_place(row['place']),
                    'gender': gender_label(row['gender']),
                    'grade': determine_relay_grade(grades),
                    'athletes': athletes
                })
            entry['relayResults'] = sorted(relay_results, key=lambda r: (r['grade'], r['event']))

        return [meets[key] for key in sorted(meets)]

    @staticmethod
    def _meet_entry(team: str, meet: str, date: str) -> Dict[str, Any]:
        return {
            'teamName': team,
            'meetName': meet,
            'meetDate': date,
            'results': [],
            'relayResults': []
        }

    def process_team(self, results: pd.DataFrame, team_query: str, season: str,
                     relays: Optional[pd.DataFrame] = None) -> List[Dict[str, Any]]:
        """Extract and save one team's recap"""
        meets = self.extract_team_results(results, team_query, relays)
        if meets:
            self.store.save_team_results(meets[0]['teamName'], meets, season)
        return meets

    def process_all_teams(self, results: pd.DataFrame, season: str,
                          relays: Optional[pd.DataFrame] = None) -> Dict[str, int]:
        """Save a recap for every team; returns meet count per team"""
        counts = {}
        for team in self.get_unique_teams(results, relays):
            meets = self.process_team(results, team, season, relays)
            counts[team] = len(meets)
        return counts
