"""
Per-athlete season histories built from the result and relay tables

Every athlete gets one history keyed by (athlete, team) with their marks
grouped by meet date. Relay legs are added to each runner's history with
the names of their teammates.
"""
import pandas as pd
from typing import Any, Dict, Optional, Tuple

from rankings_pipeline.ranking_store import (
    RankingStore, AthleteHistory, gender_label, split_name
)
from rankings_pipeline.rankings_builder import EventRankingsBuilder
from rankings_pipeline.relay_rankings import RelayRankingsBuilder
from rankings_pipeline.config import RELAY_LEG_COLUMNS, RELAY_GRADE_COLUMNS
from rankings_pipeline.result_utils import parse_place

Histories = Dict[Tuple[str, str], AthleteHistory]


class AthleteResultsBuilder:
    """Build, filter, merge and save athlete histories"""

    def __init__(self, store: RankingStore = None):
        self.store = store or RankingStore()
        self.results_builder = EventRankingsBuilder(self.store)
        self.relay_builder = RelayRankingsBuilder(self.store)

    def _history(self, histories: Histories, athlete: str, team: str,
                 gender: str, grade: str) -> AthleteHistory:
        key = (athlete, team)
        if key not in histories:
            first_name, last_name = split_name(athlete)
            histories[key] = AthleteHistory(
                athlete=athlete,
                first_name=first_name,
                last_name=last_name,
                gender=gender_label(gender),
                grade=grade,
                team=team
            )
        return histories[key]

    def build(self, results: pd.DataFrame,
              relays: Optional[pd.DataFrame] = None) -> Histories:
        """
        Generate athlete histories

        Args:
            results: Individual result table
            relays: Optional relay table; each named leg gets the relay
                in their history

        Returns:
            Histories keyed by (athlete, team)
        """
        histories: Histories = {}

        df = self.results_builder.prepare_results(results)
        for _, row in df.iterrows():
            history = self._history(histories, row['athlete'], row['team'],
                                    row['gender'], row['grade'])
            history.results.setdefault(row['date'], []).append({
                'event': row['event'],
                'result': row['result'],
                'place': parse_place(row['place']),
                'meet': row['meet'],
                'date': row['date']
            })

        if relays is not None and not relays.empty:
            self.add_relay_participation(histories, relays)

        for history in histories.values():
            for day in history.results.values():
                day.sort(key=lambda entry: entry['event'])

        if not histories:
            print("⚠ No valid athlete records were generated from the results")

        return histories

    def add_relay_participation(self, histories: Histories, relays: pd.DataFrame):
        """Add each relay run to the history of every athlete who ran a leg"""
        df = self.relay_builder.prepare_relays(relays)
        for _, row in df.iterrows():
            legs = [
                (row[name_col], row[grade_col])
                for name_col, grade_col in zip(RELAY_LEG_COLUMNS, RELAY_GRADE_COLUMNS)
                if row[name_col]
            ]
            names = [name for name, _ in legs]

            for athlete, grade in legs:
                history = self._history(histories, athlete, row['team'],
                                        row['gender'], grade)
                history.results.setdefault(row['date'], []).append({
                    'event': row['event'],
                    'result': row['result'],
                    'place': parse_place(row['place']),
                    'meet': row['meet'],
                    'date': row['date'],
                    'relay': {'teammates': [name for name in names if name != athlete]}
                })

    @staticmethod
    def filter_by_team(histories: Histories, team_query: str) -> Histories:
        """
        Histories whose team contains the query, case-insensitively

        Prints the available teams when nothing matches.
        """
        needle = team_query.strip().lower()
        filtered = {
            key: history for key, history in histories.items()
            if needle in history.team.lower()
        }

        if not filtered:
            print(f"\n⚠ No athletes found for team: \"{team_query}\"")
            print("\nAvailable teams in the data:")
            for team in sorted({history.team for history in histories.values()}):
                print(f"  - {team}")

        return filtered

    @staticmethod
    def merge(existing: Histories, new: Histories) -> Histories:
        """
        Fold new histories into stored ones

        New dates are added; on a date both already have, an entry for the
        same event and meet is replaced by the new one.
        """
        merged = dict(existing)
        for key, new_history in new.items():
            if key not in merged:
                merged[key] = new_history
                continue

            history = merged[key]
            history.grade = new_history.grade or history.grade
            for date, new_entries in new_history.results.items():
                replaced = {(entry['event'], entry['meet']) for entry in new_entries}
                kept = [
                    entry for entry in history.results.get(date, [])
                    if (entry['event'], entry['meet']) not in replaced
                ]
                history.results[date] = sorted(kept + new_entries,
                                               key=lambda entry: entry['event'])
        return merged

    @staticmethod
    def get_stats(histories: Histories) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            'total_athletes': len(histories),
            'total_events': 0,
            'athletes_by_grade': {},
            'athletes_by_gender': {}
        }
        for history in histories.values():
            stats['total_events'] += sum(len(day) for day in history.results.values())
            by_grade = stats['athletes_by_grade']
            by_grade[history.grade] = by_grade.get(history.grade, 0) + 1
            by_gender = stats['athletes_by_gender']
            by_gender[history.gender] = by_gender.get(history.gender, 0) + 1
        return stats

    def print_summary(self, histories: Histories):
        stats = self.get_stats(histories)

        print("\nAthlete Results Summary:")
        print(f"  - Total Athletes: {stats['total_athletes']}")
        print(f"  - Total Event Results: {stats['total_events']}")
        print("\n  By Gender:")
        for gender, count in sorted(stats['athletes_by_gender'].items()):
            print(f"    - {gender}: {count}")
        print("\n  By Grade:")
        for grade, count in sorted(stats['athletes_by_grade'].items()):
            print(f"    - {grade}: {count}")

    def process_season(self, results: pd.DataFrame, season: str,
                       relays: Optional[pd.DataFrame] = None,
                       merge: bool = True, single_file: bool = False,
                       team: Optional[str] = None) -> Histories:
        """
        Build, optionally filter and merge, then save a season's histories

        Args:
            results: New individual result table
            season: Season label
            relays: Optional relay table
            merge: Fold in histories already stored for the season
            single_file: Store all athletes in one JSON file
            team: Keep only athletes whose team contains this text

        Returns:
            The saved histories
        """
        histories = self.build(results, relays)

        if team:
            histories = self.filter_by_team(histories, team)
            if not histories:
                return {}

        if merge:
            existing = self.store.load_athlete_histories(season, single_file)
            if existing:
                print(f"  Merging with {len(existing)} stored athletes")
                histories = self.merge(existing, histories)

        self.store.save_athlete_histories(histories, season, single_file)
        self.print_summary(histories)
        return histories
