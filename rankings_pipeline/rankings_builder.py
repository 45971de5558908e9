"""
Build season event rankings from a tidy result table
"""
import pandas as pd
from typing import Dict, List, Optional

from rankings_pipeline.config import RESULT_COLUMNS
from rankings_pipeline.ranking_store import (
    RankingStore, RankingRow, EventCategory, gender_label
)
from rankings_pipeline.result_utils import (
    is_valid_result, is_relay_event, result_sort_key, get_event_name, parse_place
)

REQUIRED_COLUMNS = ['event', 'gender', 'grade', 'athlete', 'team', 'result']
DUPLICATE_KEY = ['event', 'gender', 'grade', 'athlete', 'date', 'meet']


class EventRankingsBuilder:
    """Rank athletes by their best mark per event, gender and grade"""

    def __init__(self, store: RankingStore = None):
        self.store = store or RankingStore()

    def prepare_results(self, results: pd.DataFrame) -> pd.DataFrame:
        """
        Normalise a result table and drop invalid marks

        Args:
            results: DataFrame with at least event, gender, grade, athlete,
                team and result columns (meet, date, place optional)

        Returns:
            Clean copy restricted to RESULT_COLUMNS
        """
        missing = [col for col in REQUIRED_COLUMNS if col not in results.columns]
        if missing:
            raise ValueError(f"Result table is missing columns: {', '.join(missing)}")

        df = results.copy()
        for col in RESULT_COLUMNS:
            if col not in df.columns:
                df[col] = None

        for col in ['event', 'grade', 'athlete', 'team', 'result', 'meet', 'date']:
            df[col] = df[col].fillna('').astype(str).str.strip()
        df['gender'] = df['gender'].fillna('').astype(str).str.strip().str[:1].str.upper()

        df = df[df['result'].map(is_valid_result).astype(bool)]
        df = df[(df['athlete'] != '') & (df['event'] != '')]
        # Relays are ranked by RelayRankingsBuilder
        df = df[~df['event'].map(is_relay_event).astype(bool)]
        return df[RESULT_COLUMNS].reset_index(drop=True)

    def build(self, results: pd.DataFrame) -> List[EventCategory]:
        """
        Generate rankings for all events, grouped by gender and grade

        Each athlete is ranked by the best valid mark, track events by
        lowest time and field events by longest/highest mark. The team of
        the best mark is the athlete's team in that category.

        Args:
            results: Result table (see prepare_results)

        Returns:
            Categories sorted by event, gender, grade with ranks 1..n
        """
        df = self.prepare_results(results)
        if df.empty:
            return []

        df['sort_key'] = [
            result_sort_key(result, event)
            for result, event in zip(df['result'], df['event'])
        ]

        categories = []
        for (event, gender, grade), group in df.groupby(['event', 'gender', 'grade'], sort=True):
            group = group.sort_values(['sort_key', 'date', 'meet'], kind='mergesort')

            ranked = []
            for athlete, athlete_results in group.groupby('athlete', sort=False):
                best = athlete_results.iloc[0]
                ranked.append((best['sort_key'], athlete, RankingRow(
                    rank=0,
                    athlete=athlete,
                    team=best['team'],
                    best_result=best['result'],
                    best_result_meet=best['meet'],
                    best_result_date=best['date'],
                    all_results=[
                        self._result_record(row)
                        for _, row in athlete_results.iterrows()
                    ]
                )))

            ranked.sort(key=lambda item: (item[0], item[1]))
            rows = []
            for rank, (_, _, row) in enumerate(ranked, 1):
                row.rank = rank
                rows.append(row)

            categories.append(EventCategory(
                event_code=event,
                display_name=get_event_name(event),
                gender=gender_label(gender),
                grade=grade,
                rankings=rows
            ))

        return categories

    def merge_with_existing(self, results: pd.DataFrame, season: str) -> pd.DataFrame:
        """
        Combine a new import with the results already stored for the season

        A result is identified by event, gender, grade, athlete, date and
        meet; the new import wins on duplicates.
        """
        new_results = self.prepare_results(results)
        existing = self.store.load_results_frame(season)
        if existing.empty:
            return new_results

        existing = self.prepare_results(existing)
        print(f"  Merging with {len(existing)} stored results")

        combined = pd.concat([existing, new_results], ignore_index=True)
        combined = combined.drop_duplicates(subset=DUPLICATE_KEY, keep='last')
        return combined.reset_index(drop=True)

    def process_season(self, results: pd.DataFrame, season: str,
                       merge: bool = True) -> List[EventCategory]:
        """
        Build and save a season's rankings

        Args:
            results: New result table
            season: Season label
            merge: Fold in results already stored for the season

        Returns:
            The saved categories (empty when nothing was rankable)
        """
        if merge:
            results = self.merge_with_existing(results, season)

        categories = self.build(results)
        if not categories:
            print("⚠ No valid results to rank")
            return []

        self.store.save_event_rankings(categories, season)
        return categories

    def summarize(self, categories: List[EventCategory]) -> Dict[str, int]:
        """Ranked athlete count per event"""
        summary: Dict[str, int] = {}
        for category in categories:
            summary[category.event_code] = (
                summary.get(category.event_code, 0) + len(category.rankings)
            )
        return summary

    @staticmethod
    def _result_record(row: pd.Series) -> Dict[str, Optional[object]]:
        return {
            'result': row['result'],
            'meet': row['meet'],
            'date': row['date'],
            'place': parse_place(row['place']),
            'team': row['team']
        }
