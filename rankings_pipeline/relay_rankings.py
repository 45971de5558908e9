"""
Build season relay rankings from a tidy relay table

Each squad is a team plus the set of athletes who ran; a different
line-up for the same team is ranked as a separate entry.
"""
import pandas as pd
from collections import Counter
from typing import Dict, List, Optional

from rankings_pipeline.config import RELAY_COLUMNS, RELAY_LEG_COLUMNS, RELAY_GRADE_COLUMNS
from rankings_pipeline.ranking_store import (
    RankingStore, RelayRanking, RelayCategory, gender_label
)
from rankings_pipeline.result_utils import (
    is_valid_result, time_to_seconds, get_relay_event_name, parse_place
)

REQUIRED_RELAY_COLUMNS = ['event', 'gender', 'team', 'result', RELAY_LEG_COLUMNS[0]]
DUPLICATE_RELAY_KEY = ['event', 'gender', 'squad_id', 'date', 'meet']

def determine_relay_grade(grades: List[str]) -> str:
    """
    Grade a relay squad is ranked in: the most common leg grade

    Ties go to the grade of the earliest leg. Blank grades are ignored.
    """
    counts = Counter(grade for grade in grades if grade)
    if not counts:
        return ''
    return counts.most_common(1)[0][0]


def squad_id(team: str, athletes: List[str]) -> str:
    """Same athletes in any running order are the same squad"""
    return f"{team}||{'|'.join(sorted(athletes))}"


class RelayRankingsBuilder:
    """Rank relay squads by their best time per event, gender and grade"""

    def __init__(self, store: RankingStore = None):
        self.store = store or RankingStore()

    def prepare_relays(self, relays: pd.DataFrame) -> pd.DataFrame:
        """
        Normalise a relay table and drop invalid marks

        Args:
            relays: DataFrame with event, gender, team, result and
                athlete_1..athlete_4 columns; grade_1..grade_4 give each
                leg's grade (a plain grade column fills blanks); meet, date
                and place are optional

        Returns:
            Clean copy restricted to RELAY_COLUMNS
        """
        missing = [col for col in REQUIRED_RELAY_COLUMNS if col not in relays.columns]
        if missing:
            raise ValueError(f"Relay table is missing columns: {', '.join(missing)}")

        df = relays.copy()
        for col in RELAY_COLUMNS:
            if col not in df.columns:
                df[col] = None

        text_columns = (['event', 'team', 'result', 'meet', 'date']
                        + RELAY_LEG_COLUMNS + RELAY_GRADE_COLUMNS)
        for col in text_columns:
            df[col] = df[col].fillna('').astype(str).str.strip()
        df['gender'] = df['gender'].fillna('').astype(str).str.strip().str[:1].str.upper()

        if 'grade' in relays.columns:
            default_grade = relays['grade'].fillna('').astype(str).str.strip()
            for col in RELAY_GRADE_COLUMNS:
                df[col] = df[col].where(df[col] != '', default_grade)

        df = df[df['result'].map(is_valid_result).astype(bool)]
        df = df[(df['event'] != '') & (df['team'] != '')]
        df = df[(df[RELAY_LEG_COLUMNS] != '').any(axis=1)]
        return df[RELAY_COLUMNS].reset_index(drop=True)

    @staticmethod
    def _legs(row: pd.Series) -> List[Dict[str, str]]:
        """Named legs of one relay run, in running order"""
        return [
            {'athlete': row[name_col], 'grade': row[grade_col]}
            for name_col, grade_col in zip(RELAY_LEG_COLUMNS, RELAY_GRADE_COLUMNS)
            if row[name_col]
        ]

    def build(self, relays: pd.DataFrame) -> List[RelayCategory]:
        """
        Generate relay rankings grouped by event, gender and relay grade

        Args:
            relays: Relay table (see prepare_relays)

        Returns:
            Categories sorted by event, gender, grade with ranks 1..n
        """
        df = self.prepare_relays(relays)
        if df.empty:
            return []

        legs = [self._legs(row) for _, row in df.iterrows()]
        df['legs'] = pd.Series(legs, index=df.index, dtype=object)
        df['relay_grade'] = [determine_relay_grade([leg['grade'] for leg in run]) for run in legs]
        df['squad_id'] = [
            squad_id(team, [leg['athlete'] for leg in run])
            for team, run in zip(df['team'], legs)
        ]
        df['sort_key'] = df['result'].map(time_to_seconds)

        categories = []
        for (event, gender, grade), group in df.groupby(['event', 'gender', 'relay_grade'], sort=True):
            group = group.sort_values(['sort_key', 'date', 'meet'], kind='mergesort')

            ranked = []
            for key, runs in group.groupby('squad_id', sort=False):
                best = runs.iloc[0]
                ranked.append((best['sort_key'], key, RelayRanking(
                    rank=0,
                    team=best['team'],
                    athletes=sorted(leg['athlete'] for leg in best['legs']),
                    athlete_details=best['legs'],
                    best_result=best['result'],
                    best_result_meet=best['meet'],
                    best_result_date=best['date'],
                    all_results=[self._run_record(row) for _, row in runs.iterrows()]
                )))

            ranked.sort(key=lambda item: (item[0], item[1]))
            squads = []
            for rank, (_, _, squad) in enumerate(ranked, 1):
                squad.rank = rank
                squads.append(squad)

            categories.append(RelayCategory(
                event_code=event,
                display_name=get_relay_event_name(event),
                gender=gender_label(gender),
                grade=grade,
                relay_teams=squads
            ))

        return categories

    def merge_with_existing(self, relays: pd.DataFrame, season: str) -> pd.DataFrame:
        """
        Combine a new relay import with the relays stored for the season

        A run is identified by event, gender, team, line-up, date and
        meet; the new import wins on duplicates.
        """
        new_relays = self.prepare_relays(relays)
        existing = self.store.load_relay_frame(season)
        if existing.empty:
            return new_relays

        existing = self.prepare_relays(existing)
        print(f"  Merging with {len(existing)} stored relay results")

        combined = pd.concat([existing, new_relays], ignore_index=True)
        combined['squad_id'] = [
            squad_id(team, [name for name in names if name])
            for team, names in zip(combined['team'],
                                   combined[RELAY_LEG_COLUMNS].itertuples(index=False))
        ]
        combined = combined.drop_duplicates(subset=DUPLICATE_RELAY_KEY, keep='last')
        return combined[RELAY_COLUMNS].reset_index(drop=True)

    def process_season(self, relays: pd.DataFrame, season: str,
                       merge: bool = True) -> List[RelayCategory]:
        """Build and save a season's relay rankings"""
        if merge:
            relays = self.merge_with_existing(relays, season)

        categories = self.build(relays)
        if not categories:
            print("⚠ No relay results to rank")
            return []

        self.store.save_relay_rankings(categories, season)
        return categories

    @staticmethod
    def _run_record(row: pd.Series) -> Dict[str, Optional[object]]:
        return {
            'result': row['result'],
            'meet': row['meet'],
            'date': row['date'],
            'place': parse_place(row['place']),
            'athletes': row['legs']
        }
