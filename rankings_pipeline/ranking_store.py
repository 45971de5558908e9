"""
JSON season store: event and relay rankings (one file per event), athlete
histories and team recaps
"""
import os
import re
import json
import math
import pandas as pd
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Tuple

from rankings_pipeline.config import (
    TRACK_OUTPUT_DIR, RANKINGS_SUBDIR, RANKINGS_FILE, RANKINGS_FILE_PREFIX,
    RELAY_RANKINGS_FILE, RELAY_RANKINGS_FILE_PREFIX, ATHLETES_SUBDIR, ATHLETES_FILE,
    TEAM_RESULTS_SUBDIR, TEAM_RESULTS_FILE, RESULT_COLUMNS, RELAY_COLUMNS,
    RELAY_LEG_COLUMNS, RELAY_GRADE_COLUMNS, GENDER_LABELS
)
from rankings_pipeline.result_utils import get_event_name, get_relay_event_name


class RankingsNotFoundError(FileNotFoundError):
    """No ranking data for the requested season/gender/grade"""


class TeamNotFoundError(LookupError):
    """No team in the rankings matches the query"""


class AmbiguousTeamError(LookupError):
    """Several teams in the rankings match the query"""


@dataclass
class RankingRow:
    """One ranked athlete in an event category"""
    rank: int
    athlete: str
    team: str
    best_result: str = ''
    best_result_meet: str = ''
    best_result_date: str = ''
    all_results: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class EventCategory:
    """Rankings for one event, gender and grade"""
    event_code: str
    display_name: str
    gender: str  # "Male" / "Female"
    grade: str   # "7th grade"
    rankings: List[RankingRow] = field(default_factory=list)


@dataclass
class RelayRanking:
    """One ranked relay squad: a team and its set of four athletes"""
    rank: int
    team: str
    athletes: List[str]  # sorted names
    athlete_details: List[Dict[str, str]] = field(default_factory=list)  # run order
    best_result: str = ''
    best_result_meet: str = ''
    best_result_date: str = ''
    all_results: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class RelayCategory:
    """Relay rankings for one event, gender and grade"""
    event_code: str
    display_name: str
    gender: str
    grade: str
    relay_teams: List[RelayRanking] = field(default_factory=list)


@dataclass
class AthleteHistory:
    """Every result of one athlete in a season, grouped by meet date"""
    athlete: str
    first_name: str
    last_name: str
    gender: str
    grade: str
    team: str
    results: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.athlete, self.team)


def rank_sort_value(rank: Any) -> float:
    """Numeric rank, malformed or non-positive ranks sort after every real rank"""
    if isinstance(rank, bool):
        return math.inf
    if isinstance(rank, int) and rank > 0:
        return rank
    if isinstance(rank, float) and rank.is_integer() and rank > 0:
        return int(rank)
    return math.inf


def gender_label(gender: str) -> str:
    """Map 'M'/'F' (any case) to the stored label, leave full labels alone"""
    return GENDER_LABELS.get(str(gender).strip().upper(), str(gender).strip())


def slugify(text: str) -> str:
    """'Saint Michael' -> 'Saint_Michael'"""
    return re.sub(r'\W+', '_', str(text).strip()).strip('_')


def split_name(athlete: str) -> Tuple[str, str]:
    """'Jane Mary Doe' -> ('Jane', 'Mary Doe')"""
    parts = athlete.strip().split(' ', 1)
    if len(parts) == 1:
        return parts[0], ''
    return parts[0], parts[1]


def match_team_name(teams: Iterable[str], query: str) -> str:
    """
    Resolve a user supplied team name against known team names

    A case-insensitive exact match wins, otherwise a single
    case-insensitive substring match is accepted.

    Args:
        teams: Team names as stored
        query: Team name (or part of it)

    Returns:
        Exact team name as stored
    """
    needle = query.strip().lower()
    teams = sorted(set(teams))

    exact = [team for team in teams if team.lower() == needle]
    if exact:
        return exact[0]

    partial = [team for team in teams if needle in team.lower()]
    if not partial:
        raise TeamNotFoundError(f"No team matching '{query}'")
    if len(partial) > 1:
        raise AmbiguousTeamError(
            f"'{query}' matches {len(partial)} teams: {', '.join(partial)}"
        )
    return partial[0]


def find_team_name(categories: List[EventCategory], query: str) -> str:
    """Resolve a team query against the teams ranked in some categories"""
    return match_team_name((row.team for cat in categories for row in cat.rankings), query)


class RankingStore:
    """Read and write season event rankings as JSON files"""

    def __init__(self, output_dir: str = TRACK_OUTPUT_DIR):
        self.output_dir = output_dir

    def rankings_dir(self, season: str) -> str:
        """Directory holding a season's event ranking files"""
        return os.path.join(self.output_dir, str(season), RANKINGS_SUBDIR)

    def list_seasons(self) -> List[str]:
        """Seasons that have a rankings directory"""
        if not os.path.isdir(self.output_dir):
            return []
        return sorted(
            item for item in os.listdir(self.output_dir)
            if os.path.isdir(os.path.join(self.output_dir, item, RANKINGS_SUBDIR))
        )

    def _ranking_files(self, season: str, prefix: str = RANKINGS_FILE_PREFIX) -> List[str]:
        rankings_dir = self.rankings_dir(season)
        prefix = prefix.format(season=season)
        return sorted(
            os.path.join(rankings_dir, name)
            for name in os.listdir(rankings_dir)
            if name.startswith(prefix) and name.endswith('.json')
        )

    def save_event_rankings(self, categories: List[EventCategory],
                            season: str) -> List[str]:
        """
        Save categories to one JSON file per event, overwriting existing files

        Args:
            categories: Event categories (any event/gender/grade mix)
            season: Season label, e.g. "2025"

        Returns:
            Paths of the written files
        """
        rankings_dir = self.rankings_dir(season)
        os.makedirs(rankings_dir, exist_ok=True)

        by_event: Dict[str, List[EventCategory]] = {}
        for category in categories:
            by_event.setdefault(category.event_code, []).append(category)

        written = []
        total_athletes = 0
        for event_code in sorted(by_event):
            event_categories = sorted(by_event[event_code],
                                      key=lambda c: (c.gender, c.grade))
            output = {
                'season': str(season),
                'event': get_event_name(event_code),
                'eventAbbr': event_code,
                'generatedDate': datetime.now().isoformat(),
                'categories': [
                    {
                        'gender': category.gender,
                        'grade': category.grade,
                        'totalAthletes': len(category.rankings),
                        'rankings': [
                            {
                                'rank': row.rank,
                                'athlete': row.athlete,
                                'team': row.team,
                                'bestResult': row.best_result,
                                'bestResultMeet': row.best_result_meet,
                                'bestResultDate': row.best_result_date,
                                'allResults': row.all_results
                            }
                            for row in category.rankings
                        ]
                    }
                    for category in event_categories
                ]
            }

            filepath = os.path.join(
                rankings_dir, RANKINGS_FILE.format(season=season, event=event_code)
            )
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(output, f, indent=2, default=str)

            written.append(filepath)
            total_athletes += sum(len(c.rankings) for c in event_categories)

        print(f"✓ Event rankings saved to {rankings_dir}")
        print(f"  - Event files: {len(written)}")
        print(f"  - Categories: {len(categories)}")
        print(f"  - Ranked athletes: {total_athletes}")
        return written

    def load_categories(self, season: str, gender: str,
                        grade: str) -> List[EventCategory]:
        """
        Load every event category of one gender and grade

        Categories come back sorted by event code and rows by rank, so
        results never depend on file-system ordering.

        Raises:
            RankingsNotFoundError: season directory missing or no category
                for this gender/grade in any event file
        """
        rankings_dir = self.rankings_dir(season)
        if not os.path.isdir(rankings_dir):
            raise RankingsNotFoundError(f"Rankings directory not found: {rankings_dir}")

        gender = gender_label(gender)
        categories = []

        for filepath in self._ranking_files(season):
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)

            category = next(
                (cat for cat in data.get('categories', [])
                 if cat.get('gender') == gender and cat.get('grade') == grade),
                None
            )
            if category is None:
                continue

            rows = [
                RankingRow(
                    rank=entry.get('rank'),
                    athlete=entry['athlete'],
                    team=entry['team'],
                    best_result=entry.get('bestResult', ''),
                    best_result_meet=entry.get('bestResultMeet', ''),
                    best_result_date=entry.get('bestResultDate', ''),
                    all_results=entry.get('allResults', [])
                )
                for entry in category.get('rankings', [])
            ]
            rows.sort(key=lambda row: rank_sort_value(row.rank))

            event_code = data['eventAbbr']
            categories.append(EventCategory(
                event_code=event_code,
                display_name=data.get('event', get_event_name(event_code)),
                gender=gender,
                grade=grade,
                rankings=rows
            ))

        if not categories:
            raise RankingsNotFoundError(
                f"No {gender} {grade} rankings found for season {season}"
            )

        categories.sort(key=lambda c: c.event_code)
        return categories

    def list_teams(self, season: str) -> List[str]:
        """
        Every team ranked in any event, gender or grade of a season

        Raises:
            RankingsNotFoundError: season directory missing
        """
        rankings_dir = self.rankings_dir(season)
        if not os.path.isdir(rankings_dir):
            raise RankingsNotFoundError(f"Rankings directory not found: {rankings_dir}")

        teams = set()
        for filepath in self._ranking_files(season):
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
            for category in data.get('categories', []):
                teams.update(entry['team'] for entry in category.get('rankings', []))
        return sorted(teams)

    def load_results_frame(self, season: str) -> pd.DataFrame:
        """
        Flatten stored result histories back into a tidy result table

        Used to merge a new import into an existing season. Returns an
        empty frame when the season has no rankings yet.
        """
        rankings_dir = self.rankings_dir(season)
        if not os.path.isdir(rankings_dir):
            return pd.DataFrame(columns=RESULT_COLUMNS)

        reverse_labels = {label: code for code, label in GENDER_LABELS.items()}
        records = []

        for filepath in self._ranking_files(season):
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)

            for category in data.get('categories', []):
                gender = reverse_labels.get(category.get('gender'), category.get('gender'))
                for entry in category.get('rankings', []):
                    for result in entry.get('allResults', []):
                        records.append({
                            'event': data['eventAbbr'],
                            'gender': gender,
                            'grade': category.get('grade'),
                            'athlete': entry['athlete'],
                            'team': result.get('team', entry['team']),
                            'result': result.get('result'),
                            'meet': result.get('meet'),
                            'date': result.get('date'),
                            'place': result.get('place')
                        })

        return pd.DataFrame(records, columns=RESULT_COLUMNS)


    # ------------------------------------------------------------------
    # Relay rankings
    # ------------------------------------------------------------------

    def save_relay_rankings(self, categories: List[RelayCategory],
                            season: str) -> List[str]:
        """
        Save relay categories to one JSON file per relay event

        Returns:
            Paths of the written files
        """
        rankings_dir = self.rankings_dir(season)
        os.makedirs(rankings_dir, exist_ok=True)

        by_event: Dict[str, List[RelayCategory]] = {}
        for category in categories:
            by_event.setdefault(category.event_code, []).append(category)

        written = []
        for event_code in sorted(by_event):
            event_categories = sorted(by_event[event_code],
                                      key=lambda c: (c.gender, c.grade))
            output = {
                'season': str(season),
                'event': get_relay_event_name(event_code),
                'eventAbbr': event_code,
                'type': 'relay',
                'generatedDate': datetime.now().isoformat(),
                'categories': [
                    {
                        'gender': category.gender,
                        'grade': category.grade,
                        'totalTeams': len(category.relay_teams),
                        'rankings': [
                            {
                                'rank': squad.rank,
                                'team': squad.team,
                                'athletes': squad.athletes,
                                'athleteDetails': squad.athlete_details,
                                'bestResult': squad.best_result,
                                'bestResultMeet': squad.best_result_meet,
                                'bestResultDate': squad.best_result_date,
                                'allResults': squad.all_results
                            }
                            for squad in category.relay_teams
                        ]
                    }
                    for category in event_categories
                ]
            }

            filepath = os.path.join(
                rankings_dir, RELAY_RANKINGS_FILE.format(season=season, event=event_code)
            )
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(output, f, indent=2, default=str)
            written.append(filepath)

        print(f"✓ Relay rankings saved to {rankings_dir}")
        print(f"  - Relay teams ranked: {sum(len(c.relay_teams) for c in categories)}")
        print(f"  - Events: {len(written)}")
        return written

    def load_relay_categories(self, season: str, gender: str,
                              grade: str) -> List[RelayCategory]:
        """
        Load every relay category of one gender and grade

        Raises:
            RankingsNotFoundError: season directory missing or no relay
                category for this gender/grade
        """
        rankings_dir = self.rankings_dir(season)
        if not os.path.isdir(rankings_dir):
            raise RankingsNotFoundError(f"Rankings directory not found: {rankings_dir}")

        gender = gender_label(gender)
        categories = []

        for filepath in self._ranking_files(season, RELAY_RANKINGS_FILE_PREFIX):
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)

            for category in data.get('categories', []):
                if category.get('gender') != gender or category.get('grade') != grade:
                    continue
                squads = [
                    RelayRanking(
                        rank=entry.get('rank'),
                        team=entry['team'],
                        athletes=entry.get('athletes', []),
                        athlete_details=entry.get('athleteDetails', []),
                        best_result=entry.get('bestResult', ''),
                        best_result_meet=entry.get('bestResultMeet', ''),
                        best_result_date=entry.get('bestResultDate', ''),
                        all_results=entry.get('allResults', [])
                    )
                    for entry in category.get('rankings', [])
                ]
                squads.sort(key=lambda squad: rank_sort_value(squad.rank))
                categories.append(RelayCategory(
                    event_code=data['eventAbbr'],
                    display_name=data.get('event', get_relay_event_name(data['eventAbbr'])),
                    gender=gender,
                    grade=grade,
                    relay_teams=squads
                ))

        if not categories:
            raise RankingsNotFoundError(
                f"No {gender} {grade} relay rankings found for season {season}"
            )

        categories.sort(key=lambda c: c.event_code)
        return categories

    def load_relay_frame(self, season: str) -> pd.DataFrame:
        """Flatten stored relay histories back into a tidy relay table"""
        rankings_dir = self.rankings_dir(season)
        if not os.path.isdir(rankings_dir):
            return pd.DataFrame(columns=RELAY_COLUMNS)

        reverse_labels = {label: code for code, label in GENDER_LABELS.items()}
        records = []

        for filepath in self._ranking_files(season, RELAY_RANKINGS_FILE_PREFIX):
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)

            for category in data.get('categories', []):
                gender = reverse_labels.get(category.get('gender'), category.get('gender'))
                for entry in category.get('rankings', []):
                    for result in entry.get('allResults', []):
                        record = {
                            'event': data['eventAbbr'],
                            'gender': gender,
                            'team': entry['team'],
                            'result': result.get('result'),
                            'meet': result.get('meet'),
                            'date': result.get('date'),
                            'place': result.get('place')
                        }
                        legs = result.get('athletes', [])
                        for i, (name_col, grade_col) in enumerate(
                                zip(RELAY_LEG_COLUMNS, RELAY_GRADE_COLUMNS)):
                            leg = legs[i] if i < len(legs) else {}
                            record[name_col] = leg.get('athlete')
                            record[grade_col] = leg.get('grade')
                        records.append(record)

        return pd.DataFrame(records, columns=RELAY_COLUMNS)

    # ------------------------------------------------------------------
    # Athlete histories
    # ------------------------------------------------------------------

    def athletes_dir(self, season: str) -> str:
        return os.path.join(self.output_dir, str(season), ATHLETES_SUBDIR)

    def athletes_file(self, season: str) -> str:
        return os.path.join(self.output_dir, str(season), ATHLETES_FILE)

    @staticmethod
    def history_filename(history: AthleteHistory) -> str:
        return f"{slugify(history.athlete)}__{slugify(history.team)}.json"

    @staticmethod
    def _history_to_dict(history: AthleteHistory) -> Dict[str, Any]:
        return {
            'athlete': history.athlete,
            'first_name': history.first_name,
            'last_name': history.last_name,
            'gender': history.gender,
            'grade': history.grade,
            'team': history.team,
            'results': {
                date: {'results': results}
                for date, results in sorted(history.results.items())
            }
        }

    @staticmethod
    def _history_from_dict(data: Dict[str, Any]) -> AthleteHistory:
        return AthleteHistory(
            athlete=data['athlete'],
            first_name=data.get('first_name', ''),
            last_name=data.get('last_name', ''),
            gender=data.get('gender', ''),
            grade=data.get('grade', ''),
            team=data.get('team', ''),
            results={
                date: list(day.get('results', []))
                for date, day in data.get('results', {}).items()
            }
        )

    def save_athlete_histories(self, histories: Dict[Tuple[str, str], AthleteHistory],
                               season: str, single_file: bool = False) -> List[str]:
        """
        Save athlete histories, one file per athlete or one file for all

        Returns:
            Paths of the written files
        """
        if not histories:
            print("⚠ No athletes to save")
            return []

        ordered = [histories[key] for key in sorted(histories)]

        if single_file:
            filepath = self.athletes_file(season)
            os.makedirs(os.path.dirname(filepath), exist_ok=True)
            output = {
                self.history_filename(h)[:-len('.json')]: self._history_to_dict(h)
                for h in ordered
            }
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(output, f, indent=2, default=str)
            written = [filepath]
        else:
            athletes_dir = self.athletes_dir(season)
            os.makedirs(athletes_dir, exist_ok=True)
            written = []
            for history in ordered:
                filepath = os.path.join(athletes_dir, self.history_filename(history))
                with open(filepath, 'w', encoding='utf-8') as f:
                    json.dump(self._history_to_dict(history), f, indent=2, default=str)
                written.append(filepath)

        print(f"✓ Athlete results saved ({len(ordered)} athletes, {len(written)} files)")
        return written

    def load_athlete_histories(self, season: str,
                               single_file: bool = False) -> Dict[Tuple[str, str], AthleteHistory]:
        """Stored athlete histories, empty when nothing was saved yet"""
        records = []

        if single_file:
            filepath = self.athletes_file(season)
            if os.path.isfile(filepath):
                with open(filepath, 'r', encoding='utf-8') as f:
                    records = list(json.load(f).values())
        else:
            athletes_dir = self.athletes_dir(season)
            if os.path.isdir(athletes_dir):
                for name in sorted(os.listdir(athletes_dir)):
                    if not name.endswith('.json'):
                        continue
                    with open(os.path.join(athletes_dir, name), 'r', encoding='utf-8') as f:
                        records.append(json.load(f))

        histories = {}
        for record in records:
            history = self._history_from_dict(record)
            histories[history.key] = history
        return histories

    # ------------------------------------------------------------------
    # Team recaps
    # ------------------------------------------------------------------

    def team_results_path(self, season: str, team: str) -> str:
        return os.path.join(self.output_dir, str(season), TEAM_RESULTS_SUBDIR,
                            TEAM_RESULTS_FILE.format(team=slugify(team)))

    def save_team_results(self, team: str, meets: List[Dict[str, Any]],
                          season: str) -> str:
        """Save one team's meet-by-meet recap"""
        filepath = self.team_results_path(season, team)
        os.makedirs(os.path.dirname(filepath), exist_ok=True)

        output = {
            'teamName': team,
            'season': str(season),
            'generatedDate': datetime.now().isoformat(),
            'meets': meets
        }
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, default=str)

        print(f"✓ Team results saved to {filepath}")
        print(f"  - Meets: {len(meets)}")
        print(f"  - Individual results: {sum(len(m['results']) for m in meets)}")
        relay_count = sum(len(m.get('relayResults', [])) for m in meets)
        if relay_count:
            print(f"  - Relay results: {relay_count}")
        return filepath

    def load_team_results(self, season: str, team: str) -> Dict[str, Any]:
        with open(self.team_results_path(season, team), 'r', encoding='utf-8') as f:
            return json.load(f)
