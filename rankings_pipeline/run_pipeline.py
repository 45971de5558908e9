"""
Build or update a season's rankings, athlete histories and team recaps
from tidy result tables
"""
import sys
import os
import argparse
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd
from typing import List, Optional

from rankings_pipeline.config import TRACK_OUTPUT_DIR
from rankings_pipeline.ranking_store import RankingStore
from rankings_pipeline.rankings_builder import EventRankingsBuilder
from rankings_pipeline.relay_rankings import RelayRankingsBuilder
from rankings_pipeline.athlete_results import AthleteResultsBuilder
from rankings_pipeline.team_results import TeamResultsExtractor


def load_result_tables(paths: List[str]) -> pd.DataFrame:
    """Read one or more result CSVs into a single frame"""
    frames = []
    for path in paths:
        print(f"  Reading {path}...")
        df = pd.read_csv(path, dtype=str)
        print(f"    Read {len(df)} rows")
        frames.append(df)
    return pd.concat(frames, ignore_index=True)


def run_pipeline(paths: List[str], season: str,
                 output_dir: str = TRACK_OUTPUT_DIR,
                 merge: bool = True,
                 relay_paths: Optional[List[str]] = None,
                 team: Optional[str] = None,
                 all_teams: bool = False,
                 athletes: bool = False,
                 athlete_team: Optional[str] = None,
                 single_file: bool = False) -> bool:
    """Run the rankings pipeline"""
    print("\n" + "="*70)
    print("TRACK & FIELD - SEASON RANKINGS")
    print(f"Season: {season}")
    print("="*70 + "\n")

    store = RankingStore(output_dir)
    builder = EventRankingsBuilder(store)

    print("STEP 1: Reading results...")
    try:
        results = load_result_tables(paths)
        relays = load_result_tables(relay_paths) if relay_paths else None
    except (OSError, pd.errors.ParserError) as e:
        print(f"✗ Could not read results: {e}")
        return False

    print("\nSTEP 2: Building event rankings...")
    try:
        categories = builder.process_season(results, season, merge=merge)
    except ValueError as e:
        print(f"✗ {e}")
        return False

    if not categories:
        print("✗ No valid results to rank.")
        return False

    print("\nRanked athletes per event:")
    for event_code, count in sorted(builder.summarize(categories).items()):
        print(f"  {event_code:8}: {count:5}")

    if relays is not None:
        print("\nSTEP 3: Building relay rankings...")
        try:
            relay_categories = RelayRankingsBuilder(store).process_season(
                relays, season, merge=merge
            )
        except ValueError as e:
            print(f"✗ {e}")
            return False
        print(f"  Relay categories: {len(relay_categories)}")

    if team or all_teams:
        print("\nSTEP 4: Extracting team results...")
        extractor = TeamResultsExtractor(store)
        try:
            if all_teams:
                counts = extractor.process_all_teams(results, season, relays)
                print(f"  Teams: {len(counts)}")
            else:
                extractor.process_team(results, team, season, relays)
        except LookupError as e:
            print(f"✗ {e}")
            return False

    if athletes or athlete_team:
        print("\nSTEP 5: Generating athlete results...")
        AthleteResultsBuilder(store).process_season(
            results, season, relays=relays, merge=merge,
            single_file=single_file, team=athlete_team
        )

    print("\n" + "="*70)
    print("PIPELINE COMPLETED SUCCESSFULLY!")
    print("="*70)
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description='Build season rankings and recaps')
    parser.add_argument('results', nargs='+', help='Result CSV file(s)')
    parser.add_argument('--season', '-s', required=True, help='Season year, e.g. 2025')
    parser.add_argument('--output-dir', '-o', default=TRACK_OUTPUT_DIR,
                        help='Track output directory')
    parser.add_argument('--no-merge', action='store_true',
                        help='Replace stored data instead of merging')
    parser.add_argument('--relays', nargs='*', default=None,
                        help='Relay CSV file(s)')
    team_group = parser.add_mutually_exclusive_group()
    team_group.add_argument('--team', help='Save a meet-by-meet recap for this team')
    team_group.add_argument('--all-teams', action='store_true',
                            help='Save a recap for every team')
    parser.add_argument('--athletes', action='store_true',
                        help='Save per-athlete season histories')
    parser.add_argument('--athlete-team',
                        help='Only save histories for athletes of this team')
    parser.add_argument('--single-file', action='store_true',
                        help='Store athlete histories in one JSON file')
    args = parser.parse_args()

    success = run_pipeline(args.results, args.season, args.output_dir,
                           merge=not args.no_merge,
                           relay_paths=args.relays,
                           team=args.team,
                           all_teams=args.all_teams,
                           athletes=args.athletes,
                           athlete_team=args.athlete_team,
                           single_file=args.single_file)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
