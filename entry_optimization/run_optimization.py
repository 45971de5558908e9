"""
Main script for running team entry optimization
"""
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
import re
import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console

from entry_optimization.config import (
    OPTIMIZED_ENTRIES_SUBDIR, OPTIMIZATION_METHODS, OPTIMIZATION_METHOD,
    SELECTION_SOLVERS, SELECTION_SOLVER, GENDERS, GRADES, RESULT_FILE
)
from entry_optimization.team_optimizer import OptimizationResult, create_optimizer
from entry_optimization.result_viewer import ResultViewer
from rankings_pipeline.config import TRACK_OUTPUT_DIR
from rankings_pipeline.ranking_store import (
    RankingStore, RankingsNotFoundError, match_team_name
)


def normalize_gender(answer: str) -> str:
    """'M', 'male', 'Boys'... -> 'Male'; anything else -> 'Female'"""
    answer = answer.strip().lower()
    if not answer:
        raise ValueError("Gender is required")
    return 'Male' if answer.startswith('m') or answer.startswith('b') else 'Female'


def normalize_grade(answer: str) -> str:
    """'7th' -> '7th grade'"""
    answer = answer.strip()
    if not answer:
        raise ValueError("Grade is required")
    return answer if 'grade' in answer.lower() else f"{answer} grade"


def output_prefix(team: str, gender: str, grade: str) -> str:
    """File name stem for one team/gender/grade"""
    return "_".join(re.sub(r'\s+', '_', part.strip()) for part in (team, gender, grade))


def optimize_team_entry(store: RankingStore, season: str, team_query: str,
                        gender: str, grade: str,
                        method: str = OPTIMIZATION_METHOD,
                        solver: str = SELECTION_SOLVER) -> OptimizationResult:
    """
    Load rankings and optimize one team/gender/grade

    Args:
        store: Ranking store
        season: Season label
        team_query: Team name as typed by the user
        gender: 'Male' or 'Female'
        grade: e.g. '7th grade'
        method: 'simple' or 'advanced'
        solver: 'greedy' or 'mip'

    Returns:
        OptimizationResult

    Raises:
        RankingsNotFoundError: no rankings for this season/gender/grade
        TeamNotFoundError: no team in the season matches the query
        AmbiguousTeamError: the query matches several teams
    """
    categories = store.load_categories(season, gender, grade)
    # A team known to the season but absent from this scope gets an empty entry
    team = match_team_name(store.list_teams(season), team_query)

    optimizer = create_optimizer(method, solver)
    result = optimizer.optimize(categories, team, gender, grade)

    is_valid, errors = optimizer.validate_result(result)
    if not is_valid:
        print(f"⚠ Entry validation failed with {len(errors)} errors")
        for error in errors[:3]:
            print(f"  - {error}")

    return result


def save_optimization_result(result: OptimizationResult, output_dir: str) -> str:
    """
    Save an optimization result as JSON

    Returns:
        Path to saved file
    """
    os.makedirs(output_dir, exist_ok=True)
    filename = RESULT_FILE.format(
        prefix=output_prefix(result.team, result.gender, result.grade),
        method=result.method
    )
    filepath = os.path.join(output_dir, filename)

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2, default=str)

    return filepath


def run_optimization(season: str, team_query: str,
                     scopes: List[Tuple[str, str]],
                     method: str = OPTIMIZATION_METHOD,
                     solver: str = SELECTION_SOLVER,
                     output_dir: str = TRACK_OUTPUT_DIR,
                     save_result: bool = True,
                     console: Optional[Console] = None) -> List[OptimizationResult]:
    """
    Optimize every requested gender/grade for a team

    With a single scope a missing ranking set is an error; with several
    scopes missing combinations are skipped.
    """
    store = RankingStore(output_dir)
    viewer = ResultViewer(console)
    results = []

    print(f"\nOptimizing entries for '{team_query}' ({method.upper()}, {solver})...")

    for gender, grade in scopes:
        try:
            result = optimize_team_entry(store, season, team_query, gender, grade,
                                         method, solver)
        except RankingsNotFoundError as e:
            if len(scopes) == 1:
                raise
            print(f"  ⚠ No data for {gender} {grade}: {e}")
            continue

        print(f"  ✓ {result.gender} {result.grade}: {result.total_projected_points} points")
        results.append(result)

    if save_result:
        for result in results:
            team_dir = os.path.join(output_dir, str(season), OPTIMIZED_ENTRIES_SUBDIR,
                                    re.sub(r'\s+', '_', result.team))
            filepath = save_optimization_result(result, team_dir)
            print(f"  ✅ Results saved to: {filepath}")

    for result in results:
        viewer.display_result(result.to_dict())

    if len(results) > 1:
        viewer.display_summary([r.to_dict() for r in results])

    return results


def main() -> int:
    """Main entry point for team entry optimization"""
    parser = argparse.ArgumentParser(description='Track & Field Team Entry Optimization')
    parser.add_argument('--season', '-s', help='Season year, e.g. 2025')
    parser.add_argument('--team', '-t', help='School/team name (case-insensitive, partial ok)')
    parser.add_argument('--gender', '-g', help='Male/Female or M/F')
    parser.add_argument('--grade', help='Grade, e.g. "7th" or "7th grade"')
    parser.add_argument('--all', action='store_true',
                        help='Optimize every gender and grade')
    parser.add_argument('--method', '-m', choices=OPTIMIZATION_METHODS,
                        default=OPTIMIZATION_METHOD, help='Placement projection method')
    parser.add_argument('--solver', choices=SELECTION_SOLVERS,
                        default=SELECTION_SOLVER, help='Per-athlete event selection')
    parser.add_argument('--output-dir', '-o', default=TRACK_OUTPUT_DIR,
                        help='Track output directory')
    parser.add_argument('--no-save', action='store_true', help='Do not save results')
    parser.add_argument('--view', type=Path, help='Show a saved result file and exit')

    args = parser.parse_args()

    if args.view:
        ResultViewer().view_result(args.view)
        return 0

    if not args.season or not args.team:
        parser.error('--season and --team are required')

    if args.all:
        scopes = [(gender, grade) for gender in GENDERS for grade in GRADES]
    else:
        if not args.gender or not args.grade:
            parser.error('--gender and --grade are required unless --all is given')
        try:
            scopes = [(normalize_gender(args.gender), normalize_grade(args.grade))]
        except ValueError as e:
            parser.error(str(e))

    try:
        results = run_optimization(
            season=args.season,
            team_query=args.team,
            scopes=scopes,
            method=args.method,
            solver=args.solver,
            output_dir=args.output_dir,
            save_result=not args.no_save
        )
    except (RankingsNotFoundError, LookupError, ValueError) as e:
        print(f"\n❌ ERROR: {e}")
        return 1

    if not results:
        print("\n❌ ERROR: No ranking data found for this team")
        return 1

    total_points = sum(r.total_projected_points for r in results)
    print(f"\nTotal Projected Points (all categories): {total_points}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
