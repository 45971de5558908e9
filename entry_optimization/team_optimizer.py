"""
Main optimization engine for team meet entries
"""
import pulp
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from entry_optimization.config import (
    OPTIMIZATION_METHODS, SELECTION_SOLVERS, SELECTION_SOLVER, MAX_SOLUTION_TIME
)
from entry_optimization.constraint_handler import (
    EntryConstraintHandler, AthleteEventScore, get_points
)
from entry_optimization.competition_predictor import CompetitionPredictor, EntrantKey
from rankings_pipeline.ranking_store import (
    EventCategory, RankingRow, rank_sort_value, split_name
)
from rankings_pipeline.result_utils import is_track_event


@dataclass
class AthleteEntry:
    """Events selected for one athlete"""
    athlete: str
    first_name: str
    last_name: str
    events: List[str]  # selection order
    total_projected_points: int


@dataclass
class EventAthlete:
    """One athlete entered in an event"""
    athlete: str
    projected_place: int
    projected_points: int
    current_rank: int


@dataclass
class EventBreakdownEntry:
    """Athletes entered in one event"""
    event: str
    display_name: str
    athletes: List[EventAthlete] = field(default_factory=list)


@dataclass
class OptimizationResult:
    """Optimized entries for one team, gender and grade"""
    team: str
    gender: str
    grade: str
    method: str
    total_projected_points: int
    athlete_entries: List[AthleteEntry]
    event_breakdown: List[EventBreakdownEntry]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TeamEntryOptimizer:
    """
    Choose each athlete's events to maximize projected team points

    Projected place equals the current season rank. Subclasses change
    how the projected place is estimated.
    """

    method = 'simple'

    def __init__(self, constraint_handler: EntryConstraintHandler = None,
                 solver: str = SELECTION_SOLVER):
        """
        Initialize the optimizer

        Args:
            constraint_handler: EntryConstraintHandler instance
            solver: 'greedy' (sorted incremental selection) or 'mip'
                (exact integer program, PuLP/CBC)
        """
        if solver not in SELECTION_SOLVERS:
            raise ValueError(f"Unknown solver '{solver}', expected one of {SELECTION_SOLVERS}")
        self.constraint_handler = constraint_handler or EntryConstraintHandler()
        self.solver = solver

    # ------------------------------------------------------------------
    # Candidate scoring
    # ------------------------------------------------------------------

    def prepare_context(self, categories: List[EventCategory]) -> Any:
        """Per-run data shared by every projection (none for the simple method)"""
        return None

    def project_place(self, category: EventCategory, row: RankingRow, context: Any) -> int:
        """Projected finishing place of a ranked athlete"""
        return row.rank

    def score_candidates(self, categories: List[EventCategory],
                         team: str) -> Dict[EntrantKey, List[AthleteEventScore]]:
        """
        Build every candidate entry of the team's athletes

        Args:
            categories: Event categories (sorted, all teams)
            team: Exact team name

        Returns:
            (athlete, team) -> candidate entries, in first-seen order
        """
        context = self.prepare_context(categories)
        candidates: Dict[EntrantKey, List[AthleteEventScore]] = {}

        for category in categories:
            for row in category.rankings:
                if row.team != team:
                    continue

                projected_place = self.project_place(category, row, context)
                candidates.setdefault((row.athlete, row.team), []).append(AthleteEventScore(
                    athlete=row.athlete,
                    team=row.team,
                    event=category.event_code,
                    current_rank=row.rank,
                    projected_place=projected_place,
                    points=get_points(projected_place)
                ))

        return candidates

    # ------------------------------------------------------------------
    # Per-athlete event selection
    # ------------------------------------------------------------------

    @staticmethod
    def sort_candidates(candidates: List[AthleteEventScore]) -> List[AthleteEventScore]:
        """Points descending, then projected place ascending, then event code"""
        return sorted(
            candidates,
            key=lambda c: (-c.points, rank_sort_value(c.projected_place), c.event)
        )

    def select_events(self, candidates: List[AthleteEventScore]) -> List[AthleteEventScore]:
        """Pick the athlete's entries with the configured solver"""
        if self.solver == 'mip':
            return self.solve_mip(candidates)
        return self.select_greedy(candidates)

    def select_greedy(self, candidates: List[AthleteEventScore]) -> List[AthleteEventScore]:
        """
        Greedy incremental selection

        Candidates are taken best first; each is kept only if the entry
        stays valid. A rejected candidate is never retried. This is not a
        general solver: a high scoring distance double can block a better
        set of sprint entries (see solve_mip).
        """
        selected: List[AthleteEventScore] = []

        for candidate in self.sort_candidates(candidates):
            if len(selected) >= self.constraint_handler.max_events:
                break

            trial = [s.event for s in selected] + [candidate.event]
            if self.constraint_handler.is_valid_combination(trial):
                selected.append(candidate)

        return selected

    def solve_mip(self, candidates: List[AthleteEventScore]) -> List[AthleteEventScore]:
        """
        Exact selection using Mixed Integer Programming

        Maximizes the athlete's points subject to the entry cap and the
        distance double rule. With both distance events entered, at most
        one other running event fits, so a full entry always contains a
        field event. Remaining slots are then filled greedily with
        scoreless candidates so the entry matches the greedy shape.
        """
        ordered = self.sort_candidates(candidates)
        if not ordered:
            return []

        handler = self.constraint_handler
        prob = pulp.LpProblem("Athlete_Entry_Selection", pulp.LpMaximize)

        # x_i = 1 if candidate i is entered
        x = pulp.LpVariable.dicts("enter", range(len(ordered)), 0, 1, pulp.LpBinary)

        # OBJECTIVE: projected points
        prob += pulp.lpSum([c.points * x[i] for i, c in enumerate(ordered)])

        # CONSTRAINTS

        # 1. Entry cap
        prob += pulp.lpSum([x[i] for i in range(len(ordered))]) <= handler.max_events

        # 2. Distance double: other running events <= extra allowance when both entered
        double_idx = [i for i, c in enumerate(ordered) if c.event in handler.distance_double]
        if len(double_idx) == len(handler.distance_double):
            other_running = [
                i for i, c in enumerate(ordered)
                if is_track_event(c.event) and c.event not in handler.distance_double
            ]
            if other_running:
                prob += (
                    pulp.lpSum([x[i] for i in other_running])
                    <= handler.max_extra_running
                    + handler.max_events * (len(double_idx) - pulp.lpSum([x[i] for i in double_idx]))
                )

        solver = pulp.PULP_CBC_CMD(msg=False, timeLimit=MAX_SOLUTION_TIME)
        prob.solve(solver)

        if pulp.LpStatus[prob.status] != "Optimal":
            print(f"⚠ Entry selection failed with status: {pulp.LpStatus[prob.status]}, using greedy")
            return self.select_greedy(candidates)

        selected = [c for i, c in enumerate(ordered) if (pulp.value(x[i]) or 0) > 0.5]

        if not handler.is_valid_combination([c.event for c in selected]):
            print("⚠ Solver returned an invalid entry, using greedy")
            return self.select_greedy(candidates)

        # Fill open slots with what is left, best first
        for candidate in ordered:
            if len(selected) >= handler.max_events:
                break
            if candidate in selected:
                continue
            trial = [c.event for c in selected] + [candidate.event]
            if handler.is_valid_combination(trial):
                selected.append(candidate)

        # Keep selection order consistent with the sorted candidate order
        return [c for c in ordered if c in selected]

    # ------------------------------------------------------------------
    # Team optimization
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_categories(categories: List[EventCategory]) -> List[EventCategory]:
        """Copies sorted by event code with rows sorted by rank"""
        return [
            EventCategory(
                event_code=category.event_code,
                display_name=category.display_name,
                gender=category.gender,
                grade=category.grade,
                rankings=sorted(category.rankings, key=lambda row: rank_sort_value(row.rank))
            )
            for category in sorted(categories, key=lambda c: c.event_code)
        ]

    def optimize(self, categories: List[EventCategory], team: str,
                 gender: str, grade: str) -> OptimizationResult:
        """
        Optimize entries for a team

        Args:
            categories: Every event category of the gender/grade (all teams)
            team: Exact team name (resolve user input with match_team_name)
            gender: Gender label, passed through to the result
            grade: Grade label, passed through to the result

        Returns:
            OptimizationResult
        """
        categories = self.normalize_categories(categories)
        display_names = {c.event_code: c.display_name for c in categories}

        athlete_entries: List[AthleteEntry] = []
        event_entries: Dict[str, EventBreakdownEntry] = {}

        for (athlete, _), options in self.score_candidates(categories, team).items():
            selected = self.select_events(options)

            # Athletes without a legal event produce no entry
            if not selected:
                continue

            first_name, last_name = split_name(athlete)
            athlete_entries.append(AthleteEntry(
                athlete=athlete,
                first_name=first_name,
                last_name=last_name,
                events=[s.event for s in selected],
                total_projected_points=self.constraint_handler.calculate_entry_points(selected)
            ))

            for score in selected:
                if score.event not in event_entries:
                    event_entries[score.event] = EventBreakdownEntry(
                        event=score.event,
                        display_name=display_names[score.event]
                    )
                event_entries[score.event].athletes.append(EventAthlete(
                    athlete=athlete,
                    projected_place=score.projected_place,
                    projected_points=score.points,
                    current_rank=score.current_rank
                ))

        athlete_entries.sort(key=lambda a: a.total_projected_points, reverse=True)

        event_breakdown = [event_entries[event] for event in sorted(event_entries)]
        for entry in event_breakdown:
            entry.athletes.sort(key=lambda a: rank_sort_value(a.projected_place))

        return OptimizationResult(
            team=team,
            gender=gender,
            grade=grade,
            method=self.method,
            total_projected_points=sum(a.total_projected_points for a in athlete_entries),
            athlete_entries=athlete_entries,
            event_breakdown=event_breakdown
        )

    def validate_result(self, result: OptimizationResult) -> Tuple[bool, List[str]]:
        """
        Check every entry against the rules and the point totals

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        for entry in result.athlete_entries:
            is_valid, entry_errors = self.constraint_handler.validate_entry(entry.events)
            if not is_valid:
                errors.extend(f"{entry.athlete}: {e}" for e in entry_errors)

        athlete_total = sum(a.total_projected_points for a in result.athlete_entries)
        breakdown_total = sum(
            a.projected_points for e in result.event_breakdown for a in e.athletes
        )
        if not result.total_projected_points == athlete_total == breakdown_total:
            errors.append(
                f"Point totals disagree: team {result.total_projected_points}, "
                f"athletes {athlete_total}, events {breakdown_total}"
            )

        return len(errors) == 0, errors


class SimpleTeamEntryOptimizer(TeamEntryOptimizer):
    """Assumes every athlete finishes at their current season rank"""

    method = 'simple'


class AdvancedTeamEntryOptimizer(TeamEntryOptimizer):
    """Projects places against the athletes other teams will likely enter"""

    method = 'advanced'

    def __init__(self, constraint_handler: EntryConstraintHandler = None,
                 solver: str = SELECTION_SOLVER,
                 predictor: Optional[CompetitionPredictor] = None):
        super().__init__(constraint_handler, solver)
        self.predictor = predictor or CompetitionPredictor()

    def prepare_context(self, categories: List[EventCategory]) -> Any:
        return self.predictor.predict_likely_entrants(categories)

    def project_place(self, category: EventCategory, row: RankingRow, context: Any) -> int:
        return self.predictor.calculate_projected_place(
            category, row.rank, context.get(category.event_code, set())
        )


def create_optimizer(method: str, solver: str = SELECTION_SOLVER) -> TeamEntryOptimizer:
    """Optimizer for 'simple' or 'advanced'"""
    if method == 'simple':
        return SimpleTeamEntryOptimizer(solver=solver)
    if method == 'advanced':
        return AdvancedTeamEntryOptimizer(solver=solver)
    raise ValueError(f"Unknown method '{method}', expected one of {OPTIMIZATION_METHODS}")
