"""
Team Entry Optimization Module for track & field meets

Selects, per athlete, the events that maximize projected team points
under the meet entry rules:
- at most 4 events per athlete
- the 1600/800 distance double allows one more running event, and a
  full entry then needs a field event

Key components:
- EntryConstraintHandler: Enforces the entry rules
- CompetitionPredictor: Estimates who other teams will enter
- SimpleTeamEntryOptimizer: Projects places from current ranks
- AdvancedTeamEntryOptimizer: Projects places against likely entrants
- ResultViewer: Terminal view of optimized entries
"""

from .config import (
    POINTS_TABLE, MAX_EVENTS_PER_ATHLETE, DISTANCE_DOUBLE_EVENTS,
    LIKELY_ENTRANTS_PER_TEAM, OPTIMIZATION_METHOD, SELECTION_SOLVER
)
from .constraint_handler import EntryConstraintHandler, AthleteEventScore, get_points
from .competition_predictor import CompetitionPredictor
from .team_optimizer import (
    TeamEntryOptimizer, SimpleTeamEntryOptimizer, AdvancedTeamEntryOptimizer,
    AthleteEntry, EventAthlete, EventBreakdownEntry, OptimizationResult,
    create_optimizer
)
from .result_viewer import ResultViewer

__all__ = [
    'EntryConstraintHandler',
    'AthleteEventScore',
    'get_points',
    'CompetitionPredictor',
    'TeamEntryOptimizer',
    'SimpleTeamEntryOptimizer',
    'AdvancedTeamEntryOptimizer',
    'AthleteEntry',
    'EventAthlete',
    'EventBreakdownEntry',
    'OptimizationResult',
    'create_optimizer',
    'ResultViewer',
    'POINTS_TABLE',
    'MAX_EVENTS_PER_ATHLETE',
    'DISTANCE_DOUBLE_EVENTS',
    'LIKELY_ENTRANTS_PER_TEAM',
    'OPTIMIZATION_METHOD',
    'SELECTION_SOLVER'
]

__version__ = '1.0.0'
