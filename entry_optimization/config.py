"""
Configuration for team entry optimization
"""

# Output layout: <TRACK_OUTPUT_DIR>/<season>/optimized_entries/<team>/
OPTIMIZED_ENTRIES_SUBDIR = 'optimized_entries'

# Meet scoring: place -> points, anything else scores 0
POINTS_TABLE = {
    1: 8,
    2: 6,
    3: 4,
    4: 2,
    5: 1
}

# Entry rules
MAX_EVENTS_PER_ATHLETE = 4
DISTANCE_DOUBLE_EVENTS = ('1600', '800')
MAX_EXTRA_RUNNING_EVENTS = 1  # besides the distance double

# Competition prediction: each team is assumed to enter its top N per event
LIKELY_ENTRANTS_PER_TEAM = 3

# Optimization settings
OPTIMIZATION_METHODS = ('simple', 'advanced')
OPTIMIZATION_METHOD = 'advanced'
SELECTION_SOLVERS = ('greedy', 'mip')
SELECTION_SOLVER = 'greedy'  # 'greedy' (historical) or 'mip' (exact, PuLP/CBC)
MAX_SOLUTION_TIME = 10  # seconds per athlete

# Scope used by --all
GENDERS = ['Male', 'Female']
GRADES = ['5th grade', '6th grade', '7th grade', '8th grade']

# Output file name: <team>_<gender>_<grade>_<method>.json
RESULT_FILE = '{prefix}_{method}.json'
