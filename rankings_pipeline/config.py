"""
Configuration settings for the rankings pipeline
"""
import os

# Base paths
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
OUTPUT_DIR = os.path.join(BASE_DIR, 'output')
TRACK_OUTPUT_DIR = os.path.join(OUTPUT_DIR, 'track')

# Ranking store layout: <TRACK_OUTPUT_DIR>/<season>/rankings/<file>
RANKINGS_SUBDIR = 'rankings'
RANKINGS_FILE_PREFIX = 'event_rankings_{season}_'
RANKINGS_FILE = RANKINGS_FILE_PREFIX + '{event}.json'
RELAY_RANKINGS_FILE_PREFIX = 'relay_rankings_{season}_'
RELAY_RANKINGS_FILE = RELAY_RANKINGS_FILE_PREFIX + '{event}.json'

# Athlete histories: <season>/individual_athletes/<athlete>__<team>.json
# or a single <season>/individual_results.json
ATHLETES_SUBDIR = 'individual_athletes'
ATHLETES_FILE = 'individual_results.json'

# Team recaps: <season>/team_results/team_results_<team>.json
TEAM_RESULTS_SUBDIR = 'team_results'
TEAM_RESULTS_FILE = 'team_results_{team}.json'

# Timed events, everything else is measured
TRACK_EVENTS = (
    '60', '100', '200', '400', '800', '1600', '3200',
    '4x100', '4x200', '4x400', '4x800'
)

EVENT_NAMES = {
    '60': '60m',
    '100': '100m',
    '200': '200m',
    '400': '400m',
    '800': '800m',
    '1600': '1600m',
    '3200': '3200m',
    '4x100': '4x100m Relay',
    '4x200': '4x200m Relay',
    '4x400': '4x400m Relay',
    '4x800': '4x800m Relay',
    'LJ': 'Long Jump',
    'HJ': 'High Jump',
    'TJ': 'Triple Jump',
    'PV': 'Pole Vault',
    'SP': 'Shot Put',
    'DT': 'Discus Throw',
    'JT': 'Javelin Throw'
}

# Marks that never count toward a ranking
INVALID_RESULTS = ('DNS', 'DNF', 'DQ', 'NH', 'FOUL', 'FS', 'SCR')

# Result exports use single letters, the store uses full labels
GENDER_LABELS = {
    'M': 'Male',
    'F': 'Female'
}

# Columns expected in a tidy result table
RESULT_COLUMNS = ['event', 'gender', 'grade', 'athlete', 'team',
                  'result', 'meet', 'date', 'place']

# Relay events and their display names, unknown codes become "<code> Relay"
RELAY_EVENT_NAMES = {
    '4x100': '4x100m Relay',
    '4x200': '4x200m Relay',
    '4x400': '4x400m Relay',
    '4x800': '4x800m Relay',
    '400S': '4x400m Relay',
    '800S': '4x800m Relay',
    'DMRS': 'Distance Medley Relay',
    'MRS': 'Medley Relay'
}

# Columns expected in a tidy relay table, one row per relay run
RELAY_LEGS = 4
RELAY_LEG_COLUMNS = [f'athlete_{leg}' for leg in range(1, RELAY_LEGS + 1)]
RELAY_GRADE_COLUMNS = [f'grade_{leg}' for leg in range(1, RELAY_LEGS + 1)]
RELAY_COLUMNS = (['event', 'gender', 'team', 'result', 'meet', 'date', 'place']
                 + RELAY_LEG_COLUMNS + RELAY_GRADE_COLUMNS)
