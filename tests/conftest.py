"""Shared fixtures for the entry optimizer tests."""

import os
import sys
import pandas as pd
import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from rankings_pipeline.ranking_store import EventCategory, RankingRow
from rankings_pipeline.result_utils import get_event_name


def build_category(event, rows, gender='Male', grade='7th grade'):
    """rows: iterable of (rank, athlete, team)"""
    return EventCategory(
        event_code=event,
        display_name=get_event_name(event),
        gender=gender,
        grade=grade,
        rankings=[RankingRow(rank=rank, athlete=athlete, team=team)
                  for rank, athlete, team in rows],
    )


@pytest.fixture
def make_category():
    return build_category


@pytest.fixture
def season_categories():
    """A small Male 7th grade season: two teams, seven events."""
    return [
        build_category('100', [
            (1, 'Ava Stone', 'Saint Michael'),
            (2, 'Liam Reed', 'Holy Cross'),
            (3, 'Noah Park', 'Saint Michael'),
            (4, 'Eli Grant', 'Holy Cross'),
            (5, 'Mia Cole', 'Saint Michael'),
            (6, 'Owen Hart', 'Holy Cross'),
        ]),
        build_category('200', [
            (1, 'Liam Reed', 'Holy Cross'),
            (2, 'Ava Stone', 'Saint Michael'),
            (3, 'Noah Park', 'Saint Michael'),
            (4, 'Owen Hart', 'Holy Cross'),
        ]),
        build_category('400', [
            (1, 'Ava Stone', 'Saint Michael'),
            (2, 'Eli Grant', 'Holy Cross'),
            (3, 'Jude King', 'Saint Michael'),
        ]),
        build_category('800', [
            (1, 'Jude King', 'Saint Michael'),
            (2, 'Eli Grant', 'Holy Cross'),
            (3, 'Ava Stone', 'Saint Michael'),
        ]),
        build_category('1600', [
            (1, 'Eli Grant', 'Holy Cross'),
            (2, 'Jude King', 'Saint Michael'),
            (3, 'Owen Hart', 'Holy Cross'),
        ]),
        build_category('LJ', [
            (1, 'Noah Park', 'Saint Michael'),
            (2, 'Jude King', 'Saint Michael'),
            (3, 'Liam Reed', 'Holy Cross'),
            (4, 'Ava Stone', 'Saint Michael'),
        ]),
        build_category('SP', [
            (1, 'Owen Hart', 'Holy Cross'),
            (2, 'Mia Cole', 'Saint Michael'),
            (3, 'Jude King', 'Saint Michael'),
        ]),
    ]


@pytest.fixture
def season_results():
    """Meet results for two teams, one invalid mark and a namesake."""
    return pd.DataFrame([
        ('100', 'M', '7th grade', 'Ava Stone', 'Saint Michael', '12.50', 'Opener', '2025-03-01', '2'),
        ('LJ', 'M', '7th grade', 'Ava Stone', 'Saint Michael', '14-02.00', 'Opener', '2025-03-01', '1'),
        ('100', 'M', '7th grade', 'Ava Stone', 'Saint Michael', '12.30', 'Relays', '2025-03-15', '1'),
        ('100', 'M', '7th grade', 'Liam Reed', 'Holy Cross', '12.40', 'Opener', '2025-03-01', '1'),
        ('200', 'M', '7th grade', 'Liam Reed', 'Holy Cross', 'DNS', 'Opener', '2025-03-01', ''),
        ('100', 'F', '6th grade', 'Mia Cole', 'Saint Michael', '13.90', 'Opener', '2025-03-01', '1'),
        # Same name, different team
        ('100', 'M', '7th grade', 'Ava Stone', 'Holy Cross', '13.00', 'Opener', '2025-03-01', ''),
    ], columns=['event', 'gender', 'grade', 'athlete', 'team', 'result', 'meet', 'date', 'place'])


@pytest.fixture
def season_relays():
    return pd.DataFrame([{
        'event': '4x100', 'gender': 'M', 'team': 'Saint Michael', 'result': '51.80',
        'meet': 'Relays', 'date': '2025-03-15', 'place': '1',
        'athlete_1': 'Ava Stone', 'athlete_2': 'Jude King',
        'grade_1': '7th grade', 'grade_2': '7th grade',
    }])
