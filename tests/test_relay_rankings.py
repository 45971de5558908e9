"""
Tests for relay rankings: squad grading, squad identity, season merge and
the relay files in the JSON store.

Run with: python -m pytest tests/test_relay_rankings.py -v
"""

import json

import pandas as pd
import pytest

from rankings_pipeline.ranking_store import RankingStore, RankingsNotFoundError
from rankings_pipeline.relay_rankings import (
    RelayRankingsBuilder, determine_relay_grade, squad_id
)
from rankings_pipeline.result_utils import is_relay_event, get_relay_event_name

RELAY_TABLE_COLUMNS = ['event', 'gender', 'team', 'result', 'meet', 'date',
                       'athlete_1', 'athlete_2', 'athlete_3', 'athlete_4',
                       'grade_1', 'grade_2', 'grade_3', 'grade_4']


def relay_table(rows):
    """rows: (event, gender, team, result, meet, date, 4 athletes, 4 grades)"""
    return pd.DataFrame(rows, columns=RELAY_TABLE_COLUMNS)


SEVENTH = ('7th grade',) * 4


@pytest.fixture
def spring_relays():
    return relay_table([
        ('4x100', 'M', 'Saint Michael', '52.10', 'Opener', '2025-03-01',
         'Ava Stone', 'Jude King', 'Noah Park', 'Liam Roe',
         '7th grade', '7th grade', '7th grade', '8th grade'),
        # Same four runners in a different order
        ('4x100', 'M', 'Saint Michael', '51.80', 'Relays', '2025-03-15',
         'Noah Park', 'Liam Roe', 'Ava Stone', 'Jude King',
         '7th grade', '8th grade', '7th grade', '7th grade'),
        ('4x100', 'M', 'Saint Michael', '52.50', 'Opener', '2025-03-01',
         'Ava Stone', 'Jude King', 'Noah Park', 'Eli Grant') + SEVENTH,
        ('4x100', 'M', 'Holy Cross', '51.90', 'Opener', '2025-03-01',
         'Sam Hart', 'Max Bell', 'Leo Dunn', 'Ian Fox') + SEVENTH,
        ('4x100', 'M', 'Holy Cross', 'DQ', 'Relays', '2025-03-15',
         'Sam Hart', 'Max Bell', 'Leo Dunn', 'Ian Fox') + SEVENTH,
        ('4x400', 'F', 'Saint Michael', '4:40.00', 'Opener', '2025-03-01',
         'Mia Cole', 'Ivy Lane', 'Zoe Park', 'Amy Shaw') + ('6th grade',) * 4,
    ])


@pytest.fixture
def relay_builder(tmp_path):
    return RelayRankingsBuilder(RankingStore(str(tmp_path)))


class TestRelayHelpers:

    def test_relay_events(self):
        assert is_relay_event('4x100')
        assert is_relay_event('DMRS')
        assert not is_relay_event('100')
        assert get_relay_event_name('4x400') == '4x400m Relay'
        assert get_relay_event_name('4x50') == '4x50 Relay'

    def test_grade_is_the_most_common_leg_grade(self):
        assert determine_relay_grade(['7th grade', '8th grade', '7th grade', '7th grade']) \
            == '7th grade'

    def test_grade_tie_goes_to_earliest_leg(self):
        assert determine_relay_grade(['8th grade', '7th grade', '7th grade', '8th grade']) \
            == '8th grade'

    def test_blank_grades_ignored(self):
        assert determine_relay_grade(['', '6th grade', '']) == '6th grade'
        assert determine_relay_grade(['', '']) == ''

    def test_squad_ignores_running_order(self):
        assert squad_id('Saint Michael', ['Ava', 'Jude', 'Noah']) == \
            squad_id('Saint Michael', ['Noah', 'Ava', 'Jude'])
        assert squad_id('Saint Michael', ['Ava']) != squad_id('Holy Cross', ['Ava'])


class TestRelayRankingsBuilder:

    def test_categories_by_event_gender_grade(self, relay_builder, spring_relays):
        categories = relay_builder.build(spring_relays)
        assert [(c.event_code, c.gender, c.grade) for c in categories] == [
            ('4x100', 'Male', '7th grade'),
            ('4x400', 'Female', '6th grade'),
        ]
        assert categories[1].display_name == '4x400m Relay'

    def test_squads_ranked_by_best_time(self, relay_builder, spring_relays):
        squads = relay_builder.build(spring_relays)[0].relay_teams

        assert [(s.rank, s.team, s.best_result) for s in squads] == [
            (1, 'Saint Michael', '51.80'),
            (2, 'Holy Cross', '51.90'),
            (3, 'Saint Michael', '52.50'),
        ]
        assert squads[0].athletes == ['Ava Stone', 'Jude King', 'Liam Roe', 'Noah Park']
        assert squads[0].best_result_meet == 'Relays'
        assert len(squads[0].all_results) == 2

    def test_best_run_keeps_leg_order(self, relay_builder, spring_relays):
        best = relay_builder.build(spring_relays)[0].relay_teams[0]
        assert [leg['athlete'] for leg in best.athlete_details] == \
            ['Noah Park', 'Liam Roe', 'Ava Stone', 'Jude King']

    def test_invalid_marks_dropped(self, relay_builder, spring_relays):
        holy_cross = relay_builder.build(spring_relays)[0].relay_teams[1]
        assert [r['result'] for r in holy_cross.all_results] == ['51.90']

    def test_plain_grade_column_fills_legs(self, relay_builder):
        relays = pd.DataFrame([{
            'event': '4x200', 'gender': 'F', 'team': 'Holy Cross', 'result': '2:01.00',
            'grade': '5th grade', 'athlete_1': 'Ivy Lane', 'athlete_2': 'Amy Shaw'
        }])
        category = relay_builder.build(relays)[0]
        assert category.grade == '5th grade'
        assert [leg['grade'] for leg in category.relay_teams[0].athlete_details] == \
            ['5th grade', '5th grade']

    def test_missing_columns(self, relay_builder):
        with pytest.raises(ValueError, match='athlete_1'):
            relay_builder.build(pd.DataFrame({'event': ['4x100'], 'gender': ['M'],
                                              'team': ['Holy Cross'], 'result': ['50.00']}))

    def test_only_invalid_marks(self, relay_builder, spring_relays):
        assert relay_builder.build(spring_relays.assign(result='DNF')) == []


class TestRelayStore:

    def test_file_layout(self, tmp_path, relay_builder, spring_relays):
        relay_builder.process_season(spring_relays, '2025')

        rankings_dir = tmp_path / '2025' / 'rankings'
        assert sorted(p.name for p in rankings_dir.iterdir()) == [
            'relay_rankings_2025_4x100.json',
            'relay_rankings_2025_4x400.json',
        ]
        with open(rankings_dir / 'relay_rankings_2025_4x100.json', encoding='utf-8') as f:
            data = json.load(f)
        assert data['type'] == 'relay'
        assert data['categories'][0]['totalTeams'] == 3
        assert data['categories'][0]['rankings'][0]['bestResult'] == '51.80'

    def test_load_relay_categories(self, tmp_path, relay_builder, spring_relays):
        relay_builder.process_season(spring_relays, '2025')
        categories = RankingStore(str(tmp_path)).load_relay_categories('2025', 'F', '6th grade')

        assert [c.event_code for c in categories] == ['4x400']
        assert categories[0].relay_teams[0].team == 'Saint Michael'

    def test_missing_relay_scope(self, tmp_path, relay_builder, spring_relays):
        relay_builder.process_season(spring_relays, '2025')
        with pytest.raises(RankingsNotFoundError):
            RankingStore(str(tmp_path)).load_relay_categories('2025', 'Male', '8th grade')

    def test_relays_do_not_mix_with_event_rankings(self, tmp_path, relay_builder,
                                                   spring_relays):
        relay_builder.process_season(spring_relays, '2025')
        store = RankingStore(str(tmp_path))
        assert store.load_results_frame('2025').empty
        with pytest.raises(RankingsNotFoundError):
            store.load_categories('2025', 'Male', '7th grade')

    def test_relay_frame_round_trip(self, tmp_path, relay_builder, spring_relays):
        relay_builder.process_season(spring_relays, '2025')
        frame = RankingStore(str(tmp_path)).load_relay_frame('2025')

        assert len(frame) == 5
        assert set(frame['gender']) == {'M', 'F'}

    def test_merge_with_stored_relays(self, tmp_path, relay_builder, spring_relays):
        relay_builder.process_season(spring_relays, '2025')

        update = relay_table([
            # Re-import of a stored run in another leg order: replaces it
            ('4x100', 'M', 'Holy Cross', '51.95', 'Opener', '2025-03-01',
             'Ian Fox', 'Max Bell', 'Leo Dunn', 'Sam Hart') + SEVENTH,
            ('4x100', 'M', 'Holy Cross', '51.20', 'County', '2025-04-05',
             'Sam Hart', 'Max Bell', 'Leo Dunn', 'Ian Fox') + SEVENTH,
        ])
        relay_builder.process_season(update, '2025')

        squads = RankingStore(str(tmp_path)).load_relay_categories(
            '2025', 'Male', '7th grade')[0].relay_teams
        assert [(s.team, s.best_result) for s in squads] == [
            ('Holy Cross', '51.20'),
            ('Saint Michael', '51.80'),
            ('Saint Michael', '52.50'),
        ]
        assert sorted(r['result'] for r in squads[0].all_results) == ['51.20', '51.95']
