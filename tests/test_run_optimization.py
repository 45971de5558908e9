"""
Tests for the optimization script: input normalisation, saving results
and the command line entry point.

Run with: python -m pytest tests/test_run_optimization.py -v
"""

import io
import json
import sys

import pytest
from rich.console import Console

from entry_optimization import run_optimization as script
from entry_optimization.result_viewer import ResultViewer
from entry_optimization.team_optimizer import OptimizationResult
from rankings_pipeline.ranking_store import (
    RankingStore, RankingsNotFoundError, TeamNotFoundError, AmbiguousTeamError
)


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def track_dir(tmp_path, season_categories, make_category):
    store = RankingStore(str(tmp_path))
    girls = [
        make_category('100', [(1, 'Mia Cole', 'Saint Michael'), (2, 'Ivy Lane', 'Holy Cross'),
                             (3, 'Zoe Park', 'Sacred Heart')],
                      gender='Female', grade='6th grade'),
    ]
    store.save_event_rankings(season_categories + girls, '2025')
    return tmp_path


class TestNormalisation:

    @pytest.mark.parametrize("answer,expected", [
        ('M', 'Male'), ('male', 'Male'), ('Boys', 'Male'),
        ('F', 'Female'), ('girls', 'Female'), ('Female', 'Female'),
    ])
    def test_gender(self, answer, expected):
        assert script.normalize_gender(answer) == expected

    def test_gender_required(self):
        with pytest.raises(ValueError):
            script.normalize_gender('  ')

    @pytest.mark.parametrize("answer,expected", [
        ('7th', '7th grade'), ('7th grade', '7th grade'), (' 5th ', '5th grade'),
    ])
    def test_grade(self, answer, expected):
        assert script.normalize_grade(answer) == expected

    def test_output_prefix(self):
        assert script.output_prefix('Saint Michael', 'Male', '7th grade') == \
            'Saint_Michael_Male_7th_grade'


class TestOptimizeTeamEntry:

    def test_resolves_partial_team_name(self, track_dir):
        result = script.optimize_team_entry(RankingStore(str(track_dir)), '2025', 'michael',
                                            'Male', '7th grade', method='simple')
        assert result.team == 'Saint Michael'
        assert result.total_projected_points == 73

    def test_missing_rankings(self, track_dir):
        with pytest.raises(RankingsNotFoundError):
            script.optimize_team_entry(RankingStore(str(track_dir)), '2025', 'Holy Cross',
                                       'Female', '8th grade')

    def test_ambiguous_team(self, track_dir):
        with pytest.raises(AmbiguousTeamError):
            script.optimize_team_entry(RankingStore(str(track_dir)), '2025', 'l',
                                       'Male', '7th grade')

    def test_team_absent_from_scope_gets_empty_entry(self, track_dir):
        result = script.optimize_team_entry(RankingStore(str(track_dir)), '2025', 'Sacred Heart',
                                            'Male', '7th grade')
        assert result.team == 'Sacred Heart'
        assert result.total_projected_points == 0
        assert result.athlete_entries == []
        assert result.event_breakdown == []

    def test_team_unknown_to_season(self, track_dir):
        with pytest.raises(TeamNotFoundError):
            script.optimize_team_entry(RankingStore(str(track_dir)), '2025', 'Trinity',
                                       'Male', '7th grade')


class TestRunOptimization:

    def test_saves_result_file(self, track_dir, quiet_console):
        results = script.run_optimization('2025', 'saint michael', [('Male', '7th grade')],
                                          method='simple', output_dir=str(track_dir),
                                          console=quiet_console)

        path = (track_dir / '2025' / 'optimized_entries' / 'Saint_Michael' /
                'Saint_Michael_Male_7th_grade_simple.json')
        assert path.exists()
        with open(path, encoding='utf-8') as f:
            saved = json.load(f)
        assert saved == results[0].to_dict()
        assert 'OPTIMIZED TEAM ENTRY' in quiet_console.file.getvalue()

    def test_no_save(self, track_dir, quiet_console):
        script.run_optimization('2025', 'Holy Cross', [('Male', '7th grade')],
                                output_dir=str(track_dir), save_result=False,
                                console=quiet_console)
        assert not (track_dir / '2025' / 'optimized_entries').exists()

    def test_single_scope_missing_raises(self, track_dir, quiet_console):
        with pytest.raises(RankingsNotFoundError):
            script.run_optimization('2025', 'Holy Cross', [('Female', '5th grade')],
                                    output_dir=str(track_dir), console=quiet_console)

    def test_all_scopes_skip_missing(self, track_dir, quiet_console):
        scopes = [('Male', '7th grade'), ('Female', '5th grade'), ('Female', '6th grade')]
        results = script.run_optimization('2025', 'Saint Michael', scopes,
                                          output_dir=str(track_dir), save_result=False,
                                          console=quiet_console)

        assert [(r.gender, r.grade) for r in results] == [('Male', '7th grade'),
                                                           ('Female', '6th grade')]
        assert results[1].total_projected_points == 8
        assert 'OPTIMIZATION SUMMARY' in quiet_console.file.getvalue()

    def test_all_scopes_keep_team_missing_from_one_scope(self, track_dir, quiet_console):
        scopes = [('Male', '7th grade'), ('Female', '6th grade')]
        results = script.run_optimization('2025', 'sacred', scopes,
                                          output_dir=str(track_dir), save_result=False,
                                          console=quiet_console)

        assert [r.team for r in results] == ['Sacred Heart', 'Sacred Heart']
        assert [r.total_projected_points for r in results] == [0, 4]

    def test_all_scopes_unknown_team_raises(self, track_dir, quiet_console):
        with pytest.raises(TeamNotFoundError):
            script.run_optimization('2025', 'Trinity', [('Male', '7th grade'), ('Female', '6th grade')],
                                    output_dir=str(track_dir), console=quiet_console)

    def test_each_result_saved_under_its_own_team(self, track_dir, quiet_console, monkeypatch):
        def fake_optimize(store, season, team_query, gender, grade, method, solver):
            return OptimizationResult(team=f'{gender} Squad', gender=gender, grade=grade,
                                      method=method, total_projected_points=0,
                                      athlete_entries=[], event_breakdown=[])

        monkeypatch.setattr(script, 'optimize_team_entry', fake_optimize)
        script.run_optimization('2025', 'squad', [('Male', '7th grade'), ('Female', '6th grade')],
                                method='simple', output_dir=str(track_dir),
                                console=quiet_console)

        entries_dir = track_dir / '2025' / 'optimized_entries'
        assert (entries_dir / 'Male_Squad' / 'Male_Squad_Male_7th_grade_simple.json').exists()
        assert (entries_dir / 'Female_Squad' / 'Female_Squad_Female_6th_grade_simple.json').exists()


class TestResultViewer:

    def test_view_saved_result(self, track_dir, quiet_console):
        script.run_optimization('2025', 'Holy Cross', [('Male', '7th grade')],
                                method='advanced', output_dir=str(track_dir),
                                console=quiet_console)
        path = (track_dir / '2025' / 'optimized_entries' / 'Holy_Cross' /
                'Holy_Cross_Male_7th_grade_advanced.json')

        console = Console(file=io.StringIO(), width=120)
        ResultViewer(console).view_result(path)
        output = console.file.getvalue()
        assert 'Holy Cross' in output
        assert 'EVENT BREAKDOWN' in output

    def test_unreadable_file(self, tmp_path, quiet_console):
        ResultViewer(quiet_console).view_result(tmp_path / 'missing.json')
        assert 'Error loading result' in quiet_console.file.getvalue()


class TestMain:

    def test_success(self, track_dir, monkeypatch):
        monkeypatch.setattr(sys, 'argv', [
            'run_optimization', '--season', '2025', '--team', 'Saint Michael',
            '--gender', 'M', '--grade', '7th', '--method', 'simple',
            '--output-dir', str(track_dir), '--no-save'
        ])
        assert script.main() == 0

    def test_team_missing_from_scope_succeeds(self, track_dir, monkeypatch):
        monkeypatch.setattr(sys, 'argv', [
            'run_optimization', '--season', '2025', '--team', 'Sacred Heart',
            '--gender', 'M', '--grade', '7th', '--output-dir', str(track_dir), '--no-save'
        ])
        assert script.main() == 0

    def test_unknown_team(self, track_dir, monkeypatch, capsys):
        monkeypatch.setattr(sys, 'argv', [
            'run_optimization', '--season', '2025', '--team', 'Trinity',
            '--gender', 'F', '--grade', '6th', '--output-dir', str(track_dir)
        ])
        assert script.main() == 1
        assert 'ERROR' in capsys.readouterr().out

    def test_missing_season(self, track_dir, monkeypatch):
        monkeypatch.setattr(sys, 'argv', [
            'run_optimization', '--season', '1999', '--team', 'Saint Michael',
            '--gender', 'M', '--grade', '7th', '--output-dir', str(track_dir)
        ])
        assert script.main() == 1

    def test_requires_scope(self, track_dir, monkeypatch):
        monkeypatch.setattr(sys, 'argv', [
            'run_optimization', '--season', '2025', '--team', 'Saint Michael',
            '--output-dir', str(track_dir)
        ])
        with pytest.raises(SystemExit):
            script.main()
