"""
Unit tests for the data model and match validation.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Tournament, Team, Match, bracket_section_of, validate_match
from conftest import make_match


class TestTournament:
    """Tests for Tournament parsing."""

    def test_from_dict_defaults(self):
        tournament = Tournament.from_dict({'id': 'cup'})
        assert tournament.name == 'cup'
        assert tournament.format == 'single_elimination'
        assert tournament.status == 'setup'
        assert tournament.max_teams == 0

    def test_labels(self):
        tournament = Tournament.from_dict({'id': 'cup', 'format': 'double_elimination', 'status': 'group_stage'})
        assert tournament.format_label == 'Double Elimination'
        assert tournament.status_label == 'Group Stage'

    def test_numeric_name_becomes_text(self):
        assert Tournament.from_dict({'id': 'cup', 'name': 2025}).name == '2025'

    def test_unknown_format_label_falls_back_to_raw_value(self):
        assert Tournament.from_dict({'id': 'cup', 'format': 'swiss'}).format_label == 'swiss'


class TestTeam:
    """Tests for Team parsing."""

    def test_missing_name_is_tbd(self):
        assert Team.from_dict({'id': 7}).name == 'TBD'

    def test_id_is_string(self):
        assert Team.from_dict({'id': 7, 'name': 'Seven'}).id == '7'

    def test_numeric_name_becomes_text(self):
        assert Team.from_dict({'id': 't1', 'name': 1945}).name == '1945'
        assert Team.from_dict({'id': 't1', 'name': 0}).name == '0'
        assert Team.from_dict({'id': 't1', 'name': ''}).name == 'TBD'

    def test_single_player_string_becomes_list(self):
        assert Team.from_dict({'id': 't1', 'name': 'A', 'players': 'Ann'}).players == ['Ann']


class TestMatch:
    """Tests for Match parsing."""

    def test_defaults(self):
        match = Match.from_dict({'id': 'm1'})
        assert match.match_type == 'group'
        assert match.status == 'pending'
        assert match.team1_id is None

    def test_numbers_are_coerced(self):
        match = Match.from_dict({'id': 'm1', 'team1_score': '3', 'team2_score': 'x', 'round_number': 2.0})
        assert match.team1_score == 3
        assert match.team2_score is None
        assert match.round_number == 2

    def test_ids_are_strings_and_blank_ids_none(self):
        match = Match.from_dict({'id': 1, 'team1_id': 5, 'team2_id': '', 'next_match_id': 9})
        assert match.id == '1'
        assert match.team1_id == '5'
        assert match.team2_id is None
        assert match.next_match_id == '9'

    def test_to_dict_has_every_field(self):
        data = Match.from_dict({'id': 'm1'}).to_dict()
        assert set(data) == set(Match.FIELDS)

    def test_is_completed(self):
        assert Match.from_dict({'id': 'm1', 'status': 'completed'}).is_completed
        assert not Match.from_dict({'id': 'm1'}).is_completed


class TestBracketSection:
    """Tests for bracket_section_of."""

    @pytest.mark.parametrize('round_name,expected', [
        ('upper', 'upper'),
        ('Lower', 'lower'),
        ('grand-final', 'grand-final'),
        ('grand_final', 'grand-final'),
        ('semi-final', 'other'),
        (None, 'other'),
    ])
    def test_sections(self, round_name, expected):
        assert bracket_section_of({'round_name': round_name}) == expected


class TestValidateMatch:
    """Tests for validate_match."""

    def test_valid_pending_match(self):
        assert validate_match(make_match('m1')) == []

    def test_unknown_status_and_type(self):
        problems = validate_match(make_match('m1', status='paused', match_type='friendly'))
        assert len(problems) == 2

    def test_completed_needs_teams_and_scores(self):
        problems = validate_match(make_match('m1', status='completed', team1_id='a'))
        assert 'A completed match needs both teams' in problems
        assert 'A completed match needs both scores' in problems

    def test_winner_must_be_a_participant(self):
        match = make_match('m1', status='completed', team1_id='a', team2_id='b',
                           team1_score=2, team2_score=1, winner_id='c')
        assert validate_match(match) == ['Winner must be one of the two teams']

    def test_next_match_in_later_round(self):
        source = make_match('m1', round_number=2, next_match_id='m2')
        target = make_match('m2', round_number=2)
        problems = validate_match(source, {'m2': target})
        assert problems == ['Next match must be in a later round']

    def test_next_match_in_same_section(self):
        source = make_match('m1', round_name='upper', round_number=1, next_match_id='m2')
        target = make_match('m2', round_name='lower', round_number=2)
        assert validate_match(source, {'m2': target}) == ['Next match must be in the same bracket section']

    def test_unresolved_next_match_is_not_a_problem(self):
        source = make_match('m1', round_number=1, next_match_id='missing')
        assert validate_match(source, {}) == []
