"""
Unit tests for bracket sections, round columns and the knockout schedule.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.bracket import (
    split_bracket_sections,
    build_rounds,
    get_round_priority,
    format_round_label,
    get_knockout_schedule,
    calculate_progress,
    is_double_elimination,
)
from conftest import make_match, make_group_match


class TestSections:
    """Tests for split_bracket_sections."""

    def test_no_knockout_matches_means_no_sections(self):
        matches = [make_group_match('g1', 'group-1', 'a', 'b', 1, 0)]
        assert split_bracket_sections(matches, 'group_knockout') == []
        assert split_bracket_sections([], 'double_elimination') == []

    def test_single_section_for_other_formats(self):
        matches = [make_match('k1', round_name='semi-final'), make_match('k2', round_name='final')]
        sections = split_bracket_sections(matches, 'single_elimination')
        assert len(sections) == 1
        key, title, section_matches = sections[0]
        assert key == 'other'
        assert [m['id'] for m in section_matches] == ['k1', 'k2']

    def test_double_elimination_sections_in_order(self):
        matches = [
            make_match('gf', round_name='grand-final'),
            make_match('l1', round_name='lower'),
            make_match('u1', round_name='upper'),
            make_match('x', round_name='semi-final'),
        ]
        sections = split_bracket_sections(matches, 'double_elimination')
        assert [s[0] for s in sections] == ['upper', 'lower', 'grand-final']
        assert sections[0][1] == 'Upper Bracket (Winners)'

    def test_empty_double_elimination_sections_dropped(self):
        matches = [make_match('u1', round_name='upper'), make_match('u2', round_name='upper')]
        sections = split_bracket_sections(matches, 'double_elimination')
        assert [s[0] for s in sections] == ['upper']

    def test_format_check_is_case_insensitive(self):
        assert is_double_elimination('Double_Elimination')
        assert not is_double_elimination(None)


class TestRounds:
    """Tests for build_rounds."""

    def test_rounds_sorted_and_matches_ordered(self):
        matches = [
            make_match('f', round_name='final', round_number=2, match_number=1),
            make_match('s2', round_name='semi-final', round_number=1, match_number=2),
            make_match('s1', round_name='semi-final', round_number=1, match_number=1),
        ]
        rounds = build_rounds(matches)
        assert [r['round'] for r in rounds] == [1, 2]
        assert [m['id'] for m in rounds[0]['matches']] == ['s1', 's2']
        assert rounds[1]['name'] == 'final'

    def test_missing_round_number_is_round_zero(self):
        rounds = build_rounds([make_match('a', round_number=1), make_match('b')])
        assert [r['round'] for r in rounds] == [0, 1]
        assert rounds[0]['name'] == 'Round 0'

    def test_empty(self):
        assert build_rounds([]) == []


class TestSchedule:
    """Tests for round labels, knockout schedule and progress."""

    @pytest.mark.parametrize('name,priority', [
        ('round-of-16', 1),
        ('quarter-final', 2),
        ('semi-final', 3),
        ('3rd-place', 4),
        ('final', 5),
        ('grand-final', 6),
        ('exhibition', 0),
    ])
    def test_round_priority(self, name, priority):
        assert get_round_priority(name) == priority

    def test_format_round_label(self):
        assert format_round_label('semi-final') == 'Semi Final'
        assert format_round_label('group-1', default='Group') == 'Group 1'
        assert format_round_label(None, default='Group') == 'Group'

    def test_schedule_in_chronological_order(self):
        matches = [
            make_match('f', round_name='final'),
            make_match('q', round_name='quarter-final'),
            make_match('s', round_name='semi-final', status='in_progress'),
            make_group_match('g', 'group-1', 'a', 'b'),
        ]
        schedule = get_knockout_schedule(matches)
        assert [r['round_name'] for r in schedule] == ['quarter-final', 'semi-final', 'final']
        assert schedule[1]['label'] == 'Semi Final'

    def test_progress(self):
        matches = [make_match('a', status='completed'), make_match('b'), make_match('c', status='completed')]
        assert calculate_progress(matches) == {'completed': 2, 'total': 3, 'percent': 67}
        assert calculate_progress([]) == {'completed': 0, 'total': 0, 'percent': 0}
