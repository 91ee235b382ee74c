"""
Tests for PNG snapshots of brackets and standings.
"""
import pytest
import sys
import os
from io import BytesIO

from PIL import Image

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.render import build_section_view
from core.snapshot import render_section_png, render_standings_png
from core.standings import calculate_group_standings
from conftest import make_match, make_group_match

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'

TEAMS = [
    {'id': 't1', 'name': 'Alpha'},
    {'id': 't2', 'name': 'A team with a very long name that will not fit on one card row'},
    {'id': 't3', 'name': 'Charlie'},
]


@pytest.fixture
def section_view():
    matches = [
        make_match('s1', round_name='semi-final', round_number=1, match_number=1, next_match_id='f',
                   status='completed', team1_id='t1', team2_id='t2', team1_score=3, team2_score=1,
                   winner_id='t1', note='Table 1'),
        make_match('s2', round_name='semi-final', round_number=1, match_number=2, next_match_id='f',
                   status='in_progress', team1_id='t3'),
        make_match('f', round_name='final', round_number=2, match_number=1, team1_id='t1'),
    ]
    return build_section_view('other', 'Knockout', matches, TEAMS)


class TestSectionSnapshot:
    """Tests for render_section_png."""

    def test_returns_png(self, section_view):
        png = render_section_png(section_view)
        assert png.startswith(PNG_SIGNATURE)

    def test_image_covers_the_section(self, section_view):
        image = Image.open(BytesIO(render_section_png(section_view)))
        assert image.width >= section_view['width']
        assert image.height >= max(section_view['height'], section_view['min_height'])


class TestStandingsSnapshot:
    """Tests for render_standings_png."""

    def test_returns_png(self):
        matches = [
            make_group_match('g1', 'group-1', 't1', 't2', 2, 1, balls1=7, balls2=5),
            make_group_match('g2', 'group-1', 't2', 't3', 0, 2, balls1=2, balls2=8),
        ]
        standings = calculate_group_standings(matches, TEAMS, 'group-1')
        png = render_standings_png('Group 1', standings)
        assert png.startswith(PNG_SIGNATURE)

    def test_empty_table(self):
        image = Image.open(BytesIO(render_standings_png('Group 9', [])))
        assert image.height > 0
