"""
View models for bracket sections.

Turns a section's matches into everything a template (or the PNG
snapshot renderer) needs to paint it: round headers, positioned match
cards and connector segments.
"""
from typing import List, Dict, Optional

from .bracket import build_rounds, split_bracket_sections
from .connectors import compute_connectors
from .layout import LayoutConfig, DEFAULT_LAYOUT, compute_layout

PLACEHOLDER_TEAM = 'TBD'
PLACEHOLDER_SCORE = '-'


def _score_label(score) -> str:
    return PLACEHOLDER_SCORE if score is None else str(score)


def build_card(match: Dict, position: Dict, teams_by_id: Dict[str, Dict]) -> Dict:
    """Display data for a single match card."""
    team1 = teams_by_id.get(match.get('team1_id'))
    team2 = teams_by_id.get(match.get('team2_id'))
    winner = match.get('winner_id')
    return {
        'id': match['id'],
        'x': position['x'],
        'y': position['y'],
        'note': match.get('note') or '',
        'team1': team1['name'] if team1 else PLACEHOLDER_TEAM,
        'team2': team2['name'] if team2 else PLACEHOLDER_TEAM,
        'score1': _score_label(match.get('team1_score')),
        'score2': _score_label(match.get('team2_score')),
        'team1_winner': bool(winner) and winner == match.get('team1_id'),
        'team2_winner': bool(winner) and winner == match.get('team2_id'),
        'live': match.get('status') == 'in_progress',
        'status': match.get('status'),
    }


def _header_label(section: str, round_column: Dict) -> str:
    if section == 'grand-final':
        return 'Final'
    if section in ('upper', 'lower'):
        # Round names carry the section tag in double elimination
        return f"Round {round_column['round']}"
    return round_column['name']


def build_section_view(section: str, title: str, section_matches: List[Dict], teams: List[Dict],
                       config: LayoutConfig = DEFAULT_LAYOUT) -> Optional[Dict]:
    """
    Build the renderable view of one bracket section.

    Returns None for a section without matches, otherwise a dict with
    'section', 'title', 'headers', 'cards', 'connectors', 'width',
    'height', 'min_height' and 'card_width'.
    """
    rounds = build_rounds(section_matches)
    if not rounds:
        return None

    layout = compute_layout(rounds, config)
    positions = layout['positions']
    teams_by_id = {team['id']: team for team in teams}

    headers = [
        {'x': index * config.round_width, 'label': _header_label(section, round_column)}
        for index, round_column in enumerate(rounds)
    ]
    cards = [
        build_card(match, positions[match['id']], teams_by_id)
        for round_column in rounds
        for match in round_column['matches']
        if match['id'] in positions
    ]
    single_final = section == 'grand-final' and len(rounds[0]['matches']) == 1

    return {
        'section': section,
        'title': title,
        'headers': headers,
        'cards': cards,
        'connectors': compute_connectors(rounds, positions, config),
        'width': layout['width'],
        'height': layout['height'],
        'min_height': 100 if single_final else 400,
        'card_width': config.card_width,
        'match_height': config.match_height,
    }


def build_bracket_views(matches: List[Dict], teams: List[Dict], tournament_format: str,
                        config: LayoutConfig = DEFAULT_LAYOUT) -> List[Dict]:
    """Views for every non-empty bracket section of a tournament, in render order."""
    views = []
    for section, title, section_matches in split_bracket_sections(matches, tournament_format):
        view = build_section_view(section, title, section_matches, teams, config)
        if view is not None:
            views.append(view)
    return views
