"""
Knockout bracket grouping: bracket sections and round columns.
"""
from typing import List, Dict, Tuple

from .models import bracket_section_of
from .standings import sort_match_list

SECTION_TITLES = {
    'upper': 'Upper Bracket (Winners)',
    'lower': 'Lower Bracket (Losers)',
    'grand-final': 'Grand Final',
    'other': 'Knockout',
}


def get_knockout_matches(matches: List[Dict]) -> List[Dict]:
    """Return only the knockout-type matches."""
    return [m for m in matches if m.get('match_type') == 'knockout']


def is_double_elimination(tournament_format) -> bool:
    return str(tournament_format or '').lower() == 'double_elimination'


def split_bracket_sections(matches: List[Dict], tournament_format: str) -> List[Tuple[str, str, List[Dict]]]:
    """
    Split knockout matches into the bracket sections to render.

    Double elimination tournaments get upper, lower and grand-final
    sections (knockout matches tagged otherwise are not shown); every
    other format gets a single 'other' section with all knockout matches.
    Empty sections are left out, so no knockout matches means no sections.

    Returns list of (section_key, title, matches) tuples in render order.
    """
    knockout = get_knockout_matches(matches)
    if not knockout:
        return []

    if is_double_elimination(tournament_format):
        buckets = {'upper': [], 'lower': [], 'grand-final': []}
        for match in knockout:
            section = bracket_section_of(match)
            if section in buckets:
                buckets[section].append(match)
        sections = [(key, SECTION_TITLES[key], buckets[key]) for key in ('upper', 'lower', 'grand-final')]
    else:
        sections = [('other', SECTION_TITLES['other'], knockout)]

    return [section for section in sections if section[2]]


def build_rounds(section_matches: List[Dict]) -> List[Dict]:
    """
    Group one bracket section into round columns.

    Matches without a round number fall into round 0. Rounds are ordered
    by round number, matches inside a round by match number.

    Returns list of {'name': str, 'round': int, 'matches': [...]}.
    """
    if not section_matches:
        return []

    rounds_map = {}
    for match in section_matches:
        rounds_map.setdefault(match.get('round_number') or 0, []).append(match)

    rounds = []
    for round_number in sorted(rounds_map):
        round_matches = sorted(rounds_map[round_number], key=lambda m: m.get('match_number') or 0)
        rounds.append({
            'name': round_matches[0].get('round_name') or f"Round {round_number}",
            'round': round_number,
            'matches': round_matches,
        })
    return rounds


def get_round_priority(round_name: str) -> int:
    """Chronological rank of a knockout round name (unknown names first)."""
    name = (round_name or '').lower()
    if 'round-of-16' in name or '16-besar' in name:
        return 1
    if 'quarter' in name or '8-besar' in name:
        return 2
    if 'semi' in name or '4-besar' in name:
        return 3
    if '3rd' in name or '3-4' in name or 'peringkat-3' in name:
        return 4
    if 'final' in name and 'grand' not in name and 'semi' not in name:
        return 5
    if 'grand' in name:
        return 6
    return 0


def format_round_label(round_name: str, default: str = 'Round') -> str:
    """'semi-final' -> 'Semi Final'."""
    if not round_name:
        return default
    return ' '.join(word[:1].upper() + word[1:] for word in str(round_name).replace('-', ' ').split(' '))


def get_knockout_schedule(matches: List[Dict]) -> List[Dict]:
    """
    Group knockout matches by round name for the schedule list.

    Returns [{'round_name', 'label', 'matches'}] with rounds in
    chronological order and matches in display order.
    """
    by_round = {}
    for match in get_knockout_matches(matches):
        round_name = match.get('round_name')
        if round_name:
            by_round.setdefault(round_name, []).append(match)

    schedule = []
    for round_name in sorted(by_round, key=get_round_priority):
        schedule.append({
            'round_name': round_name,
            'label': format_round_label(round_name),
            'matches': sort_match_list(by_round[round_name]),
        })
    return schedule


def calculate_progress(matches: List[Dict]) -> Dict:
    """Completed/total match counts and a rounded percentage."""
    total = len(matches)
    completed = sum(1 for m in matches if m.get('status') == 'completed')
    percent = round(completed / total * 100) if total else 0
    return {'completed': completed, 'total': total, 'percent': percent}
