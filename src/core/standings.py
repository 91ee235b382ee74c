"""
Group stage standings and match list ordering.
"""
import re
from datetime import datetime
from typing import List, Dict, Optional

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1

STATUS_PRIORITY = {
    'in_progress': 1,
    'pending': 2,
    'completed': 3,
}

_TRAILING_NUMBER = re.compile(r'(\d+)$')


def _new_standing(team: Dict) -> Dict:
    return {
        'team_id': team['id'],
        'team_name': str(team['name']) if team.get('name') not in (None, '') else 'TBD',
        'played': 0,
        'won': 0,
        'drawn': 0,
        'lost': 0,
        'score_for': 0,
        'score_against': 0,
        'score_diff': 0,
        'balls_for': 0,
        'balls_against': 0,
        'ball_diff': 0,
        'points': 0,
    }


def _standing_sort_key(standing: Dict):
    name = standing['team_name']
    return (-standing['points'], -standing['ball_diff'], name.lower(), name, standing['team_id'])


def calculate_group_standings(matches: List[Dict], teams: List[Dict], group_name: str) -> List[Dict]:
    """
    Calculate the standings table for one group.

    Group membership is derived from the matches: any known team that
    appears in a group match of ``group_name`` is part of the group.
    Only completed matches count towards the table.

    Scoring: 3 points for a win, 1 each for a draw, 0 for a loss.
    Ranking: points (desc) -> ball difference (desc) -> team name
    (case-insensitive), which makes the order independent of input order.

    Returns: [{'team_id', 'team_name', 'played', 'won', 'drawn', 'lost',
               'score_for', 'score_against', 'score_diff', 'balls_for',
               'balls_against', 'ball_diff', 'points'}, ...]
    """
    group_matches = [
        m for m in matches
        if m.get('match_type') == 'group' and m.get('round_name') == group_name
    ]
    member_ids = set()
    for match in group_matches:
        member_ids.add(match.get('team1_id'))
        member_ids.add(match.get('team2_id'))

    standings = {team['id']: _new_standing(team) for team in teams if team.get('id') in member_ids}

    for match in group_matches:
        if match.get('status') != 'completed':
            continue
        team1 = standings.get(match.get('team1_id'))
        team2 = standings.get(match.get('team2_id'))
        if team1 is None or team2 is None:
            continue

        score1 = match.get('team1_score') or 0
        score2 = match.get('team2_score') or 0
        balls1 = match.get('team1_balls') or 0
        balls2 = match.get('team2_balls') or 0

        team1['played'] += 1
        team2['played'] += 1
        team1['score_for'] += score1
        team1['score_against'] += score2
        team2['score_for'] += score2
        team2['score_against'] += score1
        team1['balls_for'] += balls1
        team1['balls_against'] += balls2
        team2['balls_for'] += balls2
        team2['balls_against'] += balls1

        if score1 > score2:
            team1['won'] += 1
            team1['points'] += POINTS_FOR_WIN
            team2['lost'] += 1
        elif score2 > score1:
            team2['won'] += 1
            team2['points'] += POINTS_FOR_WIN
            team1['lost'] += 1
        else:
            team1['drawn'] += 1
            team2['drawn'] += 1
            team1['points'] += POINTS_FOR_DRAW
            team2['points'] += POINTS_FOR_DRAW

        for standing in (team1, team2):
            standing['score_diff'] = standing['score_for'] - standing['score_against']
            standing['ball_diff'] = standing['balls_for'] - standing['balls_against']

    return sorted(standings.values(), key=_standing_sort_key)


def _natural_key(text: str):
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r'(\d+)', text)]


def _group_sort_key(name: str):
    match = _TRAILING_NUMBER.search(name)
    if match:
        return (0, int(match.group(1)), _natural_key(name))
    return (1, 0, _natural_key(name))


def get_group_names(matches: List[Dict]) -> List[str]:
    """
    Return the distinct group names used by group matches.

    Names ending in a number ("group-2") are ordered by that number and
    come before unnumbered names, which are ordered naturally.
    """
    names = {m.get('round_name') for m in matches if m.get('match_type') == 'group' and m.get('round_name')}
    return sorted(names, key=_group_sort_key)


def calculate_all_group_standings(matches: List[Dict], teams: List[Dict]) -> Dict[str, List[Dict]]:
    """Calculate standings for every group, keyed by group name in display order."""
    return {name: calculate_group_standings(matches, teams, name) for name in get_group_names(matches)}


def parse_timestamp(value) -> Optional[float]:
    """Parse an ISO timestamp into epoch seconds, or None if missing/invalid."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.timestamp()
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).timestamp()
    except ValueError:
        return None


def _number_or_inf(value) -> float:
    return value if isinstance(value, (int, float)) and not isinstance(value, bool) else float('inf')


def match_list_sort_key(match: Dict):
    """Sort key for match lists: live first, then pending, then completed."""
    scheduled = parse_timestamp(match.get('scheduled_at'))
    return (
        STATUS_PRIORITY.get(match.get('status'), 999),
        scheduled if scheduled is not None else float('inf'),
        _number_or_inf(match.get('table_number')),
        _number_or_inf(match.get('match_number')),
        str(match.get('id', '')),
    )


def sort_match_list(matches: List[Dict]) -> List[Dict]:
    """Return matches in display order (see match_list_sort_key)."""
    return sorted(matches, key=match_list_sort_key)


def format_score(match: Dict, pending_label: str = 'Scheduled') -> str:
    """Score line for a match card: '5 - 2', 'In Progress', the time, or a placeholder."""
    status = match.get('status')
    score1 = match.get('team1_score')
    score2 = match.get('team2_score')
    if status == 'completed' and isinstance(score1, int) and isinstance(score2, int):
        return f"{score1} - {score2}"
    if status == 'in_progress':
        return 'In Progress'
    scheduled = parse_timestamp(match.get('scheduled_at'))
    if scheduled is not None:
        return datetime.fromtimestamp(scheduled).strftime('%a %d %b %Y %H:%M')
    return pending_label
