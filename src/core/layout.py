"""
Bracket layout engine.

Assigns an (x, y) pixel position to every match of a bracket section.
The x coordinate is the round column; the y coordinate follows the
next-match links so that a bracket reads as an elimination tree:

1. The round with the most matches (the benchmark round) is spread
   evenly down its column.
2. Rounds before the benchmark are placed backwards: a pair of matches
   feeding the same target sits one card height above and below it, a
   lone feeder is level with it.
3. Rounds after the benchmark are placed forwards: a match sits at the
   average height of its feeders.

Matches whose links do not resolve are stacked below the lowest match
already placed in their column, so every match always gets a position.
"""
import logging
from typing import List, Dict, Optional

logger = logging.getLogger(__name__)


class LayoutConfig:
    """Pixel constants for bracket geometry."""

    def __init__(self, match_height=100, round_width=340, header_height=60, card_width=280,
                 connector_offset=30, bottom_margin=150, right_margin=10):
        self.match_height = match_height
        self.round_width = round_width
        self.header_height = header_height
        self.card_width = card_width
        self.connector_offset = connector_offset
        self.bottom_margin = bottom_margin
        self.right_margin = right_margin

    @property
    def spacing(self):
        """Vertical distance between neighbouring matches of one column."""
        return self.match_height * 2

    @property
    def card_center(self):
        return self.match_height / 2

    def __repr__(self):
        return f"LayoutConfig(match_height={self.match_height}, round_width={self.round_width})"


DEFAULT_LAYOUT = LayoutConfig()


def find_benchmark_round(rounds: List[Dict]) -> int:
    """Index of the first round with the most matches, or -1 when there are no rounds."""
    if not rounds:
        return -1
    counts = [len(r['matches']) for r in rounds]
    return counts.index(max(counts))


def _stack_below(positions: Dict[str, Dict], x: float, config: LayoutConfig) -> Dict:
    column = [pos['y'] for pos in positions.values() if pos['x'] == x]
    last_y = max(column) if column else config.header_height
    return {'x': x, 'y': last_y + config.spacing}


def _find_sibling(match: Dict, round_matches: List[Dict]) -> Optional[Dict]:
    """First other match in the round that feeds the same target."""
    target = match.get('next_match_id')
    for other in round_matches:
        if other is not match and other.get('id') != match.get('id') and other.get('next_match_id') == target:
            return other
    return None


def compute_positions(rounds: List[Dict], config: LayoutConfig = DEFAULT_LAYOUT) -> Dict[str, Dict]:
    """
    Compute the top-left position of every match card.

    Args:
        rounds: round columns as produced by bracket.build_rounds.
        config: pixel constants.

    Returns:
        {match_id: {'x': float, 'y': float}}
    """
    positions = {}
    benchmark = find_benchmark_round(rounds)
    if benchmark < 0:
        return positions

    for index, match in enumerate(rounds[benchmark]['matches']):
        positions[match['id']] = {
            'x': benchmark * config.round_width,
            'y': config.header_height + index * config.spacing,
        }

    # Earlier rounds: walk backwards from the benchmark
    for round_index in range(benchmark - 1, -1, -1):
        x = round_index * config.round_width
        round_matches = rounds[round_index]['matches']
        next_round_ids = {m['id'] for m in rounds[round_index + 1]['matches']}

        for match in round_matches:
            target_id = match.get('next_match_id')
            target_pos = positions.get(target_id) if target_id in next_round_ids else None
            if target_pos is None:
                logger.debug('Stacking match %s: next match %s not in the following round', match['id'], target_id)
                positions[match['id']] = _stack_below(positions, x, config)
                continue

            sibling = _find_sibling(match, round_matches)
            if sibling is None:
                y = target_pos['y']
            elif sibling['id'] in positions:
                y = target_pos['y'] + config.match_height
            else:
                y = target_pos['y'] - config.match_height
            positions[match['id']] = {'x': x, 'y': y}

    # Later rounds: walk forwards from the benchmark
    for round_index in range(benchmark + 1, len(rounds)):
        x = round_index * config.round_width
        previous_matches = rounds[round_index - 1]['matches']

        for match in rounds[round_index]['matches']:
            feeder_positions = [
                positions[m['id']] for m in previous_matches
                if m.get('next_match_id') == match['id'] and m['id'] in positions
            ]
            if not feeder_positions:
                logger.debug('Stacking match %s: no feeders in the previous round', match['id'])
                positions[match['id']] = _stack_below(positions, x, config)
            elif len(feeder_positions) == 1:
                positions[match['id']] = {'x': x, 'y': feeder_positions[0]['y']}
            else:
                avg_y = sum(pos['y'] for pos in feeder_positions) / len(feeder_positions)
                positions[match['id']] = {'x': x, 'y': avg_y}

    return positions


def compute_dimensions(rounds: List[Dict], positions: Dict[str, Dict],
                       config: LayoutConfig = DEFAULT_LAYOUT) -> Dict:
    """Container size: lowest card plus margin, round columns plus margin."""
    if not positions:
        return {'width': 0, 'height': 0}
    max_y = max(pos['y'] for pos in positions.values())
    return {
        'width': len(rounds) * config.round_width + config.right_margin,
        'height': max_y + config.bottom_margin,
    }


def compute_layout(rounds: List[Dict], config: LayoutConfig = DEFAULT_LAYOUT) -> Dict:
    """
    Lay out one bracket section.

    Returns dict with:
    - 'positions': {match_id: {'x', 'y'}}
    - 'benchmark_round': index of the benchmark round (-1 if empty)
    - 'width', 'height': container size in pixels
    """
    positions = compute_positions(rounds, config)
    layout = {
        'positions': positions,
        'benchmark_round': find_benchmark_round(rounds),
    }
    layout.update(compute_dimensions(rounds, positions, config))
    return layout
