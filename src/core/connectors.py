"""
Connector geometry between bracket matches.

Each connector is a set of axis-aligned segments from the right edge of
the feeding match card(s) to the left edge of the match they feed. Two
sibling feeders share one merged connector, drawn once and attributed to
the sibling that comes second in the round.
"""
import logging
from typing import List, Dict, Tuple

from .layout import LayoutConfig, DEFAULT_LAYOUT

logger = logging.getLogger(__name__)

Segment = Tuple[float, float, float, float]


def single_elbow(x1: float, y1: float, x2: float, y2: float, offset: float) -> List[Segment]:
    """Horizontal - vertical - horizontal path from (x1, y1) to (x2, y2)."""
    mid_x = x1 + offset
    return [
        (x1, y1, mid_x, y1),
        (mid_x, y1, mid_x, y2),
        (mid_x, y2, x2, y2),
    ]


def merged_elbow(x1: float, y_a: float, y_b: float, x2: float, y2: float, offset: float) -> List[Segment]:
    """Two feeders joined on a shared vertical midline, then one line to the target."""
    mid_x = x1 + offset
    top, bottom = min(y_a, y_b), max(y_a, y_b)
    merge_y = (top + bottom) / 2
    return [
        (x1, top, mid_x, top),
        (x1, bottom, mid_x, bottom),
        (mid_x, top, mid_x, bottom),
        (mid_x, merge_y, mid_x, y2),
        (mid_x, y2, x2, y2),
    ]


def compute_connectors(rounds: List[Dict], positions: Dict[str, Dict],
                       config: LayoutConfig = DEFAULT_LAYOUT) -> List[Dict]:
    """
    Build the connector lines for a laid out bracket section.

    Matches of the last round, matches without a next-match link and links
    to matches that were not positioned produce no connector.

    Returns list of {'source_ids': [...], 'target_id': str,
    'kind': 'single'|'merged', 'segments': [(x1, y1, x2, y2), ...]}.
    """
    connectors = []
    for round_index, round_column in enumerate(rounds[:-1]):
        round_matches = round_column['matches']
        for index, match in enumerate(round_matches):
            target_id = match.get('next_match_id')
            if not target_id:
                continue
            current = positions.get(match['id'])
            target = positions.get(target_id)
            if current is None or target is None:
                logger.debug('Skipping connector %s -> %s: unresolved position', match['id'], target_id)
                continue

            x1 = current['x'] + config.card_width
            y1 = current['y'] + config.card_center
            x2 = target['x']
            y2 = target['y'] + config.card_center

            sibling_index = next(
                (i for i, other in enumerate(round_matches)
                 if i != index and other.get('next_match_id') == target_id),
                None,
            )
            if sibling_index is None:
                connectors.append({
                    'source_ids': [match['id']],
                    'target_id': target_id,
                    'kind': 'single',
                    'segments': single_elbow(x1, y1, x2, y2, config.connector_offset),
                })
                continue

            # The pair is drawn by whichever sibling comes second
            if sibling_index > index:
                continue
            sibling = round_matches[sibling_index]
            sibling_pos = positions.get(sibling['id'])
            if sibling_pos is None:
                continue
            sibling_y = sibling_pos['y'] + config.card_center
            connectors.append({
                'source_ids': [sibling['id'], match['id']],
                'target_id': target_id,
                'kind': 'merged',
                'segments': merged_elbow(x1, sibling_y, y1, x2, y2, config.connector_offset),
            })
    return connectors
