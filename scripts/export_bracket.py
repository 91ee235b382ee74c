#!/usr/bin/env python3
"""
Export the bracket sections of a tournament as PNG images.

Usage:
    python scripts/export_bracket.py billiard-cup-2025
    python scripts/export_bracket.py billiard-cup-2025 --data-dir /home/data --output-dir exports
    python scripts/export_bracket.py billiard-cup-2025 --url https://dashboard.example.com

Data comes either from a local data directory (tournaments.yaml plus
tournaments/<id>/teams.yaml and matches.yaml) or from a running
dashboard's /api/tournament/<id> endpoint.

Exit codes:
    0 - every section was written
    1 - tournament not found or the dashboard could not be reached
    2 - the tournament has no knockout matches to render
"""

import argparse
import os
import sys
from pathlib import Path

import requests
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Tournament, Team, Match
from core.render import build_bracket_views
from core.snapshot import render_section_png

DEFAULT_DATA_DIR = Path(__file__).parent.parent / 'data'


def _read_records(path, key):
    if not path.exists():
        return []
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    records = data.get(key, []) if isinstance(data, dict) else []
    return [r for r in records if isinstance(r, dict) and r.get('id')]


def load_local(data_dir, tournament_id):
    """
    Read a tournament from a data directory.

    Returns (tournament, teams, matches), or None when the tournament is
    not in the registry.
    """
    data_dir = Path(data_dir)
    tournament = next(
        (Tournament.from_dict(r).to_dict() for r in _read_records(data_dir / 'tournaments.yaml', 'tournaments')
         if str(r['id']) == tournament_id),
        None,
    )
    if tournament is None:
        return None
    tournament_dir = data_dir / 'tournaments' / tournament_id
    teams = [Team.from_dict(r).to_dict() for r in _read_records(tournament_dir / 'teams.yaml', 'teams')]
    matches = [Match.from_dict(r).to_dict() for r in _read_records(tournament_dir / 'matches.yaml', 'matches')]
    return tournament, teams, matches


def fetch_remote(base_url, tournament_id, timeout=10):
    """Fetch a tournament from a running dashboard; None on any failure."""
    url = f"{base_url.rstrip('/')}/api/tournament/{tournament_id}"
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        print(f"Error: could not reach {url}: {e}", file=sys.stderr)
        return None
    if response.status_code != 200:
        print(f"Error: {url} returned HTTP {response.status_code}", file=sys.stderr)
        return None
    payload = response.json()
    return payload['tournament'], payload.get('teams', []), payload.get('matches', [])


def export_sections(tournament, teams, matches, output_dir):
    """Write one PNG per bracket section and return the written paths."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for view in build_bracket_views(matches, teams, tournament.get('format')):
        path = output_dir / f"{tournament['id']}-{view['section']}.png"
        path.write_bytes(render_section_png(view))
        written.append(path)
    return written


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Render the bracket sections of a tournament to PNG files'
    )
    parser.add_argument('tournament_id', help='Tournament id as listed in tournaments.yaml')
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        '--data-dir',
        default=str(DEFAULT_DATA_DIR),
        help='Local data directory (default: ./data)'
    )
    source.add_argument(
        '--url',
        help='Base URL of a running dashboard to fetch the tournament from'
    )
    parser.add_argument(
        '--output-dir',
        default='exports',
        help='Directory for the PNG files (default: ./exports)'
    )

    args = parser.parse_args(argv)

    if args.url:
        loaded = fetch_remote(args.url, args.tournament_id)
    else:
        loaded = load_local(args.data_dir, args.tournament_id)
        if loaded is None:
            print(f"Error: tournament '{args.tournament_id}' not found in {args.data_dir}", file=sys.stderr)
    if loaded is None:
        return 1

    tournament, teams, matches = loaded
    written = export_sections(tournament, teams, matches, args.output_dir)
    if not written:
        print(f"Nothing to render: '{args.tournament_id}' has no knockout matches.", file=sys.stderr)
        return 2

    for path in written:
        print(f"Wrote {path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
