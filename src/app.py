"""
Flask web application for the Billiard Cup tournament dashboard.
"""
import os
import hmac
import time
import yaml
from datetime import datetime
from functools import wraps
from filelock import FileLock
from flask import Flask, render_template, request, jsonify, Response, stream_with_context, send_file, abort
from io import BytesIO
from core.models import Tournament, Team, Match, validate_match
from core.standings import calculate_all_group_standings, get_group_names, sort_match_list, format_score, parse_timestamp
from core.bracket import get_knockout_matches, get_knockout_schedule, calculate_progress, format_round_label, split_bracket_sections
from core.render import build_bracket_views, build_section_view
from core.snapshot import render_section_png, render_standings_png
from core.live import watch_data_files

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('DASHBOARD_DATA_DIR', os.path.join(BASE_DIR, 'data'))

TOURNAMENTS_FILE = os.path.join(DATA_DIR, 'tournaments.yaml')
TOURNAMENTS_DIR = os.path.join(DATA_DIR, 'tournaments')
REGISTRATIONS_FILE = os.path.join(DATA_DIR, 'registrations.yaml')
SETTINGS_FILE = os.path.join(DATA_DIR, 'settings.yaml')
os.makedirs(DATA_DIR, exist_ok=True)
_data_lock = FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10)

# Match fields an admin may change through the API
UPDATABLE_MATCH_FIELDS = ('status', 'team1_id', 'team2_id', 'team1_score', 'team2_score',
                          'team1_balls', 'team2_balls', 'table_number', 'winner_id',
                          'scheduled_at', 'note')
RESULT_FIELDS = ('status', 'team1_id', 'team2_id', 'team1_score', 'team2_score')


def get_default_settings():
    """Return default dashboard settings."""
    return {
        'event_name': 'Billiard Cup 2025',
        'event_date': '22 November 2025',
        'event_time': '18:00 - 20:00',
        'venue': 'Greenlight Cafe & Billiard',
        'address': 'Jl. Purnawarman No.3, Bandung',
        'registration_closes_at': '2025-11-21T23:59:59',
        'live_check_seconds': 3,
        'heartbeat_seconds': 15,
        'poll_fallback_seconds': 5,
    }


def _load_yaml(path: str, default):
    """Load a YAML file, returning ``default`` when missing, empty or corrupt."""
    if not os.path.exists(path):
        return default
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return default
    return data if data else default


def load_settings():
    """Load settings from YAML file, merging with defaults."""
    data = _load_yaml(SETTINGS_FILE, {})
    if not isinstance(data, dict):
        return get_default_settings()
    return {**get_default_settings(), **data}


def is_registration_closed(settings: dict, now: datetime = None) -> bool:
    """True once the configured registration deadline has passed."""
    deadline = parse_timestamp(settings.get('registration_closes_at'))
    if deadline is None:
        return False
    now = now or datetime.now()
    return now.timestamp() > deadline


def _tournament_dir(tournament_id: str) -> str:
    return os.path.join(TOURNAMENTS_DIR, tournament_id)


def _valid_id(value: str) -> bool:
    return bool(value) and not any(part in value for part in ('..', '/', '\\'))


def load_tournaments() -> list:
    """Load the tournament registry as a list of normalized dicts."""
    data = _load_yaml(TOURNAMENTS_FILE, {})
    records = data.get('tournaments', []) if isinstance(data, dict) else []
    return [Tournament.from_dict(r).to_dict() for r in records if isinstance(r, dict) and r.get('id')]


def get_tournament(tournament_id: str):
    """Return one tournament dict, or None if unknown."""
    for tournament in load_tournaments():
        if tournament['id'] == tournament_id:
            return tournament
    return None


def load_teams(tournament_id: str) -> list:
    """Load teams of a tournament."""
    if not _valid_id(tournament_id):
        return []
    data = _load_yaml(os.path.join(_tournament_dir(tournament_id), 'teams.yaml'), {})
    records = data.get('teams', []) if isinstance(data, dict) else []
    teams = []
    for record in records:
        if isinstance(record, dict) and record.get('id'):
            team = Team.from_dict(record)
            team.tournament_id = team.tournament_id or tournament_id
            teams.append(team.to_dict())
    return teams


def load_matches(tournament_id: str) -> list:
    """Load matches of a tournament.

    Records breaking the data model invariants are kept (the views
    tolerate partial data) but logged.
    """
    if not _valid_id(tournament_id):
        return []
    data = _load_yaml(_matches_file(tournament_id), {})
    records = data.get('matches', []) if isinstance(data, dict) else []
    matches = []
    for record in records:
        if isinstance(record, dict) and record.get('id'):
            match = Match.from_dict(record)
            match.tournament_id = match.tournament_id or tournament_id
            matches.append(match.to_dict())

    matches_by_id = {m['id']: m for m in matches}
    for match in matches:
        problems = validate_match(match, matches_by_id)
        if problems:
            app.logger.warning(f"Match {match['id']} in {tournament_id}: {'; '.join(problems)}")
    return matches


def _matches_file(tournament_id: str) -> str:
    return os.path.join(_tournament_dir(tournament_id), 'matches.yaml')


def save_matches(tournament_id: str, matches: list):
    """Save matches of a tournament to YAML."""
    os.makedirs(_tournament_dir(tournament_id), exist_ok=True)
    with open(_matches_file(tournament_id), 'w', encoding='utf-8') as f:
        yaml.dump({'matches': matches}, f, default_flow_style=False, sort_keys=False)


def load_registrations() -> list:
    """Load team registrations from YAML."""
    data = _load_yaml(REGISTRATIONS_FILE, {})
    records = data.get('registrations', []) if isinstance(data, dict) else []
    return [r for r in records if isinstance(r, dict)]


def count_registered_players(registrations: list) -> int:
    """Count named players across registrations ('-' marks an empty slot)."""
    total = 0
    for registration in registrations:
        players = registration.get('players') or []
        total += sum(1 for p in players if p and str(p).strip() not in ('', '-'))
    return total


def derive_winner(match: dict):
    """Winner of a completed knockout match with a decisive score, else None."""
    score1, score2 = match.get('team1_score'), match.get('team2_score')
    if (match.get('status') != 'completed' or match.get('match_type') != 'knockout'
            or score1 is None or score2 is None or score1 == score2):
        return None
    return match.get('team1_id') if score1 > score2 else match.get('team2_id')


def require_admin_key(f):
    """Require valid ADMIN_API_KEY in Authorization header."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected_key = os.environ.get('ADMIN_API_KEY')
        if not expected_key:
            return jsonify({'error': 'Server not configured for match updates'}), 500

        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            return jsonify({'error': 'Missing or invalid Authorization header'}), 401

        provided_key = auth_header[7:]
        if not hmac.compare_digest(expected_key, provided_key):
            return jsonify({'error': 'Invalid API key'}), 401

        return f(*args, **kwargs)
    return decorated_function


def _with_team_names(matches: list, teams_by_id: dict) -> list:
    """Copy matches adding team1_name/team2_name ('TBD' when unknown)."""
    enriched = []
    for match in matches:
        team1 = teams_by_id.get(match.get('team1_id'))
        team2 = teams_by_id.get(match.get('team2_id'))
        enriched.append({
            **match,
            'team1_name': team1['name'] if team1 else 'TBD',
            'team2_name': team2['name'] if team2 else 'TBD',
        })
    return enriched


def _all_matches_with_names() -> list:
    """Matches of every tournament with team names resolved."""
    result = []
    for tournament in load_tournaments():
        teams_by_id = {t['id']: t for t in load_teams(tournament['id'])}
        result.extend(_with_team_names(load_matches(tournament['id']), teams_by_id))
    return result


def _scheduled_sort_key(match: dict):
    scheduled = parse_timestamp(match.get('scheduled_at'))
    return (scheduled if scheduled is not None else float('inf'), str(match.get('id')))


def get_upcoming_matches(matches: list, limit: int = None) -> list:
    """Pending matches ordered by scheduled time (unscheduled last)."""
    pending = [m for m in matches if m.get('status') == 'pending']
    pending.sort(key=_scheduled_sort_key)
    return pending[:limit] if limit else pending


def get_last_matches(matches: list, limit: int = None) -> list:
    """Completed matches, most recently updated first."""
    completed = [m for m in matches if m.get('status') == 'completed']
    completed.sort(key=lambda m: (-(parse_timestamp(m.get('updated_at')) or 0), str(m.get('id'))))
    return completed[:limit] if limit else completed


def _get_tournament_data(tournament_id: str) -> dict:
    """Build the template context for a tournament detail view.

    Returns:
        Dictionary with keys: tournament, teams, matches, groups,
        bracket_views, knockout_schedule, progress.
    """
    tournament = get_tournament(tournament_id)
    if tournament is None:
        abort(404)
    teams = load_teams(tournament_id)
    matches = load_matches(tournament_id)
    teams_by_id = {t['id']: t for t in teams}
    standings = calculate_all_group_standings(matches, teams)

    groups = []
    for group_name in get_group_names(matches):
        group_matches = [m for m in matches if m.get('match_type') == 'group' and m.get('round_name') == group_name]
        groups.append({
            'name': group_name,
            'label': format_round_label(group_name, default='Group'),
            'standings': standings[group_name],
            'matches': _with_team_names(sort_match_list(group_matches), teams_by_id),
        })

    knockout_schedule = get_knockout_schedule(matches)
    for round_entry in knockout_schedule:
        round_entry['matches'] = _with_team_names(round_entry['matches'], teams_by_id)

    model = Tournament.from_dict(tournament)
    return dict(
        tournament=tournament,
        format_label=model.format_label,
        status_label=model.status_label,
        teams=teams,
        matches=matches,
        groups=groups,
        bracket_views=build_bracket_views(matches, teams, tournament['format']),
        knockout_schedule=knockout_schedule,
        has_knockout=bool(get_knockout_matches(matches)),
        progress=calculate_progress(matches),
        settings=load_settings(),
    )


@app.template_filter('score_line')
def score_line_filter(match, pending_label='Scheduled'):
    return format_score(match, pending_label)


@app.route('/')
def index():
    """Dashboard: active tournaments, upcoming and recent matches."""
    settings = load_settings()
    matches = _all_matches_with_names()
    return render_template(
        'index.html',
        settings=settings,
        registration_closed=is_registration_closed(settings),
        tournaments=load_tournaments(),
        upcoming_matches=get_upcoming_matches(matches, limit=3),
        last_matches=get_last_matches(matches, limit=3),
        total_players=count_registered_players(load_registrations()),
    )


@app.route('/tournaments')
def tournaments():
    """List every tournament."""
    entries = []
    for tournament in load_tournaments():
        model = Tournament.from_dict(tournament)
        entries.append(dict(tournament, format_label=model.format_label, status_label=model.status_label,
                            team_count=len(load_teams(tournament['id']))))
    return render_template('tournaments.html', tournaments=entries)


@app.route('/register')
def register():
    """Event information; shows a closed notice after the deadline."""
    settings = load_settings()
    return render_template('register.html', settings=settings,
                           registration_closed=is_registration_closed(settings))


@app.route('/tournament/<tournament_id>')
def tournament_detail(tournament_id):
    """Tournament detail page with standings, brackets and schedule."""
    return render_template('tournament.html', **_get_tournament_data(tournament_id))


@app.route('/tournament/<tournament_id>/live-content')
def tournament_live_content(tournament_id):
    """Return only the refreshable part of the detail page (partial template)."""
    return render_template('tournament_content.html', **_get_tournament_data(tournament_id))


@app.route('/api/tournaments')
def api_tournaments():
    return jsonify({'success': True, 'tournaments': load_tournaments()})


@app.route('/api/tournament/<tournament_id>')
def api_tournament(tournament_id):
    tournament = get_tournament(tournament_id)
    if tournament is None:
        return jsonify({'success': False, 'error': 'Tournament not found'}), 404
    return jsonify({
        'success': True,
        'tournament': tournament,
        'teams': load_teams(tournament_id),
        'matches': load_matches(tournament_id),
    })


@app.route('/api/tournament/<tournament_id>/standings')
def api_standings(tournament_id):
    if get_tournament(tournament_id) is None:
        return jsonify({'success': False, 'error': 'Tournament not found'}), 404
    standings = calculate_all_group_standings(load_matches(tournament_id), load_teams(tournament_id))
    return jsonify({'success': True, 'groups': list(standings.keys()), 'standings': standings})


@app.route('/api/tournament/<tournament_id>/bracket')
def api_bracket(tournament_id):
    tournament = get_tournament(tournament_id)
    if tournament is None:
        return jsonify({'success': False, 'error': 'Tournament not found'}), 404
    views = build_bracket_views(load_matches(tournament_id), load_teams(tournament_id), tournament['format'])
    return jsonify({'success': True, 'sections': views})


def _png_response(png_bytes: bytes, title: str):
    filename = '-'.join(title.split()).lower() + '.png'
    return send_file(BytesIO(png_bytes), mimetype='image/png', as_attachment=False, download_name=filename)


@app.route('/api/tournament/<tournament_id>/bracket/<section>.png')
def api_bracket_snapshot(tournament_id, section):
    """Capture one bracket section as a PNG image."""
    tournament = get_tournament(tournament_id)
    if tournament is None:
        return jsonify({'success': False, 'error': 'Tournament not found'}), 404
    matches = load_matches(tournament_id)
    for key, title, section_matches in split_bracket_sections(matches, tournament['format']):
        if key == section:
            view = build_section_view(key, title, section_matches, load_teams(tournament_id))
            break
    else:
        return jsonify({'success': False, 'error': 'Bracket section not found'}), 404

    try:
        png = render_section_png(view)
    except (OSError, ValueError, TypeError) as e:
        app.logger.error(f'Bracket snapshot failed for {tournament_id}/{section}: {e}')
        return jsonify({'success': False, 'error': 'Failed to capture bracket image'}), 500
    return _png_response(png, view['title'])


@app.route('/api/tournament/<tournament_id>/groups/<group_name>.png')
def api_group_snapshot(tournament_id, group_name):
    """Capture one group standings table as a PNG image."""
    if get_tournament(tournament_id) is None:
        return jsonify({'success': False, 'error': 'Tournament not found'}), 404
    standings = calculate_all_group_standings(load_matches(tournament_id), load_teams(tournament_id))
    if group_name not in standings:
        return jsonify({'success': False, 'error': 'Group not found'}), 404

    title = format_round_label(group_name, default='Group')
    try:
        png = render_standings_png(title, standings[group_name])
    except (OSError, ValueError, TypeError) as e:
        app.logger.error(f'Standings snapshot failed for {tournament_id}/{group_name}: {e}')
        return jsonify({'success': False, 'error': 'Failed to capture standings image'}), 500
    return _png_response(png, title)


@app.route('/api/matches')
def api_matches():
    """Upcoming matches, or the latest results with ?type=lastMatches."""
    matches = _all_matches_with_names()
    if request.args.get('type') == 'lastMatches':
        return jsonify({'success': True, 'matches': get_last_matches(matches, limit=10)})
    return jsonify({'success': True, 'matches': get_upcoming_matches(matches, limit=10)})


@app.route('/api/registrations')
def api_registrations():
    registrations = load_registrations()
    return jsonify({
        'success': True,
        'totalTeams': len(registrations),
        'totalPlayers': count_registered_players(registrations),
    })


@app.route('/api/tournament/<tournament_id>/matches/<match_id>', methods=['POST'])
@require_admin_key
def api_update_match(tournament_id, match_id):
    """API endpoint to update a match (score, status, winner, table)."""
    if get_tournament(tournament_id) is None:
        return jsonify({'success': False, 'error': 'Tournament not found'}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Expected a JSON object'}), 400

    with _data_lock:
        matches = load_matches(tournament_id)
        index = next((i for i, m in enumerate(matches) if m['id'] == match_id), None)
        if index is None:
            return jsonify({'success': False, 'error': 'Match not found'}), 404

        record = dict(matches[index])
        record.update({k: v for k, v in data.items() if k in UPDATABLE_MATCH_FIELDS})
        updated = Match.from_dict(record).to_dict()

        # A result change invalidates the stored winner unless the request names one
        if updated['status'] != 'completed':
            updated['winner_id'] = None
        elif 'winner_id' not in data and (not updated['winner_id'] or any(k in data for k in RESULT_FIELDS)):
            updated['winner_id'] = derive_winner(updated)

        problems = validate_match(updated)
        if problems:
            app.logger.info(f'Rejected update of match {match_id}: {problems}')
            return jsonify({'error': '; '.join(problems)}), 400

        updated['updated_at'] = datetime.now().isoformat(timespec='seconds')
        matches[index] = updated
        save_matches(tournament_id, matches)

    app.logger.info(f'Match {match_id} in {tournament_id} updated: {updated["status"]}')
    return jsonify({'success': True, 'match': updated})


@app.route('/api/live-stream/<tournament_id>')
def api_live_stream(tournament_id):
    """Server-Sent Events stream that notifies clients when matches change."""
    if get_tournament(tournament_id) is None:
        abort(404)
    settings = load_settings()
    tournament_dir = _tournament_dir(tournament_id)
    watched_files = [os.path.join(tournament_dir, n) for n in ('matches.yaml', 'teams.yaml')]
    watched_files.append(TOURNAMENTS_FILE)

    return Response(
        stream_with_context(watch_data_files(
            watched_files,
            interval=settings['live_check_seconds'],
            heartbeat=settings['heartbeat_seconds'],
            sleep=time.sleep,
        )),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
        },
    )


@app.errorhandler(404)
def not_found(error):
    if request.path.startswith('/api/'):
        return jsonify({'success': False, 'error': 'Not found'}), 404
    return render_template('not_found.html'), 404


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
