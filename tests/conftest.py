"""
Shared pytest fixtures for dashboard tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


def make_match(id, **fields):
    """Match dict with the defaults the loaders would fill in."""
    match = {
        'id': id,
        'match_type': 'knockout',
        'status': 'pending',
        'round_name': None,
        'round_number': None,
        'match_number': None,
        'team1_id': None,
        'team2_id': None,
        'team1_score': None,
        'team2_score': None,
        'winner_id': None,
        'next_match_id': None,
    }
    match.update(fields)
    return match


def make_group_match(id, group, team1, team2, score1=None, score2=None, balls1=None, balls2=None,
                     status='completed'):
    return make_match(id, match_type='group', round_name=group, status=status,
                      team1_id=team1, team2_id=team2, team1_score=score1, team2_score=score2,
                      team1_balls=balls1, team2_balls=balls2)


@pytest.fixture
def client():
    """Create a test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Temporary data directory with one group + knockout tournament."""
    import app as app_module
    from filelock import FileLock

    tournaments_dir = tmp_path / "tournaments"
    cup_dir = tournaments_dir / "cup"
    cup_dir.mkdir(parents=True)

    tournaments_file = tmp_path / "tournaments.yaml"
    tournaments_file.write_text(yaml.dump({'tournaments': [
        {'id': 'cup', 'name': 'Test Cup', 'format': 'group_knockout', 'status': 'knockout', 'max_teams': 4},
    ]}, default_flow_style=False))

    (cup_dir / "teams.yaml").write_text(yaml.dump({'teams': [
        {'id': 't1', 'name': 'Alpha', 'players': ['Ann', 'Abe']},
        {'id': 't2', 'name': 'Bravo', 'players': ['Ben', 'Bea']},
        {'id': 't3', 'name': 'Charlie', 'players': ['Cal', 'Cat']},
        {'id': 't4', 'name': 'Delta', 'players': ['Dan', 'Dee']},
    ]}, default_flow_style=False))

    (cup_dir / "matches.yaml").write_text(yaml.dump({'matches': [
        {'id': 'g1', 'match_type': 'group', 'round_name': 'group-1', 'status': 'completed',
         'team1_id': 't1', 'team2_id': 't2', 'team1_score': 2, 'team2_score': 0,
         'team1_balls': 8, 'team2_balls': 3, 'updated_at': '2025-11-22T18:30:00'},
        {'id': 'g2', 'match_type': 'group', 'round_name': 'group-1', 'status': 'pending',
         'team1_id': 't3', 'team2_id': 't4', 'scheduled_at': '2025-11-22T19:00:00'},
        {'id': 's1', 'match_type': 'knockout', 'round_name': 'semi-final', 'round_number': 1,
         'match_number': 1, 'status': 'pending', 'team1_id': 't1', 'team2_id': 't4', 'next_match_id': 'f1'},
        {'id': 's2', 'match_type': 'knockout', 'round_name': 'semi-final', 'round_number': 1,
         'match_number': 2, 'status': 'pending', 'team1_id': 't2', 'team2_id': 't3', 'next_match_id': 'f1'},
        {'id': 'f1', 'match_type': 'knockout', 'round_name': 'final', 'round_number': 2,
         'match_number': 1, 'status': 'pending'},
    ]}, default_flow_style=False, sort_keys=False))

    registrations_file = tmp_path / "registrations.yaml"
    registrations_file.write_text(yaml.dump({'registrations': [
        {'team_name': 'Alpha', 'players': ['Ann', 'Abe']},
        {'team_name': 'Bravo', 'players': ['Ben', '-']},
    ]}, default_flow_style=False))

    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text(yaml.dump({'event_name': 'Test Cup Night'}, default_flow_style=False))

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_FILE', str(tournaments_file))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_DIR', str(tournaments_dir))
    monkeypatch.setattr(app_module, 'REGISTRATIONS_FILE', str(registrations_file))
    monkeypatch.setattr(app_module, 'SETTINGS_FILE', str(settings_file))
    monkeypatch.setattr(app_module, '_data_lock', FileLock(str(tmp_path / '.lock'), timeout=10))

    return tmp_path
