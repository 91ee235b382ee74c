MATCH_STATUSES = ('pending', 'in_progress', 'completed')
MATCH_TYPES = ('group', 'knockout')

TOURNAMENT_FORMATS = {
    'group_knockout': 'Group Stage + Knockout',
    'single_elimination': 'Single Elimination',
    'double_elimination': 'Double Elimination',
}

TOURNAMENT_STATUSES = {
    'setup': 'Setup',
    'group_stage': 'Group Stage',
    'knockout': 'Knockout Stage',
    'completed': 'Completed',
}


def _to_text(value, default):
    """Display text for a raw field; YAML may hand back numbers for names."""
    if value is None or value == '':
        return default
    return str(value)


def _to_int(value):
    """Coerce a raw score/number to int, or None if missing or unparsable."""
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class Tournament:
    def __init__(self, id, name, format='single_elimination', status='setup', max_teams=0,
                 group_size=None, description=None, start_date=None, end_date=None, location=None):
        self.id = id
        self.name = name
        self.format = format
        self.status = status
        self.max_teams = max_teams
        self.group_size = group_size
        self.description = description
        self.start_date = start_date
        self.end_date = end_date
        self.location = location

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get('id', '')),
            name=_to_text(data.get('name'), str(data.get('id', ''))),
            format=str(data.get('format') or 'single_elimination'),
            status=str(data.get('status') or 'setup'),
            max_teams=_to_int(data.get('max_teams')) or 0,
            group_size=_to_int(data.get('group_size')),
            description=data.get('description'),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            location=data.get('location'),
        )

    def to_dict(self):
        return dict(self.__dict__)

    @property
    def format_label(self):
        return TOURNAMENT_FORMATS.get(self.format, self.format)

    @property
    def status_label(self):
        return TOURNAMENT_STATUSES.get(self.status, self.status)

    def __repr__(self):
        return f"Tournament(id={self.id}, name={self.name}, format={self.format})"


class Team:
    def __init__(self, id, name, tournament_id=None, captain=None, players=None):
        self.id = id
        self.name = name
        self.tournament_id = tournament_id
        self.captain = captain
        self.players = players if players else []

    @classmethod
    def from_dict(cls, data):
        players = data.get('players') or []
        if isinstance(players, str):
            players = [players]
        return cls(
            id=str(data.get('id', '')),
            name=_to_text(data.get('name'), 'TBD'),
            tournament_id=data.get('tournament_id'),
            captain=data.get('captain'),
            players=list(players),
        )

    def to_dict(self):
        return dict(self.__dict__, players=list(self.players))

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name})"


class Match:
    """A group or knockout match as stored by the backend.

    Only ``id`` is required; every other field may be missing on pending
    or partially entered matches.
    """

    FIELDS = ('id', 'tournament_id', 'match_type', 'round_name', 'round_number', 'match_number',
              'status', 'scheduled_at', 'team1_id', 'team2_id', 'team1_score', 'team2_score',
              'team1_balls', 'team2_balls', 'table_number', 'winner_id', 'next_match_id',
              'note', 'updated_at')
    INT_FIELDS = ('round_number', 'match_number', 'team1_score', 'team2_score',
                  'team1_balls', 'team2_balls', 'table_number')
    ID_FIELDS = ('team1_id', 'team2_id', 'winner_id', 'next_match_id')

    def __init__(self, id, **fields):
        self.id = id
        for name in self.FIELDS[1:]:
            setattr(self, name, fields.get(name))
        if not self.match_type:
            self.match_type = 'group'
        if not self.status:
            self.status = 'pending'

    @classmethod
    def from_dict(cls, data):
        fields = {name: data.get(name) for name in cls.FIELDS[1:]}
        for name in cls.INT_FIELDS:
            fields[name] = _to_int(fields[name])
        for name in cls.ID_FIELDS:
            if fields[name] is not None and fields[name] != '':
                fields[name] = str(fields[name])
            else:
                fields[name] = None
        return cls(str(data.get('id', '')), **fields)

    def to_dict(self):
        return {name: getattr(self, name) for name in self.FIELDS}

    @property
    def is_completed(self):
        return self.status == 'completed'

    def __repr__(self):
        return f"Match(id={self.id}, type={self.match_type}, status={self.status})"


def bracket_section_of(match):
    """Return the bracket section key a knockout match belongs to.

    Double elimination brackets tag their section in ``round_name``; any
    other knockout match belongs to the undifferentiated section.
    """
    round_name = str(match.get('round_name') or '').lower()
    if round_name in ('upper', 'lower'):
        return round_name
    if round_name in ('grand-final', 'grand_final', 'grandfinal'):
        return 'grand-final'
    return 'other'


def validate_match(match, matches_by_id=None):
    """Check a match record against the data model invariants.

    Returns a list of human-readable problems (empty when valid).
    ``matches_by_id`` enables the next-match link check.
    """
    problems = []
    status = match.get('status')
    if status not in MATCH_STATUSES:
        problems.append(f"Unknown status: {status}")
    if match.get('match_type') not in MATCH_TYPES:
        problems.append(f"Unknown match type: {match.get('match_type')}")

    team1 = match.get('team1_id')
    team2 = match.get('team2_id')
    if status == 'completed':
        if not team1 or not team2:
            problems.append('A completed match needs both teams')
        if match.get('team1_score') is None or match.get('team2_score') is None:
            problems.append('A completed match needs both scores')
    winner = match.get('winner_id')
    if winner and winner not in (team1, team2):
        problems.append('Winner must be one of the two teams')

    next_id = match.get('next_match_id')
    if next_id and matches_by_id is not None and next_id in matches_by_id:
        target = matches_by_id[next_id]
        if bracket_section_of(target) != bracket_section_of(match):
            problems.append('Next match must be in the same bracket section')
        elif (target.get('round_number') or 0) <= (match.get('round_number') or 0):
            problems.append('Next match must be in a later round')
    return problems
