"""
Plain data records shared by the draw engine, the store and the web app.
"""
from typing import Dict, Optional


UPCOMING = 'upcoming'
LIVE = 'live'
DELAYED = 'delayed'
COMPLETED = 'completed'
BYE = 'bye'

MATCH_STATUSES = (UPCOMING, LIVE, DELAYED, COMPLETED, BYE)

# Round 0 holds regular season / group play; elimination rounds start at 1.
REGULAR_SEASON_ROUND = 0


class Competitor:
    def __init__(self, id, name, seed=None, affiliation=None):
        self.id = id
        self.name = name
        self.seed = seed
        self.affiliation = affiliation

    @property
    def is_seeded(self):
        return self.seed is not None

    def to_dict(self) -> Dict:
        data = {'id': self.id, 'name': self.name}
        if self.seed is not None:
            data['seed'] = self.seed
        if self.affiliation:
            data['affiliation'] = self.affiliation
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Competitor':
        seed = data.get('seed')
        return cls(
            id=str(data['id']),
            name=data.get('name') or str(data['id']),
            seed=int(seed) if seed not in (None, '') else None,
            affiliation=data.get('affiliation'),
        )

    def __eq__(self, other):
        return isinstance(other, Competitor) and self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Competitor(id={self.id}, name={self.name}, seed={self.seed})"


class Win:
    """A decided result naming the winning competitor."""

    def __init__(self, competitor_id):
        self.competitor_id = competitor_id

    def __eq__(self, other):
        return isinstance(other, Win) and other.competitor_id == self.competitor_id

    def __hash__(self):
        return hash(('win', self.competitor_id))

    def __repr__(self):
        return f"Win({self.competitor_id})"


class Draw:
    """A tied result. Only legal for regular season matches."""

    def __eq__(self, other):
        return isinstance(other, Draw)

    def __hash__(self):
        return hash('draw')

    def __repr__(self):
        return "Draw"


class Pending:
    """No result entered yet."""

    def __eq__(self, other):
        return isinstance(other, Pending)

    def __hash__(self):
        return hash('pending')

    def __repr__(self):
        return "Pending"


DRAW = Draw()
PENDING = Pending()


def parse_result(value):
    """Turn a submitted winner into a Result.

    Accepts an existing Win/Draw/Pending, a competitor id, or None/'' for no
    result. Any other value is a competitor id, whatever it spells.
    """
    if isinstance(value, (Win, Draw, Pending)):
        return value
    if value is None or value == '':
        return PENDING
    return Win(str(value))


def result_to_dict(result) -> Optional[Dict]:
    """Tagged mapping stored under a match's 'result' key (None while pending)."""
    if isinstance(result, Win):
        return {'type': 'win', 'competitor_id': result.competitor_id}
    if isinstance(result, Draw):
        return {'type': 'draw'}
    return None


def result_from_dict(data):
    if data is None:
        return PENDING
    kind = data.get('type') if isinstance(data, dict) else None
    if kind == 'win' and data.get('competitor_id') is not None:
        return Win(str(data['competitor_id']))
    if kind == 'draw':
        return DRAW
    raise ValueError(f"Unknown match result: {data!r}")


class Match:
    def __init__(self, id, round, match_number, competitor1_id=None, competitor2_id=None,
                 status=UPCOMING, result=None, score1=None, score2=None, event_id=None,
                 group_number=None, third_place=False, scheduled_time=None, court=None):
        self.id = id
        self.event_id = event_id
        self.round = round
        self.match_number = match_number
        self.competitor1_id = competitor1_id
        self.competitor2_id = competitor2_id
        self.status = status
        self.result = result if result is not None else PENDING
        self.score1 = score1
        self.score2 = score2
        self.group_number = group_number
        self.third_place = third_place
        self.scheduled_time = scheduled_time  # owned by scheduling
        self.court = court

    @property
    def winner_id(self) -> Optional[str]:
        if isinstance(self.result, Win):
            return self.result.competitor_id
        return None

    @property
    def loser_id(self) -> Optional[str]:
        winner = self.winner_id
        if winner is None or self.status == BYE:
            return None
        if winner == self.competitor1_id:
            return self.competitor2_id
        if winner == self.competitor2_id:
            return self.competitor1_id
        return None

    @property
    def competitors(self):
        return [c for c in (self.competitor1_id, self.competitor2_id) if c is not None]

    @property
    def is_placeholder(self) -> bool:
        return (self.competitor1_id is None and self.competitor2_id is None
                and self.status == UPCOMING)

    @property
    def is_decided(self) -> bool:
        return self.status in (COMPLETED, BYE) and not isinstance(self.result, Pending)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'event_id': self.event_id,
            'round': self.round,
            'match_number': self.match_number,
            'competitor1_id': self.competitor1_id,
            'competitor2_id': self.competitor2_id,
            'status': self.status,
            'result': result_to_dict(self.result),
            'score1': self.score1,
            'score2': self.score2,
            'group_number': self.group_number,
            'third_place': self.third_place,
            'scheduled_time': self.scheduled_time,
            'court': self.court,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            id=data['id'],
            event_id=data.get('event_id'),
            round=int(data.get('round', 0)),
            match_number=int(data.get('match_number', 1)),
            competitor1_id=data.get('competitor1_id'),
            competitor2_id=data.get('competitor2_id'),
            status=data.get('status', UPCOMING),
            result=result_from_dict(data.get('result')),
            score1=data.get('score1'),
            score2=data.get('score2'),
            group_number=data.get('group_number'),
            third_place=bool(data.get('third_place', False)),
            scheduled_time=data.get('scheduled_time'),
            court=data.get('court'),
        )

    def __repr__(self):
        return (f"Match(round={self.round}, match_number={self.match_number}, "
                f"competitors=({self.competitor1_id}, {self.competitor2_id}), "
                f"status={self.status}, result={self.result!r})")


class Standing:
    def __init__(self, competitor_id):
        self.competitor_id = competitor_id
        self.played = 0
        self.wins = 0
        self.draws = 0
        self.losses = 0
        self.goals_for = 0
        self.goals_against = 0
        self.points = 0

    @property
    def goal_differential(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> Dict:
        return {
            'competitor_id': self.competitor_id,
            'played': self.played,
            'wins': self.wins,
            'draws': self.draws,
            'losses': self.losses,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'goal_differential': self.goal_differential,
            'points': self.points,
        }

    def __repr__(self):
        return (f"Standing(competitor_id={self.competitor_id}, points={self.points}, "
                f"W-D-L={self.wins}-{self.draws}-{self.losses}, GD={self.goal_differential})")
