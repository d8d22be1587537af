from ringgame import db
from datetime import datetime, timezone
import json
import secrets
import string
import random


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_game_code(length=4):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not Game.query.filter_by(game_code=code).first():
            return code


class Game(db.Model):
    """Stored copy of a game's latest snapshot.

    The engine never reads or writes this table; the web layer saves a
    snapshot after each accepted command and hands it back to the registry
    when a game is not in memory (e.g. after a restart).
    """
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(4), unique=True, index=True, nullable=False)
    title = db.Column(db.String(128), nullable=False)
    status = db.Column(db.String(16), default='lobby', nullable=False)  # lobby, active, ended
    host_token = db.Column(db.String(64), nullable=False)
    snapshot = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def __init__(self, **kwargs):
        super(Game, self).__init__(**kwargs)
        if not self.game_code:
            self.game_code = generate_game_code()
        if not self.host_token:
            self.host_token = secrets.token_urlsafe(24)

    def store(self, snapshot: dict) -> None:
        self.snapshot = json.dumps(snapshot)
        self.status = snapshot['phase']

    def load(self) -> dict:
        return json.loads(self.snapshot)

    def to_summary(self):
        data = self.load()
        teams = data.get('teams') or []
        return {
            'game_code': self.game_code,
            'title': self.title,
            'status': self.status,
            'team_count': len(teams),
            'joined_teams': sum(1 for t in teams if t.get('members')),
            'member_count': sum(len(t.get('members') or []) for t in teams),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


def load_game_snapshot(game_code: str):
    game = Game.query.filter_by(game_code=game_code).first()
    return game.load() if game else None
