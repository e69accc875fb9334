from datetime import datetime, timezone

from rocketmath import db

DEFAULT_USERNAME = 'Anonymous'


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Score(db.Model):
    __tablename__ = 'score'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    username = db.Column(db.String(128), nullable=False, default=DEFAULT_USERNAME)
    # Lifetime total as reported by the client, not a delta
    score = db.Column(db.Integer, nullable=False, default=0)
    streak = db.Column(db.Integer, nullable=False, default=0)
    multiplier = db.Column(db.Integer, nullable=False, default=1)
    session_score = db.Column(db.Integer, nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def to_dict(self):
        return {
            'userId': self.user_id,
            'username': self.username,
            'score': self.score,
            'streak': self.streak,
            'multiplier': self.multiplier,
            'sessionScore': self.session_score,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }
