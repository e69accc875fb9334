from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from rocketmath import db
from rocketmath.models import DEFAULT_USERNAME, Score, utcnow


def _ranked():
    return Score.query.order_by(Score.score.desc(), Score.timestamp.asc(), Score.id.asc())


def _day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def upsert_score(user_id: str, username: Optional[str], score: int, streak: int = 0,
                 multiplier: int = 1, session_score: Optional[int] = None) -> Tuple[Score, bool]:
    """Insert or update the single record kept per user.

    The incoming score replaces the stored one; streak and multiplier keep
    the best seen. Does not commit.
    """
    record = Score.query.filter_by(user_id=user_id).first()
    now = utcnow()
    if record is not None:
        record.score = score
        record.streak = max(record.streak or 0, streak)
        record.multiplier = max(record.multiplier or 1, multiplier)
        if username:
            record.username = username
        if session_score is not None:
            record.session_score = session_score
        record.timestamp = now
        created = False
    else:
        record = Score(
            user_id=user_id,
            username=username or DEFAULT_USERNAME,
            score=score,
            streak=streak,
            multiplier=multiplier,
            session_score=session_score,
            timestamp=now,
        )
        created = True
    db.session.add(record)
    return record, created


def trim_scores(cap: int, keep: int) -> int:
    """Once above ``cap`` rows, keep only the newest ``keep``. Does not commit."""
    total = Score.query.count()
    if total <= cap:
        return 0
    newest_ids = [
        row.id for row in
        Score.query.with_entities(Score.id).order_by(Score.timestamp.desc(), Score.id.desc()).limit(keep)
    ]
    removed = Score.query.filter(~Score.id.in_(newest_ids)).delete(synchronize_session=False)
    return removed


def daily_leaderboard(limit: int, day: Optional[date] = None) -> List[Score]:
    """Records saved today. "Today" is the UTC date, not the server's local date."""
    start, stop = _day_bounds(day or utcnow().date())
    return _ranked().filter(Score.timestamp >= start, Score.timestamp < stop).limit(limit).all()


def weekly_leaderboard(limit: int) -> List[Score]:
    # All-time despite the name; clients depend on this behaviour
    return _ranked().limit(limit).all()


def _rank_of(query, user_id: str) -> int:
    for idx, (uid,) in enumerate(query.with_entities(Score.user_id), start=1):
        if uid == user_id:
            return idx
    return 0


def user_position(user_id: str, day: Optional[date] = None) -> dict:
    if not Score.query.filter_by(user_id=user_id).first():
        return {'daily': 0, 'weekly': 0}
    start, stop = _day_bounds(day or utcnow().date())
    daily = _ranked().filter(Score.timestamp >= start, Score.timestamp < stop)
    return {
        'daily': _rank_of(daily, user_id),
        'weekly': _rank_of(_ranked(), user_id),
    }


def stored_total(user_id: str) -> int:
    record = Score.query.filter_by(user_id=user_id).first()
    return record.score if record is not None else 0


def scores_count() -> int:
    return Score.query.count()
