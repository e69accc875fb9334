"""Score submission and leaderboard views, shared by HTTP routes and the
in-process client. Must run inside an application context."""

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from rocketmath import db
from . import store


class InvalidSubmission(ValueError):
    pass


def _as_int(data, key, default=None):
    value = data.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidSubmission(f'{key} must be an integer')


def save_score(data) -> dict:
    """Validate and upsert one submission, then trim the store.

    Raises InvalidSubmission before touching the database when userId or
    score is missing, so a rejected request never writes anything.
    """
    if not isinstance(data, dict):
        raise InvalidSubmission('Missing required fields')
    user_id = data.get('userId')
    if not user_id or data.get('score') is None:
        raise InvalidSubmission('Missing required fields')
    score = _as_int(data, 'score')
    streak = _as_int(data, 'streak', 0)
    multiplier = _as_int(data, 'multiplier', 1)
    session_score = _as_int(data, 'sessionScore')

    cfg = current_app.config
    try:
        record, created = store.upsert_score(str(user_id), data.get('username'), score,
                                             streak, multiplier, session_score)
        db.session.flush()
        store.trim_scores(int(cfg.get('SCORE_STORE_CAP', 1000)), int(cfg.get('SCORE_STORE_TRIM_TO', 500)))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    current_app.logger.info(
        f"[save-score] user={record.user_id} score={score} session={session_score} created={created}"
    )
    return {
        'success': True,
        'message': 'Score saved',
        'totalScores': store.scores_count(),
    }


def _limit() -> int:
    return int(current_app.config.get('LEADERBOARD_LIMIT', 50))


def daily() -> list:
    return [s.to_dict() for s in store.daily_leaderboard(_limit())]


def weekly() -> list:
    return [s.to_dict() for s in store.weekly_leaderboard(_limit())]


def position(user_id: str) -> dict:
    return store.user_position(user_id)


def stored_total(user_id: str) -> int:
    return store.stored_total(user_id)
