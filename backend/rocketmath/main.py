from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from rocketmath import db
from rocketmath.services.leaderboard import store

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Space Math Battle server!'})


@main.route('/api/health')
def health():
    try:
        count = store.scores_count()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[health] score count unavailable: {exc}")
        count = 0
    return jsonify({
        'status': 'ok',
        'scoresCount': count,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
