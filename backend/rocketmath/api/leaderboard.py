from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from rocketmath.services.leaderboard import service

leaderboard = Blueprint('leaderboard', __name__)


@leaderboard.route('/save-score', methods=['POST'])
def save_score():
    data = request.get_json(silent=True)
    try:
        result = service.save_score(data)
    except service.InvalidSubmission as exc:
        return jsonify({'error': str(exc)}), 400
    except SQLAlchemyError:
        current_app.logger.exception('[save-score] database error')
        return jsonify({'error': 'Internal server error'}), 500
    return jsonify(result)


@leaderboard.route('/leaderboard/daily', methods=['GET'])
def daily_leaderboard():
    return jsonify(service.daily())


@leaderboard.route('/leaderboard/weekly', methods=['GET'])
def weekly_leaderboard():
    return jsonify(service.weekly())


@leaderboard.route('/user-position/<string:user_id>', methods=['GET'])
def user_position(user_id):
    return jsonify(service.position(user_id))
