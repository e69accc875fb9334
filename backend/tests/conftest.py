import os
import random
import sys
import pytest

# Ensure the backend root (containing the `rocketmath` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from rocketmath import create_app, db, socketio
from rocketmath.services.game import GameSession, GameSettings


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LEADERBOARD_URL = ''
    LEADERBOARD_LIMIT = 50
    SCORE_STORE_CAP = 1000
    SCORE_STORE_TRIM_TO = 500


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import rocketmath.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def settings():
    # No bombs unless a test asks for them, so matches are predictable
    return GameSettings(bomb_probability=0.0)


@pytest.fixture()
def session(settings):
    return GameSession(settings, rng=random.Random(1234))


class RecordingLeaderboard:
    """Stands in for a leaderboard client and remembers submissions."""

    def __init__(self, result=None, fail=False):
        self.submitted = []
        self.result = result or {'success': True}
        self.fail = fail

    def submit_score(self, payload):
        self.submitted.append(payload)
        if self.fail:
            raise RuntimeError('leaderboard down')
        return self.result


@pytest.fixture()
def leaderboard():
    return RecordingLeaderboard()
