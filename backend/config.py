import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///rocketmath.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Round timing (seconds)
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '60'))
    MAINTAIN_INTERVAL_SEC = float(os.environ.get('MAINTAIN_INTERVAL_SEC', '1.0'))
    REPLENISH_DELAY_SEC = float(os.environ.get('REPLENISH_DELAY_SEC', '0.5'))
    # How many rockets (and, separately, planets) may fall at once
    ENTITY_CAPACITY = int(os.environ.get('ENTITY_CAPACITY', '4'))
    # Bomb disguise tuning
    BOMB_PROBABILITY = float(os.environ.get('BOMB_PROBABILITY', '0.3'))
    BOMB_MIN_LIVE_PLANETS = int(os.environ.get('BOMB_MIN_LIVE_PLANETS', '3'))
    # Width of the play field in px, used for collision-free placement
    GAME_AREA_WIDTH = int(os.environ.get('GAME_AREA_WIDTH', '360'))
    # Leaderboard store
    LEADERBOARD_LIMIT = int(os.environ.get('LEADERBOARD_LIMIT', '50'))
    SCORE_STORE_CAP = int(os.environ.get('SCORE_STORE_CAP', '1000'))
    SCORE_STORE_TRIM_TO = int(os.environ.get('SCORE_STORE_TRIM_TO', '500'))
    # Optional: remote leaderboard service. Empty means submit in-process.
    LEADERBOARD_URL = os.environ.get('LEADERBOARD_URL', '')
    LEADERBOARD_TIMEOUT_SEC = float(os.environ.get('LEADERBOARD_TIMEOUT_SEC', '2.0'))
    # Resolution of the live socket game driver (sec)
    GAME_TICK_SEC = float(os.environ.get('GAME_TICK_SEC', '0.1'))
