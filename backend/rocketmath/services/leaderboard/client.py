import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

SUBMIT_FAILED = {'success': False}
NO_POSITION = {'daily': 0, 'weekly': 0}


class LeaderboardClient:
    """HTTP client for the leaderboard service.

    Every call is bounded by ``timeout`` and never raises: transport or
    decoding failures are logged and replaced with a safe default so the
    round-end flow and the leaderboard UI always complete.
    """

    def __init__(self, base_url: str, timeout: float = 2.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = session or requests.Session()

    def _url(self, path: str) -> str:
        return f'{self.base_url}{path}'

    def _get(self, path: str):
        r = self.http.get(self._url(path), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def submit_score(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = self.http.post(self._url('/api/save-score'), json=payload, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning('[save-score] user=%s failed: %s', payload.get('userId'), exc)
            return dict(SUBMIT_FAILED)
        if not isinstance(data, dict):
            return dict(SUBMIT_FAILED)
        data.setdefault('success', False)
        return data

    def get_daily_leaderboard(self) -> List[Dict[str, Any]]:
        try:
            return list(self._get('/api/leaderboard/daily'))
        except (requests.RequestException, ValueError, TypeError) as exc:
            logger.warning('[leaderboard-daily] fetch failed: %s', exc)
            return []

    def get_weekly_leaderboard(self) -> List[Dict[str, Any]]:
        try:
            return list(self._get('/api/leaderboard/weekly'))
        except (requests.RequestException, ValueError, TypeError) as exc:
            logger.warning('[leaderboard-weekly] fetch failed: %s', exc)
            return []

    def get_user_position(self, user_id: str) -> Dict[str, int]:
        try:
            data = self._get(f'/api/user-position/{quote(str(user_id), safe="")}')
            return {'daily': int(data.get('daily', 0)), 'weekly': int(data.get('weekly', 0))}
        except (requests.RequestException, ValueError, TypeError, AttributeError) as exc:
            logger.warning('[user-position] user=%s fetch failed: %s', user_id, exc)
            return dict(NO_POSITION)


class LocalLeaderboardClient:
    """Same interface as LeaderboardClient, writing straight to the store.

    Used when the game server and the leaderboard share a database.
    """

    def __init__(self, app):
        self.app = app

    def submit_score(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        from rocketmath.services.leaderboard import service
        with self.app.app_context():
            try:
                return service.save_score(payload)
            except service.InvalidSubmission as exc:
                logger.warning('[save-score] rejected: %s', exc)
                return dict(SUBMIT_FAILED)
            except SQLAlchemyError:
                logger.exception('[save-score] user=%s failed', payload.get('userId'))
                return dict(SUBMIT_FAILED)

    def get_daily_leaderboard(self) -> List[Dict[str, Any]]:
        from rocketmath.services.leaderboard import service
        with self.app.app_context():
            try:
                return service.daily()
            except SQLAlchemyError:
                logger.exception('[leaderboard-daily] fetch failed')
                return []

    def get_weekly_leaderboard(self) -> List[Dict[str, Any]]:
        from rocketmath.services.leaderboard import service
        with self.app.app_context():
            try:
                return service.weekly()
            except SQLAlchemyError:
                logger.exception('[leaderboard-weekly] fetch failed')
                return []

    def get_user_position(self, user_id: str) -> Dict[str, int]:
        from rocketmath.services.leaderboard import service
        with self.app.app_context():
            try:
                return service.position(user_id)
            except SQLAlchemyError:
                logger.exception('[user-position] user=%s fetch failed', user_id)
                return dict(NO_POSITION)

    def get_user_total(self, user_id: str) -> int:
        """Lifetime score stored for ``user_id``, 0 when unknown."""
        from rocketmath.services.leaderboard import service
        with self.app.app_context():
            try:
                return service.stored_total(user_id)
            except SQLAlchemyError:
                logger.exception('[user-total] user=%s fetch failed', user_id)
                return 0
