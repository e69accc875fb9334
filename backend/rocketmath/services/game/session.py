import logging
import random
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional

from .allocator import PositionAllocator
from .entities import EntityPool
from .problems import ProblemGenerator
from .rounds import RoundController, RoundPhase
from .scheduler import Scheduler
from .scoring import MatchEngine, MatchOutcome, ScoreState
from .settings import GameSettings

logger = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], None]

SHARE_TEMPLATE = 'I scored {score} points in Space Math Battle! Streak: {streak}, Multiplier: x{multiplier}'


@dataclass
class RoundResult:
    score: int
    streak: int
    multiplier: int
    session_score: int
    share_action: str

    def to_dict(self):
        return asdict(self)


def share_text(result: RoundResult) -> str:
    return SHARE_TEMPLATE.format(score=result.score, streak=result.streak,
                                 multiplier=result.multiplier)


class GameSession:
    """One player's play session: every piece of mutable game state.

    Construct one per player (or per test); nothing is shared between
    sessions. Time only moves when ``advance`` is called.
    """

    def __init__(self, settings: Optional[GameSettings] = None, *,
                 rng: Optional[random.Random] = None,
                 user_id: Optional[str] = None,
                 username: Optional[str] = None,
                 leaderboard=None,
                 is_embedded: bool = False,
                 on_round_end: Optional[Callable[[RoundResult], None]] = None,
                 total_score: int = 0):
        self.settings = settings or GameSettings()
        self.rng = rng or random.Random()
        self.user_id = user_id
        self.username = username
        self.leaderboard = leaderboard
        self.is_embedded = is_embedded
        self.on_round_end = on_round_end
        # Lifetime points before this session; submissions build on it
        self.total_score = max(0, int(total_score))
        self.last_result: Optional[RoundResult] = None
        self.last_submission: Optional[Dict[str, Any]] = None
        self._listeners: List[Listener] = []

        s = self.settings
        self.scheduler = Scheduler()
        self.score_state = ScoreState()
        self.allocator = PositionAllocator(s.area_width, rng=self.rng, margin=s.grid_margin,
                                           mobile=s.mobile)
        self.generator = ProblemGenerator(rng=self.rng)
        self.pool = EntityPool(s, self.scheduler, self.allocator, self.generator,
                               rng=self.rng, emit=self._emit)
        self.matcher = MatchEngine(s, self.pool, self.score_state, emit=self._emit)
        self.round = RoundController(s, self.scheduler, self.pool, self.score_state,
                                     emit=self._emit, on_end=self._finish_round)

    # ---- events ----

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, name: str, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(name, payload)
            except Exception:
                logger.exception('[listener-error] event=%s', name)

    # ---- lifecycle ----

    @property
    def phase(self) -> RoundPhase:
        return self.round.phase

    @property
    def time_remaining(self) -> int:
        return self.round.time_remaining

    def start(self) -> None:
        self.last_result = None
        self.round.start()

    def end(self) -> Optional[RoundResult]:
        if not self.round.end():
            return None
        return self.last_result

    def restart(self) -> None:
        self.round.restart()

    def cancel(self) -> None:
        """Tear down a running round without submitting it."""
        self.round.end(notify=False)

    def advance(self, seconds: float) -> int:
        return self.scheduler.advance(seconds)

    # ---- input ----

    def select_rocket(self, rocket_id) -> bool:
        if not self.round.active:
            return False
        return self.matcher.select_rocket(rocket_id)

    def choose_planet(self, planet_id) -> MatchOutcome:
        if not self.round.active:
            return MatchOutcome.IGNORED
        return self.matcher.resolve_planet_choice(planet_id)

    # ---- round end ----

    def _finish_round(self) -> None:
        state = self.score_state
        self.total_score += state.score
        result = RoundResult(
            score=self.total_score,
            streak=state.streak,
            multiplier=state.multiplier,
            session_score=state.score,
            share_action='native' if self.is_embedded else 'fallback',
        )
        self.last_result = result
        self._emit('round_ended', dict(result.to_dict(), share_text=share_text(result)))
        self.last_submission = self._submit(result)
        if self.on_round_end is not None:
            try:
                self.on_round_end(result)
            except Exception:
                logger.exception('[round-end] host callback failed')

    def _submit(self, result: RoundResult) -> Optional[Dict[str, Any]]:
        if self.leaderboard is None or not self.user_id:
            return None
        payload = {
            'userId': self.user_id,
            'username': self.username,
            'score': result.score,
            'streak': result.streak,
            'multiplier': result.multiplier,
            'sessionScore': result.session_score,
        }
        try:
            return self.leaderboard.submit_score(payload)
        except Exception:
            # Clients already swallow transport errors; this guards custom ones
            logger.exception('[submit] user=%s failed', self.user_id)
            return {'success': False}

    def snapshot(self) -> Dict[str, Any]:
        return {
            'phase': self.phase.value,
            'time_remaining': self.time_remaining,
            'total_score': self.total_score,
            'score': self.score_state.to_dict(),
            'rockets': [r.to_dict() for r in self.pool.rockets.values()],
            'planets': [p.to_dict() for p in self.pool.planets.values()],
        }
