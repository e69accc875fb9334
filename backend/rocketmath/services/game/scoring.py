import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .entities import EntityPool, PlanetState, RocketState
from .settings import GameSettings

logger = logging.getLogger(__name__)


class MatchOutcome(Enum):
    SELECTION_REQUIRED = 'selection_required'
    IGNORED = 'ignored'
    CORRECT = 'correct'
    WRONG = 'wrong'
    BOMB = 'bomb'


def multiplier_for(streak: int, max_exponent: int = 4) -> int:
    if streak <= 0:
        return 1
    return 2 ** min(streak - 1, max_exponent)


@dataclass
class ScoreState:
    score: int = 0
    streak: int = 0
    multiplier: int = 1
    selected_rocket_id: Optional[int] = None

    def reset(self) -> None:
        self.score = 0
        self.streak = 0
        self.multiplier = 1
        self.selected_rocket_id = None

    def apply_success(self, base_points: int, max_exponent: int = 4) -> int:
        self.streak += 1
        self.multiplier = multiplier_for(self.streak, max_exponent)
        points = base_points * self.multiplier
        self.score += points
        return points

    def apply_penalty(self, penalty: int) -> int:
        before = self.score
        self.streak = 0
        self.multiplier = 1
        self.score = max(0, self.score - penalty)
        return self.score - before

    def to_dict(self):
        return {
            'score': self.score,
            'streak': self.streak,
            'multiplier': self.multiplier,
            'selected_rocket_id': self.selected_rocket_id,
        }


class MatchEngine:
    """Resolves a rocket + planet selection into a scoring outcome.

    Idle -> RocketSelected on ``select_rocket``; any planet choice while a
    rocket is selected resolves back to Idle.
    """

    def __init__(self, settings: GameSettings, pool: EntityPool, state: ScoreState,
                 emit: Optional[Callable[[str, Dict[str, Any]], None]] = None):
        self.settings = settings
        self.pool = pool
        self.state = state
        self._emit = emit or (lambda name, payload: None)

    def select_rocket(self, rocket_id) -> bool:
        if self.pool.select_rocket(rocket_id) is None:
            return False
        self.state.selected_rocket_id = rocket_id
        self._emit('rocket_selected', {'id': rocket_id})
        return True

    def clear_selection(self) -> None:
        self.pool.clear_selection()
        self.state.selected_rocket_id = None

    def resolve_planet_choice(self, planet_id) -> MatchOutcome:
        if self.state.selected_rocket_id is None:
            self._emit('match_resolved', {'outcome': MatchOutcome.SELECTION_REQUIRED.value,
                                          'planet_id': planet_id})
            return MatchOutcome.SELECTION_REQUIRED
        rocket_id = self.state.selected_rocket_id
        planet = self.pool.get_planet(planet_id)
        rocket = self.pool.get_rocket(rocket_id)
        if planet is None or rocket is None:
            # Expired mid-interaction
            logger.debug('[match-ignored] rocket=%s planet=%s', rocket_id, planet_id)
            return MatchOutcome.IGNORED

        s = self.settings
        points = 0
        if planet.is_bomb:
            outcome = MatchOutcome.BOMB
            points = self.state.apply_penalty(s.penalty)
            self.clear_selection()
            self.pool.remove_planet(planet_id, cause='bomb', outcome=PlanetState.WRONG)
            self.pool.replenish(s.replenish_delay, rockets=False, planets=True)
        elif planet.answer == rocket.answer:
            outcome = MatchOutcome.CORRECT
            points = self.state.apply_success(s.points_per_match, s.max_multiplier_exponent)
            self.clear_selection()
            self.pool.remove_rocket(rocket_id, cause='matched', outcome=RocketState.SOLVED)
            self.pool.remove_planet(planet_id, cause='matched', outcome=PlanetState.CORRECT)
            self.pool.replenish(s.replenish_delay, rockets=True, planets=True)
        else:
            outcome = MatchOutcome.WRONG
            points = self.state.apply_penalty(s.penalty)
            self.clear_selection()
            self.pool.remove_planet(planet_id, cause='wrong', outcome=PlanetState.WRONG)
            self.pool.replenish(s.replenish_delay, rockets=False, planets=True)

        self._emit('match_resolved', {
            'outcome': outcome.value,
            'rocket_id': rocket_id,
            'planet_id': planet_id,
            'points': points,
        })
        self._emit('score_changed', self.state.to_dict())
        return outcome
