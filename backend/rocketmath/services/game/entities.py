import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .allocator import PositionAllocator
from .problems import Problem, ProblemGenerator
from .scheduler import Scheduler
from .settings import GameSettings

logger = logging.getLogger(__name__)

SPAWN_KEY = 'spawn'

Emit = Callable[[str, Dict[str, Any]], None]


class RocketState(Enum):
    FALLING = 'falling'
    SELECTED = 'selected'
    SOLVED = 'solved'
    REMOVED = 'removed'


class PlanetState(Enum):
    FALLING = 'falling'
    CORRECT = 'correct'
    WRONG = 'wrong'
    REMOVED = 'removed'


@dataclass
class Rocket:
    id: int
    problem: Problem
    position: float
    width: float
    fall_duration: float
    state: RocketState = RocketState.FALLING

    @property
    def answer(self) -> int:
        return self.problem.answer

    def to_dict(self):
        return {
            'id': self.id,
            'text': self.problem.text,
            'answer': self.answer,
            'position': self.position,
            'width': self.width,
            'fall_duration': self.fall_duration,
            'state': self.state.value,
        }


@dataclass
class Planet:
    id: int
    answer: int
    is_bomb: bool
    position: float
    width: float
    fall_duration: float
    state: PlanetState = PlanetState.FALLING

    def to_dict(self):
        return {
            'id': self.id,
            'answer': self.answer,
            'is_bomb': self.is_bomb,
            'position': self.position,
            'width': self.width,
            'fall_duration': self.fall_duration,
            'state': self.state.value,
        }


def _rocket_key(rocket_id: int):
    return ('rocket', rocket_id)


def _planet_key(planet_id: int):
    return ('planet', planet_id)


class EntityPool:
    """Owns the live rockets and planets, their slots and fall timers.

    Removal is idempotent: whichever of expiry, a match or round end gets
    there first wins and the others are no-ops, so a slot is released and
    a live count decremented exactly once per entity.
    """

    def __init__(self, settings: GameSettings, scheduler: Scheduler,
                 allocator: PositionAllocator, generator: ProblemGenerator,
                 rng: Optional[random.Random] = None, emit: Optional[Emit] = None):
        self.settings = settings
        self.scheduler = scheduler
        self.allocator = allocator
        self.generator = generator
        self.rng = rng or random.Random()
        self._emit = emit or (lambda name, payload: None)
        self.rockets: Dict[int, Rocket] = {}
        self.planets: Dict[int, Planet] = {}
        self._next_rocket_id = 0
        self._next_planet_id = 0

    @property
    def capacity(self) -> int:
        return self.settings.capacity

    def live_rocket_answers(self) -> List[int]:
        return [r.answer for r in self.rockets.values()]

    def get_rocket(self, rocket_id) -> Optional[Rocket]:
        return self.rockets.get(rocket_id)

    def get_planet(self, planet_id) -> Optional[Planet]:
        return self.planets.get(planet_id)

    # ---- spawning ----

    def spawn_rocket(self) -> Optional[Rocket]:
        if len(self.rockets) >= self.capacity:
            return None
        s = self.settings
        problem = self.generator.generate_problem()
        position = self.allocator.allocate(s.rocket_width, s.rocket_height, s.padding)
        rocket = Rocket(
            id=self._next_rocket_id,
            problem=problem,
            position=position,
            width=s.rocket_width,
            fall_duration=self.rng.uniform(*s.rocket_fall),
        )
        self._next_rocket_id += 1
        self.rockets[rocket.id] = rocket
        self.scheduler.call_later(rocket.fall_duration, self._expire_rocket, rocket,
                                  key=_rocket_key(rocket.id))
        self._emit('rocket_spawned', rocket.to_dict())
        return rocket

    def spawn_planet(self) -> Optional[Planet]:
        if len(self.planets) >= self.capacity:
            return None
        s = self.settings
        live_answers = self.live_rocket_answers()
        answer = self.generator.generate_planet_answer(
            live_answers, len(self.planets), s.bomb_probability, s.bomb_min_live_planets
        )
        position = self.allocator.allocate(s.planet_width, s.planet_height, s.padding)
        planet = Planet(
            id=self._next_planet_id,
            answer=answer,
            # Classified once, against the rockets live right now
            is_bomb=self.generator.is_bomb(answer, live_answers),
            position=position,
            width=s.planet_width,
            fall_duration=self.rng.uniform(*s.planet_fall),
        )
        self._next_planet_id += 1
        self.planets[planet.id] = planet
        self.scheduler.call_later(planet.fall_duration, self._expire_planet, planet,
                                  key=_planet_key(planet.id))
        self._emit('planet_spawned', planet.to_dict())
        return planet

    def maintain(self, rockets: bool = True, planets: bool = True) -> None:
        """Top both kinds back up to capacity, staggering the spawns."""
        stagger = self.settings.maintain_stagger
        if rockets:
            for i in range(self.capacity - len(self.rockets)):
                self.scheduler.call_later(i * stagger, self.spawn_rocket, key=SPAWN_KEY)
        if planets:
            for i in range(self.capacity - len(self.planets)):
                self.scheduler.call_later(i * stagger, self.spawn_planet, key=SPAWN_KEY)

    def replenish(self, delay: float, rockets: bool = True, planets: bool = True) -> None:
        self.scheduler.call_later(delay, self.maintain, rockets, planets, key=SPAWN_KEY)

    # ---- selection ----

    def select_rocket(self, rocket_id) -> Optional[Rocket]:
        rocket = self.rockets.get(rocket_id)
        if rocket is None:
            return None
        self.clear_selection()
        rocket.state = RocketState.SELECTED
        return rocket

    def clear_selection(self) -> None:
        for r in self.rockets.values():
            if r.state is RocketState.SELECTED:
                r.state = RocketState.FALLING

    # ---- removal ----

    def _expire_rocket(self, rocket: Rocket) -> None:
        if self.rockets.get(rocket.id) is rocket:
            self.remove_rocket(rocket.id, cause='expired')

    def _expire_planet(self, planet: Planet) -> None:
        if self.planets.get(planet.id) is planet:
            self.remove_planet(planet.id, cause='expired')

    def remove_rocket(self, rocket_id, cause: str = 'removed',
                      outcome: Optional[RocketState] = None) -> bool:
        rocket = self.rockets.pop(rocket_id, None)
        if rocket is None:
            return False
        self.allocator.release(rocket.position, rocket.width)
        self.scheduler.cancel_key(_rocket_key(rocket_id))
        shown = outcome or RocketState.REMOVED
        rocket.state = RocketState.REMOVED
        self._emit('rocket_removed', {'id': rocket_id, 'cause': cause, 'state': shown.value})
        return True

    def remove_planet(self, planet_id, cause: str = 'removed',
                      outcome: Optional[PlanetState] = None) -> bool:
        planet = self.planets.pop(planet_id, None)
        if planet is None:
            return False
        self.allocator.release(planet.position, planet.width)
        self.scheduler.cancel_key(_planet_key(planet_id))
        shown = outcome or PlanetState.REMOVED
        planet.state = PlanetState.REMOVED
        self._emit('planet_removed', {'id': planet_id, 'cause': cause, 'state': shown.value})
        return True

    def clear(self, reset_ids: bool = False) -> None:
        """Force-remove everything and drop pending spawns."""
        self.scheduler.cancel_key(SPAWN_KEY)
        for rocket_id in list(self.rockets):
            self.remove_rocket(rocket_id, cause='round_end')
        for planet_id in list(self.planets):
            self.remove_planet(planet_id, cause='round_end')
        self.allocator.clear()
        if reset_ids:
            self._next_rocket_id = 0
            self._next_planet_id = 0
        logger.debug('[pool-clear] reset_ids=%s', reset_ids)
