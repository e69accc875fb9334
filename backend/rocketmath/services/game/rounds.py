import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .entities import SPAWN_KEY, EntityPool
from .scheduler import Scheduler
from .scoring import ScoreState
from .settings import GameSettings

logger = logging.getLogger(__name__)

COUNTDOWN_KEY = 'countdown'
MAINTAIN_KEY = 'maintain'


class RoundPhase(Enum):
    NOT_STARTED = 'not_started'
    RUNNING = 'running'
    ENDED = 'ended'


class RoundController:
    """Round timer plus spawn scheduling: NOT_STARTED -> RUNNING -> ENDED."""

    def __init__(self, settings: GameSettings, scheduler: Scheduler, pool: EntityPool,
                 state: ScoreState, emit: Optional[Callable[[str, Dict[str, Any]], None]] = None,
                 on_end: Optional[Callable[[], None]] = None):
        self.settings = settings
        self.scheduler = scheduler
        self.pool = pool
        self.state = state
        self._emit = emit or (lambda name, payload: None)
        self._on_end = on_end
        self.phase = RoundPhase.NOT_STARTED
        self.time_remaining = settings.round_duration
        self.rounds_started = 0

    @property
    def active(self) -> bool:
        return self.phase is RoundPhase.RUNNING

    def start(self) -> None:
        self._cleanup()
        self.state.reset()
        self.time_remaining = self.settings.round_duration
        self.phase = RoundPhase.RUNNING
        self.rounds_started += 1
        s = self.settings

        # Problems first, answers after a short delay
        for i in range(s.capacity):
            self.scheduler.call_later(i * s.initial_stagger, self.pool.spawn_rocket, key=SPAWN_KEY)
        for i in range(s.capacity):
            self.scheduler.call_later(s.initial_planet_delay + i * s.initial_stagger,
                                      self.pool.spawn_planet, key=SPAWN_KEY)

        self.scheduler.call_every(1.0, self._tick, key=COUNTDOWN_KEY)
        self.scheduler.call_every(s.maintain_interval, self.pool.maintain, key=MAINTAIN_KEY,
                                  first_delay=s.initial_planet_delay)
        logger.info('[round-start] round=%s duration=%ss capacity=%s',
                    self.rounds_started, s.round_duration, s.capacity)
        self._emit('round_started', {
            'round': self.rounds_started,
            'time_remaining': self.time_remaining,
            'capacity': s.capacity,
        })

    def _tick(self) -> None:
        if not self.active:
            return
        self.time_remaining = max(0, self.time_remaining - 1)
        self._emit('tick', {'time_remaining': self.time_remaining})
        if self.time_remaining <= 0:
            self.end()

    def end(self, notify: bool = True) -> bool:
        """Stop the round. Returns False if no round was running."""
        if not self.active:
            return False
        self.phase = RoundPhase.ENDED
        self._cleanup()
        logger.info('[round-end] round=%s score=%s streak=%s multiplier=%s',
                    self.rounds_started, self.state.score, self.state.streak, self.state.multiplier)
        if notify and self._on_end is not None:
            self._on_end()
        return True

    def restart(self) -> None:
        if self.active:
            self.end(notify=False)
        self.start()

    def _cleanup(self) -> None:
        # Force removals first so their events go out, then drop every
        # pending timer from this round in one sweep.
        self.pool.clear(reset_ids=True)
        self.scheduler.cancel_all()
        self.state.selected_rocket_id = None
