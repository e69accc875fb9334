import heapq
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class ScheduledAction:
    handle: int
    due: float
    callback: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    key: Optional[Hashable] = None
    interval: Optional[float] = None
    generation: int = 0


class Scheduler:
    """Table of pending timed actions driven by an explicit clock.

    Nothing fires on its own: whoever owns the scheduler calls ``advance``
    with the elapsed time (a socket background task in live play, the test
    itself under pytest). Every action remembers the generation it was
    scheduled in, and ``cancel_all`` bumps the generation, so a callback
    queued for a previous round can never run against the next one.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.generation = 0
        self._handles = itertools.count(1)
        self._heap: List[Tuple[float, int]] = []
        self._actions: Dict[int, ScheduledAction] = {}

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any,
                   key: Optional[Hashable] = None) -> int:
        return self._push(max(0.0, float(delay)), callback, args, key, None)

    def call_every(self, interval: float, callback: Callable[..., Any], *args: Any,
                   key: Optional[Hashable] = None, first_delay: Optional[float] = None) -> int:
        if interval <= 0:
            raise ValueError('interval must be positive')
        delay = interval if first_delay is None else max(0.0, float(first_delay))
        return self._push(delay, callback, args, key, float(interval))

    def _push(self, delay, callback, args, key, interval) -> int:
        handle = next(self._handles)
        action = ScheduledAction(
            handle=handle,
            due=self.now + delay,
            callback=callback,
            args=args,
            key=key,
            interval=interval,
            generation=self.generation,
        )
        self._actions[handle] = action
        heapq.heappush(self._heap, (action.due, handle))
        return handle

    def cancel(self, handle: int) -> bool:
        return self._actions.pop(handle, None) is not None

    def cancel_key(self, key: Hashable) -> int:
        """Cancel every pending action registered under ``key``."""
        doomed = [h for h, a in self._actions.items() if a.key == key]
        for h in doomed:
            del self._actions[h]
        return len(doomed)

    def cancel_all(self) -> None:
        self.generation += 1
        self._actions.clear()
        self._heap.clear()

    def pending(self, key: Optional[Hashable] = None) -> int:
        if key is None:
            return len(self._actions)
        return sum(1 for a in self._actions.values() if a.key == key)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due actions in due-time order.

        Actions scheduled while advancing also fire if they fall inside the
        window. Returns the number of callbacks run.
        """
        target = self.now + max(0.0, float(seconds))
        fired = 0
        while self._heap and self._heap[0][0] <= target:
            due, handle = heapq.heappop(self._heap)
            action = self._actions.get(handle)
            if action is None or action.due != due:
                continue
            self.now = max(self.now, due)
            if action.interval is None:
                del self._actions[handle]
            else:
                action.due = due + action.interval
                heapq.heappush(self._heap, (action.due, handle))
            if action.generation != self.generation:
                self._actions.pop(handle, None)
                continue
            fired += 1
            try:
                action.callback(*action.args)
            except Exception:
                # A failed spawn must not halt the countdown or other timers
                logger.exception('[timer-error] key=%s handle=%s', action.key, handle)
        self.now = max(self.now, target)
        return fired
