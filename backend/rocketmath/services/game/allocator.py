import math
import random
from typing import Dict, Optional, Tuple

DEFAULT_MARGIN = 30
DEFAULT_MAX_ATTEMPTS = 50
MOBILE_MAX_ATTEMPTS = 20


class PositionAllocator:
    """Grid-based horizontal slot allocator for falling entities.

    The x axis is cut into cells of ``width + margin`` per width class. A
    cell is claimed by the position that won it, and only a release with
    that same position frees it again, so an entity placed by the
    overlapping fallback can never free a cell another entity owns.
    """

    def __init__(self, container_width: float, rng: Optional[random.Random] = None,
                 margin: float = DEFAULT_MARGIN, mobile: bool = False,
                 max_attempts: Optional[int] = None):
        self.container_width = float(container_width)
        self.rng = rng or random.Random()
        self.margin = margin
        if max_attempts is None:
            max_attempts = MOBILE_MAX_ATTEMPTS if mobile else DEFAULT_MAX_ATTEMPTS
        self.max_attempts = max_attempts
        self._claims: Dict[Tuple[float, int], float] = {}

    def cell_key(self, position: float, width: float) -> Tuple[float, int]:
        return (width, math.floor(position / (width + self.margin)))

    def is_claimed(self, position: float, width: float) -> bool:
        return self.cell_key(position, width) in self._claims

    @property
    def claimed_count(self) -> int:
        return len(self._claims)

    def _candidate(self, width: float, padding: float) -> float:
        low = padding
        high = self.container_width - width - padding
        if high <= low:
            return low
        return low + self.rng.random() * (high - low)

    def allocate(self, width: float, height: float = 0, padding: float = 10) -> float:
        # height is accepted for parity with the placement call sites; only
        # the horizontal axis is slotted
        for _ in range(self.max_attempts):
            x = self._candidate(width, padding)
            key = self.cell_key(x, width)
            if key not in self._claims:
                self._claims[key] = x
                return x
        # Exhausted: tolerate overlap rather than blocking the spawn
        x = self._candidate(width, padding)
        self._claims.setdefault(self.cell_key(x, width), x)
        return x

    def release(self, position: float, width: float) -> None:
        key = self.cell_key(position, width)
        if self._claims.get(key) == position:
            del self._claims[key]

    def clear(self) -> None:
        self._claims.clear()
