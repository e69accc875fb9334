from dataclasses import dataclass
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class GameSettings:
    round_duration: int = 60
    capacity: int = 4
    bomb_probability: float = 0.3
    bomb_min_live_planets: int = 3
    maintain_interval: float = 1.0
    replenish_delay: float = 0.5
    area_width: float = 360
    mobile: bool = False
    padding: float = 10
    grid_margin: float = 30
    # Entity geometry (px) and fall time ranges (sec)
    rocket_width: float = 70
    rocket_height: float = 50
    rocket_fall: Tuple[float, float] = (4.0, 6.0)
    planet_width: float = 50
    planet_height: float = 50
    planet_fall: Tuple[float, float] = (5.0, 7.0)
    # Spawn pacing (sec)
    initial_stagger: float = 1.0
    initial_planet_delay: float = 1.5
    maintain_stagger: float = 0.8
    # Scoring
    points_per_match: int = 10
    penalty: int = 5
    max_multiplier_exponent: int = 4

    @classmethod
    def from_config(cls, config: Mapping[str, Any], **overrides) -> 'GameSettings':
        """Build settings from a Flask config mapping; missing keys keep defaults."""
        mapping = {
            'ROUND_DURATION_SEC': ('round_duration', int),
            'ENTITY_CAPACITY': ('capacity', int),
            'BOMB_PROBABILITY': ('bomb_probability', float),
            'BOMB_MIN_LIVE_PLANETS': ('bomb_min_live_planets', int),
            'MAINTAIN_INTERVAL_SEC': ('maintain_interval', float),
            'REPLENISH_DELAY_SEC': ('replenish_delay', float),
            'GAME_AREA_WIDTH': ('area_width', float),
        }
        values = {}
        for key, (attr, cast) in mapping.items():
            if config.get(key) is not None:
                values[attr] = cast(config[key])
        values.update(overrides)
        return cls(**values)
