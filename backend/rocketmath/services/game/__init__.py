"""Game domain services: spawning, matching, scoring and round timers.

This package is the spawn-and-match engine. It has no Flask or Socket.IO
imports; transports subscribe to a GameSession's events and render them.
"""

from .session import GameSession, RoundResult, share_text
from .settings import GameSettings

__all__ = ['GameSession', 'GameSettings', 'RoundResult', 'share_text']
