"""Game domain services: deck, boards, scoring, rounds and ranking.

This package contains pure domain logic that should be imported by
HTTP routes and socket handlers, keeping transport and storage concerns
separated from core game mechanics. Nothing in here touches Flask or the DB.
"""

from .errors import GameError
from .registry import GameNotFound, GameRegistry
from .state import GameConfig, GameState, Phase

__all__ = ['GameError', 'GameNotFound', 'GameRegistry', 'GameConfig', 'GameState', 'Phase']
