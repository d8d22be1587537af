"""In-process registry of live games.

Each entry owns one ``GameState`` and its own lock. Writers go through
``mutate()``; readers take the last published snapshot and never wait on a
writer. Games are isolated from each other, there is no registry-wide lock
around game commands.
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

from .state import GameState

Loader = Callable[[str], Optional[dict]]


class GameNotFound(KeyError):
    pass


@dataclass
class _Entry:
    state: GameState
    lock: threading.Lock = field(default_factory=threading.Lock)
    snapshot: dict = field(default_factory=dict)
    last_actions: Dict[str, float] = field(default_factory=dict)

    def publish(self) -> dict:
        self.snapshot = self.state.to_dict()
        return self.snapshot


class GameRegistry:
    def __init__(self, loader: Optional[Loader] = None):
        self._entries: Dict[str, _Entry] = {}
        self._guard = threading.Lock()  # only protects the dict itself
        self._loader = loader

    def set_loader(self, loader: Optional[Loader]) -> None:
        self._loader = loader

    def add(self, state: GameState) -> dict:
        entry = _Entry(state=state)
        with self._guard:
            if state.game_code in self._entries:
                raise ValueError(f"game {state.game_code} is already registered")
            self._entries[state.game_code] = entry
        return entry.publish()

    def _entry(self, game_code: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(game_code)
        if entry is not None:
            return entry
        data = self._loader(game_code) if self._loader else None
        if not data:
            raise GameNotFound(game_code)
        # Scores are rebuilt from slots while restoring.
        restored = _Entry(state=GameState.from_dict(data))
        restored.publish()
        with self._guard:
            return self._entries.setdefault(game_code, restored)

    def snapshot(self, game_code: str) -> dict:
        return self._entry(game_code).snapshot

    @contextmanager
    def mutate(self, game_code: str) -> Iterator[GameState]:
        """Exclusive access to one game; publishes a snapshot on every exit.

        A rejected engine command leaves the state as it was, so publishing
        after an exception only matters when something fails after the
        command went through.
        """
        entry = self._entry(game_code)
        with entry.lock:
            try:
                yield entry.state
            finally:
                entry.publish()

    def throttle(self, game_code: str, action: str, interval_ms: float, now: Optional[float] = None) -> bool:
        """True if `action` already ran on this game less than `interval_ms` ago.

        Otherwise records `now` for the action and returns False.
        """
        entry = self._entry(game_code)
        now = time.monotonic() * 1000.0 if now is None else now
        with entry.lock:
            last = entry.last_actions.get(action)
            if last is not None and now - last < interval_ms:
                return True
            entry.last_actions[action] = now
            return False

    def discard(self, game_code: str) -> None:
        with self._guard:
            self._entries.pop(game_code, None)

    def codes(self) -> List[str]:
        with self._guard:
            return list(self._entries)

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()
