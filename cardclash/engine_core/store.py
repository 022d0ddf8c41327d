"""
Game Store - Snapshot reads and atomic transactions over a GameState.

The engine never mutates a stored state in place. It either reads a
snapshot or hands a transaction function to change():

    store.change(lambda s: mutations.deal_damage(s, "p2", 3))

The function runs against a private copy; the copy replaces the stored
state only if the function returns without raising. Transactions are
serialized, so there is a single logical writer.
"""

from __future__ import annotations
from typing import Callable, Protocol, TypeVar
import logging
import threading

from .state import GameState

logger = logging.getLogger(__name__)

T = TypeVar("T")

Transaction = Callable[[GameState], T]


class GameStore(Protocol):
    """What the engine needs from a storage layer."""

    def read(self) -> GameState:
        """Return a snapshot the caller may freely inspect."""
        ...

    def change(self, transaction: Transaction[T]) -> T:
        """Apply a transaction atomically and return its result."""
        ...


class InMemoryGameStore:
    """
    GameStore backed by a single in-process document.

    Observers registered with subscribe() are called with the new state
    after every committed transaction.
    """

    def __init__(self, state: GameState):
        self._state = state.clone()
        self._lock = threading.RLock()
        self._observers: list[Callable[[GameState], None]] = []
        self.version = 0

    def read(self) -> GameState:
        with self._lock:
            return self._state.clone()

    def change(self, transaction: Transaction[T]) -> T:
        with self._lock:
            draft = self._state.clone()
            result = transaction(draft)
            self._state = draft
            self.version += 1
            logger.debug("Committed transaction %d for game %s", self.version, draft.game_id)
            snapshot = draft.clone() if self._observers else None
        if snapshot is not None:
            for observer in list(self._observers):
                observer(snapshot)
        return result

    def replace(self, state: GameState):
        """Swap in a whole new document (rematch, load from disk)."""
        with self._lock:
            self._state = state.clone()
            self.version += 1

    def subscribe(self, observer: Callable[[GameState], None]):
        self._observers.append(observer)
