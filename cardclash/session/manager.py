"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Client creates a session -> game set up, engine created (in-memory only)
2. During the game:
   - Client submits intents (play, attack, end turn)
   - Intents that suspend for targeting stay in flight as a task
   - Targeting answers resume the task
   - Bot players take their turns automatically
3. Game ends or client quits -> session removed from memory

Sessions are in-memory only; the GameState document can be exported
with GameState.to_dict() if a caller wants to keep it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import asyncio
import logging
import time
import uuid

from ..bots import BotPlayer, FirstLegalPolicy, RandomPolicy
from ..catalog.cards import CardCatalog
from ..engine_core.config import GameConfig
from ..engine_core.engine import GameEngine
from ..engine_core.state import GameState, GameStatus
from ..engine_core.store import InMemoryGameStore
from ..games.starter import setup_game, create_rematch

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    WAITING_TARGETS = "waiting_targets"  # An intent is suspended for targeting
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # Client quit


@dataclass
class Session:
    """
    A game session.

    Contains:
    - The engine (and through it the store and targeting controller)
    - Bot players, keyed by player id
    - The in-flight engine task, if an intent is suspended
    """
    session_id: str
    engine: GameEngine
    created_at: float
    bots: dict[str, BotPlayer] = field(default_factory=dict)
    task: asyncio.Task | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    ended: bool = False

    @property
    def game_state(self) -> GameState:
        return self.engine.state

    @property
    def state(self) -> SessionState:
        if self.ended:
            return SessionState.ABANDONED
        if self.game_state.status == GameStatus.FINISHED:
            return SessionState.GAME_OVER
        if self.engine.targeting_in_progress:
            return SessionState.WAITING_TARGETS
        return SessionState.ACTIVE

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {SessionState.ACTIVE, SessionState.WAITING_TARGETS}

    def is_bot_turn(self) -> bool:
        state = self.game_state
        return state.is_playing and state.current_player_id in self.bots

    async def run_bot_turns(self, max_turns: int = 50):
        """Let bots play until a human player is active or the game ends."""
        for _ in range(max_turns):
            if not self.is_bot_turn():
                return
            bot = self.bots[self.game_state.current_player_id]
            await bot.play_turn()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions (game setup + engine)
    - Track active sessions
    - Clean up finished sessions
    """

    def __init__(self, config: GameConfig | None = None, catalog: CardCatalog | None = None):
        self.config = config or GameConfig.from_env()
        self.catalog = catalog
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        player_ids: list[str],
        bot_players: dict[str, str] | None = None,
        random_seed: int | None = None,
        deck: list[str] | None = None,
        config: GameConfig | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            player_ids: Players in turn order
            bot_players: player id -> policy name ("first_legal" or "random")
            random_seed: Seed for the deck shuffle (and random bots)
            deck: Optional deck of card ids
            config: Rules constants (manager default if not provided)

        Returns:
            New Session with the game in progress
        """
        config = config or self.config
        session_id = str(uuid.uuid4())
        state = setup_game(
            player_ids,
            catalog=self.catalog,
            deck=deck,
            config=config,
            random_seed=random_seed,
            game_id=session_id,
        )
        return self._register(session_id, state, config, bot_players or {}, random_seed)

    def create_rematch(self, session_id: str, random_seed: int | None = None) -> Session | None:
        """New session with the same players, library and bots."""
        old = self._sessions.get(session_id)
        if old is None:
            return None
        new_id = str(uuid.uuid4())
        state = create_rematch(old.game_state, config=old.engine.config, random_seed=random_seed, game_id=new_id)
        bot_players = {pid: old.metadata.get("bot_policies", {}).get(pid, "first_legal") for pid in old.bots}
        return self._register(new_id, state, old.engine.config, bot_players, random_seed)

    def _register(
        self,
        session_id: str,
        state: GameState,
        config: GameConfig,
        bot_players: dict[str, str],
        random_seed: int | None,
    ) -> Session:
        engine = GameEngine(InMemoryGameStore(state), config=config)
        session = Session(session_id=session_id, engine=engine, created_at=time.time())
        for player_id, policy_name in bot_players.items():
            if player_id not in state.players:
                raise ValueError(f"Bot player {player_id} is not in the game")
            session.bots[player_id] = BotPlayer(player_id, _make_policy(policy_name, random_seed), engine)
        session.metadata["bot_policies"] = dict(bot_players)

        self._sessions[session_id] = session
        logger.info("Created session %s (%d players, %d bots)", session_id, len(state.players), len(session.bots))
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> Session | None:
        """
        End a session and clean up.

        Cancels any pending targeting and in-flight task, then removes
        the session from memory.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return None
        session.engine.cancel_targeting()
        if session.task is not None and not session.task.done():
            session.task.cancel()
        for bot in session.bots.values():
            bot.detach()
        session.ended = True
        logger.info("Ended session %s (%s)", session_id, reason)
        return session

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [sid for sid, session in self._sessions.items() if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600):
        """
        Clean up finished sessions older than max_age.

        Called periodically to free memory.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")


def _make_policy(name: str, seed: int | None):
    if name == "random":
        return RandomPolicy(seed)
    if name == "first_legal":
        return FirstLegalPolicy()
    raise ValueError(f"Unknown bot policy: {name}")
