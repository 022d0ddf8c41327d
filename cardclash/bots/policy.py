"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes a game state and returns a decision.
Decisions include:
- Which action to take
- Which targets to pick when a card script asks for them

BotPlayer connects a policy to a GameEngine: it plays whole turns and
answers targeting sessions opened by its own scripts.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
import logging
import random

from ..engine_core.action import ActionType
from ..engine_core.action_generator import legal_actions

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action import Action, ActionResult
    from ..engine_core.engine import GameEngine
    from ..engine_core.targeting import Target, TargetingSession

logger = logging.getLogger(__name__)


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for UI/debugging)
    - Confidence in the decision
    """
    action: Action
    explanation: str = ""
    confidence: float = 1.0
    evaluated_actions: int = 0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects actions and targets.
    """

    @abstractmethod
    def select_action(self, state: GameState, legal_actions: list[Action]) -> BotDecision:
        """
        Select an action from the legal actions.

        Args:
            state: Current game state
            legal_actions: List of legal actions to choose from

        Returns:
            BotDecision with the selected action
        """

    @abstractmethod
    def select_targets(self, state: GameState, session: TargetingSession) -> list[Target]:
        """
        Pick targets for a pending targeting session.

        Returns at most selector.target_count candidates; an empty list
        means the bot declines (the session is cancelled).
        """

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


def _opponent_first(session: TargetingSession) -> list[Target]:
    """Candidates not owned by the sourcer first, then the rest."""
    sourcer = session.selector.sourcer_id
    hostile = [t for t in session.candidates if t.player_id != sourcer]
    friendly = [t for t in session.candidates if t.player_id == sourcer]
    return hostile + friendly


class RandomPolicy(BotPolicy):
    """
    Random policy - selects actions uniformly at random.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(self, state: GameState, legal_actions: list[Action]) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")

        action = self.rng.choice(legal_actions)
        return BotDecision(
            action=action,
            explanation="Selected randomly",
            confidence=1.0 / len(legal_actions),
            evaluated_actions=len(legal_actions),
        )

    def select_targets(self, state: GameState, session: TargetingSession) -> list[Target]:
        if not session.candidates:
            return []
        count = min(session.selector.target_count, len(session.candidates))
        return self.rng.sample(session.candidates, count)


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - always selects the first legal action.

    Used for:
    - Deterministic testing
    - Baseline comparison
    """

    def select_action(self, state: GameState, legal_actions: list[Action]) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")

        return BotDecision(
            action=legal_actions[0],
            explanation="Selected first legal action",
            evaluated_actions=1,
        )

    def select_targets(self, state: GameState, session: TargetingSession) -> list[Target]:
        return _opponent_first(session)[:session.selector.target_count]


class BotPlayer:
    """
    Drives one player of a GameEngine with a policy.

    Usage:
        bot = BotPlayer("p2", FirstLegalPolicy(), engine)
        await bot.play_turn()
    """

    def __init__(self, player_id: str, policy: BotPolicy, engine: GameEngine, max_actions_per_turn: int = 30):
        self.player_id = player_id
        self.policy = policy
        self.engine = engine
        self.max_actions_per_turn = max_actions_per_turn
        engine.targeting.add_listener(self._on_targeting)

    def detach(self):
        self.engine.targeting.remove_listener(self._on_targeting)

    async def play_turn(self) -> list[ActionResult]:
        """
        Take actions until the turn passes or the game ends.

        Actions that failed are not retried in the same turn; end turn
        is forced once the action limit is reached.
        """
        results: list[ActionResult] = []
        failed: set[str] = set()

        for _ in range(self.max_actions_per_turn):
            state = self.engine.state
            if not state.is_playing or state.current_player_id != self.player_id:
                return results

            options = [a for a in legal_actions(state) if a.describe() not in failed]
            decision = self.policy.select_action(state, options)
            logger.debug("%s: %s (%s)", self.player_id, decision.action.describe(), decision.explanation)

            result = await self.engine.apply(decision.action)
            results.append(result)
            if not result.success:
                failed.add(decision.action.describe())
            elif decision.action.action_type == ActionType.END_TURN:
                return results

        state = self.engine.state
        if state.is_playing and state.current_player_id == self.player_id:
            results.append(await self.engine.end_turn(self.player_id))
        return results

    def _on_targeting(self, session: TargetingSession):
        if session.selector.sourcer_id != self.player_id:
            return
        targets = self.policy.select_targets(self.engine.state, session)
        if not targets:
            session.cancel()
            return
        for target in targets:
            if session.is_resolved:
                break
            session.select(target)
        if not session.is_resolved:
            session.confirm()
