"""
Game Engine - Orchestrates intents into transactions.

The engine is the runtime that:
1. Reads snapshots from the GameStore
2. Validates intents with the Reducer
3. Runs spell scripts (two-phase commit: collect, then commit)
4. Fires triggered abilities after the transaction that caused them
5. Refuses new intents while a targeting session is pending

Every public operation is a coroutine because a spell script may
suspend in select_targets() until an external chooser answers.
"""

from __future__ import annotations
from typing import Any
import logging

from . import mutations
from .action import Action, ActionType, ActionResult, ErrorCode
from .config import GameConfig
from .effects import (
    EffectAPI,
    OperationType,
    SpellOperation,
    TriggeredEffectAPI,
    apply_operations,
    run_effect,
)
from .reducer import Reducer, requires_script
from .script import ScriptCompiler
from .state import GameState, LogAction
from .store import GameStore
from .targeting import TargetingController, TargetingSession
from ..catalog.cards import TriggerEvent, TriggeredAbility

logger = logging.getLogger(__name__)


class GameEngine:
    """
    Async front door to a single game.

    Usage:
        engine = GameEngine(InMemoryGameStore(state))
        result = await engine.play_card("p1", "card_003")
    """

    def __init__(
        self,
        store: GameStore,
        config: GameConfig | None = None,
        targeting: TargetingController | None = None,
        compiler: ScriptCompiler | None = None,
    ):
        self.store = store
        self.config = config or GameConfig()
        self.reducer = Reducer(config=self.config)
        self.targeting = targeting or TargetingController()
        self.compiler = compiler or ScriptCompiler()

    @property
    def state(self) -> GameState:
        """Current snapshot."""
        return self.store.read()

    @property
    def targeting_in_progress(self) -> bool:
        return self.targeting.is_pending

    @property
    def pending_targeting(self) -> TargetingSession | None:
        return self.targeting.pending

    # =========================================================================
    # Intents
    # =========================================================================

    async def apply(self, action: Action) -> ActionResult:
        """Dispatch an Action to the matching intent."""
        p = action.payload
        if action.action_type == ActionType.PLAY_CARD:
            return await self.play_card(p.player_id, p.card_id)
        if action.action_type == ActionType.ATTACK_PLAYER:
            return await self.attack_player(p.player_id, p.instance_id, p.target_player_id)
        if action.action_type == ActionType.ATTACK_CREATURE:
            return await self.attack_creature(
                p.player_id, p.instance_id, p.target_player_id, p.target_instance_id
            )
        if action.action_type == ActionType.END_TURN:
            return await self.end_turn(p.player_id)
        return ActionResult.failure(f"No handler for action type: {action.action_type}")

    async def end_turn(self, player_id: str) -> ActionResult:
        refused = self._refuse_while_targeting()
        if refused:
            return refused

        result = self.store.change(lambda s: self.reducer.end_turn(s, player_id))
        if not result.success:
            return result

        logger.info("%s ended turn", player_id)
        await self._fire_for_player(TriggerEvent.END_TURN, player_id, {"player_id": player_id})
        next_player = self.store.read().current_player_id
        await self._fire_for_player(TriggerEvent.START_TURN, next_player, {"player_id": next_player})
        return self._finish(result)

    async def play_card(self, player_id: str, card_id: str) -> ActionResult:
        """
        Play a card from hand.

        Scripted spells run their script against a snapshot first and are
        paid for only if the script succeeds.
        """
        refused = self._refuse_while_targeting()
        if refused:
            return refused

        snapshot = self.store.read()
        failure = self.reducer.validate_play(snapshot, player_id, card_id)
        if failure:
            return failure

        definition = snapshot.card_library[card_id]
        if not requires_script(definition):
            result = self.store.change(lambda s: self.reducer.play_card(s, player_id, card_id))
            if result.success:
                logger.info("%s played %s", player_id, definition.name)
                await self._fire_play_card(player_id, card_id)
            return self._finish(result)

        return await self._cast(snapshot, player_id, card_id)

    async def attack_player(
        self, player_id: str, instance_id: str, target_player_id: str, damage: int | None = None
    ) -> ActionResult:
        refused = self._refuse_while_targeting()
        if refused:
            return refused

        result = self.store.change(
            lambda s: self.reducer.attack_player(s, player_id, instance_id, target_player_id, damage)
        )
        if not result.success:
            return result

        last_attack = self._last_entry(LogAction.ATTACK)
        await self._fire_for_creature(
            TriggerEvent.DEAL_DAMAGE, player_id, instance_id,
            {"damage": last_attack.amount if last_attack else damage, "target_player_id": target_player_id},
        )
        return self._finish(result)

    async def attack_creature(
        self, player_id: str, instance_id: str, target_player_id: str, target_instance_id: str
    ) -> ActionResult:
        refused = self._refuse_while_targeting()
        if refused:
            return refused

        result = self.store.change(
            lambda s: self.reducer.attack_creature(
                s, player_id, instance_id, target_player_id, target_instance_id
            )
        )
        if not result.success:
            return result

        last_attack = self._last_entry(LogAction.ATTACK)
        damage = last_attack.amount if last_attack else None
        await self._fire_for_creature(
            TriggerEvent.DEAL_DAMAGE, player_id, instance_id,
            {"damage": damage, "target_player_id": target_player_id, "target_instance_id": target_instance_id},
        )
        await self._fire_for_creature(
            TriggerEvent.TAKE_DAMAGE, target_player_id, target_instance_id,
            {"damage": damage, "source_player_id": player_id, "source_instance_id": instance_id},
        )
        return self._finish(result)

    def cancel_targeting(self):
        """Abandon the pending targeting session, if any."""
        self.targeting.cancel_pending()

    # =========================================================================
    # Two-phase cast
    # =========================================================================

    async def _cast(self, snapshot: GameState, player_id: str, card_id: str) -> ActionResult:
        definition = snapshot.card_library[card_id]
        api = EffectAPI(snapshot, caster_id=player_id, controller=self.targeting)
        outcome = await run_effect(definition.effect_script, api, self.compiler)

        if outcome.success and outcome.targeting_cancelled and self.config.abort_cast_on_cancel:
            outcome.success = False
            outcome.error = "Targeting was cancelled"

        if not outcome.success:
            logger.warning("Cast of %s by %s failed: %s", definition.name, player_id, outcome.error)
            self.store.change(
                lambda s: self.reducer.record_cast_failure(s, player_id, card_id, outcome.error or "")
            )
            return ActionResult.failure(
                f"Failed to cast {definition.name}: {outcome.error}", ErrorCode.SCRIPT_FAILED
            )

        result = self.store.change(
            lambda s: self.reducer.commit_cast(s, player_id, card_id, outcome.operations)
        )
        if not result.success:
            logger.info("Cast of %s by %s abandoned at commit: %s", definition.name, player_id, result.error)
            return result

        logger.info("%s cast %s (%d operations)", player_id, definition.name, len(outcome.operations))
        await self._fire_damage_taken(outcome.operations)
        await self._fire_play_card(player_id, card_id)
        return self._finish(result)

    # =========================================================================
    # Triggered abilities
    # =========================================================================

    async def _fire_play_card(self, player_id: str, card_id: str):
        """play_card triggers: opponents for a permanent, everyone for a spell."""
        state = self.store.read()
        definition = state.card_library[card_id]
        listeners = state.opponents_of(player_id) if definition.is_permanent else list(state.players)
        context = {"player_id": player_id, "card_id": card_id}
        for listener in listeners:
            await self._fire_for_player(TriggerEvent.PLAY_CARD, listener, context)

    async def _fire_damage_taken(self, operations: list[SpellOperation]):
        for op in operations:
            if op.op_type == OperationType.DAMAGE_CREATURE:
                await self._fire_for_creature(
                    TriggerEvent.TAKE_DAMAGE, op.player_id, op.instance_id, {"damage": op.amount}
                )

    async def _fire_for_player(self, event: TriggerEvent, player_id: str | None, context: dict[str, Any]):
        if player_id is None:
            return
        for card in self.store.read().get_battlefield(player_id):
            await self._fire_for_creature(event, player_id, card.instance_id, context)

    async def _fire_for_creature(
        self, event: TriggerEvent, player_id: str, instance_id: str, context: dict[str, Any]
    ):
        state = self.store.read()
        if not state.is_playing:
            return
        card = state.find_battlefield_card(player_id, instance_id)
        if card is None:
            return
        for ability in state.card_library[card.card_id].abilities_for(event):
            await self._run_ability(player_id, instance_id, ability, event, context)

    async def _run_ability(
        self,
        owner_id: str,
        instance_id: str,
        ability: TriggeredAbility,
        event: TriggerEvent,
        context: dict[str, Any],
    ):
        snapshot = self.store.read()
        card = snapshot.find_battlefield_card(owner_id, instance_id)
        if card is None or not snapshot.is_playing:
            return
        name = snapshot.card_library[card.card_id].name

        api = TriggeredEffectAPI(
            snapshot,
            owner_id=owner_id,
            instance_id=instance_id,
            controller=self.targeting,
            trigger_context={"event": event.value, **context},
        )
        outcome = await run_effect(ability.effect_script, api, self.compiler)
        if not outcome.success:
            logger.warning("Triggered ability of %s (%s) failed: %s", name, event.value, outcome.error)
            return

        def commit(s: GameState):
            mutations.add_log_entry(
                s, owner_id, LogAction.TRIGGERED_ABILITY,
                description=f"{name}: {ability.description or 'triggered ability'}",
                card_id=card.card_id,
                instance_id=instance_id,
            )
            apply_operations(s, outcome.operations)
            mutations.check_game_over(s)

        self.store.change(commit)
        logger.debug("Triggered %s on %s for %s", event.value, name, owner_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _refuse_while_targeting(self) -> ActionResult | None:
        if self.targeting.is_pending:
            return ActionResult.failure(
                "A targeting session is in progress", ErrorCode.TARGETING_PENDING
            )
        return None

    def _last_entry(self, action: LogAction):
        for entry in reversed(self.store.read().game_log):
            if entry.action == action:
                return entry
        return None

    def _finish(self, result: ActionResult) -> ActionResult:
        if result.success:
            result.new_state = self.store.read()
        return result
