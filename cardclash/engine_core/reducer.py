"""
Reducer - Validates player intents and applies them to game state.

Every rule of the game lives here. Methods mutate the GameState they
are given and return an ActionResult; the engine calls them on the
draft inside GameStore.change(), so one intent is one transaction.

Design principles:
- Validate before applying; a failed validation changes nothing
- Distinct error codes for every validation failure
- Script execution is not done here (see effects.py / engine.py);
  commit_cast only applies operations a script already produced
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from . import mutations
from .action import Action, ActionType, ActionResult, ErrorCode
from .config import GameConfig
from .effects import SpellOperation, apply_operations
from .state import GameState, BattlefieldCard, LogAction
from ..catalog.cards import CardDefinition, CardType

logger = logging.getLogger(__name__)


def requires_script(definition: CardDefinition) -> bool:
    """Only spells with an effect script go through the effect engine."""
    return definition.card_type == CardType.SPELL and bool(definition.effect_script)


@dataclass
class Reducer:
    """
    Reducer applies player intents to game state.

    Stateless - all state is in GameState.
    Config provides the tunable rules constants.
    """
    config: GameConfig = field(default_factory=GameConfig)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to a copy of the state.

        Returns ActionResult with the new state or an error. The given
        state is never modified.
        """
        draft = state.clone()
        result = self.apply_in_place(draft, action)
        if result.success:
            result.new_state = draft
        return result

    def apply_in_place(self, state: GameState, action: Action) -> ActionResult:
        """Dispatch an action against a transaction draft."""
        p = action.payload
        if action.action_type == ActionType.END_TURN:
            return self.end_turn(state, p.player_id)
        if action.action_type == ActionType.PLAY_CARD:
            return self.play_card(state, p.player_id, p.card_id)
        if action.action_type == ActionType.ATTACK_PLAYER:
            return self.attack_player(state, p.player_id, p.instance_id, p.target_player_id)
        if action.action_type == ActionType.ATTACK_CREATURE:
            return self.attack_creature(
                state, p.player_id, p.instance_id, p.target_player_id, p.target_instance_id
            )
        return ActionResult.failure(f"No handler for action type: {action.action_type}")

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_turn(self, state: GameState, player_id: str) -> ActionResult | None:
        """Common checks: game in progress, known player, player's turn."""
        if not state.is_playing:
            return ActionResult.failure("Game is not in progress", ErrorCode.GAME_NOT_ACTIVE)
        if player_id not in state.players:
            return ActionResult.failure(f"Player {player_id} not in game", ErrorCode.UNKNOWN_PLAYER)
        if not state.is_active_player(player_id):
            return ActionResult.failure(f"Not {player_id}'s turn", ErrorCode.NOT_YOUR_TURN)
        return None

    def validate_play(self, state: GameState, player_id: str, card_id: str) -> ActionResult | None:
        """
        Check that a card can be played right now.

        Returns a failure result if invalid, None if valid.
        """
        failure = self.validate_turn(state, player_id)
        if failure:
            return failure
        if card_id not in state.get_hand(player_id):
            return ActionResult.failure(f"Card {card_id} not in hand", ErrorCode.CARD_NOT_IN_HAND)
        definition = state.get_card(card_id)
        if definition is None:
            return ActionResult.failure(f"Unknown card {card_id}", ErrorCode.UNKNOWN_CARD)
        resources = state.resources[player_id]
        if definition.cost > resources.energy:
            return ActionResult.failure(
                f"Not enough energy: {definition.name} costs {definition.cost}, have {resources.energy}",
                ErrorCode.INSUFFICIENT_ENERGY,
            )
        return None

    def validate_attacker(
        self, state: GameState, player_id: str, instance_id: str
    ) -> tuple[ActionResult | None, BattlefieldCard | None, CardDefinition | None]:
        """Check that an instance may attack. Returns (failure, card, definition)."""
        failure = self.validate_turn(state, player_id)
        if failure:
            return failure, None, None
        card = state.find_battlefield_card(player_id, instance_id)
        if card is None:
            return ActionResult.failure(
                f"Creature {instance_id} not on {player_id}'s battlefield",
                ErrorCode.CREATURE_NOT_FOUND,
            ), None, None
        definition = state.get_card(card.card_id)
        if definition is None:
            return ActionResult.failure(f"Unknown card {card.card_id}", ErrorCode.UNKNOWN_CARD), None, None
        if not definition.attack or definition.attack <= 0:
            return ActionResult.failure(f"{definition.name} cannot attack", ErrorCode.NO_ATTACK), None, None
        if card.sapped:
            return ActionResult.failure(f"{definition.name} is sapped", ErrorCode.CREATURE_SAPPED), None, None
        return None, card, definition

    # =========================================================================
    # Turn controller
    # =========================================================================

    def end_turn(self, state: GameState, player_id: str) -> ActionResult:
        """
        End the active player's turn.

        One transaction: refresh the next player's creatures, advance the
        turn, restore energy, log, draw and regenerate.
        """
        failure = self.validate_turn(state, player_id)
        if failure:
            return failure

        next_index = (state.current_player_index + 1) % len(state.players)
        mutations.refresh_creatures(state, state.players[next_index])
        next_player = mutations.advance_to_next_player(state)
        mutations.apply_energy_policy(state, next_player, self.config)
        mutations.add_log_entry(state, player_id, LogAction.END_TURN, description="Ended turn")

        for _ in range(self.config.cards_drawn_per_turn):
            card_id = mutations.draw_card(state, next_player)
            if card_id is None:
                break
            mutations.add_log_entry(state, next_player, LogAction.DRAW_CARD, description="Drew a card")

        mutations.regenerate_creatures(state, next_player, self.config.creature_regeneration_per_turn)

        logger.debug("Turn passed from %s to %s (turn %d)", player_id, next_player, state.turn_number)
        return ActionResult.success_with_state(
            state, changes=[f"{player_id} ended turn; {next_player} is active"]
        )

    # =========================================================================
    # Card-play resolver
    # =========================================================================

    def play_card(self, state: GameState, player_id: str, card_id: str) -> ActionResult:
        """
        Play a card that needs no script.

        Permanents enter the battlefield sapped; script-less spells go
        straight to the graveyard.

        Raises:
            ValueError: for a scripted spell, which must be cast through
                the engine.
        """
        failure = self.validate_play(state, player_id, card_id)
        if failure:
            return failure

        definition = state.card_library[card_id]
        if requires_script(definition):
            raise ValueError(f"{definition.name} has an effect script and must be cast by the engine")

        mutations.spend_energy(state, player_id, definition.cost)
        mutations.remove_card_from_hand(state, player_id, card_id)

        instance_id = None
        if definition.is_permanent:
            instance_id = mutations.put_onto_battlefield(state, player_id, card_id).instance_id
        else:
            mutations.add_to_graveyard(state, card_id)

        mutations.add_log_entry(
            state, player_id, LogAction.PLAY_CARD,
            description=f"Played {definition.name}",
            card_id=card_id,
            instance_id=instance_id,
            amount=definition.cost,
        )
        return ActionResult.success_with_state(state, changes=[f"{player_id} played {definition.name}"])

    def commit_cast(
        self,
        state: GameState,
        player_id: str,
        card_id: str,
        operations: list[SpellOperation],
    ) -> ActionResult:
        """
        Second phase of a scripted cast.

        Re-validates against the current state; if the cast is no longer
        legal only a cast_failed entry is written.
        """
        failure = self.validate_play(state, player_id, card_id)
        if failure:
            self.record_cast_failure(state, player_id, card_id, failure.error or "")
            return failure

        definition = state.card_library[card_id]
        mutations.spend_energy(state, player_id, definition.cost)
        mutations.remove_card_from_hand(state, player_id, card_id)
        mutations.add_to_graveyard(state, card_id)
        mutations.add_log_entry(
            state, player_id, LogAction.CAST,
            description=f"Cast {definition.name}",
            card_id=card_id,
            amount=definition.cost,
        )

        applied = apply_operations(state, operations)
        mutations.check_game_over(state)

        result = ActionResult.success_with_state(state, changes=[f"{player_id} cast {definition.name}"])
        result.state_changes.extend(op.description or op.op_type.value for op in applied)
        return result

    def record_cast_failure(self, state: GameState, player_id: str, card_id: str, reason: str):
        """Write the single log entry of a failed cast. Card and energy stay put."""
        definition = state.get_card(card_id)
        name = definition.name if definition else card_id
        mutations.add_log_entry(
            state, player_id, LogAction.CAST_FAILED,
            description=f"Failed to cast {name}: {reason}" if reason else f"Failed to cast {name}",
            card_id=card_id,
        )

    # =========================================================================
    # Combat resolver
    # =========================================================================

    def attack_player(
        self,
        state: GameState,
        player_id: str,
        instance_id: str,
        target_player_id: str,
        damage: int | None = None,
    ) -> ActionResult:
        """Attack another player's life total with a creature."""
        failure, card, definition = self.validate_attacker(state, player_id, instance_id)
        if failure:
            return failure
        if target_player_id not in state.players:
            return ActionResult.failure(f"Player {target_player_id} not in game", ErrorCode.UNKNOWN_PLAYER)
        if target_player_id == player_id:
            return ActionResult.failure("Cannot attack yourself", ErrorCode.INVALID_TARGET)

        amount = definition.attack if damage is None else damage
        mutations.sap_creature(state, player_id, instance_id)
        mutations.deal_damage(state, target_player_id, amount)
        mutations.add_log_entry(
            state, player_id, LogAction.ATTACK,
            description=f"{definition.name} attacked player for {amount} damage",
            card_id=card.card_id,
            instance_id=instance_id,
            target_id=target_player_id,
            amount=amount,
        )
        mutations.check_game_over(state)

        return ActionResult.success_with_state(
            state, changes=[f"{definition.name} hit {target_player_id} for {amount}"]
        )

    def attack_creature(
        self,
        state: GameState,
        player_id: str,
        instance_id: str,
        target_player_id: str,
        target_instance_id: str,
    ) -> ActionResult:
        """
        Attack a card on an opponent's battlefield.

        Damage is simultaneous: a target creature with attack strikes
        back even if the attack kills it.
        """
        failure, card, definition = self.validate_attacker(state, player_id, instance_id)
        if failure:
            return failure
        if target_player_id not in state.players:
            return ActionResult.failure(f"Player {target_player_id} not in game", ErrorCode.UNKNOWN_PLAYER)
        if target_player_id == player_id:
            return ActionResult.failure("Cannot attack your own cards", ErrorCode.INVALID_TARGET)
        target = state.find_battlefield_card(target_player_id, target_instance_id)
        if target is None:
            return ActionResult.failure(
                f"Creature {target_instance_id} not on {target_player_id}'s battlefield",
                ErrorCode.CREATURE_NOT_FOUND,
            )

        target_def = state.card_library[target.card_id]
        attacker_damage = definition.attack
        counter_damage = target_def.attack or 0
        strikes_back = target_def.card_type == CardType.CREATURE and counter_damage > 0

        mutations.sap_creature(state, player_id, instance_id)
        if strikes_back:
            description = (
                f"{definition.name} and {target_def.name} fight! {definition.name} deals "
                f"{attacker_damage}, {target_def.name} deals {counter_damage} damage"
            )
        else:
            description = f"{definition.name} attacked {target_def.name} for {attacker_damage} damage"
        mutations.add_log_entry(
            state, player_id, LogAction.ATTACK,
            description=description,
            card_id=card.card_id,
            instance_id=instance_id,
            target_id=target_instance_id,
            amount=attacker_damage,
        )

        mutations.deal_damage_to_creature(state, target_player_id, target_instance_id, attacker_damage)
        if strikes_back:
            mutations.deal_damage_to_creature(state, player_id, instance_id, counter_damage)

        return ActionResult.success_with_state(state, changes=[description])


def apply_action(state: GameState, action: Action, config: GameConfig | None = None) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action to a copy of the state.
    """
    reducer = Reducer(config=config or GameConfig())
    return reducer.apply(state, action)
