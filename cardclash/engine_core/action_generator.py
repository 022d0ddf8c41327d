"""
Action Generator - Generates all legal actions from a game state.

The action generator is used by:
1. Bots to enumerate possible moves
2. The CLI simulator
3. Validation (is this action in legal_actions?)

Design: Generates Action objects, not just action types.
This ensures all generated actions are fully specified.
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import GameState
from .action import Action


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the active player.

    Only checks what is knowable without running scripts: a playable
    spell may still fail once its script runs.
    """
    include_creature_attacks: bool = True

    def generate(self, state: GameState) -> list[Action]:
        """
        Generate all legal actions for the current player.

        Returns a list of fully-specified Action objects, end turn last.
        """
        if not state.is_playing or not state.players:
            return []

        player_id = state.current_player_id
        actions = []
        actions.extend(self._generate_play_actions(state, player_id))
        actions.extend(self._generate_attack_actions(state, player_id))
        actions.append(Action.end_turn(player_id))
        return actions

    def _generate_play_actions(self, state: GameState, player_id: str) -> list[Action]:
        energy = state.resources[player_id].energy
        actions = []
        seen = set()
        for card_id in state.get_hand(player_id):
            if card_id in seen:
                continue
            seen.add(card_id)
            definition = state.get_card(card_id)
            if definition is not None and definition.cost <= energy:
                actions.append(Action.play_card(player_id, card_id))
        return actions

    def _generate_attack_actions(self, state: GameState, player_id: str) -> list[Action]:
        actions = []
        for card in state.get_battlefield(player_id):
            definition = state.get_card(card.card_id)
            if card.sapped or definition is None or not definition.attack or definition.attack <= 0:
                continue
            for opponent in state.opponents_of(player_id):
                actions.append(Action.attack_player(player_id, card.instance_id, opponent))
                if not self.include_creature_attacks:
                    continue
                for target in state.get_battlefield(opponent):
                    actions.append(Action.attack_creature(
                        player_id, card.instance_id, opponent, target.instance_id
                    ))
        return actions


def legal_actions(state: GameState, include_creature_attacks: bool = True) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    generator = ActionGenerator(include_creature_attacks=include_creature_attacks)
    return generator.generate(state)


def is_legal(state: GameState, action: Action) -> bool:
    """Check if a specific action is legal."""
    for a in legal_actions(state):
        if a.action_type == action.action_type and a.payload == action.payload:
            return True
    return False
