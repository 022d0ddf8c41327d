"""
Tests for the reducer (state transitions).

Tests:
- Turn controller
- Card-play resolver
- Combat resolver
- Validation and atomicity
- Game over
"""

import pytest

from ..engine_core import mutations
from ..engine_core.action import Action, ErrorCode
from ..engine_core.config import EnergyPolicy, GameConfig
from ..engine_core.reducer import Reducer, apply_action
from ..engine_core.state import GameState, GameStatus, LogAction
from ..engine_core.store import InMemoryGameStore


def actions(state):
    return [entry.action for entry in state.game_log]


class TestEndTurn:
    """Tests for the turn controller."""

    def test_passes_turn_and_refreshes_next_player(self, make_state):
        state = make_state(battlefields={"p2": ["grunt"]}, deck=["fizzle", "wall"])
        state.battlefields["p2"][0].sapped = True
        state.resources["p2"].energy = 0

        result = Reducer().end_turn(state, "p1")

        assert result.success
        assert state.current_player_id == "p2"
        assert state.turn_number == 1
        assert not state.battlefields["p2"][0].sapped
        assert state.resources["p2"].energy == 10
        assert state.hands["p2"] == ["fizzle"]
        assert state.deck == ["wall"]
        assert actions(state) == [LogAction.END_TURN, LogAction.DRAW_CARD]
        assert state.game_log[0].player_id == "p1"

    def test_does_not_refresh_ending_player(self, make_state):
        state = make_state(battlefields={"p1": ["grunt"]})
        state.battlefields["p1"][0].sapped = True

        Reducer().end_turn(state, "p1")

        assert state.battlefields["p1"][0].sapped

    def test_turn_number_increments_on_wrap(self, make_state):
        state = make_state()
        reducer = Reducer()

        reducer.end_turn(state, "p1")
        reducer.end_turn(state, "p2")

        assert state.current_player_id == "p1"
        assert state.turn_number == 2

    def test_non_active_player_is_noop(self, make_state):
        """Ending someone else's turn never mutates state."""
        state = make_state(deck=["grunt"])
        before = state.to_dict()

        result = Reducer().end_turn(state, "p2")

        assert not result.success
        assert result.error_code == ErrorCode.NOT_YOUR_TURN
        assert state.to_dict() == before

    def test_unknown_player(self, make_state):
        result = Reducer().end_turn(make_state(), "ghost")
        assert result.error_code == ErrorCode.UNKNOWN_PLAYER

    def test_empty_deck_draws_nothing(self, make_state):
        state = make_state()
        Reducer().end_turn(state, "p1")
        assert state.hands["p2"] == []
        assert LogAction.DRAW_CARD not in actions(state)

    def test_regenerates_next_players_creatures(self, make_state):
        state = make_state(battlefields={"p2": ["brute"]})
        state.battlefields["p2"][0].current_health = 1

        Reducer().end_turn(state, "p1")

        assert state.battlefields["p2"][0].current_health == 2
        assert actions(state)[-1] == LogAction.HEAL

    def test_artifacts_do_not_regenerate(self, make_state):
        state = make_state(battlefields={"p2": ["totem", "brute"]})
        totem, brute = state.battlefields["p2"]
        totem.current_health = 1
        brute.current_health = 3

        Reducer().end_turn(state, "p1")

        assert totem.current_health == 1
        assert brute.current_health == 4

    def test_curve_energy_grows_each_round(self, make_state):
        state = make_state(energy=3)
        for player_id in state.players:
            state.resources[player_id].max_energy = 3
        reducer = Reducer(config=GameConfig(energy_policy=EnergyPolicy.CURVE))

        reducer.end_turn(state, "p1")
        assert state.resources["p2"].max_energy == 3
        assert state.resources["p2"].energy == 3

        reducer.end_turn(state, "p2")
        assert state.resources["p1"].max_energy == 4
        assert state.resources["p2"].max_energy == 4
        assert state.resources["p1"].energy == 4

    def test_curve_energy_is_capped(self, make_state):
        state = make_state()
        reducer = Reducer(config=GameConfig(energy_policy=EnergyPolicy.CURVE))

        reducer.end_turn(state, "p1")
        reducer.end_turn(state, "p2")

        assert state.resources["p1"].max_energy == 10


class TestPlayCard:
    """Tests for the card-play resolver."""

    def test_play_creature(self, make_state):
        """A 3-cost creature enters sapped and the cost is paid."""
        state = make_state(hands={"p1": ["grunt"]}, energy=5)

        result = Reducer().play_card(state, "p1", "grunt")

        assert result.success
        assert state.hands["p1"] == []
        assert state.resources["p1"].energy == 2
        assert len(state.battlefields["p1"]) == 1
        card = state.battlefields["p1"][0]
        assert card.sapped
        assert card.card_id == "grunt"
        assert card.current_health == 1
        assert state.game_log[-1].action == LogAction.PLAY_CARD
        assert state.game_log[-1].instance_id == card.instance_id

    def test_instance_ids_are_unique(self, make_state):
        state = make_state(hands={"p1": ["totem", "totem"]})
        reducer = Reducer()
        reducer.play_card(state, "p1", "totem")
        reducer.play_card(state, "p1", "totem")

        ids = [c.instance_id for c in state.battlefields["p1"]]
        assert len(set(ids)) == 2

    def test_removes_one_copy(self, make_state):
        state = make_state(hands={"p1": ["totem", "grunt", "totem"]})
        Reducer().play_card(state, "p1", "totem")
        assert state.hands["p1"] == ["grunt", "totem"]

    def test_scriptless_spell_goes_to_graveyard(self, make_state):
        state = make_state(hands={"p1": ["fizzle"]})

        result = Reducer().play_card(state, "p1", "fizzle")

        assert result.success
        assert state.graveyard == ["fizzle"]
        assert state.battlefields["p1"] == []

    def test_scripted_spell_must_go_through_engine(self, make_state):
        state = make_state(hands={"p1": ["burn"]})
        with pytest.raises(ValueError):
            Reducer().play_card(state, "p1", "burn")

    @pytest.mark.parametrize("hand,energy,card_id,code", [
        (["brute"], 2, "brute", ErrorCode.INSUFFICIENT_ENERGY),
        ([], 5, "grunt", ErrorCode.CARD_NOT_IN_HAND),
        (["mystery"], 5, "mystery", ErrorCode.UNKNOWN_CARD),
    ])
    def test_failed_play_changes_nothing(self, make_state, hand, energy, card_id, code):
        """A failed play leaves hand and energy exactly as they were."""
        state = make_state(hands={"p1": hand}, energy=energy)
        before = state.to_dict()

        result = Reducer().play_card(state, "p1", card_id)

        assert not result.success
        assert result.error_code == code
        assert state.to_dict() == before

    def test_not_your_turn(self, make_state):
        state = make_state(hands={"p2": ["grunt"]})
        result = Reducer().play_card(state, "p2", "grunt")
        assert result.error_code == ErrorCode.NOT_YOUR_TURN


class TestAttackPlayer:
    """Tests for attacks on players."""

    def test_attack_damages_and_saps(self, make_state):
        state = make_state(battlefields={"p1": ["grunt"]})
        instance_id = state.battlefields["p1"][0].instance_id
        reducer = Reducer()

        result = reducer.attack_player(state, "p1", instance_id, "p2")

        assert result.success
        assert state.resources["p2"].health == 18
        assert state.battlefields["p1"][0].sapped
        assert actions(state) == [LogAction.TAKE_DAMAGE, LogAction.ATTACK]

        again = reducer.attack_player(state, "p1", instance_id, "p2")
        assert not again.success
        assert again.error_code == ErrorCode.CREATURE_SAPPED
        assert state.resources["p2"].health == 18

    def test_damage_override(self, make_state):
        state = make_state(battlefields={"p1": ["grunt"]})
        Reducer().attack_player(state, "p1", "inst_1", "p2", damage=5)
        assert state.resources["p2"].health == 15

    def test_cannot_attack_self(self, make_state):
        state = make_state(battlefields={"p1": ["grunt"]})
        result = Reducer().attack_player(state, "p1", "inst_1", "p1")
        assert result.error_code == ErrorCode.INVALID_TARGET

    def test_zero_attack_cannot_attack(self, make_state):
        state = make_state(battlefields={"p1": ["wall"]})
        result = Reducer().attack_player(state, "p1", "inst_1", "p2")
        assert result.error_code == ErrorCode.NO_ATTACK

    def test_missing_attacker(self, make_state):
        result = Reducer().attack_player(make_state(), "p1", "inst_7", "p2")
        assert result.error_code == ErrorCode.CREATURE_NOT_FOUND

    def test_lethal_attack_ends_game(self, make_state):
        state = make_state(battlefields={"p1": ["brute"]})
        state.resources["p2"].health = 2

        Reducer().attack_player(state, "p1", "inst_1", "p2")

        assert state.resources["p2"].health == 0
        assert state.status == GameStatus.FINISHED
        assert state.winner_id == "p1"
        assert state.game_log[-1].action == LogAction.GAME_END
        assert state.game_log[-1].player_id == "p2"

        after = Reducer().end_turn(state, "p1")
        assert after.error_code == ErrorCode.GAME_NOT_ACTIVE


class TestAttackCreature:
    """Tests for creature combat."""

    def test_simultaneous_damage(self, make_state):
        """The target strikes back even when the attack kills it."""
        state = make_state(battlefields={"p1": ["brute"], "p2": ["grunt"]})

        result = Reducer().attack_creature(state, "p1", "inst_1", "p2", "inst_2")

        assert result.success
        assert state.battlefields["p2"] == []
        assert state.graveyard == ["grunt"]
        assert state.battlefields["p1"][0].current_health == 2
        assert state.battlefields["p1"][0].sapped
        assert actions(state) == [LogAction.ATTACK, LogAction.CREATURE_DIED, LogAction.CREATURE_DAMAGED]
        assert "fight!" in state.game_log[0].description

    def test_zero_attack_target_does_not_strike_back(self, make_state):
        state = make_state(battlefields={"p1": ["brute"], "p2": ["wall"]})

        Reducer().attack_creature(state, "p1", "inst_1", "p2", "inst_2")

        assert state.battlefields["p1"][0].current_health == 4
        assert state.battlefields["p2"][0].current_health == 1

    def test_artifact_target_destroyed(self, make_state):
        state = make_state(battlefields={"p1": ["brute"], "p2": ["totem"]})

        Reducer().attack_creature(state, "p1", "inst_1", "p2", "inst_2")

        assert state.battlefields["p2"] == []
        assert state.graveyard == ["totem"]

    def test_both_die(self, make_state):
        state = make_state(battlefields={"p1": ["grunt"], "p2": ["grunt"]})

        Reducer().attack_creature(state, "p1", "inst_1", "p2", "inst_2")

        assert state.battlefields["p1"] == []
        assert state.battlefields["p2"] == []
        assert state.graveyard == ["grunt", "grunt"]

    def test_own_creature_is_invalid(self, make_state):
        state = make_state(battlefields={"p1": ["brute", "grunt"]})
        result = Reducer().attack_creature(state, "p1", "inst_1", "p1", "inst_2")
        assert result.error_code == ErrorCode.INVALID_TARGET

    def test_missing_target(self, make_state):
        state = make_state(battlefields={"p1": ["brute"]})
        result = Reducer().attack_creature(state, "p1", "inst_1", "p2", "inst_9")
        assert result.error_code == ErrorCode.CREATURE_NOT_FOUND
        assert not state.battlefields["p1"][0].sapped


class TestCreatureDamage:
    """Tests for battlefield damage bookkeeping."""

    def test_damage_then_death_buries_once(self, make_state):
        state = make_state(battlefields={"p2": ["brute"]})

        assert mutations.deal_damage_to_creature(state, "p2", "inst_1", 3) is False
        assert state.battlefields["p2"][0].current_health == 1
        assert mutations.deal_damage_to_creature(state, "p2", "inst_1", 2) is True

        assert state.battlefields["p2"] == []
        assert state.graveyard.count("brute") == 1
        assert mutations.deal_damage_to_creature(state, "p2", "inst_1", 2) is None
        assert state.graveyard.count("brute") == 1

    def test_heal_capped_at_base_health(self, make_state):
        state = make_state(battlefields={"p2": ["brute"]})
        state.battlefields["p2"][0].current_health = 3

        assert mutations.heal_creature(state, "p2", "inst_1", 5) == 1
        assert state.battlefields["p2"][0].current_health == 4

    def test_player_health_floors_at_zero(self, make_state):
        state = make_state(health=2)
        assert mutations.deal_damage(state, "p2", 5) == 2
        assert state.resources["p2"].health == 0


class TestResourceBounds:
    """Energy and health never leave [0, max]."""

    def test_gain_energy_capped_at_max(self, make_state):
        state = make_state(energy=8)

        assert mutations.gain_energy(state, "p1", 5) == 2
        assert state.resources["p1"].energy == 10
        assert mutations.gain_energy(state, "p1", 1) == 0

    def test_spend_energy_never_negative(self, make_state):
        state = make_state(energy=2)

        assert not mutations.spend_energy(state, "p1", 3)
        assert state.resources["p1"].energy == 2

    def test_player_heal_capped_and_damage_floored(self, make_state):
        state = make_state(health=18)
        state.resources["p1"].max_health = 20

        assert mutations.heal_player(state, "p1", 5) == 2
        assert state.resources["p1"].health == 20

        mutations.deal_damage(state, "p1", 50)
        assert state.resources["p1"].health == 0


class TestPureApply:
    """apply() works on a copy."""

    def test_apply_does_not_mutate_input(self, make_state):
        state = make_state(hands={"p1": ["grunt"]})
        before = state.to_dict()

        result = apply_action(state, Action.play_card("p1", "grunt"))

        assert result.success
        assert state.to_dict() == before
        assert result.new_state.hands["p1"] == []

    def test_apply_dispatches_end_turn(self, make_state):
        result = apply_action(make_state(), Action.end_turn("p1"))
        assert result.new_state.current_player_id == "p2"

    def test_state_round_trip(self, make_state):
        state = make_state(hands={"p1": ["grunt"]}, battlefields={"p2": ["brute"]}, deck=["wall"])
        Reducer().play_card(state, "p1", "grunt")

        restored = GameState.from_dict(state.to_dict())

        assert restored.to_dict() == state.to_dict()


class TestStore:
    """Transactions on InMemoryGameStore."""

    def test_failed_transaction_leaves_state(self, make_state):
        store = InMemoryGameStore(make_state())

        def broken(draft):
            mutations.deal_damage(draft, "p2", 5)
            raise RuntimeError("abort")

        with pytest.raises(RuntimeError):
            store.change(broken)

        assert store.read().resources["p2"].health == 20
        assert store.version == 0

    def test_read_returns_snapshot(self, make_state):
        store = InMemoryGameStore(make_state())
        snapshot = store.read()
        snapshot.resources["p2"].health = 1
        assert store.read().resources["p2"].health == 20

    def test_observers_see_commits(self, make_state):
        store = InMemoryGameStore(make_state())
        seen = []
        store.subscribe(lambda s: seen.append(s.resources["p2"].health))

        store.change(lambda s: mutations.deal_damage(s, "p2", 4))

        assert seen == [16]
        assert store.version == 1
