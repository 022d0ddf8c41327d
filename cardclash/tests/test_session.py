"""
Tests for game setup and session management.
"""

import asyncio

import pytest

from ..engine_core.config import GameConfig
from ..engine_core.state import GameStatus
from ..games.starter import create_rematch, create_standard_deck, setup_game
from ..session import SessionManager, SessionState


class TestSetup:
    """Tests for setup_game() and create_rematch()."""

    def test_deals_opening_hands(self):
        state = setup_game(["alice", "bob"], random_seed=1)

        assert state.status == GameStatus.PLAYING
        assert state.current_player_id == "alice"
        assert len(state.hands["alice"]) == 5
        assert len(state.hands["bob"]) == 5
        assert len(state.deck) == len(create_standard_deck()) - 10
        assert state.resources["alice"].health == 25
        assert state.resources["bob"].energy == 10
        assert state.game_id == "game_1"

    def test_same_seed_same_game(self):
        first = setup_game(["alice", "bob"], random_seed=42)
        second = setup_game(["alice", "bob"], random_seed=42)
        assert first.to_dict() == second.to_dict()

    def test_config_sets_resources(self):
        config = GameConfig(starting_health=30, starting_energy=1, starting_max_energy=1, initial_hand_size=3)
        state = setup_game(["alice", "bob"], config=config, random_seed=0)

        assert state.resources["alice"].max_health == 30
        assert state.resources["alice"].max_energy == 1
        assert len(state.hands["bob"]) == 3

    @pytest.mark.parametrize("players", [["alice"], ["alice", "alice"]])
    def test_invalid_players(self, players):
        with pytest.raises(ValueError):
            setup_game(players)

    def test_unknown_deck_card(self):
        with pytest.raises(ValueError, match="card_404"):
            setup_game(["alice", "bob"], deck=["card_001", "card_404"])

    def test_rematch_gathers_all_cards(self):
        state = setup_game(["alice", "bob"], random_seed=3)
        state.graveyard.append(state.hands["alice"].pop())

        rematch = create_rematch(state, random_seed=4)

        total = len(rematch.deck) + sum(len(h) for h in rematch.hands.values())
        assert total == len(create_standard_deck())
        assert rematch.graveyard == []
        assert rematch.game_id == f"{state.game_id}_rematch"


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.fixture
    def manager(self):
        return SessionManager(config=GameConfig())

    def test_create_session(self, manager):
        session = manager.create_session(["alice", "bob"], random_seed=1)

        assert session.game_state.game_id == session.session_id
        assert session.state == SessionState.ACTIVE
        assert manager.get_session(session.session_id) is session
        assert manager.list_active_sessions() == [session.session_id]

    def test_unknown_bot_player(self, manager):
        with pytest.raises(ValueError):
            manager.create_session(["alice", "bob"], bot_players={"carol": "first_legal"})

    def test_unknown_policy(self, manager):
        with pytest.raises(ValueError, match="Unknown bot policy"):
            manager.create_session(["alice", "bob"], bot_players={"bob": "genius"})

    def test_end_session(self, manager):
        session = manager.create_session(["alice", "bob"])

        ended = manager.end_session(session.session_id)

        assert ended is session
        assert session.state == SessionState.ABANDONED
        assert manager.get_session(session.session_id) is None
        assert manager.end_session(session.session_id) is None

    def test_rematch_keeps_players_and_bots(self, manager):
        session = manager.create_session(["alice", "bob"], bot_players={"bob": "random"}, random_seed=5)

        rematch = manager.create_rematch(session.session_id)

        assert rematch.session_id != session.session_id
        assert rematch.game_state.game_id == rematch.session_id
        assert rematch.game_state.players == ["alice", "bob"]
        assert list(rematch.bots) == ["bob"]
        assert manager.create_rematch("missing") is None

    def test_bots_play_until_human_turn(self, manager):
        session = manager.create_session(["alice", "bob"], bot_players={"bob": "first_legal"}, random_seed=2)

        async def scenario():
            await session.engine.end_turn("alice")
            assert session.is_bot_turn()
            await session.run_bot_turns()

        asyncio.run(scenario())

        state = session.game_state
        assert not session.is_bot_turn()
        assert state.current_player_id == "alice" or state.status == GameStatus.FINISHED
        assert any(entry.player_id == "bob" for entry in state.game_log if entry.action.value == "end_turn")

    def test_config_from_environment(self, monkeypatch):
        monkeypatch.setenv("CARDCLASH_STARTING_HEALTH", "40")
        monkeypatch.setenv("CARDCLASH_ENERGY_POLICY", "curve")
        manager = SessionManager()

        session = manager.create_session(["alice", "bob"])

        assert session.game_state.resources["alice"].health == 40
        assert manager.config.energy_policy.value == "curve"

    def test_cleanup_removes_old_finished_sessions(self, manager):
        session = manager.create_session(["alice", "bob"])
        session.engine.store.change(lambda s: setattr(s, "status", GameStatus.FINISHED))
        session.created_at -= 7200

        manager.cleanup_stale_sessions(max_age_seconds=3600)

        assert manager.get_session(session.session_id) is None
