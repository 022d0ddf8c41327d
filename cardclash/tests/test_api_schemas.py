"""
Tests for API schemas.

Validates:
- Request defaults and validation
- Response serialization
- OpenAPI schema generation
"""

import pytest
from pydantic import ValidationError


class TestRequestSchemas:
    """Test request model validation."""

    def test_create_game_defaults(self):
        from cardclash.api.schemas import CreateGameRequest

        request = CreateGameRequest()

        assert request.player_ids == ["player_1", "player_2"]
        assert request.bot_players == {}
        assert request.random_seed is None
        assert request.deck is None

    def test_create_game_needs_two_players(self):
        from cardclash.api.schemas import CreateGameRequest

        with pytest.raises(ValidationError):
            CreateGameRequest(player_ids=["solo"])

    def test_attack_target_instance_optional(self):
        from cardclash.api.schemas import AttackRequest

        request = AttackRequest(player_id="a", instance_id="inst_1", target_player_id="b")
        assert request.target_instance_id is None

    def test_select_target_requires_type(self):
        from cardclash.api.schemas import SelectTargetRequest

        with pytest.raises(ValidationError):
            SelectTargetRequest(player_id="b")


class TestResponseSchemas:
    """Test response model serialization."""

    def test_error_response(self):
        from cardclash.api.schemas import ErrorResponse, ErrorCode

        error = ErrorResponse(
            error="Game not found",
            error_code=ErrorCode.GAME_NOT_FOUND,
            details={"game_id": "abc"},
        )
        data = error.model_dump(mode="json")

        assert data["error_code"] == "GAME_NOT_FOUND"
        assert data["details"] == {"game_id": "abc"}
        assert data["api_version"] == "v1"

    def test_action_response_pending(self):
        from cardclash.api.schemas import ActionResponse, ActionStatus, TargetingInfo, TargetInfo

        response = ActionResponse(
            success=True,
            status=ActionStatus.PENDING_TARGETING,
            targeting=TargetingInfo(
                session_id="targeting_1",
                description="Pick",
                target_type="creature",
                target_count=1,
                candidates=[TargetInfo(target_type="creature", player_id="b", instance_id="inst_1")],
            ),
        )
        data = response.model_dump(mode="json")

        assert data["status"] == "pending_targeting"
        assert data["targeting"]["candidates"][0]["instance_id"] == "inst_1"
        assert data["targeting"]["selected"] == []

    def test_card_info_from_definition(self):
        from cardclash.api.service import card_to_info
        from cardclash.games.starter import get_card_by_id

        info = card_to_info(get_card_by_id("card_013"))

        assert info.card_type == "creature"
        assert info.triggered_abilities[0].trigger == "end_turn"
        assert not info.has_effect_script

    def test_game_status_values(self):
        from cardclash.api.schemas import GameStatus

        assert {s.value for s in GameStatus} == {"waiting", "playing", "finished"}


class TestOpenAPISchema:
    """Test OpenAPI schema generation."""

    def test_openapi_paths(self):
        from cardclash.api.app import create_app

        schema = create_app().openapi()
        paths = schema["paths"]

        assert "/api/v1/games" in paths
        assert "/api/v1/games/{game_id}/play" in paths
        assert "/api/v1/games/{game_id}/targeting/select" in paths
        assert "/health" in paths

    def test_openapi_components(self):
        from cardclash.api.app import create_app

        schemas = create_app().openapi()["components"]["schemas"]

        for name in ("ActionResponse", "GameStateResponse", "TargetingInfo", "ErrorResponse"):
            assert name in schemas
