"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /health                                   Health check
    GET    /api/v1/cards                             Card library
    POST   /api/v1/games                             Create game
    GET    /api/v1/games                             List active games
    GET    /api/v1/games/{id}                        Get game state
    DELETE /api/v1/games/{id}                        End game
    POST   /api/v1/games/{id}/rematch                Start a rematch
    POST   /api/v1/games/{id}/play                   Play a card
    POST   /api/v1/games/{id}/attack                 Attack with a creature
    POST   /api/v1/games/{id}/end-turn               End turn
    GET    /api/v1/games/{id}/targeting              Pending targeting session
    POST   /api/v1/games/{id}/targeting/select       Toggle a target
    POST   /api/v1/games/{id}/targeting/confirm      Confirm the selection
    POST   /api/v1/games/{id}/targeting/cancel       Cancel targeting

Targeting Flow:
    1. POST /play with a spell that needs targets
    2. Response has status=pending_targeting and the candidates
    3. POST /targeting/select (single targets resolve immediately)
       or /targeting/confirm, or /targeting/cancel
    4. That response carries the finished cast

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import os

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from .service import APIService
from .schemas import (
    # Request models
    CreateGameRequest,
    PlayCardRequest,
    AttackRequest,
    EndTurnRequest,
    SelectTargetRequest,
    # Response models
    ActionResponse,
    GameStateResponse,
    CardListResponse,
    GameListResponse,
    EndGameResponse,
    ErrorResponse,
    HealthResponse,
    TargetingInfo,
    # Enums
    ErrorCode,
)

# Environment configuration
CARDCLASH_ENV = os.getenv("CARDCLASH_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

_STATUS_FOR_ERROR = {
    ErrorCode.GAME_NOT_FOUND: 404,
    ErrorCode.NO_TARGETING_SESSION: 409,
    ErrorCode.INVALID_TARGET: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INTERNAL_ERROR: 500,
}


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="CardClash Engine API",
        description="""
Turn-based card game rules engine with scripted card effects.

## Targeting

Spells whose scripts ask for targets suspend. The intent response then has
`status=pending_targeting`; answer it through the `/targeting` endpoints.
While a session is pending, other intents fail with `TARGETING_PENDING`.

## Error Codes

| Code | Description |
|------|-------------|
| `GAME_NOT_FOUND` | Game does not exist |
| `NO_TARGETING_SESSION` | No targeting session is pending |
| `INVALID_TARGET` | Target is not a candidate |
| `VALIDATION_ERROR` | Request is invalid |

Rules failures (`NOT_YOUR_TURN`, `INSUFFICIENT_ENERGY`, ...) are returned as
`ActionResponse` with `success=false`.
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()
    app.state.service = api_service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=_STATUS_FOR_ERROR.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # Cards
    # =========================================================================

    @app.get(
        "/api/v1/cards",
        response_model=CardListResponse,
        tags=["Cards"],
        summary="List the card library",
    )
    async def list_cards() -> CardListResponse:
        return api_service.list_cards()

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameStateResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid players or deck"}},
        tags=["Games"],
        summary="Create a new game",
    )
    async def create_game(request: CreateGameRequest) -> Union[GameStateResponse, JSONResponse]:
        """
        Create a new game.

        Players listed in `bot_players` are played automatically.
        """
        try:
            return await api_service.create_game(request)
        except ValueError as e:
            return make_error_response(ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR))

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List active games",
    )
    async def list_games() -> GameListResponse:
        games = api_service.list_games()
        return GameListResponse(games=games, count=len(games))

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game state",
    )
    async def get_game(game_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game(game_id))

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=EndGameResponse,
        tags=["Games"],
        summary="End a game",
    )
    async def end_game(
        game_id: str,
        reason: str = Query("user_ended", description="Reason for ending"),
    ) -> EndGameResponse:
        """End a game and release its resources."""
        success = api_service.end_game(game_id, reason)
        return EndGameResponse(success=success, game_id=game_id)

    @app.post(
        "/api/v1/games/{game_id}/rematch",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Start a rematch with the same players",
    )
    async def rematch(game_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(await api_service.rematch(game_id))

    # =========================================================================
    # Intent Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/play",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Play a card from hand",
    )
    async def play_card(game_id: str, request: PlayCardRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(await api_service.play_card(game_id, request))

    @app.post(
        "/api/v1/games/{game_id}/attack",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Attack a player or creature",
    )
    async def attack(game_id: str, request: AttackRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(await api_service.attack(game_id, request))

    @app.post(
        "/api/v1/games/{game_id}/end-turn",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="End the active player's turn",
    )
    async def end_turn(game_id: str, request: EndTurnRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(await api_service.end_turn(game_id, request))

    # =========================================================================
    # Targeting Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games/{game_id}/targeting",
        response_model=TargetingInfo,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Targeting"],
        summary="Get the pending targeting session",
    )
    async def get_targeting(game_id: str) -> Union[TargetingInfo, JSONResponse]:
        return respond(api_service.get_targeting(game_id))

    @app.post(
        "/api/v1/games/{game_id}/targeting/select",
        response_model=ActionResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Targeting"],
        summary="Toggle a target",
    )
    async def select_target(game_id: str, request: SelectTargetRequest) -> Union[ActionResponse, JSONResponse]:
        """
        Toggle a target in the pending session.

        Selecting an already-selected target removes it. Single-target
        sessions resolve on the first selection.
        """
        return respond(await api_service.select_target(game_id, request))

    @app.post(
        "/api/v1/games/{game_id}/targeting/confirm",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Targeting"],
        summary="Confirm the current selection",
    )
    async def confirm_targeting(game_id: str) -> Union[ActionResponse, JSONResponse]:
        return respond(await api_service.confirm_targeting(game_id))

    @app.post(
        "/api/v1/games/{game_id}/targeting/cancel",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Targeting"],
        summary="Cancel targeting",
    )
    async def cancel_targeting(game_id: str) -> Union[ActionResponse, JSONResponse]:
        return respond(await api_service.cancel_targeting(game_id))

    # =========================================================================
    # Health
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy", service="cardclash", version=__version__)

    return app


# For running directly: uvicorn cardclash.api.app:app
app = create_app()
