"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions (one per game)
3. Keeps intents that suspend for targeting in flight
4. Formats responses for clients

Engine intents run as asyncio tasks. A request waits until its task
either finishes or opens a targeting session; in the second case the
response says pending_targeting and the task stays on the session until
a targeting request resolves it.

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
but must always be driven from the same event loop.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
import asyncio
import logging

from .schemas import (
    # Requests
    CreateGameRequest,
    PlayCardRequest,
    AttackRequest,
    EndTurnRequest,
    SelectTargetRequest,
    # Responses
    ActionResponse,
    GameStateResponse,
    CardListResponse,
    ErrorResponse,
    # Shared
    BattlefieldCardInfo,
    CardInfo,
    LogEntryInfo,
    PlayerInfo,
    TargetInfo,
    TargetingInfo,
    TriggeredAbilityInfo,
    # Enums
    ActionStatus,
    ErrorCode,
    GameStatus,
)
from ..catalog.cards import CardCatalog, CardDefinition
from ..engine_core.action import ActionResult, ErrorCode as RulesErrorCode
from ..engine_core.targeting import Target, TargetType, TargetingSession
from ..games.starter import starter_catalog
from ..session import SessionManager, Session

logger = logging.getLogger(__name__)

LOG_TAIL = 50


def card_to_info(card: CardDefinition) -> CardInfo:
    return CardInfo(
        card_id=card.id,
        name=card.name,
        cost=card.cost,
        card_type=card.card_type.value,
        description=card.description,
        attack=card.attack,
        health=card.health,
        has_effect_script=bool(card.effect_script),
        triggered_abilities=[
            TriggeredAbilityInfo(trigger=a.trigger.value, description=a.description)
            for a in card.triggered_abilities
        ],
    )


def target_to_info(target: Target) -> TargetInfo:
    return TargetInfo(
        target_type=target.target_type.value,
        player_id=target.player_id,
        instance_id=target.instance_id,
    )


def session_to_targeting_info(session: TargetingSession) -> TargetingInfo:
    selector = session.selector
    return TargetingInfo(
        session_id=session.session_id,
        description=selector.description,
        target_type=selector.target_type.value,
        target_count=selector.target_count,
        sourcer_id=selector.sourcer_id,
        candidates=[target_to_info(t) for t in session.candidates],
        selected=[target_to_info(t) for t in session.selected],
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Create a game
        state = await service.create_game(CreateGameRequest(player_ids=["a", "b"]))

        # Play a card
        response = await service.play_card(state.game_id, PlayCardRequest(...))
    """
    catalog: CardCatalog = field(default_factory=starter_catalog)
    session_manager: SessionManager | None = None

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(catalog=self.catalog)

    # =========================================================================
    # Cards
    # =========================================================================

    def list_cards(self) -> CardListResponse:
        cards = [card_to_info(card) for card in self.catalog]
        return CardListResponse(cards=cards, count=len(cards))

    # =========================================================================
    # Games
    # =========================================================================

    async def create_game(self, request: CreateGameRequest) -> GameStateResponse:
        """
        Create a new game.

        Raises:
            ValueError: if players, bots or deck are invalid.
        """
        session = self.session_manager.create_session(
            player_ids=request.player_ids,
            bot_players=request.bot_players,
            random_seed=request.random_seed,
            deck=request.deck,
        )
        if session.is_bot_turn():
            await self._submit(session, lambda: self._bots_only(session))
        return self._state_to_response(session)

    async def rematch(self, game_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.create_rematch(game_id)
        if session is None:
            return self._not_found(game_id)
        if session.is_bot_turn():
            await self._submit(session, lambda: self._bots_only(session))
        return self._state_to_response(session)

    def get_game(self, game_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return self._not_found(game_id)
        return self._state_to_response(session)

    def end_game(self, game_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(game_id, reason) is not None

    def list_games(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Intents
    # =========================================================================

    async def play_card(self, game_id: str, request: PlayCardRequest) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return self._not_found(game_id)
        return await self._submit(
            session, lambda: self._then_bots(session, session.engine.play_card(request.player_id, request.card_id))
        )

    async def attack(self, game_id: str, request: AttackRequest) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return self._not_found(game_id)
        engine = session.engine

        def intent():
            if request.target_instance_id is None:
                attack = engine.attack_player(request.player_id, request.instance_id, request.target_player_id)
            else:
                attack = engine.attack_creature(
                    request.player_id, request.instance_id, request.target_player_id, request.target_instance_id
                )
            return self._then_bots(session, attack)

        return await self._submit(session, intent)

    async def end_turn(self, game_id: str, request: EndTurnRequest) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return self._not_found(game_id)
        return await self._submit(session, lambda: self._then_bots(session, session.engine.end_turn(request.player_id)))

    # =========================================================================
    # Targeting
    # =========================================================================

    def get_targeting(self, game_id: str) -> TargetingInfo | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return self._not_found(game_id)
        pending = session.engine.pending_targeting
        if pending is None:
            return self._no_targeting(game_id)
        return session_to_targeting_info(pending)

    async def select_target(self, game_id: str, request: SelectTargetRequest) -> ActionResponse | ErrorResponse:
        """Toggle a target; resumes the intent once the selection completes."""
        session = self.session_manager.get_session(game_id)
        if session is None:
            return self._not_found(game_id)
        pending = session.engine.pending_targeting
        if pending is None:
            return self._no_targeting(game_id)

        try:
            target = Target(
                target_type=TargetType(request.target_type),
                player_id=request.player_id,
                instance_id=request.instance_id,
            )
        except ValueError:
            return ErrorResponse(
                error=f"Unknown target type: {request.target_type}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        if not pending.select(target):
            return ErrorResponse(
                error="Target is not selectable",
                error_code=ErrorCode.INVALID_TARGET,
                details={"target": target.to_dict()},
            )
        if not pending.is_resolved:
            return self._pending_response(session, pending)
        return await self._resume(session)

    async def confirm_targeting(self, game_id: str) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return self._not_found(game_id)
        pending = session.engine.pending_targeting
        if pending is None:
            return self._no_targeting(game_id)
        pending.confirm()
        return await self._resume(session)

    async def cancel_targeting(self, game_id: str) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if session is None:
            return self._not_found(game_id)
        if session.engine.pending_targeting is None:
            return self._no_targeting(game_id)
        session.engine.cancel_targeting()
        return await self._resume(session)

    # =========================================================================
    # Task handling
    # =========================================================================

    async def _then_bots(self, session: Session, intent: Awaitable[ActionResult]) -> ActionResult:
        result = await intent
        if result.success:
            await session.run_bot_turns()
            result.new_state = session.game_state
        return result

    async def _bots_only(self, session: Session) -> ActionResult:
        await session.run_bot_turns()
        return ActionResult.success_with_state(session.game_state, changes=["Bot turns played"])

    async def _submit(self, session: Session, make_intent: Callable[[], Awaitable[ActionResult]]) -> ActionResponse:
        if session.task is not None and not session.task.done():
            return ActionResponse(
                success=False,
                status=ActionStatus.FAILED,
                error="A targeting session is in progress",
                error_code=RulesErrorCode.TARGETING_PENDING,
                targeting=self._targeting_info(session),
                game_state=self._state_to_response(session),
            )
        session.task = asyncio.ensure_future(make_intent())
        return await self._settle(session)

    async def _resume(self, session: Session) -> ActionResponse:
        if session.task is None:
            return self._pending_or_idle(session)
        return await self._settle(session)

    async def _settle(self, session: Session) -> ActionResponse:
        """Wait until the in-flight task finishes or asks for targets."""
        task = session.task
        opened = asyncio.ensure_future(session.engine.targeting.wait_for_session())
        try:
            await asyncio.wait({task, opened}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not opened.done():
                opened.cancel()

        if not task.done():
            return self._pending_response(session, session.engine.pending_targeting)

        session.task = None
        result: ActionResult = task.result()
        return self._result_to_response(session, result)

    # =========================================================================
    # Formatting
    # =========================================================================

    def _result_to_response(self, session: Session, result: ActionResult) -> ActionResponse:
        return ActionResponse(
            success=result.success,
            status=ActionStatus.COMPLETED if result.success else ActionStatus.FAILED,
            error=result.error,
            error_code=result.error_code,
            changes=list(result.state_changes),
            targeting=self._targeting_info(session),
            game_state=self._state_to_response(session),
        )

    def _pending_response(self, session: Session, pending: TargetingSession | None) -> ActionResponse:
        return ActionResponse(
            success=True,
            status=ActionStatus.PENDING_TARGETING,
            targeting=session_to_targeting_info(pending) if pending else None,
            game_state=self._state_to_response(session),
        )

    def _pending_or_idle(self, session: Session) -> ActionResponse:
        pending = session.engine.pending_targeting
        if pending is not None:
            return self._pending_response(session, pending)
        return ActionResponse(
            success=True,
            status=ActionStatus.COMPLETED,
            game_state=self._state_to_response(session),
        )

    def _targeting_info(self, session: Session) -> TargetingInfo | None:
        pending = session.engine.pending_targeting
        return session_to_targeting_info(pending) if pending else None

    def _state_to_response(self, session: Session) -> GameStateResponse:
        state = session.game_state
        players = []
        for player_id in state.players:
            resources = state.resources[player_id]
            battlefield = []
            for card in state.get_battlefield(player_id):
                definition = state.card_library[card.card_id]
                battlefield.append(BattlefieldCardInfo(
                    instance_id=card.instance_id,
                    card_id=card.card_id,
                    name=definition.name,
                    sapped=card.sapped,
                    current_health=card.current_health,
                    max_health=definition.base_health,
                    attack=definition.attack,
                ))
            players.append(PlayerInfo(
                player_id=player_id,
                is_bot=player_id in session.bots,
                is_current_turn=state.current_player_id == player_id,
                health=resources.health,
                max_health=resources.max_health,
                energy=resources.energy,
                max_energy=resources.max_energy,
                hand=list(state.get_hand(player_id)),
                battlefield=battlefield,
            ))

        return GameStateResponse(
            game_id=state.game_id,
            status=GameStatus(state.status.value),
            turn_number=state.turn_number,
            current_player_id=state.current_player_id,
            winner_id=state.winner_id,
            players=players,
            deck_size=len(state.deck),
            graveyard=list(state.graveyard),
            log=[LogEntryInfo(**_log_fields(e.to_dict())) for e in state.game_log[-LOG_TAIL:]],
            targeting=self._targeting_info(session),
        )

    def _not_found(self, game_id: str) -> ErrorResponse:
        return ErrorResponse(
            error="Game not found",
            error_code=ErrorCode.GAME_NOT_FOUND,
            details={"game_id": game_id},
        )

    def _no_targeting(self, game_id: str) -> ErrorResponse:
        return ErrorResponse(
            error="No targeting session is pending",
            error_code=ErrorCode.NO_TARGETING_SESSION,
            details={"game_id": game_id},
        )


def _log_fields(entry: dict[str, Any]) -> dict[str, Any]:
    return {key: entry.get(key) for key in LogEntryInfo.model_fields if key in entry}
