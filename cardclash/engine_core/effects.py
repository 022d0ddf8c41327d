"""
Effect Engine - Runs card scripts and applies what they asked for.

Scripts never touch the game state. They call methods on a capability
object (EffectAPI) that only queue SpellOperations. Once the script has
finished, the engine commits the queue in a single transaction:

    api = EffectAPI(snapshot, caster_id="p1", controller=controller)
    outcome = await run_effect(card.effect_script, api)
    if outcome.success:
        store.change(lambda s: apply_operations(s, outcome.operations))

Failures of author content (syntax errors, exceptions, returning False)
become a failed EffectOutcome. Targeting protocol violations are
programming errors and propagate.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import inspect
import logging

from . import mutations
from .script import ScriptCompiler, ScriptError, compile_script
from .state import GameState, LogAction
from .targeting import (
    Target,
    TargetingController,
    TargetingProtocolError,
    TargetSelector,
    get_auto_targets,
)

logger = logging.getLogger(__name__)


class OperationType(Enum):
    """Kinds of queued state changes."""
    DAMAGE_PLAYER = "damage_player"
    DAMAGE_CREATURE = "damage_creature"
    HEAL_PLAYER = "heal_player"
    HEAL_CREATURE = "heal_creature"
    DESTROY_CREATURE = "destroy_creature"
    LOG = "log"
    # Only reachable from triggered abilities
    DRAW_CARD = "draw_card"
    GAIN_ENERGY = "gain_energy"


@dataclass(frozen=True)
class SpellOperation:
    """One queued state change produced by a script."""
    op_type: OperationType
    player_id: str
    instance_id: str | None = None
    amount: int | None = None
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.op_type.value, "player_id": self.player_id}
        if self.instance_id is not None:
            data["instance_id"] = self.instance_id
        if self.amount is not None:
            data["amount"] = self.amount
        if self.description:
            data["description"] = self.description
        return data


def _amount(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Amount must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"Amount cannot be negative: {value}")
    return value


class EffectAPI:
    """
    Capability object handed to a spell script.

    Mutating methods only queue operations. Reads come from the snapshot
    taken when the script started.
    """

    def __init__(
        self,
        snapshot: GameState,
        caster_id: str,
        controller: TargetingController | None = None,
    ):
        self._snapshot = snapshot
        self._controller = controller
        self.caster_id = caster_id
        self.operations: list[SpellOperation] = []
        self.targeting_cancelled = False

    # -------------------------------------------------------------------------
    # Queued operations
    # -------------------------------------------------------------------------

    def deal_damage_to_player(self, player_id: str, amount: int):
        self._queue(OperationType.DAMAGE_PLAYER, player_id, amount=_amount(amount))

    def deal_damage_to_creature(self, player_id: str, instance_id: str, amount: int):
        self._queue(OperationType.DAMAGE_CREATURE, player_id, instance_id, _amount(amount))

    def heal_player(self, player_id: str, amount: int):
        self._queue(OperationType.HEAL_PLAYER, player_id, amount=_amount(amount))

    def heal_creature(self, player_id: str, instance_id: str, amount: int):
        self._queue(OperationType.HEAL_CREATURE, player_id, instance_id, _amount(amount))

    def destroy_creature(self, player_id: str, instance_id: str):
        self._queue(OperationType.DESTROY_CREATURE, player_id, instance_id)

    def log(self, description: str):
        self._queue(OperationType.LOG, self.caster_id, description=str(description))

    # -------------------------------------------------------------------------
    # Targeting
    # -------------------------------------------------------------------------

    async def select_targets(self, selector: TargetSelector | None = None, **fields: Any) -> list[Target]:
        """
        Ask for targets. The only call a script may await.

        Accepts a TargetSelector or its fields as keyword arguments.
        """
        if selector is None:
            selector = TargetSelector(**fields)
        selector = selector.with_sourcer(self.caster_id)

        if self._controller is None:
            auto = get_auto_targets(selector, self._snapshot)
            if auto is None:
                raise TargetingProtocolError("No targeting controller attached to this effect")
            return auto

        before = self._controller.cancelled_sessions
        targets = await self._controller.select_targets(selector, self._snapshot)
        if self._controller.cancelled_sessions != before:
            self.targeting_cancelled = True
        return targets

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_all_players(self) -> list[str]:
        return list(self._snapshot.players)

    def get_creatures_for_player(self, player_id: str) -> list[dict[str, str]]:
        return [
            {"instance_id": c.instance_id, "card_id": c.card_id}
            for c in self._snapshot.get_battlefield(player_id)
        ]

    def _queue(self, op_type: OperationType, player_id: str, instance_id: str | None = None,
               amount: int | None = None, description: str = ""):
        self.operations.append(SpellOperation(
            op_type=op_type,
            player_id=player_id,
            instance_id=instance_id,
            amount=amount,
            description=description,
        ))


class TriggeredEffectAPI(EffectAPI):
    """Capability object for a triggered ability on a battlefield card."""

    def __init__(
        self,
        snapshot: GameState,
        owner_id: str,
        instance_id: str,
        controller: TargetingController | None = None,
        trigger_context: dict[str, Any] | None = None,
    ):
        super().__init__(snapshot, caster_id=owner_id, controller=controller)
        self.owner_id = owner_id
        self.instance_id = instance_id
        self.trigger_context = dict(trigger_context or {})

    def get_own_creatures(self) -> list[dict[str, str]]:
        return self.get_creatures_for_player(self.owner_id)

    def draw_card(self):
        self._queue(OperationType.DRAW_CARD, self.owner_id, amount=1)

    def gain_energy(self, amount: int):
        self._queue(OperationType.GAIN_ENERGY, self.owner_id, amount=_amount(amount))


@dataclass
class EffectOutcome:
    """What running a script produced."""
    success: bool
    operations: list[SpellOperation] = field(default_factory=list)
    error: str | None = None
    targeting_cancelled: bool = False

    @classmethod
    def failure(cls, error: str, targeting_cancelled: bool = False) -> EffectOutcome:
        return cls(success=False, error=error, targeting_cancelled=targeting_cancelled)


async def run_effect(source: str, api: EffectAPI, compiler: ScriptCompiler | None = None) -> EffectOutcome:
    """
    Compile and run a script against a capability object.

    Never raises for author mistakes; TargetingProtocolError propagates.
    """
    try:
        script = compiler.compile(source) if compiler is not None else compile_script(source)
    except ScriptError as e:
        logger.warning("Effect script failed to compile: %s", e)
        return EffectOutcome.failure(str(e))

    try:
        result = script(api)
        if inspect.isawaitable(result):
            result = await result
    except TargetingProtocolError:
        raise
    except Exception as e:
        logger.warning("Effect script raised %s", type(e).__name__, exc_info=True)
        return EffectOutcome.failure(f"{type(e).__name__}: {e}", api.targeting_cancelled)

    if result is False:
        return EffectOutcome.failure("Effect script returned False", api.targeting_cancelled)

    return EffectOutcome(
        success=True,
        operations=list(api.operations),
        targeting_cancelled=api.targeting_cancelled,
    )


def apply_operations(state: GameState, operations: list[SpellOperation]) -> list[SpellOperation]:
    """
    Apply queued operations in order.

    Operations whose player or creature no longer exists are skipped.
    Returns the operations that took effect.
    """
    applied = []
    for op in operations:
        if _apply_operation(state, op):
            applied.append(op)
        else:
            logger.debug("Skipped stale operation %s", op)
    return applied


def _apply_operation(state: GameState, op: SpellOperation) -> bool:
    if op.player_id not in state.resources:
        return False

    if op.op_type == OperationType.DAMAGE_PLAYER:
        mutations.deal_damage(state, op.player_id, op.amount or 0)
        return True

    if op.op_type == OperationType.HEAL_PLAYER:
        mutations.heal_player(state, op.player_id, op.amount or 0)
        return True

    if op.op_type == OperationType.DAMAGE_CREATURE:
        return mutations.deal_damage_to_creature(state, op.player_id, op.instance_id, op.amount or 0) is not None

    if op.op_type == OperationType.HEAL_CREATURE:
        return mutations.heal_creature(state, op.player_id, op.instance_id, op.amount or 0) is not None

    if op.op_type == OperationType.DESTROY_CREATURE:
        return mutations.remove_creature_from_battlefield(state, op.player_id, op.instance_id) is not None

    if op.op_type == OperationType.LOG:
        mutations.add_log_entry(state, op.player_id, LogAction.EFFECT_LOG, description=op.description)
        return True

    if op.op_type == OperationType.DRAW_CARD:
        card_id = mutations.draw_card(state, op.player_id)
        if card_id is None:
            return False
        mutations.add_log_entry(state, op.player_id, LogAction.DRAW_CARD, description="Drew a card")
        return True

    if op.op_type == OperationType.GAIN_ENERGY:
        gained = mutations.gain_energy(state, op.player_id, op.amount or 0)
        mutations.add_log_entry(
            state, op.player_id, LogAction.GAIN_ENERGY,
            description=f"Gained {gained} energy",
            amount=gained,
        )
        return True

    return False
