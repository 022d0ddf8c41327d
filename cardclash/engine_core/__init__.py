"""
Engine Core - Deterministic game state management and effect resolution.

The engine is the runtime that:
1. Holds GameState in a store with atomic transactions
2. Validates and applies turns, card plays and attacks
3. Runs card scripts and commits their operations
4. Suspends scripts for targeting until a chooser answers
5. Generates legal actions
"""

from .state import GameState, GameStatus, PlayerResourceState, BattlefieldCard, GameLogEntry, LogAction
from .config import GameConfig, EnergyPolicy
from .store import GameStore, InMemoryGameStore
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .targeting import (
    Target,
    TargetType,
    TargetSelector,
    TargetingSession,
    TargetingController,
    TargetingProtocolError,
    TargetingInProgressError,
    TargetingClosedError,
    get_valid_targets,
    validate_target,
)
from .script import ScriptCompiler, ScriptError, compile_script
from .effects import EffectAPI, TriggeredEffectAPI, EffectOutcome, OperationType, SpellOperation, run_effect, apply_operations
from .reducer import Reducer, apply_action
from .engine import GameEngine
from .action_generator import ActionGenerator, legal_actions

__all__ = [
    "GameState",
    "GameStatus",
    "PlayerResourceState",
    "BattlefieldCard",
    "GameLogEntry",
    "LogAction",
    "GameConfig",
    "EnergyPolicy",
    "GameStore",
    "InMemoryGameStore",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "Target",
    "TargetType",
    "TargetSelector",
    "TargetingSession",
    "TargetingController",
    "TargetingProtocolError",
    "TargetingInProgressError",
    "TargetingClosedError",
    "get_valid_targets",
    "validate_target",
    "ScriptCompiler",
    "ScriptError",
    "compile_script",
    "EffectAPI",
    "TriggeredEffectAPI",
    "EffectOutcome",
    "OperationType",
    "SpellOperation",
    "run_effect",
    "apply_operations",
    "Reducer",
    "apply_action",
    "GameEngine",
    "ActionGenerator",
    "legal_actions",
]
