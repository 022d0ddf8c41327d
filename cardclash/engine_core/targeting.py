"""
Targeting Protocol - Lets effect scripts ask for targets.

select_targets() is the only place a script can suspend. The flow:
1. Compute candidates from the selector (type, self/ally rules)
2. Auto-resolve the unambiguous single-player case, and resolve
   to an empty list when nothing is targetable
3. Otherwise publish a TargetingSession and await its future
4. The external chooser (UI, bot, API client) toggles targets,
   confirms or cancels; every exit path resolves the future

Exactly one session may be pending at a time. Requesting a second
one is a programming error and raises TargetingInProgressError.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, TYPE_CHECKING
import asyncio
import itertools
import logging

if TYPE_CHECKING:
    from .state import GameState

logger = logging.getLogger(__name__)


class TargetType(Enum):
    """What a target refers to."""
    PLAYER = "player"
    CREATURE = "creature"


class TargetingProtocolError(RuntimeError):
    """Misuse of the targeting protocol by the calling code."""


class TargetingInProgressError(TargetingProtocolError):
    """A targeting session was requested while another one is pending."""


class TargetingClosedError(TargetingProtocolError):
    """An operation was attempted on a session that already resolved."""


@dataclass(frozen=True)
class Target:
    """
    A chosen target. Compared structurally (type, player, instance).
    """
    target_type: TargetType
    player_id: str
    instance_id: str | None = None

    @classmethod
    def player(cls, player_id: str) -> Target:
        return cls(target_type=TargetType.PLAYER, player_id=player_id)

    @classmethod
    def creature(cls, player_id: str, instance_id: str) -> Target:
        return cls(target_type=TargetType.CREATURE, player_id=player_id, instance_id=instance_id)

    @property
    def is_player(self) -> bool:
        return self.target_type == TargetType.PLAYER

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.target_type.value, "player_id": self.player_id}
        if self.instance_id is not None:
            data["instance_id"] = self.instance_id
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Target:
        return cls(
            target_type=TargetType(data["type"]),
            player_id=data["player_id"],
            instance_id=data.get("instance_id"),
        )


@dataclass
class TargetSelector:
    """
    Describes the targets a script wants.

    sourcer_id is attached by the capability object; scripts never
    need to set it.
    """
    description: str = "Choose a target"
    target_type: TargetType = TargetType.PLAYER
    target_count: int = 1
    can_target_self: bool = True
    can_target_allies: bool = True
    sourcer_id: str | None = None

    def __post_init__(self):
        if isinstance(self.target_type, str):
            self.target_type = TargetType(self.target_type)
        if self.target_count < 1:
            raise ValueError("target_count must be >= 1")

    def with_sourcer(self, sourcer_id: str) -> TargetSelector:
        return TargetSelector(
            description=self.description,
            target_type=self.target_type,
            target_count=self.target_count,
            can_target_self=self.can_target_self,
            can_target_allies=self.can_target_allies,
            sourcer_id=sourcer_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "target_type": self.target_type.value,
            "target_count": self.target_count,
            "can_target_self": self.can_target_self,
            "can_target_allies": self.can_target_allies,
            "sourcer_id": self.sourcer_id,
        }


def validate_target(target: Target, selector: TargetSelector, state: GameState) -> str | None:
    """
    Check a target against a selector and the current state.

    Returns a reason string if invalid, None if valid.
    """
    if target.target_type != selector.target_type:
        return f"Cannot target {target.target_type.value}, expected {selector.target_type.value}"

    own_side = selector.sourcer_id is not None and target.player_id == selector.sourcer_id

    if target.target_type == TargetType.PLAYER:
        if target.player_id not in state.players:
            return "Player not found in game"
        if own_side and not selector.can_target_self:
            return "Cannot target self"
        return None

    if own_side and not (selector.can_target_self and selector.can_target_allies):
        return "Cannot target your own units"
    if target.instance_id is None:
        return "Creature target missing instance_id"
    card = state.find_battlefield_card(target.player_id, target.instance_id)
    if card is None:
        return "Creature not found on battlefield"
    definition = state.card_library.get(card.card_id)
    if definition is None or definition.card_type.value != "creature":
        return "Card type mismatch: expected creature"
    return None


def get_valid_targets(selector: TargetSelector, state: GameState) -> list[Target]:
    """All targets that satisfy the selector, in board order."""
    if selector.target_type == TargetType.PLAYER:
        candidates = [Target.player(pid) for pid in state.players]
    else:
        candidates = [
            Target.creature(pid, card.instance_id)
            for pid in state.players
            for card in state.battlefields.get(pid, [])
        ]
    return [t for t in candidates if validate_target(t, selector, state) is None]


def get_auto_targets(selector: TargetSelector, state: GameState) -> list[Target] | None:
    """
    Resolve a selector without asking anyone, if unambiguous.

    Only a single-target player selector with exactly one candidate
    auto-resolves. Returns None when a chooser is needed.
    """
    if selector.target_type != TargetType.PLAYER or selector.target_count != 1:
        return None
    candidates = get_valid_targets(selector, state)
    if len(candidates) == 1:
        return candidates
    return None


_session_ids = itertools.count(1)


@dataclass
class TargetingSession:
    """
    A pending request for targets.

    Toggle semantics: selecting an already-selected target removes it;
    a new target is appended while below target_count. A single-target
    session confirms itself on the first selection.
    """
    selector: TargetSelector
    candidates: list[Target]
    future: asyncio.Future
    session_id: str = field(default_factory=lambda: f"targeting_{next(_session_ids)}")
    selected: list[Target] = field(default_factory=list)
    cancelled: bool = False

    @property
    def is_resolved(self) -> bool:
        return self.future.done()

    def can_target(self, target: Target) -> bool:
        return target in self.candidates

    def is_selected(self, target: Target) -> bool:
        return target in self.selected

    def select(self, target: Target) -> bool:
        """
        Toggle a target.

        Returns False if the target is not a candidate or the selection
        is already full.
        """
        self._ensure_open()
        if target in self.selected:
            self.selected.remove(target)
            return True
        if not self.can_target(target):
            return False
        if len(self.selected) >= self.selector.target_count:
            return False
        self.selected.append(target)
        if self.selector.target_count == 1:
            self.confirm()
        return True

    def confirm(self) -> list[Target]:
        """Resume the script with the current selection."""
        self._ensure_open()
        result = list(self.selected)
        self.future.set_result(result)
        return result

    def cancel(self):
        """Resume the script with no targets."""
        if self.future.done():
            return
        self.cancelled = True
        self.selected.clear()
        self.future.set_result([])

    def _ensure_open(self):
        if self.future.done():
            raise TargetingClosedError(f"Targeting session {self.session_id} is already resolved")


SessionListener = Callable[[TargetingSession], Any]


class TargetingController:
    """
    Owns the single pending targeting session.

    Listeners are notified when a session opens; a listener may resolve
    the session immediately (bots do this).
    """

    def __init__(self):
        self._pending: TargetingSession | None = None
        self._listeners: list[SessionListener] = []
        self._opened: asyncio.Event | None = None
        self.cancelled_sessions = 0

    @property
    def pending(self) -> TargetingSession | None:
        return self._pending

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def add_listener(self, listener: SessionListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def select_targets(self, selector: TargetSelector, state: GameState) -> list[Target]:
        """
        Resolve a selector, suspending until the chooser answers.

        Raises:
            TargetingInProgressError: if a session is already pending.
        """
        if self._pending is not None:
            raise TargetingInProgressError(
                f"Targeting session {self._pending.session_id} is still pending"
            )

        auto = get_auto_targets(selector, state)
        if auto is not None:
            logger.debug("Auto-targeted %s for '%s'", auto, selector.description)
            return auto

        candidates = get_valid_targets(selector, state)
        if not candidates:
            logger.debug("No candidates for '%s'", selector.description)
            return []

        loop = asyncio.get_running_loop()
        session = TargetingSession(
            selector=selector,
            candidates=candidates,
            future=loop.create_future(),
        )
        try:
            self._pending = session
            logger.debug("Opened %s: %s", session.session_id, selector.description)
            self._signal_opened()
            for listener in list(self._listeners):
                listener(session)
            return await session.future
        finally:
            session.cancel()
            if session.cancelled:
                self.cancelled_sessions += 1
            self._pending = None
            if self._opened is not None:
                self._opened.clear()
            logger.debug("Closed %s", session.session_id)

    def cancel_pending(self):
        """Abandon the pending session, if any. Always safe to call."""
        if self._pending is not None:
            self._pending.cancel()

    async def wait_for_session(self) -> TargetingSession:
        """
        Wait until an unresolved session is pending and return it.

        A session that was answered but whose script has not resumed yet
        does not count.
        """
        if self._opened is None:
            self._opened = asyncio.Event()
        while self._pending is None or self._pending.is_resolved:
            self._opened.clear()
            await self._opened.wait()
        return self._pending

    def _signal_opened(self):
        if self._opened is not None:
            self._opened.set()
