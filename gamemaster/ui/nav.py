"""Navigation state system for embed-based UI flows.

A :class:`NavStack` holds the screens a user has descended through. Only the
top screen is visible; screens below keep their local state untouched and
resume as they were when the screens above them are popped.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, List, Optional, Sequence, Tuple

import discord

from .custom_id import CallbackId

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..state import GameState

DEFAULT_MAX_DEPTH = 16
MAX_ROWS = 5
MAX_CONTROLS_PER_ROW = 5


class NavigationError(Exception):
    """Base class for navigation failures."""


class NavDepthExceeded(NavigationError):
    def __init__(self, max_depth: int) -> None:
        super().__init__(f"navigation is already {max_depth} screens deep")
        self.max_depth = max_depth


class UnknownAction(NavigationError):
    def __init__(self, screen_id: str, action: str) -> None:
        super().__init__(f"screen {screen_id!r} has no action {action!r}")
        self.screen_id = screen_id
        self.action = action


class ActionRejected(NavigationError):
    """Raised by a screen handler to refuse an action with a user-facing reason."""


@dataclass(frozen=True)
class ContextBag:
    """Read-only bundle handed to a screen for one render or callback."""

    db: "GameState"
    user_id: int


@dataclass(frozen=True)
class Control:
    custom_id: str
    label: str
    style: discord.ButtonStyle = discord.ButtonStyle.secondary
    emoji: Optional[str] = None
    disabled: bool = False


ActionRow = Tuple[Control, ...]


@dataclass(frozen=True)
class RenderPayload:
    embed: discord.Embed
    rows: Tuple[ActionRow, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        rows = tuple(tuple(row) for row in self.rows if row)
        if len(rows) > MAX_ROWS:
            raise ValueError(f"at most {MAX_ROWS} action rows are allowed, got {len(rows)}")
        for row in rows:
            if len(row) > MAX_CONTROLS_PER_ROW:
                raise ValueError(
                    f"at most {MAX_CONTROLS_PER_ROW} controls per row are allowed, got {len(row)}"
                )
        object.__setattr__(self, "rows", rows)

    def custom_ids(self) -> List[str]:
        return [control.custom_id for row in self.rows for control in row]


def chunk_controls(controls: Sequence[Control], size: int = MAX_CONTROLS_PER_ROW) -> List[ActionRow]:
    """Split a flat control list into action rows."""

    return [tuple(controls[idx: idx + size]) for idx in range(0, len(controls), size)]


class NavState(abc.ABC):
    """A screen: a stable identity plus the ability to render itself."""

    screen_id: ClassVar[str]

    @property
    def identity(self) -> str:
        return self.screen_id

    @abc.abstractmethod
    async def render(self, ctx: ContextBag) -> RenderPayload:
        """Produce the embed and controls for this screen. Must not touch the stack."""

    async def handle(
        self,
        ctx: ContextBag,
        nav: "NavStack",
        action: str,
        payload: Optional[str],
    ) -> None:
        raise UnknownAction(self.screen_id, action)

    def control(
        self,
        action: str,
        label: str,
        *,
        payload: Optional[str] = None,
        style: discord.ButtonStyle = discord.ButtonStyle.secondary,
        emoji: Optional[str] = None,
        disabled: bool = False,
    ) -> Control:
        custom_id = CallbackId(self.screen_id, action, payload).encode()
        return Control(custom_id=custom_id, label=label, style=style, emoji=emoji, disabled=disabled)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.screen_id}>"


class NavStack:
    """LIFO of screens owned by one session."""

    def __init__(self, owner_id: int, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.owner_id = owner_id
        self.max_depth = max_depth
        self._screens: List[NavState] = []

    def __len__(self) -> int:
        return len(self._screens)

    @property
    def depth(self) -> int:
        return len(self._screens)

    def is_empty(self) -> bool:
        return not self._screens

    def push(self, screen: NavState) -> None:
        if len(self._screens) >= self.max_depth:
            raise NavDepthExceeded(self.max_depth)
        self._screens.append(screen)

    def pop(self) -> Optional[NavState]:
        if not self._screens:
            return None
        return self._screens.pop()

    def top(self) -> Optional[NavState]:
        return self._screens[-1] if self._screens else None

    def replace_top(self, screen: NavState) -> Optional[NavState]:
        """Swap the visible screen without changing depth; returns the replaced one."""

        previous = self._screens.pop() if self._screens else None
        self._screens.append(screen)
        return previous

    def clear(self) -> None:
        while self._screens:
            self._screens.pop()

    def identities(self) -> List[str]:
        return [screen.identity for screen in self._screens]

    def snapshot(self) -> Tuple[NavState, ...]:
        return tuple(self._screens)

    def restore(self, snapshot: Tuple[NavState, ...]) -> None:
        self._screens = list(snapshot)

    def __repr__(self) -> str:
        return f"<NavStack owner={self.owner_id} screens={self.identities()}>"


__all__ = [
    "ActionRejected",
    "ActionRow",
    "ContextBag",
    "Control",
    "DEFAULT_MAX_DEPTH",
    "NavDepthExceeded",
    "NavState",
    "NavStack",
    "NavigationError",
    "RenderPayload",
    "UnknownAction",
    "chunk_controls",
]
