"""Shared shapes for command modules.

Every command module exposes ``NAME``, ``ALIASES`` and three entry points:

* ``register()`` returning a :class:`CommandDescriptor` to advertise as a
  slash command, or ``None`` for prefix-only commands;
* ``async run_slash(context, interaction)``;
* ``async run_prefix(context, message, args)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config import Settings
from ..state import GameState
from ..ui.nav import ContextBag
from ..ui.router import InteractionRouter
from ..ui.sessions import SessionTable

PREFIX_SETTING_KEY = "command_prefix"


class OptionKind(IntEnum):
    """Discord application command option types."""

    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6


@dataclass(frozen=True)
class CommandParameter:
    name: str
    description: str
    kind: OptionKind = OptionKind.STRING
    required: bool = False
    choices: Tuple[Tuple[str, str], ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "type": int(self.kind),
            "required": self.required,
        }
        if self.choices:
            payload["choices"] = [
                {"name": label, "value": value} for label, value in self.choices
            ]
        return payload


@dataclass(frozen=True)
class CommandDescriptor:
    name: str
    description: str
    parameters: Tuple[CommandParameter, ...] = field(default_factory=tuple)

    def to_payload(self) -> Dict[str, Any]:
        """Application command JSON as accepted by the bulk overwrite endpoint."""

        return {
            "name": self.name,
            "description": self.description,
            "type": 1,
            "options": [parameter.to_payload() for parameter in self.parameters],
        }


@dataclass
class CommandContext:
    """Process-wide collaborators handed to every command handler."""

    state: GameState
    sessions: SessionTable
    router: InteractionRouter
    settings: Settings
    latency: Callable[[], float] = lambda: 0.0

    def bag(self, user_id: int) -> ContextBag:
        return ContextBag(db=self.state, user_id=user_id)

    def current_prefix(self) -> str:
        return self.state.get_setting(PREFIX_SETTING_KEY) or self.settings.command_prefix


def option_value(interaction: Any, name: str, default: Any = None) -> Any:
    """Read a top-level option from a slash command interaction payload."""

    data = getattr(interaction, "data", None) or {}
    for option in data.get("options", []) or []:
        if option.get("name") == name:
            return option.get("value", default)
    return default


def resolved_user(interaction: Any, user_id: int) -> Dict[str, Any]:
    """The ``resolved.users`` entry Discord sends alongside a user option."""

    data = getattr(interaction, "data", None) or {}
    return (data.get("resolved") or {}).get("users", {}).get(str(user_id)) or {}


def slash_target(interaction: Any, option: str = "user") -> Tuple[int, str]:
    """Id and display name of the user option, defaulting to the invoker."""

    raw = option_value(interaction, option)
    if raw is None:
        return interaction.user.id, interaction.user.display_name
    user_id = int(raw)
    entry = resolved_user(interaction, user_id)
    return user_id, entry.get("global_name") or entry.get("username") or f"<@{user_id}>"


def parse_quantity(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


def is_administrator(member: Any) -> bool:
    permissions = getattr(member, "guild_permissions", None)
    return bool(permissions is not None and permissions.administrator)


def first_arg(args: Sequence[str]) -> Optional[str]:
    return args[0] if args else None


def mention_ids(message: Any) -> List[int]:
    return [user.id for user in getattr(message, "mentions", []) or []]


__all__ = [
    "CommandContext",
    "CommandDescriptor",
    "CommandParameter",
    "OptionKind",
    "PREFIX_SETTING_KEY",
    "first_arg",
    "is_administrator",
    "mention_ids",
    "option_value",
    "parse_quantity",
    "resolved_user",
    "slash_target",
]
