"""Command modules and the registry that dispatches to them.

The registry is built once at startup from a static module list. A
duplicated slash name or prefix alias is a fatal configuration error.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import discord

from ..adapters.discord.handlers import reply, respond
from . import admin, give, help, inventory, party, ping, poker, prefix, profile, saga, sell, work
from . import open as open_command
from .base import CommandContext, CommandDescriptor

logger = logging.getLogger(__name__)

COMMAND_MODULES: Tuple[ModuleType, ...] = (
    ping,
    prefix,
    help,
    profile,
    work,
    open_command,
    inventory,
    sell,
    give,
    saga,
    party,
    poker,
    admin,
)

_ENTRY_POINTS = ("register", "run_slash", "run_prefix")

MSG_COMMAND_FAILED = "Something went wrong while running that command."


class RegistrationCollision(RuntimeError):
    def __init__(self, name: str, first: str, second: str) -> None:
        super().__init__(f"command name {name!r} is declared by both {first} and {second}")
        self.name = name
        self.modules = (first, second)


class CommandRegistry:
    """Maps slash names and prefix names/aliases to command modules."""

    def __init__(self) -> None:
        self._slash: Dict[str, ModuleType] = {}
        self._prefix: Dict[str, ModuleType] = {}
        self._descriptors: List[CommandDescriptor] = []

    @classmethod
    def from_modules(cls, modules: Iterable[ModuleType] = COMMAND_MODULES) -> "CommandRegistry":
        registry = cls()
        for module in modules:
            registry.add(module)
        return registry

    @property
    def descriptors(self) -> List[CommandDescriptor]:
        return list(self._descriptors)

    def add(self, module: ModuleType) -> None:
        missing = [name for name in _ENTRY_POINTS if not callable(getattr(module, name, None))]
        if missing:
            raise TypeError(f"{module.__name__} is missing {', '.join(missing)}")

        descriptor: Optional[CommandDescriptor] = module.register()
        if descriptor is not None:
            owner = self._slash.get(descriptor.name)
            if owner is not None:
                raise RegistrationCollision(descriptor.name, owner.__name__, module.__name__)

        name = getattr(module, "NAME", None) or (descriptor.name if descriptor else None)
        if not name:
            raise TypeError(f"{module.__name__} declares no command name")
        prefix_names: List[str] = []
        for raw in (name, *getattr(module, "ALIASES", ())):
            prefix_name = raw.lower()
            owner = self._prefix.get(prefix_name)
            if owner is not None:
                raise RegistrationCollision(prefix_name, owner.__name__, module.__name__)
            if prefix_name in prefix_names:
                raise RegistrationCollision(prefix_name, module.__name__, module.__name__)
            prefix_names.append(prefix_name)

        if descriptor is not None:
            self._slash[descriptor.name] = module
            self._descriptors.append(descriptor)
        for prefix_name in prefix_names:
            self._prefix[prefix_name] = module

    def slash_module(self, name: str) -> Optional[ModuleType]:
        return self._slash.get(name)

    def prefix_module(self, name: str) -> Optional[ModuleType]:
        return self._prefix.get(name.lower())

    def payloads(self) -> List[dict]:
        return [descriptor.to_payload() for descriptor in self._descriptors]

    async def dispatch_slash(self, context: CommandContext, interaction: discord.Interaction) -> bool:
        """Run the slash handler for ``interaction``; returns whether one matched."""

        name = (interaction.data or {}).get("name", "")
        module = self.slash_module(name)
        if module is None:
            logger.debug("Ignoring unregistered slash command %r", name)
            return False
        try:
            await module.run_slash(context, interaction)
        except Exception:
            logger.exception("Slash command /%s failed", name)
            try:
                await respond(interaction, MSG_COMMAND_FAILED, ephemeral=True)
            except discord.HTTPException:
                logger.exception("Failed to report /%s failure", name)
        return True

    async def dispatch_prefix(self, context: CommandContext, message: discord.Message) -> bool:
        """Run the prefix handler if ``message`` starts with the prefix."""

        prefix_text = context.current_prefix()
        content = message.content or ""
        if not content.startswith(prefix_text):
            return False
        parts: Sequence[str] = content[len(prefix_text):].split()
        if not parts:
            return False
        name, args = parts[0], list(parts[1:])
        module = self.prefix_module(name)
        if module is None:
            return False
        try:
            await module.run_prefix(context, message, args)
        except Exception:
            logger.exception("Prefix command %s%s failed", prefix_text, name)
            try:
                await reply(message, MSG_COMMAND_FAILED)
            except discord.HTTPException:
                logger.exception("Failed to report %s failure", name)
        return True


__all__ = ["COMMAND_MODULES", "CommandRegistry", "RegistrationCollision"]
