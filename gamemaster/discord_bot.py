"""Discord bot entry point for Gamemaster."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from .adapters.discord import NavButton
from .commands import CommandRegistry
from .commands.base import CommandContext
from .config import Settings, get_settings
from .scheduler import SessionSweeper
from .state import GameState
from .telemetry import get_telemetry
from .ui.router import InteractionRouter
from .ui.sessions import SessionTable

logger = logging.getLogger(__name__)


def _env_int(env_key: str) -> Optional[int]:
    value = os.environ.get(env_key)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid %s: %s", env_key, value)
        return None


class GameCommandTree(app_commands.CommandTree):
    """Hands every application command to the command registry.

    Commands are advertised from registry descriptors rather than decorated
    callbacks, so the tree itself never resolves them.
    """

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.type is not discord.InteractionType.application_command:
            return True
        registry: CommandRegistry = getattr(self.client, "command_registry")
        context: CommandContext = getattr(self.client, "command_context")
        await registry.dispatch_slash(context, interaction)
        return False


class GamemasterBot(commands.Bot):
    """Bot that stops its housekeeping jobs while the event loop is still alive."""

    sweeper: Optional[SessionSweeper] = None

    async def close(self) -> None:
        if self.sweeper is not None:
            self.sweeper.shutdown()
        await super().close()


async def sync_commands(bot: commands.Bot, registry: CommandRegistry) -> int:
    """Overwrite the advertised slash commands with the registry's descriptors."""

    application_id = bot.application_id
    if application_id is None:
        raise RuntimeError("Application id is unknown; cannot sync commands")
    payload = registry.payloads()
    guild_id = _env_int("GAMEMASTER_GUILD_ID")
    if guild_id is not None:
        synced = await bot.http.bulk_upsert_guild_commands(application_id, guild_id, payload)
    else:
        synced = await bot.http.bulk_upsert_global_commands(application_id, payload)
    return len(synced)


def build_bot(
    db_path: Path,
    settings: Optional[Settings] = None,
    intents: Optional[discord.Intents] = None,
) -> GamemasterBot:
    settings = settings or get_settings()
    if intents is None:
        intents = discord.Intents.default()
        intents.message_content = True
    bot = GamemasterBot(
        command_prefix=commands.when_mentioned,
        intents=intents,
        application_id=_env_int("DISCORD_APP_ID"),
        tree_cls=GameCommandTree,
        help_command=None,
    )

    state = GameState(
        db_path,
        starting_balance=settings.starting_balance,
        max_action_points=settings.max_action_points,
        action_point_regen=settings.action_point_regen,
    )
    sessions = SessionTable(
        idle_timeout=settings.session_idle_seconds,
        max_depth=settings.nav_max_depth,
    )
    router = InteractionRouter(sessions, state, deadline=settings.interaction_deadline_seconds)
    context = CommandContext(
        state=state,
        sessions=sessions,
        router=router,
        settings=settings,
        latency=lambda: bot.latency,
    )
    registry = CommandRegistry.from_modules()
    setattr(bot, "state_service", state)
    setattr(bot, "nav_router", router)
    setattr(bot, "command_context", context)
    setattr(bot, "command_registry", registry)
    bot.add_dynamic_items(NavButton)

    sweeper = SessionSweeper(sessions, interval_seconds=settings.session_sweep_seconds)
    bot.sweeper = sweeper

    @bot.event
    async def on_ready() -> None:
        logger.info("Gamemaster bot connected as %s", bot.user)
        try:
            count = await sync_commands(bot, registry)
            logger.info("Synced %d commands", count)
        except Exception as exc:  # pragma: no cover - logging only
            logger.exception("Failed to sync commands: %s", exc)
        if not sweeper.running:
            sweeper.start()

    @bot.event
    async def on_message(message: discord.Message) -> None:
        if message.author.bot:
            return
        await registry.dispatch_prefix(context, message)

    return bot


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    token = os.environ.get("DISCORD_TOKEN")
    if not token:
        raise RuntimeError("DISCORD_TOKEN environment variable must be set")
    db_path = Path(os.environ.get("GAMEMASTER_DB", "gamemaster.db"))
    bot = build_bot(db_path)
    try:
        bot.run(token)
    finally:
        get_telemetry().flush()


__all__ = ["GameCommandTree", "GamemasterBot", "build_bot", "main", "sync_commands"]
