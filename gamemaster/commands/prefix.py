"""`prefix`: show the textual command prefix; administrators may change it."""

from __future__ import annotations

import logging

import discord

from ..adapters.discord.handlers import reply, respond
from ..telemetry_decorator import track_command
from .base import PREFIX_SETTING_KEY, CommandContext, CommandDescriptor, is_administrator

logger = logging.getLogger(__name__)

NAME = "prefix"
ALIASES: tuple[str, ...] = ()

MAX_PREFIX_LENGTH = 5


def register() -> CommandDescriptor:
    return CommandDescriptor(NAME, "Check the bot's current command prefix.")


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    await respond(
        interaction,
        f"The current command prefix is `{context.current_prefix()}`.",
        ephemeral=True,
    )


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    if not args or args[0].lower() != "set":
        await reply(message, f"The current command prefix is `{context.current_prefix()}`.")
        return

    if not is_administrator(message.author):
        await reply(message, "Only administrators can change the prefix.")
        return
    if len(args) < 2:
        await reply(message, f"Usage: `{context.current_prefix()}prefix set <new prefix>`")
        return
    new_prefix = args[1]
    if len(new_prefix) > MAX_PREFIX_LENGTH or any(ch.isspace() for ch in new_prefix):
        await reply(
            message,
            f"A prefix must be 1-{MAX_PREFIX_LENGTH} characters without spaces.",
        )
        return
    context.state.set_setting(PREFIX_SETTING_KEY, new_prefix)
    logger.info("Prefix changed to %r by %s", new_prefix, message.author.id)
    await reply(message, f"Prefix updated to `{new_prefix}`.")
