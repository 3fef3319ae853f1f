"""`inventory`: list the items a player is holding."""

from __future__ import annotations

import discord

from ..adapters.discord.builders import build_inventory_embed
from ..adapters.discord.handlers import reply, respond
from ..telemetry_decorator import track_command
from .base import CommandContext, CommandDescriptor, CommandParameter, OptionKind, slash_target

NAME = "inventory"
ALIASES = ("inv",)


def register() -> CommandDescriptor:
    return CommandDescriptor(
        NAME,
        "View your or another user's inventory of collected resources.",
        (CommandParameter("user", "Whose inventory to show", OptionKind.USER),),
    )


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    user_id, display_name = slash_target(interaction)
    embed = build_inventory_embed(display_name, context.state.inventory(user_id))
    await respond(interaction, embed=embed, ephemeral=True)


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    target = message.mentions[0] if message.mentions else message.author
    await reply(message, embed=build_inventory_embed(target.display_name, context.state.inventory(target.id)))
