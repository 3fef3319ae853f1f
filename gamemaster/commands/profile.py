"""`profile`: show balance, action points, army and inventory."""

from __future__ import annotations

import discord

from ..adapters.discord.builders import build_profile_embed
from ..adapters.discord.handlers import reply, respond
from ..telemetry_decorator import track_command
from .base import (
    CommandContext,
    CommandDescriptor,
    CommandParameter,
    OptionKind,
    slash_target,
)

NAME = "profile"
ALIASES = ("p",)


def register() -> CommandDescriptor:
    return CommandDescriptor(
        NAME,
        "Displays your or another user's profile.",
        (CommandParameter("user", "Whose profile to show", OptionKind.USER),),
    )


def profile_embed(context: CommandContext, user_id: int, display_name: str) -> discord.Embed:
    state = context.state
    profile = state.get_profile(user_id)
    return build_profile_embed(
        display_name,
        profile,
        state.inventory(user_id),
        state.units(user_id),
        next_ap=profile.next_action_point(state.action_point_regen),
    )


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    user_id, display_name = slash_target(interaction)
    await respond(interaction, embed=profile_embed(context, user_id, display_name))


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    target = message.mentions[0] if message.mentions else message.author
    await reply(message, embed=profile_embed(context, target.id, target.display_name))
