"""`open <item>`: crack open a loot container from the inventory."""

from __future__ import annotations

from typing import Optional

import discord

from ..adapters.discord.builders import build_open_embed
from ..adapters.discord.handlers import reply, respond
from ..economy import CONTAINERS, find_container, roll_container
from ..models import OpenResult
from ..rng import GameRNG
from ..state import MissingItem
from ..telemetry_decorator import track_command
from .base import CommandContext, CommandDescriptor, CommandParameter, option_value

NAME = "open"
ALIASES: tuple[str, ...] = ()


def register() -> CommandDescriptor:
    return CommandDescriptor(
        NAME,
        "Open an item from your inventory to see what's inside.",
        (
            CommandParameter(
                "item",
                "The item you want to open.",
                required=True,
                choices=tuple((c.display_name, c.item) for c in CONTAINERS),
            ),
        ),
    )


def open_container(
    context: CommandContext,
    user_id: int,
    item: Optional[str],
    *,
    rng: Optional[GameRNG] = None,
) -> OpenResult | str:
    container = find_container(item) if item else None
    if container is None:
        names = ", ".join(f"`{c.item}`" for c in CONTAINERS)
        return f"That can't be opened. Openable items: {names}"
    coins, items = roll_container(container, rng or GameRNG())
    try:
        balance = context.state.open_container(user_id, container.item, coins, items)
    except MissingItem:
        return f"You don't have a {container.display_name} to open."
    return OpenResult(container=container, coins=coins, items=items, balance=balance)


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    result = open_container(context, interaction.user.id, option_value(interaction, "item"))
    if isinstance(result, str):
        await respond(interaction, result, ephemeral=True)
        return
    await respond(interaction, embed=build_open_embed(result))


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    result = open_container(context, message.author.id, "_".join(args) if args else None)
    if isinstance(result, str):
        await reply(message, result)
        return
    await reply(message, embed=build_open_embed(result))
