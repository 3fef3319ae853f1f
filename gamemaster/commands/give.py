"""`give @user <item> [quantity]`: hand items to another player."""

from __future__ import annotations

from typing import Optional

import discord

from ..adapters.discord.builders import build_gift_embed
from ..adapters.discord.handlers import reply, respond
from ..economy import ITEM_NAMES, find_item
from ..state import GameStateError
from ..telemetry_decorator import track_command
from .base import (
    CommandContext,
    CommandDescriptor,
    CommandParameter,
    OptionKind,
    option_value,
    resolved_user,
    slash_target,
)
from .sell import split_item_and_quantity

NAME = "give"
ALIASES: tuple[str, ...] = ()


def register() -> CommandDescriptor:
    return CommandDescriptor(
        NAME,
        "Give an item from your inventory to another user.",
        (
            CommandParameter("user", "The user to give the item to", OptionKind.USER, required=True),
            CommandParameter(
                "item",
                "The item you want to give",
                required=True,
                choices=tuple((label, item) for item, label in ITEM_NAMES.items()),
            ),
            CommandParameter("quantity", "The amount to give. Defaults to 1.", OptionKind.INTEGER),
        ),
    )


def give(
    context: CommandContext,
    giver_id: int,
    receiver_id: int,
    receiver_name: str,
    item_text: str,
    quantity: Optional[int],
    *,
    receiver_is_bot: bool = False,
) -> discord.Embed | str:
    if giver_id == receiver_id:
        return "You cannot give items to yourself."
    if receiver_is_bot:
        return "You cannot give items to bots."
    quantity = 1 if quantity is None else quantity
    if quantity < 1:
        return "You must give at least one item."
    if not item_text:
        return "You need to specify what to give! (e.g. `give @user fish 10`)"
    item = find_item(item_text)
    if item is None:
        return f"'{item_text}' is not a valid item."
    try:
        context.state.transfer_items(giver_id, receiver_id, item, quantity)
    except GameStateError as exc:
        return str(exc)
    return build_gift_embed(item, quantity, receiver_name)


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    receiver_id, receiver_name = slash_target(interaction)
    quantity = option_value(interaction, "quantity")
    result = give(
        context,
        interaction.user.id,
        receiver_id,
        receiver_name,
        option_value(interaction, "item", ""),
        int(quantity) if quantity is not None else None,
        receiver_is_bot=bool(resolved_user(interaction, receiver_id).get("bot")),
    )
    if isinstance(result, str):
        await respond(interaction, result, ephemeral=True)
        return
    await respond(interaction, embed=result)


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    if not message.mentions:
        await reply(message, "You must mention a user to give an item to! (e.g. `give @user fish 10`)")
        return
    receiver = message.mentions[0]
    item_text, quantity = split_item_and_quantity([arg for arg in args if not arg.startswith("<@")])
    result = give(
        context,
        message.author.id,
        receiver.id,
        receiver.display_name,
        item_text,
        quantity,
        receiver_is_bot=bool(getattr(receiver, "bot", False)),
    )
    if isinstance(result, str):
        await reply(message, result)
        return
    await reply(message, embed=result)
