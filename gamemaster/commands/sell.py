"""`sell <item> [quantity]`: turn gathered resources into coins."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import discord

from ..adapters.discord.builders import build_sale_embed
from ..adapters.discord.handlers import reply, respond
from ..economy import SELL_PRICES, find_item, item_name
from ..state import GameStateError
from ..telemetry_decorator import track_command
from .base import (
    CommandContext,
    CommandDescriptor,
    CommandParameter,
    OptionKind,
    option_value,
    parse_quantity,
)

NAME = "sell"
ALIASES: tuple[str, ...] = ()


def register() -> CommandDescriptor:
    return CommandDescriptor(
        NAME,
        "Sell your collected resources for coins.",
        (
            CommandParameter(
                "item",
                "The item you want to sell.",
                required=True,
                choices=tuple((item_name(item), item) for item in SELL_PRICES),
            ),
            CommandParameter(
                "quantity", "The amount to sell. Sells all by default.", OptionKind.INTEGER
            ),
        ),
    )


def split_item_and_quantity(args: Sequence[str]) -> Tuple[str, Optional[int]]:
    """``["golden", "fish", "3"]`` -> ``("golden fish", 3)``."""

    words = list(args)
    quantity = parse_quantity(words[-1]) if words else None
    if quantity is not None:
        words = words[:-1]
    return " ".join(words), quantity


def sell(
    context: CommandContext, user_id: int, item_text: str, quantity: Optional[int]
) -> discord.Embed | str:
    if not item_text:
        return "You need to specify what to sell! (e.g. `sell fish 10`)"
    item = find_item(item_text)
    if item is None:
        return f"'{item_text}' is not a sellable item."
    price = SELL_PRICES.get(item)
    if price is None:
        return f"The item '{item_name(item)}' cannot be sold."
    if quantity is not None and quantity < 1:
        return "You must sell at least one item."
    try:
        sold, balance = context.state.sell_items(user_id, item, price, quantity)
    except GameStateError as exc:
        return str(exc)
    return build_sale_embed(item, sold, sold * price, balance)


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    quantity = option_value(interaction, "quantity")
    result = sell(
        context,
        interaction.user.id,
        option_value(interaction, "item", ""),
        int(quantity) if quantity is not None else None,
    )
    if isinstance(result, str):
        await respond(interaction, result, ephemeral=True)
        return
    await respond(interaction, embed=result, ephemeral=True)


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    item_text, quantity = split_item_and_quantity(args)
    result = sell(context, message.author.id, item_text, quantity)
    if isinstance(result, str):
        await reply(message, result)
        return
    await reply(message, embed=result)
