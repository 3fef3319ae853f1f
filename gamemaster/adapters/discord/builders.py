"""Discord embed/view builders.

Pure-ish construction helpers for Discord UI objects. Keeping these in a
separate module makes them easy to unit test and reuse across handlers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

import discord

from ...economy import SELL_PRICES, fame_tier, item_name
from ...models import OpenResult, Profile, Unit, WorkResult
from ...ui.nav import RenderPayload
from ...ui.router import MSG_CLOSED, OutcomeKind, RouteOutcome
from ...ui.style import (
    COLOUR_ALERT,
    COLOUR_ECONOMY,
    EMOJI_AP,
    coins,
    progress_bar,
    stat_pair,
)

_NOTICE_TITLES: Dict[OutcomeKind, str] = {
    OutcomeKind.SESSION_EXPIRED: "Session expired",
    OutcomeKind.NOT_OWNER: "Not your menu",
    OutcomeKind.STALE: "Outdated control",
    OutcomeKind.TOO_DEEP: "Too deep",
    OutcomeKind.REJECTED: "Not possible",
    OutcomeKind.FAILED: "Error",
    OutcomeKind.TIMED_OUT: "Interaction timed out",
    OutcomeKind.MALFORMED: "Unknown control",
}


def build_view(payload: RenderPayload) -> Optional[discord.ui.View]:
    """Turn the payload's action rows into a view of routed buttons.

    Must be called from inside the running event loop.
    """

    if not payload.rows:
        return None
    from .handlers import NavButton  # local import to avoid cycles

    view = discord.ui.View(timeout=None)
    for row_index, row in enumerate(payload.rows):
        for control in row:
            button = discord.ui.Button(
                label=control.label,
                style=control.style,
                custom_id=control.custom_id,
                emoji=control.emoji,
                disabled=control.disabled,
                row=row_index,
            )
            view.add_item(NavButton(button))
    return view


def build_notice_embed(outcome: RouteOutcome) -> discord.Embed:
    """Terse embed for outcomes that do not re-render the menu."""

    return discord.Embed(
        title=_NOTICE_TITLES.get(outcome.kind, "Notice"),
        description=outcome.message or "",
        colour=COLOUR_ALERT,
    )


def build_closed_embed() -> discord.Embed:
    return discord.Embed(description=MSG_CLOSED, colour=discord.Colour.dark_grey())


def build_error_embed(description: str) -> discord.Embed:
    return discord.Embed(title="Error", description=description, colour=COLOUR_ALERT)


def build_profile_embed(
    display_name: str,
    profile: Profile,
    inventory: Dict[str, int],
    units: List[Unit],
    *,
    next_ap: Optional[datetime] = None,
) -> discord.Embed:
    """Construct the profile embed shown by `/profile`."""

    embed = discord.Embed(
        title=f"Profile — {display_name}",
        colour=COLOUR_ECONOMY,
        timestamp=datetime.now(timezone.utc),
    )
    embed.add_field(name="Balance", value=coins(profile.balance), inline=True)
    ap_text = f"{EMOJI_AP} {stat_pair(profile.action_points, profile.max_action_points)}"
    if next_ap is not None:
        ap_text += f"\nNext point <t:{int(next_ap.timestamp())}:R>"
    embed.add_field(name="Action Points", value=ap_text, inline=True)

    tier, progress = fame_tier(profile.fame)
    embed.add_field(
        name="Fame",
        value=f"{profile.fame} (tier {tier + 1}) {progress_bar(progress)}",
        inline=False,
    )

    party = [unit for unit in units if unit.in_party]
    army_lines = [
        f"{'★ ' if unit.in_party else ''}{unit.name} (Lv {unit.level}, {unit.rarity.value})"
        for unit in units[:10]
    ]
    embed.add_field(
        name=f"Army ({len(units)}, party {len(party)})",
        value="\n".join(army_lines) if army_lines else "No units yet. Visit the tavern in /saga.",
        inline=False,
    )

    inventory_lines = [
        f"{item_name(item)} × {quantity}" for item, quantity in sorted(inventory.items())
    ]
    embed.add_field(
        name="Inventory",
        value="\n".join(inventory_lines) if inventory_lines else "Empty",
        inline=False,
    )
    embed.set_footer(text="Profile generated via /profile")
    return embed


def build_inventory_embed(display_name: str, inventory: Dict[str, int]) -> discord.Embed:
    embed = discord.Embed(title=f"{display_name}'s Inventory", colour=COLOUR_ECONOMY)
    if not inventory:
        embed.description = "Nothing to see here! Use `/work` to get some!"
        return embed
    lines = []
    for item, quantity in sorted(inventory.items()):
        price = SELL_PRICES.get(item)
        worth = f" · sells for {coins(price)} each" if price else ""
        lines.append(f"**{item_name(item)}** `x{quantity}`{worth}")
    embed.description = "\n".join(lines)
    return embed


def build_sale_embed(item: str, sold: int, earned: int, balance: int) -> discord.Embed:
    embed = discord.Embed(
        title="Items sold",
        description=f"You sold `{sold}` {item_name(item)} for {coins(earned)}.",
        colour=COLOUR_ECONOMY,
    )
    embed.set_footer(text=f"Balance: {balance:,} coins")
    return embed


def build_gift_embed(item: str, quantity: int, receiver_name: str) -> discord.Embed:
    return discord.Embed(
        title="Trade Successful!",
        description=f"You gave **`{quantity}` {item_name(item)}** to **{receiver_name}**.",
        colour=COLOUR_ECONOMY,
    )


def build_work_embed(result: WorkResult) -> discord.Embed:
    embed = discord.Embed(
        title=f"{result.job.display_name} shift complete",
        description=f"You earned {coins(result.payout)}.",
        colour=COLOUR_ECONOMY,
    )
    gained = [f"{item_name(item)} × {qty}" for item, qty in result.resources.items()]
    if result.rare_item:
        gained.append(f"✨ {item_name(result.rare_item)} × 1")
    embed.add_field(name="Gathered", value="\n".join(gained) or "Nothing", inline=False)
    embed.set_footer(text=f"Balance: {result.balance:,} coins")
    return embed


def build_open_embed(result: OpenResult) -> discord.Embed:
    embed = discord.Embed(
        title=f"You open a {result.container.display_name}",
        colour=COLOUR_ECONOMY,
    )
    lines: List[str] = []
    if result.coins:
        lines.append(coins(result.coins))
    lines.extend(f"{item_name(item)} × {qty}" for item, qty in result.items.items())
    embed.description = "\n".join(lines) if lines else "It was empty."
    embed.set_footer(text=f"Balance: {result.balance:,} coins")
    return embed


__all__ = [
    "build_closed_embed",
    "build_error_embed",
    "build_gift_embed",
    "build_inventory_embed",
    "build_notice_embed",
    "build_open_embed",
    "build_profile_embed",
    "build_sale_embed",
    "build_view",
    "build_work_embed",
]
