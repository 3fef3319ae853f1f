"""`party`: review the active party and pick members from the army."""

from __future__ import annotations

from typing import List, Optional

import discord

from ..adapters.discord.handlers import open_session_from_interaction, open_session_from_message
from ..config import Settings
from ..state import GameStateError
from ..telemetry_decorator import track_command
from ..ui.nav import ActionRejected, ContextBag, Control, NavStack, NavState, RenderPayload, chunk_controls
from ..ui.style import COLOUR_PARTY, EMOJI_BACK, EMOJI_CLOSE, stat_pair
from .base import CommandContext, CommandDescriptor

NAME = "party"
ALIASES = ("army",)


def _nav_row(screen: NavState, switch_action: str, switch_label: str) -> tuple[Control, ...]:
    return (
        screen.control(switch_action, switch_label, style=discord.ButtonStyle.primary),
        screen.control("back", "Back", emoji=EMOJI_BACK),
        screen.control("close", "Close", emoji=EMOJI_CLOSE, style=discord.ButtonStyle.danger),
    )


class PartyRosterScreen(NavState):
    screen_id = "party.roster"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def render(self, ctx: ContextBag) -> RenderPayload:
        party = ctx.db.party(ctx.user_id)
        embed = discord.Embed(
            title="Party",
            description=f"Members {stat_pair(len(party), self.settings.max_party_size)}",
            colour=COLOUR_PARTY,
        )
        for unit in party:
            embed.add_field(
                name=unit.name,
                value=f"Lv {unit.level} • {unit.rarity.value}",
                inline=True,
            )
        if not party:
            embed.add_field(
                name="Nobody here",
                value="Switch to the army view to pick party members.",
                inline=False,
            )
        return RenderPayload(embed=embed, rows=(_nav_row(self, "switch-army", "Manage Army"),))

    async def handle(
        self, ctx: ContextBag, nav: NavStack, action: str, payload: Optional[str]
    ) -> None:
        if action == "switch-army":
            nav.replace_top(PartyArmyScreen(self.settings))
        elif action == "back":
            nav.pop()
        elif action == "close":
            nav.clear()
        else:
            await super().handle(ctx, nav, action, payload)


class PartyArmyScreen(NavState):
    screen_id = "party.army"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.notice: Optional[str] = None

    async def render(self, ctx: ContextBag) -> RenderPayload:
        units = ctx.db.units(ctx.user_id)
        in_party = sum(1 for unit in units if unit.in_party)
        embed = discord.Embed(
            title="Army",
            description=(
                f"Units {stat_pair(len(units), self.settings.max_army_size)} • "
                f"Party {stat_pair(in_party, self.settings.max_party_size)}\n"
                "Toggle a unit to move it in or out of your party."
            ),
            colour=COLOUR_PARTY,
        )
        if self.notice:
            embed.add_field(name="Latest", value=self.notice, inline=False)
        toggles: List[Control] = [
            self.control(
                "toggle",
                f"{'★ ' if unit.in_party else ''}{unit.name}"[:80],
                payload=str(unit.id),
                style=discord.ButtonStyle.success if unit.in_party else discord.ButtonStyle.secondary,
            )
            for unit in units[: self.settings.max_army_size]
        ]
        rows = chunk_controls(toggles)[:4]
        rows.append(_nav_row(self, "switch-roster", "Party View"))
        return RenderPayload(embed=embed, rows=tuple(rows))

    async def handle(
        self, ctx: ContextBag, nav: NavStack, action: str, payload: Optional[str]
    ) -> None:
        if action == "toggle":
            try:
                unit_id = int(payload or "")
            except ValueError:
                raise ActionRejected("That unit could not be found.") from None
            try:
                joined = ctx.db.toggle_party(
                    ctx.user_id, unit_id, max_party=self.settings.max_party_size
                )
            except GameStateError as exc:
                self.notice = str(exc)
                return
            self.notice = "Added to the party." if joined else "Removed from the party."
        elif action == "switch-roster":
            nav.replace_top(PartyRosterScreen(self.settings))
        elif action == "back":
            nav.pop()
        elif action == "close":
            nav.clear()
        else:
            await super().handle(ctx, nav, action, payload)


def register() -> CommandDescriptor:
    return CommandDescriptor(NAME, "View your party and organise your army.")


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    await open_session_from_interaction(context, interaction, PartyRosterScreen(context.settings))


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    await open_session_from_message(context, message, PartyRosterScreen(context.settings))
