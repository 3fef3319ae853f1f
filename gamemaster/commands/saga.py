"""`saga`: the adventure hub and its tavern."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

import discord

from ..adapters.discord.handlers import open_session_from_interaction, open_session_from_message
from ..config import Settings
from ..economy import FAME_PER_HIRE, daily_recruits, fame_tier, find_recruit
from ..models import Recruit
from ..state import GameStateError
from ..telemetry_decorator import track_command
from ..ui.nav import ActionRejected, ContextBag, Control, NavStack, NavState, RenderPayload
from ..ui.style import (
    COLOUR_SAGA_MAIN,
    COLOUR_SAGA_TAVERN,
    EMOJI_AP,
    EMOJI_BACK,
    EMOJI_CLOSE,
    EMOJI_REFRESH,
    coins,
    progress_bar,
    stat_pair,
)
from .base import CommandContext, CommandDescriptor
from .party import PartyRosterScreen

NAME = "saga"
ALIASES = ("play",)


class SagaRootScreen(NavState):
    screen_id = "saga.root"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.notice: Optional[str] = None
        self.expeditions = 0

    async def render(self, ctx: ContextBag) -> RenderPayload:
        profile = ctx.db.get_profile(ctx.user_id)
        party = ctx.db.party(ctx.user_id)
        embed = discord.Embed(
            title="Gamemaster Saga",
            description=(
                f"{EMOJI_AP} Action Points {stat_pair(profile.action_points, profile.max_action_points)}\n"
                f"Balance {coins(profile.balance)}\n"
                f"Party {stat_pair(len(party), self.settings.max_party_size)}"
            ),
            colour=COLOUR_SAGA_MAIN,
        )
        if party:
            embed.add_field(
                name="Your Party",
                value="\n".join(f"{unit.name} (Lv {unit.level})" for unit in party),
                inline=False,
            )
        else:
            embed.add_field(
                name="No party yet",
                value="Hire mercenaries at the tavern, then add them to your party.",
                inline=False,
            )
        if self.notice:
            embed.add_field(name="Latest", value=self.notice, inline=False)
        if self.expeditions:
            embed.set_footer(text=f"Expeditions this session: {self.expeditions}")

        can_travel = bool(party) and profile.action_points > 0
        rows = (
            (
                self.control(
                    "map",
                    "World Map",
                    style=discord.ButtonStyle.primary,
                    disabled=not can_travel,
                ),
                self.control("tavern", "Tavern", style=discord.ButtonStyle.success),
                self.control("party", "Party"),
            ),
            (
                self.control("refresh", "Refresh", emoji=EMOJI_REFRESH),
                self.control("close", "Close", emoji=EMOJI_CLOSE, style=discord.ButtonStyle.danger),
            ),
        )
        return RenderPayload(embed=embed, rows=rows)

    async def handle(
        self, ctx: ContextBag, nav: NavStack, action: str, payload: Optional[str]
    ) -> None:
        if action == "map":
            if not ctx.db.party(ctx.user_id):
                raise ActionRejected("You need at least one party member to venture out.")
            if ctx.db.spend_action_points(ctx.user_id, 1):
                self.expeditions += 1
                self.notice = "You spend 1 AP and venture into the world... _(battles coming soon)_"
            else:
                self.notice = "You don't have enough Action Points!"
        elif action == "tavern":
            nav.push(TavernScreen(self.settings))
        elif action == "party":
            nav.push(PartyRosterScreen(self.settings))
        elif action == "refresh":
            self.notice = None
        elif action == "close":
            nav.clear()
        else:
            await super().handle(ctx, nav, action, payload)


class TavernScreen(NavState):
    screen_id = "saga.tavern"

    def __init__(self, settings: Settings, *, day: Optional[date] = None) -> None:
        self.settings = settings
        self.day = day or datetime.now(timezone.utc).date()
        self.pending: Optional[str] = None
        self.notice: Optional[str] = None

    def recruits(self) -> List[Recruit]:
        return daily_recruits(self.day, self.settings.tavern_rotation_size)

    async def render(self, ctx: ContextBag) -> RenderPayload:
        profile = ctx.db.get_profile(ctx.user_id)
        army = ctx.db.units(ctx.user_id)
        recruits = self.recruits()
        tier, progress = fame_tier(profile.fame)
        embed = discord.Embed(
            title="The Prancing Pony",
            description=(
                "Mercenaries nurse their drinks and eye your purse.\n"
                f"Balance {coins(profile.balance)} • Army {stat_pair(len(army), self.settings.max_army_size)}\n"
                f"Fame tier {tier + 1} {progress_bar(progress)}"
            ),
            colour=COLOUR_SAGA_TAVERN,
        )
        for recruit in recruits:
            embed.add_field(
                name=f"{recruit.name} ({recruit.rarity.value})",
                value=(
                    f"ATK {recruit.attack} / DEF {recruit.defense}\n"
                    f"{coins(recruit.hire_cost(self.settings.hire_cost))}"
                ),
                inline=True,
            )
        if self.notice:
            embed.add_field(name="Latest", value=self.notice, inline=False)

        hire_row = tuple(
            self.control(
                "hire",
                recruit.name,
                payload=recruit.key,
                style=discord.ButtonStyle.primary
                if recruit.key == self.pending
                else discord.ButtonStyle.secondary,
            )
            for recruit in recruits[:5]
        )
        rows: List[tuple[Control, ...]] = [hire_row]
        pending = find_recruit(self.pending) if self.pending else None
        if pending is not None:
            cost = pending.hire_cost(self.settings.hire_cost)
            embed.set_footer(text=f"Hire {pending.name} for {cost} coins?")
            rows.append(
                (
                    self.control(
                        "confirm",
                        f"Confirm ({cost})",
                        payload=pending.key,
                        style=discord.ButtonStyle.success,
                    ),
                    self.control("cancel", "Cancel", style=discord.ButtonStyle.danger),
                )
            )
        rows.append((self.control("back", "Back", emoji=EMOJI_BACK),))
        return RenderPayload(embed=embed, rows=tuple(rows))

    async def handle(
        self, ctx: ContextBag, nav: NavStack, action: str, payload: Optional[str]
    ) -> None:
        if action == "hire":
            if payload not in {recruit.key for recruit in self.recruits()}:
                raise ActionRejected("That mercenary is no longer in the tavern.")
            self.pending = payload
            self.notice = None
        elif action == "confirm":
            recruit = find_recruit(payload or "")
            if recruit is None or payload != self.pending:
                raise ActionRejected("Pick a mercenary before confirming.")
            self.pending = None
            try:
                unit = ctx.db.hire_unit(
                    ctx.user_id,
                    recruit,
                    recruit.hire_cost(self.settings.hire_cost),
                    max_army=self.settings.max_army_size,
                    fame_gain=FAME_PER_HIRE,
                )
            except GameStateError as exc:
                self.notice = f"Hiring failed: {exc}"
                return
            self.notice = f"You slide the coins across the table. **{unit.name}** joins your army!"
        elif action == "cancel":
            self.pending = None
        elif action == "back":
            nav.pop()
        else:
            await super().handle(ctx, nav, action, payload)


def register() -> CommandDescriptor:
    return CommandDescriptor(NAME, "Open the saga hub: travel, hire mercenaries, manage your party.")


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    await open_session_from_interaction(context, interaction, SagaRootScreen(context.settings))


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    await open_session_from_message(context, message, SagaRootScreen(context.settings))
