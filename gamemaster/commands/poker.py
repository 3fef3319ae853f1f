"""`poker`: pick an ante and take a seat.

Only the lobby flow lives here; dealing and hand evaluation are handled by
the table service once it exists.
"""

from __future__ import annotations

from typing import Optional

import discord

from ..adapters.discord.handlers import open_session_from_interaction, open_session_from_message
from ..config import Settings
from ..telemetry_decorator import track_command
from ..ui.nav import ActionRejected, ContextBag, NavStack, NavState, RenderPayload
from ..ui.style import COLOUR_POKER, EMOJI_BACK, EMOJI_CLOSE, EMOJI_REFRESH, coins
from .base import CommandContext, CommandDescriptor

NAME = "poker"
ALIASES: tuple[str, ...] = ()


class PokerLobbyScreen(NavState):
    screen_id = "poker.lobby"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def render(self, ctx: ContextBag) -> RenderPayload:
        profile = ctx.db.get_profile(ctx.user_id)
        embed = discord.Embed(
            title="Poker Lobby",
            description=(
                "Five-card draw against the house regulars.\n"
                f"Your balance: {coins(profile.balance)}\nChoose an ante to sit down."
            ),
            colour=COLOUR_POKER,
        )
        ante_row = tuple(
            self.control(
                "ante",
                f"Ante {ante}",
                payload=str(ante),
                style=discord.ButtonStyle.primary,
                disabled=profile.balance < ante,
            )
            for ante in self.settings.poker_antes[:5]
        )
        close_row = (
            self.control("close", "Leave", emoji=EMOJI_CLOSE, style=discord.ButtonStyle.danger),
        )
        return RenderPayload(embed=embed, rows=(ante_row, close_row))

    async def handle(
        self, ctx: ContextBag, nav: NavStack, action: str, payload: Optional[str]
    ) -> None:
        if action == "ante":
            try:
                ante = int(payload or "")
            except ValueError:
                raise ActionRejected("Unknown ante.") from None
            if ante not in self.settings.poker_antes:
                raise ActionRejected("That ante is not offered at this table.")
            balance = ctx.db.get_profile(ctx.user_id).balance
            if balance < ante:
                raise ActionRejected(f"You need {ante} coins to sit at this table.")
            nav.push(PokerTableScreen(ante))
        elif action == "close":
            nav.clear()
        else:
            await super().handle(ctx, nav, action, payload)


class PokerTableScreen(NavState):
    screen_id = "poker.table"

    def __init__(self, ante: int) -> None:
        self.ante = ante
        self.checks = 0

    async def render(self, ctx: ContextBag) -> RenderPayload:
        embed = discord.Embed(
            title=f"Poker Table — ante {self.ante}",
            description="Your seat is reserved. Waiting for more players to join…",
            colour=COLOUR_POKER,
        )
        if self.checks:
            embed.set_footer(text=f"Checked {self.checks} time(s)")
        rows = (
            (
                self.control("refresh", "Refresh", emoji=EMOJI_REFRESH),
                self.control("back", "Stand Up", emoji=EMOJI_BACK),
            ),
        )
        return RenderPayload(embed=embed, rows=rows)

    async def handle(
        self, ctx: ContextBag, nav: NavStack, action: str, payload: Optional[str]
    ) -> None:
        if action == "refresh":
            self.checks += 1
        elif action == "back":
            nav.pop()
        else:
            await super().handle(ctx, nav, action, payload)


def register() -> CommandDescriptor:
    return CommandDescriptor(NAME, "Sit down at a poker table.")


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    await open_session_from_interaction(context, interaction, PokerLobbyScreen(context.settings))


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    await open_session_from_message(context, message, PokerLobbyScreen(context.settings))
