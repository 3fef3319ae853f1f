"""`admin`: operator tools, reachable only through the text prefix."""

from __future__ import annotations

import logging
from typing import Optional

import discord

from ..adapters.discord.handlers import _format_message, reply, respond
from ..state import GameStateError
from ..telemetry import MetricType, get_telemetry
from ..telemetry_decorator import track_command
from .base import CommandContext, first_arg, is_administrator, mention_ids

logger = logging.getLogger(__name__)

NAME = "admin"
ALIASES: tuple[str, ...] = ()


def register() -> None:
    """Not advertised as a slash command."""

    return None


def usage(prefix: str) -> str:
    return _format_message(
        [
            "**Admin commands**",
            f"`{prefix}admin sessions` — count live menus",
            f"`{prefix}admin sweep` — evict idle menus now",
            f"`{prefix}admin stats` — command and menu usage for the last day",
            f"`{prefix}admin grant @user <amount>` — add (or remove) coins",
        ]
    )


def stats_text(hours: float = 24) -> str:
    telemetry = get_telemetry()
    commands = telemetry.summary(MetricType.COMMAND_USAGE, hours=hours)
    outcomes = telemetry.navigation_outcomes(hours=hours)
    lines = [f"**Usage, last {hours:g}h**"]
    if commands:
        lines.extend(f"`{name}` × {int(total)}" for name, total in list(commands.items())[:10])
    else:
        lines.append("No commands recorded.")
    if outcomes:
        lines.append("**Menu clicks**")
        lines.extend(
            f"{outcome}: {count}" for outcome, count in sorted(outcomes.items(), key=lambda kv: -kv[1])
        )
    return _format_message(lines)


def _parse_amount(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    await respond(
        interaction,
        f"Admin tools are only available as `{context.current_prefix()}admin`.",
        ephemeral=True,
    )


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    if not is_administrator(message.author):
        await reply(message, "This command requires administrator permissions.")
        return
    subcommand = (first_arg(args) or "").lower()
    if subcommand == "sessions":
        await reply(message, f"Live menus: {len(context.sessions)}")
    elif subcommand == "sweep":
        evicted = context.sessions.sweep()
        await reply(message, f"Evicted {evicted} idle menu(s).")
    elif subcommand == "stats":
        await reply(message, stats_text())
    elif subcommand == "grant":
        targets = mention_ids(message)
        amount = _parse_amount(args[-1]) if len(args) >= 3 else None
        if not targets or amount is None:
            await reply(message, usage(context.current_prefix()))
            return
        try:
            balance = context.state.adjust_balance(targets[0], amount)
        except GameStateError as exc:
            await reply(message, str(exc))
            return
        logger.info("Admin %s granted %d coins to %s", message.author.id, amount, targets[0])
        await reply(message, f"<@{targets[0]}> now has {balance:,} coins.")
    else:
        await reply(message, usage(context.current_prefix()))
