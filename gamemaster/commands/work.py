"""`work <job>`: take a shift for coins, resources and the odd rare find."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import discord

from ..adapters.discord.builders import build_work_embed
from ..adapters.discord.handlers import reply, respond
from ..economy import JOBS, find_job, roll_work
from ..models import WorkResult
from ..rng import GameRNG
from ..state import CooldownActive
from ..telemetry_decorator import track_command
from .base import CommandContext, CommandDescriptor, CommandParameter, first_arg, option_value

logger = logging.getLogger(__name__)

NAME = "work"
ALIASES = ("w",)


def register() -> CommandDescriptor:
    return CommandDescriptor(
        NAME,
        "Work a job to earn coins and resources.",
        (
            CommandParameter(
                "job",
                "Which job to work",
                required=True,
                choices=tuple((job.display_name, job.name) for job in JOBS),
            ),
        ),
    )


def usage_text() -> str:
    return "Pick a job: " + ", ".join(f"`{job.name}`" for job in JOBS)


def do_work(
    context: CommandContext,
    user_id: int,
    job_name: Optional[str],
    *,
    rng: Optional[GameRNG] = None,
    now: Optional[datetime] = None,
) -> WorkResult | str:
    """Run a shift; returns the result or a user-facing refusal."""

    job = find_job(job_name) if job_name else None
    if job is None:
        return usage_text()
    now = now or datetime.now(timezone.utc)
    payout, resources, rare_item = roll_work(job, rng or GameRNG())
    items = dict(resources)
    if rare_item:
        items[rare_item] = items.get(rare_item, 0) + 1
    try:
        balance = context.state.record_work(
            user_id, f"work:{job.name}", payout, items, job.cooldown, now=now
        )
    except CooldownActive as exc:
        return f"You're still recovering from {job.display_name.lower()}. Try again <t:{int(exc.ready_at.timestamp())}:R>."
    logger.debug("User %s worked %s for %d coins", user_id, job.name, payout)
    return WorkResult(job=job, payout=payout, resources=resources, rare_item=rare_item, balance=balance)


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    result = do_work(context, interaction.user.id, option_value(interaction, "job"))
    if isinstance(result, str):
        await respond(interaction, result, ephemeral=True)
        return
    await respond(interaction, embed=build_work_embed(result))


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    result = do_work(context, message.author.id, first_arg(args))
    if isinstance(result, str):
        await reply(message, result)
        return
    await reply(message, embed=build_work_embed(result))
