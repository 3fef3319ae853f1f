"""`ping`: report the gateway heartbeat latency."""

from __future__ import annotations

import math

import discord

from ..adapters.discord.handlers import reply, respond
from ..telemetry_decorator import track_command
from .base import CommandContext, CommandDescriptor

NAME = "ping"
ALIASES: tuple[str, ...] = ()


def register() -> CommandDescriptor:
    return CommandDescriptor(NAME, "Checks the bot's latency.")


def latency_text(context: CommandContext) -> str:
    latency = context.latency()
    if latency is None or math.isnan(latency) or math.isinf(latency):
        shown = "N/A"
    else:
        shown = f"{latency * 1000:.2f} ms"
    return f"Pong! Heartbeat Latency: `{shown}`"


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    await respond(interaction, latency_text(context))


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    await reply(message, latency_text(context))
