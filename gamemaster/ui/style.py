"""Shared colours, emoji and formatting helpers for screens."""

from __future__ import annotations

import discord

COLOUR_SAGA_MAIN = discord.Colour(0x9B59B6)
COLOUR_SAGA_MAP = discord.Colour(0x2ECC71)
COLOUR_SAGA_TAVERN = discord.Colour(0xCD7F32)
COLOUR_PARTY = discord.Colour(0x3498DB)
COLOUR_POKER = discord.Colour(0x1ABC9C)
COLOUR_ECONOMY = discord.Colour.gold()
COLOUR_HELP = discord.Colour.blurple()
COLOUR_ALERT = discord.Colour(0xE74C3C)

EMOJI_AP = "⚔️"
EMOJI_COIN = "💰"
EMOJI_REFRESH = "🔄"
EMOJI_BACK = "⬅️"
EMOJI_CLOSE = "✖️"


def stat_pair(current: int, maximum: int) -> str:
    return f"`{current}/{maximum}`"


def progress_bar(fraction: float, width: int = 10) -> str:
    filled = max(0, min(width, round(fraction * width)))
    return "▰" * filled + "▱" * (width - filled)


def coins(amount: int) -> str:
    return f"{EMOJI_COIN} {amount:,}"
