"""`help`: browse commands by category, or show one command in detail."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import discord

from ..adapters.discord.handlers import (
    open_session_from_interaction,
    open_session_from_message,
    reply,
    respond,
)
from ..telemetry_decorator import track_command
from ..ui.nav import ActionRejected, ContextBag, NavStack, NavState, RenderPayload
from ..ui.style import COLOUR_HELP, EMOJI_BACK, EMOJI_CLOSE
from .base import CommandContext, CommandDescriptor, CommandParameter, option_value

NAME = "help"
ALIASES = ("h",)


@dataclass(frozen=True)
class Category:
    key: str
    name: str
    emoji: str


@dataclass(frozen=True)
class CommandInfo:
    name: str
    description: str
    usage: Tuple[str, ...]
    details: str
    category: str


CATEGORIES: Tuple[Category, ...] = (
    Category("general", "General", "🔧"),
    Category("economy", "Economy & Items", "💰"),
    Category("saga", "Gamemaster Saga", "📜"),
    Category("games", "Mini-Games", "🎮"),
    Category("admin", "Admin", "🛡️"),
)

COMMANDS: Tuple[CommandInfo, ...] = (
    CommandInfo(
        "ping",
        "Checks the bot's latency.",
        ("ping",),
        "Pings the Discord gateway to check the bot's heartbeat latency.",
        "general",
    ),
    CommandInfo(
        "help",
        "Shows this help menu.",
        ("help", "h", "help <command>"),
        "Displays every command by category, or details about a specific command.",
        "general",
    ),
    CommandInfo(
        "prefix",
        "Shows the command prefix.",
        ("prefix", "prefix set <new>"),
        "Shows the prefix for text commands. Administrators can change it with `prefix set`.",
        "general",
    ),
    CommandInfo(
        "profile",
        "Displays your or another user's profile.",
        ("profile", "p", "profile @user"),
        "Shows coin balance, action points, fame, your army and your inventory.",
        "economy",
    ),
    CommandInfo(
        "work",
        "Work a job to earn coins and resources.",
        ("work <job>", "w <job>"),
        "Perform a job to earn rewards. **Jobs:** `fishing`, `mining`, `coding`. Each job has its own cooldown.",
        "economy",
    ),
    CommandInfo(
        "open",
        "Open a container from your inventory.",
        ("open <item>",),
        "Opens a Large Geode or a Supply Crate and adds the loot to your inventory.",
        "economy",
    ),
    CommandInfo(
        "inventory",
        "Shows the items you are holding.",
        ("inventory", "inv", "inventory @user"),
        "Lists every item in your (or another user's) inventory with its sell price.",
        "economy",
    ),
    CommandInfo(
        "sell",
        "Sell resources for coins.",
        ("sell <item> [quantity]",),
        "Sells fish, ore, gems, golden fish and potions. Sells everything you hold unless a quantity is given.",
        "economy",
    ),
    CommandInfo(
        "give",
        "Give items to another player.",
        ("give @user <item> [quantity]",),
        "Moves items from your inventory to another player's. Gives one unless a quantity is given.",
        "economy",
    ),
    CommandInfo(
        "saga",
        "Open the saga hub.",
        ("saga", "play"),
        "Spend action points on the world map, hire mercenaries at the tavern and manage your party.",
        "saga",
    ),
    CommandInfo(
        "party",
        "Manage your party and army.",
        ("party", "army"),
        "Shows your active party. Switch to the army view to move units in or out of the party.",
        "saga",
    ),
    CommandInfo(
        "poker",
        "Sit down at a poker table.",
        ("poker",),
        "Choose an ante you can cover and take a seat.",
        "games",
    ),
    CommandInfo(
        "admin",
        "Operator tools (text command only).",
        ("admin sessions", "admin sweep", "admin stats", "admin grant @user <amount>"),
        "Inspect live menus and usage, evict idle menus, or grant coins. Requires administrator permissions.",
        "admin",
    ),
)

_CATEGORY_BY_KEY: Dict[str, Category] = {category.key: category for category in CATEGORIES}


def find_command(name: str) -> Optional[CommandInfo]:
    lowered = name.lower().lstrip("/")
    for info in COMMANDS:
        if info.name == lowered or lowered in info.usage:
            return info
    return None


def command_detail_embed(info: CommandInfo, prefix: str) -> discord.Embed:
    embed = discord.Embed(
        title=f"Command: {info.name}",
        description=info.details,
        colour=COLOUR_HELP,
    )
    embed.add_field(
        name="Usage",
        value="\n".join(f"`{prefix}{usage}`" for usage in info.usage),
        inline=False,
    )
    category = _CATEGORY_BY_KEY[info.category]
    embed.set_footer(text=f"{category.emoji} {category.name}")
    return embed


class HelpRootScreen(NavState):
    screen_id = "help.root"

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    async def render(self, ctx: ContextBag) -> RenderPayload:
        embed = discord.Embed(
            title="Help",
            description=(
                "Use slash commands or the text prefix "
                f"`{self.prefix}`. Pick a category below."
            ),
            colour=COLOUR_HELP,
        )
        for category in CATEGORIES:
            names = ", ".join(f"`{info.name}`" for info in COMMANDS if info.category == category.key)
            embed.add_field(name=f"{category.emoji} {category.name}", value=names or "—", inline=False)
        category_row = tuple(
            self.control("category", category.name, payload=category.key, emoji=category.emoji)
            for category in CATEGORIES
        )
        close_row = (self.control("close", "Close", emoji=EMOJI_CLOSE, style=discord.ButtonStyle.danger),)
        return RenderPayload(embed=embed, rows=(category_row, close_row))

    async def handle(
        self, ctx: ContextBag, nav: NavStack, action: str, payload: Optional[str]
    ) -> None:
        if action == "category":
            category = _CATEGORY_BY_KEY.get(payload or "")
            if category is None:
                raise ActionRejected("Unknown category.")
            nav.push(HelpCategoryScreen(category, self.prefix))
        elif action == "close":
            nav.clear()
        else:
            await super().handle(ctx, nav, action, payload)


class HelpCategoryScreen(NavState):
    screen_id = "help.category"

    def __init__(self, category: Category, prefix: str) -> None:
        self.category = category
        self.prefix = prefix

    async def render(self, ctx: ContextBag) -> RenderPayload:
        embed = discord.Embed(
            title=f"{self.category.emoji} {self.category.name}",
            colour=COLOUR_HELP,
        )
        for info in COMMANDS:
            if info.category != self.category.key:
                continue
            usage = " • ".join(f"`{self.prefix}{usage}`" for usage in info.usage)
            embed.add_field(name=info.name, value=f"{info.description}\n{usage}", inline=False)
        return RenderPayload(embed=embed, rows=((self.control("back", "Back", emoji=EMOJI_BACK),),))

    async def handle(
        self, ctx: ContextBag, nav: NavStack, action: str, payload: Optional[str]
    ) -> None:
        if action == "back":
            nav.pop()
        else:
            await super().handle(ctx, nav, action, payload)


def register() -> CommandDescriptor:
    return CommandDescriptor(
        NAME,
        "Shows the help menu.",
        (CommandParameter("command", "Show details for one command"),),
    )


@track_command
async def run_slash(context: CommandContext, interaction: discord.Interaction) -> None:
    prefix = context.current_prefix()
    requested = option_value(interaction, "command")
    if requested:
        info = find_command(requested)
        if info is None:
            await respond(interaction, f"No command named `{requested}`.", ephemeral=True)
            return
        await respond(interaction, embed=command_detail_embed(info, prefix), ephemeral=True)
        return
    await open_session_from_interaction(context, interaction, HelpRootScreen(prefix))


@track_command
async def run_prefix(context: CommandContext, message: discord.Message, args: list[str]) -> None:
    prefix = context.current_prefix()
    if args:
        info = find_command(args[0])
        if info is None:
            await reply(message, f"No command named `{args[0]}`.")
            return
        await reply(message, embed=command_detail_embed(info, prefix))
        return
    await open_session_from_message(context, message, HelpRootScreen(prefix))
