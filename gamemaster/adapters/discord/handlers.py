"""Discord message helpers and the routed navigation button.

Command modules use these helpers to reply and to open navigation sessions;
:class:`NavButton` carries component clicks back to the interaction router.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional

import discord

from ...telemetry import get_telemetry
from ...ui.custom_id import CUSTOM_ID_PATTERN
from ...ui.nav import NavState, RenderPayload
from ...ui.router import MSG_TIMED_OUT, CallbackEvent, OutcomeKind, RouteOutcome, render_screen
from ...ui.sessions import Session, SessionKey
from .builders import build_closed_embed, build_error_embed, build_notice_embed, build_view

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ...commands.base import CommandContext

logger = logging.getLogger(__name__)

_MAX_MESSAGE_LENGTH = 1900


def _clamp_text(text: str) -> str:
    """Ensure Discord-compatible message length."""

    if len(text) <= _MAX_MESSAGE_LENGTH:
        return text
    return text[: _MAX_MESSAGE_LENGTH - 1].rstrip() + "…"


def _format_message(lines: Iterable[str]) -> str:
    """Join message lines and clamp to Discord limits."""

    message = "\n".join(line for line in lines if line is not None)
    return _clamp_text(message)


async def respond(
    interaction: discord.Interaction,
    content: Optional[str] = None,
    *,
    embed: Optional[discord.Embed] = None,
    ephemeral: bool = False,
) -> None:
    """Reply to a slash interaction, falling back to a followup once acknowledged."""

    kwargs: dict[str, Any] = {"ephemeral": ephemeral}
    if content is not None:
        kwargs["content"] = _clamp_text(content)
    if embed is not None:
        kwargs["embed"] = embed
    if interaction.response.is_done():
        await interaction.followup.send(**kwargs)
    else:
        await interaction.response.send_message(**kwargs)


async def reply(
    message: discord.Message,
    content: Optional[str] = None,
    *,
    embed: Optional[discord.Embed] = None,
) -> discord.Message:
    kwargs: dict[str, Any] = {"mention_author": False}
    if content is not None:
        kwargs["content"] = _clamp_text(content)
    if embed is not None:
        kwargs["embed"] = embed
    return await message.reply(**kwargs)


async def _render_initial(
    context: "CommandContext", screen: NavState, user_id: int
) -> Optional[tuple[RenderPayload, bool]]:
    """First render of a menu, bounded by the router deadline; ``None`` on expiry."""

    try:
        return await asyncio.wait_for(
            render_screen(screen, context.bag(user_id)), timeout=context.router.deadline
        )
    except asyncio.TimeoutError:
        logger.warning(
            "Initial render of %s for user %s exceeded %.1fs deadline",
            screen.identity,
            user_id,
            context.router.deadline,
        )
        get_telemetry().track_error(
            "DeadlineExceeded", command=screen.identity, player_id=str(user_id)
        )
        return None


async def open_session_from_interaction(
    context: "CommandContext",
    interaction: discord.Interaction,
    screen: NavState,
) -> Optional[Session]:
    """Render ``screen`` as the slash command's reply and track it as a session.

    The reply goes out without controls; they are attached once the session
    exists, so no button is ever shown that a session does not back.
    """

    user_id = interaction.user.id
    rendered = await _render_initial(context, screen, user_id)
    if rendered is None:
        await respond(interaction, embed=build_error_embed(MSG_TIMED_OUT), ephemeral=True)
        return None
    payload, ok = rendered
    await interaction.response.send_message(embed=payload.embed)
    if not ok:
        return None
    message = await interaction.original_response()
    session = context.sessions.open(SessionKey(user_id, message.id), screen)
    view = build_view(payload)
    if view is not None:
        try:
            await interaction.edit_original_response(view=view)
        except discord.HTTPException:
            logger.exception("Failed to attach controls for session %s", session.key)
            context.sessions.close(session.key)
            return None
    return session


async def open_session_from_message(
    context: "CommandContext",
    message: discord.Message,
    screen: NavState,
) -> Optional[Session]:
    """Render ``screen`` as a reply to a prefix command and track it as a session."""

    user_id = message.author.id
    rendered = await _render_initial(context, screen, user_id)
    if rendered is None:
        await reply(message, embed=build_error_embed(MSG_TIMED_OUT))
        return None
    payload, ok = rendered
    sent = await message.reply(embed=payload.embed, mention_author=False)
    if not ok:
        return None
    session = context.sessions.open(SessionKey(user_id, sent.id), screen)
    view = build_view(payload)
    if view is not None:
        try:
            await sent.edit(view=view)
        except discord.HTTPException:
            logger.exception("Failed to attach controls for session %s", session.key)
            context.sessions.close(session.key)
            return None
    return session


async def apply_outcome(interaction: discord.Interaction, outcome: RouteOutcome) -> None:
    """Carry a router outcome out against the component interaction."""

    try:
        if outcome.edits_message:
            view = build_view(outcome.payload)
            await interaction.response.edit_message(embed=outcome.payload.embed, view=view)
        elif outcome.kind is OutcomeKind.CLOSED:
            await interaction.response.edit_message(embed=build_closed_embed(), view=None)
        else:
            await interaction.response.send_message(
                embed=build_notice_embed(outcome), ephemeral=True
            )
    except discord.HTTPException:
        logger.exception("Failed to deliver %s outcome", outcome.kind.value)


class NavButton(discord.ui.DynamicItem[discord.ui.Button], template=CUSTOM_ID_PATTERN):
    """Button whose custom id follows the callback grammar.

    Registered with ``bot.add_dynamic_items`` so clicks are routed even for
    messages sent before a restart; those resolve to "session expired".
    """

    def __init__(self, button: discord.ui.Button) -> None:
        super().__init__(button)

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match,
        /,
    ) -> "NavButton":
        return cls(item)

    async def callback(self, interaction: discord.Interaction) -> None:
        router = getattr(interaction.client, "nav_router", None)
        if router is None:
            logger.warning("Navigation router missing on client; ignoring %s", self.custom_id)
            return
        message = interaction.message
        if message is None:
            return
        event = CallbackEvent(
            custom_id=self.custom_id,
            user_id=interaction.user.id,
            message_id=message.id,
        )
        outcome = await router.dispatch(event)
        await apply_outcome(interaction, outcome)


__all__ = [
    "NavButton",
    "_clamp_text",
    "_format_message",
    "apply_outcome",
    "open_session_from_interaction",
    "open_session_from_message",
    "reply",
    "respond",
]
