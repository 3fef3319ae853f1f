"""Routes component callbacks back to the navigation session that owns them."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

import discord

from ..telemetry import get_telemetry
from .custom_id import CallbackId, MalformedCallback, parse_custom_id
from .nav import ActionRejected, ContextBag, NavDepthExceeded, NavState, RenderPayload
from .sessions import Session, SessionKey, SessionTable, SessionUnknown

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..state import GameState

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE = 3.0

ERROR_COLOUR = discord.Colour.red()

MSG_SESSION_EXPIRED = "This session has expired. Run the command again to start a new one."
MSG_NOT_OWNER = "This menu belongs to someone else. Run the command yourself to get your own."
MSG_STALE = "That control is outdated, please reopen the menu."
MSG_TOO_DEEP = "You are too deep in the menus. Go back before opening more screens."
MSG_TIMED_OUT = "The interaction timed out. Please try again."
MSG_MALFORMED = "That control is not recognised."
MSG_CLOSED = "Menu closed."


class OutcomeKind(str, Enum):
    RENDERED = "rendered"
    CLOSED = "closed"
    SESSION_EXPIRED = "session_expired"
    NOT_OWNER = "not_owner"
    STALE = "stale"
    TOO_DEEP = "too_deep"
    REJECTED = "rejected"
    RENDER_FAILED = "render_failed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class CallbackEvent:
    custom_id: str
    user_id: int
    message_id: int


@dataclass(frozen=True)
class RouteOutcome:
    kind: OutcomeKind
    payload: Optional[RenderPayload] = None
    message: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def edits_message(self) -> bool:
        """Whether the adapter should edit the original message with ``payload``."""

        return self.payload is not None


def _correlation_id() -> str:
    return uuid.uuid4().hex[:8]


def error_payload(title: str, description: str) -> RenderPayload:
    embed = discord.Embed(title=title, description=description, colour=ERROR_COLOUR)
    return RenderPayload(embed=embed)


async def render_screen(screen: NavState, ctx: ContextBag) -> tuple[RenderPayload, bool]:
    """Render ``screen``; failures become an error embed instead of propagating.

    Returns the payload and whether the render succeeded.
    """

    try:
        return await screen.render(ctx), True
    except Exception:
        correlation = _correlation_id()
        logger.exception(
            "Render of %s failed for user %s [%s]", screen.identity, ctx.user_id, correlation
        )
        get_telemetry().track_error("RenderFailed", command=screen.identity, error_details=correlation)
        return (
            error_payload(
                "Something went wrong",
                f"This screen could not be displayed. Reference `{correlation}`.",
            ),
            False,
        )


class InteractionRouter:
    """Resolves callbacks to sessions and applies screen handlers."""

    def __init__(
        self,
        sessions: SessionTable,
        db: "GameState",
        *,
        deadline: float = DEFAULT_DEADLINE,
    ) -> None:
        self.sessions = sessions
        self.db = db
        self.deadline = deadline

    async def dispatch(self, event: CallbackEvent) -> RouteOutcome:
        started = time.perf_counter()
        try:
            callback = parse_custom_id(event.custom_id)
        except MalformedCallback:
            logger.warning("Dropping malformed custom id %r", event.custom_id)
            return RouteOutcome(OutcomeKind.MALFORMED, message=MSG_MALFORMED)

        outcome = await self._dispatch(callback, event)
        get_telemetry().track_navigation(
            callback.screen,
            callback.action,
            outcome.kind.value,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return outcome

    async def _dispatch(self, callback: CallbackId, event: CallbackEvent) -> RouteOutcome:
        key = SessionKey(event.user_id, event.message_id)
        try:
            session = self.sessions.resolve(key)
        except SessionUnknown:
            owner = self.sessions.owner_of(event.message_id)
            if owner is not None and owner != event.user_id:
                return RouteOutcome(OutcomeKind.NOT_OWNER, message=MSG_NOT_OWNER)
            return RouteOutcome(OutcomeKind.SESSION_EXPIRED, message=MSG_SESSION_EXPIRED)

        async with session.lock:
            if not self.sessions.is_live(session):
                return RouteOutcome(OutcomeKind.SESSION_EXPIRED, message=MSG_SESSION_EXPIRED)
            top = session.stack.top()
            if top is None or top.identity != callback.screen:
                logger.debug(
                    "Stale callback %s on session %s (top is %s)",
                    event.custom_id,
                    key,
                    top.identity if top else None,
                )
                return RouteOutcome(OutcomeKind.STALE, message=MSG_STALE)

            ctx = ContextBag(db=self.db, user_id=event.user_id)
            snapshot = session.stack.snapshot()
            try:
                return await asyncio.wait_for(
                    self._apply(session, top, callback, ctx), timeout=self.deadline
                )
            except asyncio.TimeoutError:
                session.stack.restore(snapshot)
                logger.warning(
                    "Callback %s on session %s exceeded %.1fs deadline",
                    event.custom_id,
                    key,
                    self.deadline,
                )
                get_telemetry().track_error("DeadlineExceeded", command=callback.screen)
                return RouteOutcome(OutcomeKind.TIMED_OUT, message=MSG_TIMED_OUT)
            except NavDepthExceeded:
                session.stack.restore(snapshot)
                return RouteOutcome(OutcomeKind.TOO_DEEP, message=MSG_TOO_DEEP)
            except ActionRejected as exc:
                session.stack.restore(snapshot)
                return RouteOutcome(OutcomeKind.REJECTED, message=str(exc))
            except Exception as exc:
                session.stack.restore(snapshot)
                correlation = _correlation_id()
                logger.exception(
                    "Handler %s:%s failed for session %s [%s]",
                    callback.screen,
                    callback.action,
                    key,
                    correlation,
                )
                get_telemetry().track_error(
                    "HandlerFailed",
                    command=callback.screen,
                    player_id=str(event.user_id),
                    error_details=f"{type(exc).__name__} [{correlation}]",
                )
                return RouteOutcome(
                    OutcomeKind.FAILED,
                    message=f"Something went wrong. Reference `{correlation}`.",
                    correlation_id=correlation,
                )

    async def _apply(
        self,
        session: Session,
        top: NavState,
        callback: CallbackId,
        ctx: ContextBag,
    ) -> RouteOutcome:
        await top.handle(ctx, session.stack, callback.action, callback.payload)
        current = session.stack.top()
        if current is None:
            self.sessions.close(session.key)
            return RouteOutcome(OutcomeKind.CLOSED, message=MSG_CLOSED)
        payload, ok = await render_screen(current, ctx)
        kind = OutcomeKind.RENDERED if ok else OutcomeKind.RENDER_FAILED
        return RouteOutcome(kind, payload=payload)


__all__ = [
    "CallbackEvent",
    "InteractionRouter",
    "OutcomeKind",
    "RouteOutcome",
    "error_payload",
    "render_screen",
]
