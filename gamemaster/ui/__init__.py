"""Embed-based navigation: screens, stacks, sessions and the callback router."""

from .custom_id import CallbackId, CustomIdError, MalformedCallback, parse_custom_id
from .nav import (
    ActionRejected,
    ContextBag,
    Control,
    NavDepthExceeded,
    NavState,
    NavStack,
    RenderPayload,
    UnknownAction,
)
from .router import CallbackEvent, InteractionRouter, OutcomeKind, RouteOutcome, render_screen
from .sessions import Session, SessionExists, SessionKey, SessionTable, SessionUnknown

__all__ = [
    "ActionRejected",
    "CallbackEvent",
    "CallbackId",
    "ContextBag",
    "Control",
    "CustomIdError",
    "InteractionRouter",
    "MalformedCallback",
    "NavDepthExceeded",
    "NavState",
    "NavStack",
    "OutcomeKind",
    "RenderPayload",
    "RouteOutcome",
    "Session",
    "SessionExists",
    "SessionKey",
    "SessionTable",
    "SessionUnknown",
    "UnknownAction",
    "parse_custom_id",
    "render_screen",
]
