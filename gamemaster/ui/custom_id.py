"""Callback identifiers attached to rendered controls.

Identifiers follow ``<screen-identity>:<action>[:<payload>]``. The screen
identity and the action never contain ``:``; the payload is opaque to the
router and may. Discord caps ``custom_id`` at 100 characters, which we
enforce in bytes so multi-byte payloads cannot slip past the limit.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

MAX_CUSTOM_ID_BYTES = 100

CUSTOM_ID_PATTERN = r"(?P<screen>[^:\s]+):(?P<action>[^:\s]+)(?::(?P<payload>.+))?"
_CUSTOM_ID_RE = re.compile(CUSTOM_ID_PATTERN, re.DOTALL)


class CustomIdError(ValueError):
    """Raised when a callback identifier cannot be encoded."""


class MalformedCallback(ValueError):
    """Raised when an incoming identifier does not follow the grammar."""


def _check_segment(value: str, label: str) -> None:
    if not value:
        raise CustomIdError(f"{label} must not be empty")
    if ":" in value:
        raise CustomIdError(f"{label} must not contain ':' ({value!r})")
    if not value.isprintable() or any(ch.isspace() for ch in value):
        raise CustomIdError(f"{label} must be printable without whitespace ({value!r})")


@dataclass(frozen=True)
class CallbackId:
    screen: str
    action: str
    payload: Optional[str] = None

    def encode(self) -> str:
        _check_segment(self.screen, "screen identity")
        _check_segment(self.action, "action")
        raw = f"{self.screen}:{self.action}"
        if self.payload is not None:
            if not self.payload:
                raise CustomIdError("payload must not be empty when present")
            raw = f"{raw}:{self.payload}"
        size = len(raw.encode("utf-8"))
        if size > MAX_CUSTOM_ID_BYTES:
            raise CustomIdError(
                f"custom id is {size} bytes, limit is {MAX_CUSTOM_ID_BYTES}: {raw[:40]}…"
            )
        return raw


def parse_custom_id(raw: str) -> CallbackId:
    if len(raw.encode("utf-8")) > MAX_CUSTOM_ID_BYTES:
        raise MalformedCallback("custom id exceeds the platform limit")
    match = _CUSTOM_ID_RE.fullmatch(raw)
    if match is None:
        raise MalformedCallback(f"unrecognised custom id {raw!r}")
    return CallbackId(
        screen=match.group("screen"),
        action=match.group("action"),
        payload=match.group("payload"),
    )


__all__ = [
    "CUSTOM_ID_PATTERN",
    "CallbackId",
    "CustomIdError",
    "MAX_CUSTOM_ID_BYTES",
    "MalformedCallback",
    "parse_custom_id",
]
