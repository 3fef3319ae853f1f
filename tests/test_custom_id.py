"""Tests for callback identifier encoding and parsing."""
from __future__ import annotations

import pytest

from gamemaster.ui.custom_id import (
    MAX_CUSTOM_ID_BYTES,
    CallbackId,
    CustomIdError,
    MalformedCallback,
    parse_custom_id,
)


def test_encode_without_payload():
    assert CallbackId("saga.root", "tavern").encode() == "saga.root:tavern"


def test_parse_keeps_colons_inside_payload():
    callback = parse_custom_id("help.root:category:a:b")
    assert callback.screen == "help.root"
    assert callback.action == "category"
    assert callback.payload == "a:b"


def test_parse_without_payload():
    callback = parse_custom_id("poker.table:refresh")
    assert callback.payload is None


@pytest.mark.parametrize(
    "raw",
    ["", "nocolon", ":action", "screen:", "screen::payload", "scr een:act", "screen:act ion"],
)
def test_parse_rejects_malformed(raw):
    with pytest.raises(MalformedCallback):
        parse_custom_id(raw)


def test_parse_rejects_oversized_identifier():
    with pytest.raises(MalformedCallback):
        parse_custom_id("s:a:" + "x" * MAX_CUSTOM_ID_BYTES)


@pytest.mark.parametrize(
    "screen, action",
    [("", "go"), ("a:b", "go"), ("screen", ""), ("screen", "go:now"), ("scr een", "go")],
)
def test_encode_rejects_bad_segments(screen, action):
    with pytest.raises(CustomIdError):
        CallbackId(screen, action).encode()


def test_encode_rejects_empty_payload():
    with pytest.raises(CustomIdError):
        CallbackId("screen", "go", "").encode()


def test_encode_limit_is_measured_in_bytes():
    prefix = "s:a:"
    fits = prefix + "x" * (MAX_CUSTOM_ID_BYTES - len(prefix))
    assert CallbackId("s", "a", fits[len(prefix):]).encode() == fits

    # 30 characters but 90 bytes of payload push past the limit.
    with pytest.raises(CustomIdError):
        CallbackId("screen.long", "action", "€" * 30).encode()
