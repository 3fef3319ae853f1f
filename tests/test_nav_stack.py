"""Tests for the navigation stack and render payload limits."""
from __future__ import annotations

import discord
import pytest

from gamemaster.ui.nav import (
    Control,
    NavDepthExceeded,
    NavStack,
    NavState,
    RenderPayload,
    UnknownAction,
    chunk_controls,
)


class Screen(NavState):
    screen_id = "test.screen"

    def __init__(self, name: str = "screen") -> None:
        self.name = name

    async def render(self, ctx):
        return RenderPayload(embed=discord.Embed(title=self.name))


class OtherScreen(Screen):
    screen_id = "test.other"


def test_push_and_pop_are_lifo():
    stack = NavStack(owner_id=1)
    first, second = Screen("A"), OtherScreen("B")
    stack.push(first)
    stack.push(second)

    assert stack.top() is second
    assert stack.identities() == ["test.screen", "test.other"]
    assert stack.pop() is second
    assert stack.top() is first
    assert stack.pop() is first
    assert stack.is_empty()


def test_pop_on_empty_stack_returns_none():
    stack = NavStack(owner_id=1)
    assert stack.pop() is None
    assert stack.top() is None
    assert len(stack) == 0


def test_screen_state_survives_push_and_pop():
    stack = NavStack(owner_id=1)
    root = Screen("root")
    root.name = "edited"
    stack.push(root)
    stack.push(OtherScreen())
    stack.pop()

    assert stack.top() is root
    assert root.name == "edited"


def test_push_past_depth_cap_raises_and_leaves_stack_untouched():
    stack = NavStack(owner_id=1, max_depth=16)
    for idx in range(16):
        stack.push(Screen(str(idx)))
    before = stack.snapshot()

    with pytest.raises(NavDepthExceeded):
        stack.push(Screen("17"))

    assert stack.depth == 16
    assert stack.snapshot() == before


def test_replace_top_keeps_depth():
    stack = NavStack(owner_id=1)
    stack.push(Screen("root"))
    roster = Screen("roster")
    stack.push(roster)

    previous = stack.replace_top(OtherScreen("army"))

    assert previous is roster
    assert stack.depth == 2
    assert stack.identities() == ["test.screen", "test.other"]


def test_replace_top_on_empty_stack_pushes():
    stack = NavStack(owner_id=1)
    assert stack.replace_top(Screen()) is None
    assert stack.depth == 1


def test_clear_and_restore_snapshot():
    stack = NavStack(owner_id=1)
    stack.push(Screen())
    stack.push(OtherScreen())
    snapshot = stack.snapshot()

    stack.clear()
    assert stack.is_empty()

    stack.restore(snapshot)
    assert stack.identities() == ["test.screen", "test.other"]


def test_max_depth_must_be_positive():
    with pytest.raises(ValueError):
        NavStack(owner_id=1, max_depth=0)


@pytest.mark.asyncio
async def test_default_handle_rejects_unknown_action():
    with pytest.raises(UnknownAction):
        await Screen().handle(None, NavStack(owner_id=1), "missing", None)


def test_control_encodes_screen_identity():
    control = Screen().control("hire", "Hire", payload="archer")
    assert control.custom_id == "test.screen:hire:archer"
    assert control.style is discord.ButtonStyle.secondary


def test_render_payload_limits():
    embed = discord.Embed(title="limits")
    button = Control(custom_id="a:b", label="x")

    with pytest.raises(ValueError):
        RenderPayload(embed=embed, rows=tuple((button,) for _ in range(6)))
    with pytest.raises(ValueError):
        RenderPayload(embed=embed, rows=((button,) * 6,))

    payload = RenderPayload(embed=embed, rows=((), (button,), ()))
    assert payload.rows == ((button,),)
    assert payload.custom_ids() == ["a:b"]


def test_chunk_controls_splits_rows_of_five():
    controls = [Control(custom_id=f"s:a:{idx}", label=str(idx)) for idx in range(12)]
    rows = chunk_controls(controls)
    assert [len(row) for row in rows] == [5, 5, 2]
