"""Tests for the session table and idle eviction."""
from __future__ import annotations

import asyncio

import discord
import pytest

from gamemaster.telemetry import MetricType
from gamemaster.ui.nav import RenderPayload, NavState
from gamemaster.ui.sessions import SessionExists, SessionKey, SessionTable, SessionUnknown


class Root(NavState):
    screen_id = "test.root"

    async def render(self, ctx):
        return RenderPayload(embed=discord.Embed(title="root"))


def test_open_then_resolve(sessions):
    key = SessionKey(1, 100)
    session = sessions.open(key, Root())

    assert sessions.resolve(key) is session
    assert session.stack.identities() == ["test.root"]
    assert key in sessions
    assert len(sessions) == 1


def test_open_twice_raises(sessions):
    key = SessionKey(1, 100)
    sessions.open(key, Root())
    with pytest.raises(SessionExists):
        sessions.open(key, Root())


def test_same_user_may_hold_several_sessions(sessions):
    sessions.open(SessionKey(1, 100), Root())
    sessions.open(SessionKey(1, 101), Root())
    assert len(sessions) == 2


def test_resolve_unknown_key(sessions):
    with pytest.raises(SessionUnknown):
        sessions.resolve(SessionKey(1, 999))


def test_idle_session_expires_on_resolve(sessions, clock):
    key = SessionKey(1, 100)
    sessions.open(key, Root())
    clock.advance(900)

    with pytest.raises(SessionUnknown):
        sessions.resolve(key)
    assert key not in sessions


def test_resolve_refreshes_idle_timer(sessions, clock):
    key = SessionKey(1, 100)
    sessions.open(key, Root())
    clock.advance(600)
    sessions.resolve(key)
    clock.advance(600)

    assert sessions.resolve(key).key == key


def test_expired_session_can_be_reopened(sessions, clock):
    key = SessionKey(1, 100)
    old = sessions.open(key, Root())
    clock.advance(1000)

    new = sessions.open(key, Root())
    assert new is not old
    assert old.stack.is_empty()


def test_sweep_evicts_only_idle_sessions(sessions, clock, isolated_telemetry):
    idle = SessionKey(1, 100)
    active = SessionKey(2, 200)
    sessions.open(idle, Root())
    clock.advance(800)
    sessions.open(active, Root())
    clock.advance(200)

    assert sessions.sweep() == 1
    assert idle not in sessions
    assert active in sessions
    assert isolated_telemetry.summary(MetricType.SESSION)["evicted"] == 1


@pytest.mark.asyncio
async def test_sweep_skips_sessions_mid_callback(sessions, clock):
    key = SessionKey(1, 100)
    session = sessions.open(key, Root())
    clock.advance(1000)

    async with session.lock:
        assert sessions.sweep() == 0
    assert sessions.sweep() == 1


def test_close_drops_session_and_clears_stack(sessions):
    key = SessionKey(1, 100)
    session = sessions.open(key, Root())

    assert sessions.close(key) is session
    assert session.stack.is_empty()
    assert not sessions.is_live(session)
    assert sessions.close(key) is None


def test_owner_of_tracks_message(sessions, clock):
    sessions.open(SessionKey(7, 100), Root())
    assert sessions.owner_of(100) == 7
    assert sessions.owner_of(101) is None
    clock.advance(900)
    assert sessions.owner_of(100) is None


def test_clear_returns_count():
    table = SessionTable(idle_timeout=60)
    table.open(SessionKey(1, 1), Root())
    table.open(SessionKey(2, 2), Root())
    assert table.clear() == 2
    assert len(table) == 0


def test_session_key_str():
    assert str(SessionKey(3, 4)) == "3/4"


def test_session_lock_is_asyncio_lock(sessions):
    session = sessions.open(SessionKey(1, 1), Root())
    assert isinstance(session.lock, asyncio.Lock)
