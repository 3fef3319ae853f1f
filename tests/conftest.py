"""Shared fixtures for the Gamemaster test-suite."""
from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from gamemaster.commands.base import CommandContext
from gamemaster.config import Settings
from gamemaster.state import GameState
from gamemaster.telemetry import TelemetryCollector, set_telemetry
from gamemaster.ui.router import InteractionRouter
from gamemaster.ui.sessions import SessionTable


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    values = dict(
        command_prefix="$",
        nav_max_depth=16,
        session_idle_minutes=15,
        session_sweep_seconds=60,
        interaction_deadline_seconds=3.0,
        starting_balance=500,
        max_action_points=10,
        action_point_regen_minutes=30,
        hire_cost=250,
        max_party_size=5,
        max_army_size=10,
        tavern_rotation_size=5,
        poker_antes=(50, 100, 250),
    )
    values.update(overrides)
    return Settings(**values)


def make_interaction(
    user_id: int = 1,
    *,
    name: str = "ping",
    options: Optional[list] = None,
    message_id: int = 900,
):
    """Mock a slash interaction whose response has not been sent yet."""

    interaction = MagicMock()
    interaction.type = None
    interaction.user = SimpleNamespace(id=user_id, display_name=f"user{user_id}")
    interaction.guild = SimpleNamespace(id=42)
    interaction.data = {"name": name, "options": options or []}
    interaction.response.is_done = Mock(return_value=False)
    interaction.response.send_message = AsyncMock()
    interaction.response.edit_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    interaction.original_response = AsyncMock(return_value=SimpleNamespace(id=message_id))
    interaction.edit_original_response = AsyncMock()
    return interaction


def make_message(
    content: str = "",
    *,
    author_id: int = 1,
    admin: bool = False,
    mentions: Optional[list] = None,
    reply_id: int = 901,
):
    """Mock a text message; ``reply`` returns a sent message with ``reply_id``."""

    message = MagicMock()
    message.content = content
    message.author = SimpleNamespace(
        id=author_id,
        bot=False,
        display_name=f"user{author_id}",
        guild_permissions=SimpleNamespace(administrator=admin),
    )
    message.guild = SimpleNamespace(id=42)
    message.mentions = mentions or []
    message.reply = AsyncMock(return_value=SimpleNamespace(id=reply_id, edit=AsyncMock()))
    return message


@pytest.fixture(autouse=True)
def isolated_telemetry(tmp_path: Path):
    collector = TelemetryCollector(tmp_path / "telemetry.db")
    set_telemetry(collector)
    yield collector
    set_telemetry(None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def state(tmp_path: Path) -> GameState:
    return GameState(tmp_path / "game.db")


@pytest.fixture
def sessions(clock: FakeClock) -> SessionTable:
    return SessionTable(idle_timeout=900, max_depth=16, clock=clock)


@pytest.fixture
def router(sessions: SessionTable, state: GameState) -> InteractionRouter:
    return InteractionRouter(sessions, state, deadline=0.5)


@pytest.fixture
def context(state, sessions, router, settings) -> CommandContext:
    return CommandContext(
        state=state,
        sessions=sessions,
        router=router,
        settings=settings,
        latency=lambda: 0.0421,
    )
