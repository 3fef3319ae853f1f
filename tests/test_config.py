"""Tests for YAML settings loading."""
from __future__ import annotations

from datetime import timedelta

import pytest

from gamemaster.config import Settings, SettingsLoader, get_settings


def test_bundled_settings_defaults():
    settings = get_settings()

    assert settings.command_prefix == "$"
    assert settings.nav_max_depth == 16
    assert settings.session_idle_seconds == 900
    assert settings.session_sweep_seconds == 60
    assert settings.interaction_deadline_seconds == 3.0
    assert settings.action_point_regen == timedelta(minutes=30)
    assert settings.poker_antes == (50, 100, 250)


def test_loader_reads_env_path(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "bot:\n  prefix: '!'\nnavigation:\n  idle_minutes: 5\npoker:\n  antes: [10]\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("GAMEMASTER_SETTINGS", str(path))

    loader = SettingsLoader()
    settings = loader.load()

    assert loader.path == path
    assert settings.command_prefix == "!"
    assert settings.session_idle_seconds == 300
    assert settings.poker_antes == (10,)
    assert settings.max_party_size == 5
    assert loader.load() is settings


def test_empty_antes_rejected():
    with pytest.raises(ValueError):
        Settings.from_dict({"poker": {"antes": []}})


def test_empty_document_uses_defaults():
    settings = Settings.from_dict({})
    assert settings.starting_balance == 500
    assert settings.tavern_rotation_size == 5
