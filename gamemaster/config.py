"""Configuration loading utilities for the Gamemaster bot."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml


DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"
SETTINGS_ENV_KEY = "GAMEMASTER_SETTINGS"


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    command_prefix: str
    nav_max_depth: int
    session_idle_minutes: float
    session_sweep_seconds: float
    interaction_deadline_seconds: float
    starting_balance: int
    max_action_points: int
    action_point_regen_minutes: float
    hire_cost: int
    max_party_size: int
    max_army_size: int
    tavern_rotation_size: int
    poker_antes: Tuple[int, ...]

    @property
    def session_idle_seconds(self) -> float:
        return self.session_idle_minutes * 60.0

    @property
    def action_point_regen(self) -> timedelta:
        return timedelta(minutes=self.action_point_regen_minutes)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        bot_cfg = data.get("bot", {})
        nav_cfg = data.get("navigation", {})
        economy_cfg = data.get("economy", {})
        ap_cfg = economy_cfg.get("action_points", {})
        saga_cfg = data.get("saga", {})
        poker_cfg = data.get("poker", {})
        antes = tuple(int(value) for value in poker_cfg.get("antes", [50, 100, 250]))
        if not antes:
            raise ValueError("poker.antes must list at least one amount")
        return Settings(
            command_prefix=str(bot_cfg.get("prefix", "$")),
            nav_max_depth=int(nav_cfg.get("max_depth", 16)),
            session_idle_minutes=float(nav_cfg.get("idle_minutes", 15)),
            session_sweep_seconds=float(nav_cfg.get("sweep_seconds", 60)),
            interaction_deadline_seconds=float(nav_cfg.get("deadline_seconds", 3.0)),
            starting_balance=int(economy_cfg.get("starting_balance", 500)),
            max_action_points=int(ap_cfg.get("max", 10)),
            action_point_regen_minutes=float(ap_cfg.get("regen_minutes", 30)),
            hire_cost=int(saga_cfg.get("hire_cost", 250)),
            max_party_size=int(saga_cfg.get("max_party_size", 5)),
            max_army_size=int(saga_cfg.get("max_army_size", 10)),
            tavern_rotation_size=int(saga_cfg.get("tavern_rotation", 5)),
            poker_antes=antes,
        )


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        env_path = os.environ.get(SETTINGS_ENV_KEY)
        self._path = path or (Path(env_path) if env_path else DEFAULT_SETTINGS_PATH)
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._cache = Settings.from_dict(data)
        return self._cache


def get_settings() -> Settings:
    """Convenience accessor for default settings."""

    return SettingsLoader().load()


__all__ = ["Settings", "SettingsLoader", "get_settings"]
