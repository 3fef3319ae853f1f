"""Core data models for the Gamemaster bot."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional, Tuple


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


@dataclass
class Profile:
    user_id: int
    balance: int
    action_points: int
    max_action_points: int
    ap_updated_at: datetime
    fame: int = 0

    def next_action_point(self, regen: timedelta) -> Optional[datetime]:
        """Return when the next action point regenerates, if any is missing."""

        if self.action_points >= self.max_action_points:
            return None
        return self.ap_updated_at + regen


@dataclass
class Unit:
    id: int
    user_id: int
    template: str
    name: str
    rarity: Rarity
    level: int = 1
    in_party: bool = False


@dataclass(frozen=True)
class Recruit:
    """A mercenary template offered by the tavern."""

    key: str
    name: str
    rarity: Rarity
    attack: int
    defense: int

    def hire_cost(self, base: int) -> int:
        multiplier = {
            Rarity.COMMON: 1.0,
            Rarity.RARE: 1.6,
            Rarity.EPIC: 2.5,
            Rarity.LEGENDARY: 4.0,
        }[self.rarity]
        return int(base * multiplier)


@dataclass(frozen=True)
class Job:
    name: str
    display_name: str
    min_payout: int
    max_payout: int
    cooldown: timedelta
    resource: str
    resource_range: Tuple[int, int]
    rare_reward: Optional[Tuple[str, float]] = None


@dataclass(frozen=True)
class LootEntry:
    """One weighted outcome of opening a container."""

    weight: int
    coins: Tuple[int, int] = (0, 0)
    items: Dict[str, Tuple[int, int]] = field(default_factory=dict)


@dataclass(frozen=True)
class Container:
    item: str
    display_name: str
    loot: Tuple[LootEntry, ...]


@dataclass
class WorkResult:
    job: Job
    payout: int
    resources: Dict[str, int]
    rare_item: Optional[str]
    balance: int


@dataclass
class OpenResult:
    container: Container
    coins: int
    items: Dict[str, int]
    balance: int
