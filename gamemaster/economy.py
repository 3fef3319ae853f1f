"""Game rules: jobs, loot containers and the tavern recruit pool."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from .models import Container, Job, LootEntry, Rarity, Recruit
from .rng import GameRNG

ITEM_NAMES: Dict[str, str] = {
    "fish": "Fish",
    "golden_fish": "Golden Fish",
    "ore": "Ore",
    "gem": "Gem",
    "large_geode": "Large Geode",
    "supply_crate": "Supply Crate",
    "health_potion": "Health Potion",
    "focus_tonic": "Focus Tonic",
}

# Coins paid per unit by `sell`; containers are opened, not sold.
SELL_PRICES: Dict[str, int] = {
    "fish": 10,
    "ore": 50,
    "gem": 250,
    "golden_fish": 1000,
    "health_potion": 25,
    "focus_tonic": 60,
}

_ITEM_ALIASES: Dict[str, str] = {
    "golden": "golden_fish",
    "goldenfish": "golden_fish",
    "geode": "large_geode",
    "largegeode": "large_geode",
    "crate": "supply_crate",
    "supplycrate": "supply_crate",
    "potion": "health_potion",
    "tonic": "focus_tonic",
}

JOBS: Tuple[Job, ...] = (
    Job(
        name="fishing",
        display_name="Fishing",
        min_payout=25,
        max_payout=75,
        cooldown=timedelta(minutes=30),
        resource="fish",
        resource_range=(3, 8),
        rare_reward=("golden_fish", 0.05),
    ),
    Job(
        name="mining",
        display_name="Mining",
        min_payout=100,
        max_payout=300,
        cooldown=timedelta(hours=2),
        resource="ore",
        resource_range=(5, 15),
        rare_reward=("large_geode", 0.02),
    ),
    Job(
        name="coding",
        display_name="Coding",
        min_payout=400,
        max_payout=800,
        cooldown=timedelta(hours=8),
        resource="gem",
        resource_range=(1, 3),
        rare_reward=("supply_crate", 0.10),
    ),
)

CONTAINERS: Tuple[Container, ...] = (
    Container(
        item="large_geode",
        display_name="Large Geode",
        loot=(
            LootEntry(weight=60, coins=(50, 150), items={"ore": (2, 6)}),
            LootEntry(weight=30, items={"gem": (1, 3)}),
            LootEntry(weight=10, coins=(300, 600), items={"gem": (2, 4)}),
        ),
    ),
    Container(
        item="supply_crate",
        display_name="Supply Crate",
        loot=(
            LootEntry(weight=50, items={"health_potion": (1, 3)}),
            LootEntry(weight=35, coins=(100, 250), items={"focus_tonic": (1, 1)}),
            LootEntry(weight=15, items={"large_geode": (1, 1)}),
        ),
    ),
)

RECRUIT_POOL: Tuple[Recruit, ...] = (
    Recruit("militia", "Village Militia", Rarity.COMMON, attack=4, defense=6),
    Recruit("archer", "Hedge Archer", Rarity.COMMON, attack=6, defense=3),
    Recruit("squire", "Eager Squire", Rarity.COMMON, attack=5, defense=5),
    Recruit("hound", "War Hound", Rarity.COMMON, attack=7, defense=2),
    Recruit("sellsword", "Sellsword", Rarity.RARE, attack=8, defense=6),
    Recruit("hedge_mage", "Hedge Mage", Rarity.RARE, attack=10, defense=3),
    Recruit("shieldmaiden", "Shieldmaiden", Rarity.RARE, attack=6, defense=10),
    Recruit("ranger", "Greenwood Ranger", Rarity.EPIC, attack=12, defense=7),
    Recruit("battle_cleric", "Battle Cleric", Rarity.EPIC, attack=8, defense=12),
    Recruit("drake_rider", "Drake Rider", Rarity.LEGENDARY, attack=16, defense=11),
)

FAME_PER_HIRE = 5
FAME_TIERS: Tuple[int, ...] = (0, 50, 150, 400)


def item_name(item: str) -> str:
    return ITEM_NAMES.get(item, item.replace("_", " ").title())


def find_item(name: str) -> Optional[str]:
    """Resolve a typed item name (``"Golden Fish"``, ``golden``) to its key."""

    key = name.strip().lower().replace(" ", "_").replace("-", "_")
    key = _ITEM_ALIASES.get(key, key)
    return key if key in ITEM_NAMES else None


def find_job(name: str) -> Optional[Job]:
    lowered = name.lower()
    for job in JOBS:
        if job.name == lowered:
            return job
    return None


def find_container(item: str) -> Optional[Container]:
    lowered = item.lower().replace(" ", "_")
    for container in CONTAINERS:
        if container.item == lowered:
            return container
    return None


def find_recruit(key: str) -> Optional[Recruit]:
    for recruit in RECRUIT_POOL:
        if recruit.key == key:
            return recruit
    return None


def fame_tier(fame: int) -> Tuple[int, float]:
    """Return the fame tier index and progress (0..1) toward the next tier."""

    index = 0
    for idx, threshold in enumerate(FAME_TIERS):
        if fame >= threshold:
            index = idx
    if index + 1 >= len(FAME_TIERS):
        return index, 1.0
    current, following = FAME_TIERS[index], FAME_TIERS[index + 1]
    return index, max(0.0, min(1.0, (fame - current) / (following - current)))


def daily_recruits(day: date, count: int) -> List[Recruit]:
    """Today's tavern rotation; every player sees the same recruits per UTC day."""

    rng = GameRNG.for_parts("tavern", day.isoformat())
    return rng.sample(RECRUIT_POOL, count)


def roll_work(job: Job, rng: GameRNG) -> Tuple[int, Dict[str, int], Optional[str]]:
    payout = rng.randint(job.min_payout, job.max_payout)
    low, high = job.resource_range
    resources = {job.resource: rng.randint(low, high)}
    rare_item: Optional[str] = None
    if job.rare_reward is not None:
        item, probability = job.rare_reward
        if rng.chance(probability):
            rare_item = item
    return payout, resources, rare_item


def roll_container(container: Container, rng: GameRNG) -> Tuple[int, Dict[str, int]]:
    entry = rng.weighted_choice(container.loot, [loot.weight for loot in container.loot])
    coins = rng.randint(*entry.coins) if entry.coins[1] > 0 else 0
    items = {item: rng.randint(low, high) for item, (low, high) in entry.items.items()}
    return coins, items


__all__ = [
    "CONTAINERS",
    "FAME_PER_HIRE",
    "JOBS",
    "RECRUIT_POOL",
    "ITEM_NAMES",
    "SELL_PRICES",
    "daily_recruits",
    "fame_tier",
    "find_container",
    "find_item",
    "find_job",
    "find_recruit",
    "item_name",
    "roll_container",
    "roll_work",
]
