"""Game state management and persistence."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import closing, contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .models import Profile, Rarity, Recruit, Unit

logger = logging.getLogger(__name__)

_DB_SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
    user_id INTEGER PRIMARY KEY,
    balance INTEGER NOT NULL,
    action_points INTEGER NOT NULL,
    ap_updated_at TEXT NOT NULL,
    fame INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS inventory (
    user_id INTEGER NOT NULL,
    item TEXT NOT NULL,
    quantity INTEGER NOT NULL,
    PRIMARY KEY (user_id, item)
);
CREATE TABLE IF NOT EXISTS units (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    template TEXT NOT NULL,
    name TEXT NOT NULL,
    rarity TEXT NOT NULL,
    level INTEGER NOT NULL DEFAULT 1,
    in_party INTEGER NOT NULL DEFAULT 0,
    hired_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_units_user
    ON units (user_id);
CREATE TABLE IF NOT EXISTS cooldowns (
    user_id INTEGER NOT NULL,
    action TEXT NOT NULL,
    ready_at TEXT NOT NULL,
    PRIMARY KEY (user_id, action)
);
CREATE TABLE IF NOT EXISTS bot_settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class GameStateError(Exception):
    """Base class for rule violations raised by :class:`GameState`."""


class InsufficientFunds(GameStateError):
    def __init__(self, needed: int, balance: int) -> None:
        super().__init__(f"You need {needed} coins but only have {balance}.")
        self.needed = needed
        self.balance = balance


class MissingItem(GameStateError):
    def __init__(self, item: str) -> None:
        super().__init__(f"You don't have any {item.replace('_', ' ')}.")
        self.item = item


class NotEnoughItems(GameStateError):
    def __init__(self, item: str, held: int, wanted: int) -> None:
        super().__init__(f"You only have {held} {item.replace('_', ' ')}, not {wanted}.")
        self.item = item
        self.held = held
        self.wanted = wanted


class ArmyFull(GameStateError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Your army is full ({limit} units).")
        self.limit = limit


class PartyFull(GameStateError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Your party already has {limit} members.")
        self.limit = limit


class UnknownUnit(GameStateError):
    def __init__(self, unit_id: int) -> None:
        super().__init__(f"Unit {unit_id} is not in your army.")
        self.unit_id = unit_id


class CooldownActive(GameStateError):
    def __init__(self, action: str, ready_at: datetime) -> None:
        super().__init__(f"{action} is on cooldown until {ready_at:%H:%M} UTC.")
        self.action = action
        self.ready_at = ready_at


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameState:
    """High level interface for working with persistent state."""

    def __init__(
        self,
        db_path: Path,
        *,
        starting_balance: int = 500,
        max_action_points: int = 10,
        action_point_regen: timedelta = timedelta(minutes=30),
    ) -> None:
        self._db_path = db_path
        self._starting_balance = starting_balance
        self._max_action_points = max_action_points
        self._regen = action_point_regen
        self._ensure_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def action_point_regen(self) -> timedelta:
        return self._regen

    def _ensure_schema(self) -> None:
        with closing(sqlite3.connect(self._db_path)) as conn:
            conn.executescript(_DB_SCHEMA)
            conn.commit()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements under ``BEGIN IMMEDIATE`` so writers serialize."""

        conn = sqlite3.connect(self._db_path, isolation_level=None, timeout=5.0)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    # Profiles ----------------------------------------------------------
    def _load_profile(
        self, conn: sqlite3.Connection, user_id: int, now: datetime
    ) -> Profile:
        conn.execute(
            "INSERT OR IGNORE INTO profiles "
            "(user_id, balance, action_points, ap_updated_at, fame, created_at) "
            "VALUES (?, ?, ?, ?, 0, ?)",
            (
                user_id,
                self._starting_balance,
                self._max_action_points,
                now.isoformat(),
                now.isoformat(),
            ),
        )
        row = conn.execute(
            "SELECT balance, action_points, ap_updated_at, fame FROM profiles WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        profile = Profile(
            user_id=user_id,
            balance=row[0],
            action_points=row[1],
            max_action_points=self._max_action_points,
            ap_updated_at=datetime.fromisoformat(row[2]),
            fame=row[3],
        )
        if profile.action_points < self._max_action_points:
            gained = int((now - profile.ap_updated_at) / self._regen)
            if gained > 0:
                profile.action_points = min(
                    self._max_action_points, profile.action_points + gained
                )
                if profile.action_points >= self._max_action_points:
                    profile.ap_updated_at = now
                else:
                    profile.ap_updated_at += self._regen * gained
                conn.execute(
                    "UPDATE profiles SET action_points = ?, ap_updated_at = ? WHERE user_id = ?",
                    (profile.action_points, profile.ap_updated_at.isoformat(), user_id),
                )
        return profile

    def get_profile(self, user_id: int, *, now: Optional[datetime] = None) -> Profile:
        """Return the profile, creating it and applying action point regeneration."""

        with self._transaction() as conn:
            return self._load_profile(conn, user_id, now or _utcnow())

    def adjust_balance(self, user_id: int, delta: int) -> int:
        with self._transaction() as conn:
            profile = self._load_profile(conn, user_id, _utcnow())
            if profile.balance + delta < 0:
                raise InsufficientFunds(-delta, profile.balance)
            conn.execute(
                "UPDATE profiles SET balance = balance + ? WHERE user_id = ?",
                (delta, user_id),
            )
            return profile.balance + delta

    def spend_action_points(
        self, user_id: int, amount: int = 1, *, now: Optional[datetime] = None
    ) -> bool:
        """Spend action points; returns ``False`` when the player has too few."""

        now = now or _utcnow()
        with self._transaction() as conn:
            profile = self._load_profile(conn, user_id, now)
            if profile.action_points < amount:
                return False
            anchor = profile.ap_updated_at
            if profile.action_points >= self._max_action_points:
                anchor = now
            conn.execute(
                "UPDATE profiles SET action_points = ?, ap_updated_at = ? WHERE user_id = ?",
                (profile.action_points - amount, anchor.isoformat(), user_id),
            )
            return True

    # Inventory ---------------------------------------------------------
    def inventory(self, user_id: int) -> Dict[str, int]:
        with closing(sqlite3.connect(self._db_path)) as conn:
            rows = conn.execute(
                "SELECT item, quantity FROM inventory WHERE user_id = ? AND quantity > 0 ORDER BY item",
                (user_id,),
            ).fetchall()
        return {item: quantity for item, quantity in rows}

    @staticmethod
    def _add_items(conn: sqlite3.Connection, user_id: int, items: Dict[str, int]) -> None:
        for item, quantity in items.items():
            if quantity <= 0:
                continue
            conn.execute(
                "INSERT INTO inventory (user_id, item, quantity) VALUES (?, ?, ?) "
                "ON CONFLICT (user_id, item) DO UPDATE SET quantity = quantity + excluded.quantity",
                (user_id, item, quantity),
            )

    def add_items(self, user_id: int, items: Dict[str, int]) -> None:
        with self._transaction() as conn:
            self._add_items(conn, user_id, items)

    @staticmethod
    def _take_items(conn: sqlite3.Connection, user_id: int, item: str, quantity: Optional[int]) -> int:
        """Remove ``quantity`` of ``item`` (all of it when ``None``); returns the amount taken."""

        row = conn.execute(
            "SELECT quantity FROM inventory WHERE user_id = ? AND item = ?",
            (user_id, item),
        ).fetchone()
        held = row[0] if row else 0
        if held <= 0:
            raise MissingItem(item)
        wanted = held if quantity is None else quantity
        if wanted > held:
            raise NotEnoughItems(item, held, wanted)
        conn.execute(
            "UPDATE inventory SET quantity = quantity - ? WHERE user_id = ? AND item = ?",
            (wanted, user_id, item),
        )
        return wanted

    def sell_items(
        self, user_id: int, item: str, unit_price: int, quantity: Optional[int] = None
    ) -> tuple[int, int]:
        """Sell ``quantity`` of ``item`` (everything held by default).

        Returns the amount sold and the new balance.
        """

        if quantity is not None and quantity < 1:
            raise ValueError("quantity must be at least 1")
        with self._transaction() as conn:
            profile = self._load_profile(conn, user_id, _utcnow())
            sold = self._take_items(conn, user_id, item, quantity)
            earned = sold * unit_price
            conn.execute(
                "UPDATE profiles SET balance = balance + ? WHERE user_id = ?",
                (earned, user_id),
            )
            return sold, profile.balance + earned

    def transfer_items(self, giver_id: int, receiver_id: int, item: str, quantity: int) -> None:
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        if giver_id == receiver_id:
            raise ValueError("giver and receiver must differ")
        with self._transaction() as conn:
            self._take_items(conn, giver_id, item, quantity)
            self._add_items(conn, receiver_id, {item: quantity})

    # Economy actions ---------------------------------------------------
    def cooldown_ready_at(self, user_id: int, action: str) -> Optional[datetime]:
        with closing(sqlite3.connect(self._db_path)) as conn:
            row = conn.execute(
                "SELECT ready_at FROM cooldowns WHERE user_id = ? AND action = ?",
                (user_id, action),
            ).fetchone()
        return datetime.fromisoformat(row[0]) if row else None

    def record_work(
        self,
        user_id: int,
        action: str,
        payout: int,
        items: Dict[str, int],
        cooldown: timedelta,
        *,
        now: Optional[datetime] = None,
    ) -> int:
        """Pay out a job and start its cooldown; returns the new balance."""

        now = now or _utcnow()
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT ready_at FROM cooldowns WHERE user_id = ? AND action = ?",
                (user_id, action),
            ).fetchone()
            if row is not None:
                ready_at = datetime.fromisoformat(row[0])
                if ready_at > now:
                    raise CooldownActive(action, ready_at)
            profile = self._load_profile(conn, user_id, now)
            conn.execute(
                "UPDATE profiles SET balance = balance + ? WHERE user_id = ?",
                (payout, user_id),
            )
            self._add_items(conn, user_id, items)
            conn.execute(
                "REPLACE INTO cooldowns (user_id, action, ready_at) VALUES (?, ?, ?)",
                (user_id, action, (now + cooldown).isoformat()),
            )
            return profile.balance + payout

    def open_container(
        self, user_id: int, container: str, coins: int, items: Dict[str, int]
    ) -> int:
        """Consume one container and grant its rolled contents; returns the balance."""

        with self._transaction() as conn:
            profile = self._load_profile(conn, user_id, _utcnow())
            cursor = conn.execute(
                "UPDATE inventory SET quantity = quantity - 1 "
                "WHERE user_id = ? AND item = ? AND quantity > 0",
                (user_id, container),
            )
            if cursor.rowcount == 0:
                raise MissingItem(container)
            conn.execute(
                "UPDATE profiles SET balance = balance + ? WHERE user_id = ?",
                (coins, user_id),
            )
            self._add_items(conn, user_id, items)
            return profile.balance + coins

    # Army and party ----------------------------------------------------
    @staticmethod
    def _row_to_unit(row) -> Unit:
        return Unit(
            id=row[0],
            user_id=row[1],
            template=row[2],
            name=row[3],
            rarity=Rarity(row[4]),
            level=row[5],
            in_party=bool(row[6]),
        )

    def units(self, user_id: int) -> List[Unit]:
        with closing(sqlite3.connect(self._db_path)) as conn:
            rows = conn.execute(
                "SELECT id, user_id, template, name, rarity, level, in_party "
                "FROM units WHERE user_id = ? ORDER BY id",
                (user_id,),
            ).fetchall()
        return [self._row_to_unit(row) for row in rows]

    def party(self, user_id: int) -> List[Unit]:
        return [unit for unit in self.units(user_id) if unit.in_party]

    def hire_unit(
        self,
        user_id: int,
        recruit: Recruit,
        cost: int,
        *,
        max_army: int,
        fame_gain: int = 0,
    ) -> Unit:
        now = _utcnow()
        with self._transaction() as conn:
            profile = self._load_profile(conn, user_id, now)
            (army_size,) = conn.execute(
                "SELECT COUNT(*) FROM units WHERE user_id = ?", (user_id,)
            ).fetchone()
            if army_size >= max_army:
                raise ArmyFull(max_army)
            if profile.balance < cost:
                raise InsufficientFunds(cost, profile.balance)
            conn.execute(
                "UPDATE profiles SET balance = balance - ?, fame = fame + ? WHERE user_id = ?",
                (cost, fame_gain, user_id),
            )
            cursor = conn.execute(
                "INSERT INTO units (user_id, template, name, rarity, level, in_party, hired_at) "
                "VALUES (?, ?, ?, ?, 1, 0, ?)",
                (user_id, recruit.key, recruit.name, recruit.rarity.value, now.isoformat()),
            )
            unit_id = cursor.lastrowid
        logger.info("User %s hired %s for %d coins", user_id, recruit.key, cost)
        return Unit(
            id=unit_id,
            user_id=user_id,
            template=recruit.key,
            name=recruit.name,
            rarity=recruit.rarity,
        )

    def toggle_party(self, user_id: int, unit_id: int, *, max_party: int) -> bool:
        """Flip party membership for a unit; returns the new membership flag."""

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT in_party FROM units WHERE id = ? AND user_id = ?",
                (unit_id, user_id),
            ).fetchone()
            if row is None:
                raise UnknownUnit(unit_id)
            joining = not bool(row[0])
            if joining:
                (party_size,) = conn.execute(
                    "SELECT COUNT(*) FROM units WHERE user_id = ? AND in_party = 1",
                    (user_id,),
                ).fetchone()
                if party_size >= max_party:
                    raise PartyFull(max_party)
            conn.execute(
                "UPDATE units SET in_party = ? WHERE id = ?",
                (int(joining), unit_id),
            )
            return joining

    # Bot settings ------------------------------------------------------
    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with closing(sqlite3.connect(self._db_path)) as conn:
            row = conn.execute(
                "SELECT value FROM bot_settings WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else default

    def set_setting(self, key: str, value: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                "REPLACE INTO bot_settings (key, value) VALUES (?, ?)", (key, value)
            )


__all__ = [
    "ArmyFull",
    "CooldownActive",
    "GameState",
    "GameStateError",
    "InsufficientFunds",
    "MissingItem",
    "NotEnoughItems",
    "PartyFull",
    "UnknownUnit",
]
