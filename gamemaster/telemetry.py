"""Usage metrics for commands, menus and sessions.

Events are buffered in memory and written to a small SQLite database in
batches. Nothing here may break a command: write failures are logged and the
batch is dropped.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
import time
from contextlib import closing
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

TELEMETRY_DB_ENV_KEY = "GAMEMASTER_TELEMETRY_DB"

BUFFER_LIMIT = 100
FLUSH_INTERVAL_SECONDS = 60.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS metrics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    recorded_at REAL NOT NULL,
    metric_type TEXT NOT NULL,
    name TEXT NOT NULL,
    value REAL NOT NULL,
    tags TEXT NOT NULL DEFAULT '{}',
    metadata TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_metrics_kind_time ON metrics(metric_type, recorded_at);
"""


class MetricType(Enum):
    COMMAND_USAGE = "command_usage"
    NAVIGATION = "navigation"
    SESSION = "session"
    ERROR_RATE = "error_rate"


@dataclass(frozen=True)
class MetricEvent:
    metric_type: MetricType
    name: str
    value: float = 1.0
    tags: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def as_row(self) -> tuple:
        return (
            self.timestamp,
            self.metric_type.value,
            self.name,
            self.value,
            json.dumps(self.tags, sort_keys=True),
            json.dumps(self.metadata, sort_keys=True),
        )


class TelemetryCollector:
    """Buffers metric events and persists them to SQLite."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        env_path = os.getenv(TELEMETRY_DB_ENV_KEY)
        self.db_path = db_path or Path(env_path or "telemetry.db")
        with closing(sqlite3.connect(self.db_path)) as conn:
            conn.executescript(_SCHEMA)
            conn.commit()
        self._pending: List[MetricEvent] = []
        self._last_flush = time.monotonic()

    @property
    def pending(self) -> List[MetricEvent]:
        """Events recorded since the last flush."""

        return list(self._pending)

    # Recording ---------------------------------------------------------
    def record(self, event: MetricEvent) -> None:
        self._pending.append(event)
        overdue = time.monotonic() - self._last_flush > FLUSH_INTERVAL_SECONDS
        if len(self._pending) >= BUFFER_LIMIT or overdue:
            self.flush()

    def track_command(
        self,
        command_name: str,
        player_id: str,
        guild_id: str,
        success: bool = True,
        duration_ms: Optional[float] = None,
        surface: str = "slash",
    ) -> None:
        """One invocation of a command from the slash or prefix surface."""

        self.record(
            MetricEvent(
                MetricType.COMMAND_USAGE,
                command_name,
                tags={
                    "player_id": player_id,
                    "guild_id": guild_id,
                    "success": str(success),
                    "surface": surface,
                },
                metadata={"duration_ms": duration_ms} if duration_ms else {},
            )
        )

    def track_navigation(
        self,
        screen_id: str,
        action: str,
        outcome: str,
        duration_ms: Optional[float] = None,
    ) -> None:
        """One routed component callback and how the router resolved it."""

        self.record(
            MetricEvent(
                MetricType.NAVIGATION,
                f"{screen_id}:{action}",
                tags={"screen": screen_id, "outcome": outcome},
                metadata={"duration_ms": duration_ms} if duration_ms else {},
            )
        )

    def track_session(self, event: str, count: int = 1) -> None:
        self.record(MetricEvent(MetricType.SESSION, event, float(count)))

    def track_error(
        self,
        error_type: str,
        command: Optional[str] = None,
        player_id: Optional[str] = None,
        error_details: Optional[str] = None,
    ) -> None:
        tags = {key: value for key, value in (("command", command), ("player_id", player_id)) if value}
        self.record(
            MetricEvent(
                MetricType.ERROR_RATE,
                error_type,
                tags=tags,
                metadata={"error_details": error_details} if error_details else {},
            )
        )

    def flush(self) -> None:
        if not self._pending:
            return
        batch, self._pending = self._pending, []
        self._last_flush = time.monotonic()
        try:
            with closing(sqlite3.connect(self.db_path)) as conn:
                conn.executemany(
                    "INSERT INTO metrics (recorded_at, metric_type, name, value, tags, metadata) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    [event.as_row() for event in batch],
                )
                conn.commit()
        except sqlite3.Error:
            logger.exception("Dropped %d telemetry event(s)", len(batch))
            return
        logger.debug("Flushed %d telemetry event(s)", len(batch))

    # Reporting ---------------------------------------------------------
    def summary(self, metric_type: MetricType, *, hours: Optional[float] = None) -> Dict[str, float]:
        """Totals per metric name, optionally limited to the last ``hours``."""

        self.flush()
        query = "SELECT name, SUM(value) FROM metrics WHERE metric_type = ?"
        params: List[Any] = [metric_type.value]
        if hours is not None:
            query += " AND recorded_at >= ?"
            params.append(time.time() - hours * 3600)
        query += " GROUP BY name ORDER BY SUM(value) DESC, name"
        with closing(sqlite3.connect(self.db_path)) as conn:
            rows = conn.execute(query, params).fetchall()
        return {name: total for name, total in rows}

    def navigation_outcomes(self, *, hours: float = 24) -> Dict[str, int]:
        """Count of routed callbacks per outcome kind."""

        self.flush()
        since = time.time() - hours * 3600
        with closing(sqlite3.connect(self.db_path)) as conn:
            rows = conn.execute(
                "SELECT tags FROM metrics WHERE metric_type = ? AND recorded_at >= ?",
                (MetricType.NAVIGATION.value, since),
            ).fetchall()
        counts: Dict[str, int] = {}
        for (raw_tags,) in rows:
            outcome = json.loads(raw_tags).get("outcome", "unknown")
            counts[outcome] = counts.get(outcome, 0) + 1
        return counts

    def cleanup_old_data(self, days_to_keep: int = 30) -> int:
        self.flush()
        cutoff = time.time() - days_to_keep * 86400
        with closing(sqlite3.connect(self.db_path)) as conn:
            cursor = conn.execute("DELETE FROM metrics WHERE recorded_at < ?", (cutoff,))
            conn.commit()
        if cursor.rowcount:
            logger.info("Removed %d telemetry rows older than %d days", cursor.rowcount, days_to_keep)
        return cursor.rowcount


_telemetry: Optional[TelemetryCollector] = None


def get_telemetry() -> TelemetryCollector:
    """Get or create singleton telemetry collector."""
    global _telemetry
    if _telemetry is None:
        _telemetry = TelemetryCollector()
    return _telemetry


def set_telemetry(collector: Optional[TelemetryCollector]) -> None:
    """Replace the singleton collector; ``None`` forces a fresh one on next use."""
    global _telemetry
    _telemetry = collector


__all__ = [
    "MetricEvent",
    "MetricType",
    "TelemetryCollector",
    "get_telemetry",
    "set_telemetry",
]
