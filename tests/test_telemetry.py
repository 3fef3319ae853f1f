"""Tests for telemetry and metrics tracking."""
import sqlite3
import tempfile
import time
from pathlib import Path
from types import SimpleNamespace

import pytest

from gamemaster.telemetry import (
    BUFFER_LIMIT,
    MetricEvent,
    MetricType,
    TelemetryCollector,
    get_telemetry,
    set_telemetry,
)
from gamemaster.telemetry_decorator import track_command


def test_metric_event_defaults():
    """MetricEvent fills in value and timestamp."""
    before = time.time()
    event = MetricEvent(MetricType.NAVIGATION, "saga.root:tavern", tags={"outcome": "rendered"})

    assert event.value == 1.0
    assert event.metadata == {}
    assert event.timestamp >= before
    assert event.as_row()[1:4] == ("navigation", "saga.root:tavern", 1.0)


def test_telemetry_collector_init():
    """Test TelemetryCollector initialization."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test_telemetry.db"
        collector = TelemetryCollector(db_path)

        assert collector.db_path == db_path
        assert db_path.exists()
        assert collector.pending == []


def test_collector_honours_env_path(tmp_path, monkeypatch):
    db_path = tmp_path / "from_env.db"
    monkeypatch.setenv("GAMEMASTER_TELEMETRY_DB", str(db_path))
    collector = TelemetryCollector()
    assert collector.db_path == db_path


def test_track_command():
    """Test command tracking."""
    with tempfile.TemporaryDirectory() as tmpdir:
        collector = TelemetryCollector(Path(tmpdir) / "test.db")

        collector.track_command(
            command_name="work",
            player_id="player1",
            guild_id="guild1",
            success=True,
            duration_ms=150.5,
            surface="prefix",
        )

        assert len(collector.pending) == 1
        event = collector.pending[0]
        assert event.metric_type == MetricType.COMMAND_USAGE
        assert event.name == "work"
        assert event.tags["player_id"] == "player1"
        assert event.tags["success"] == "True"
        assert event.tags["surface"] == "prefix"
        assert event.metadata["duration_ms"] == 150.5


def test_track_navigation_and_sessions():
    with tempfile.TemporaryDirectory() as tmpdir:
        collector = TelemetryCollector(Path(tmpdir) / "test.db")

        collector.track_navigation("saga.root", "tavern", "rendered", duration_ms=12.0)
        collector.track_navigation("saga.root", "tavern", "stale")
        collector.track_session("opened")
        collector.track_session("evicted", 3)

        assert collector.summary(MetricType.NAVIGATION) == {"saga.root:tavern": 2.0}
        assert collector.summary(MetricType.SESSION) == {"evicted": 3.0, "opened": 1.0}
        assert collector.navigation_outcomes() == {"rendered": 1, "stale": 1}
        assert collector.pending == []


def test_track_error():
    """Test error tracking."""
    with tempfile.TemporaryDirectory() as tmpdir:
        collector = TelemetryCollector(Path(tmpdir) / "test.db")

        collector.track_error(
            error_type="HandlerFailed",
            command="saga.tavern",
            error_details="RuntimeError [abc123]"
        )

        event = collector.pending[0]
        assert event.metric_type == MetricType.ERROR_RATE
        assert event.name == "HandlerFailed"
        assert event.tags == {"command": "saga.tavern"}
        assert event.metadata["error_details"] == "RuntimeError [abc123]"


def test_buffer_flushes_at_limit():
    with tempfile.TemporaryDirectory() as tmpdir:
        collector = TelemetryCollector(Path(tmpdir) / "test.db")
        for _ in range(BUFFER_LIMIT):
            collector.track_session("opened")

        assert collector.pending == []
        with sqlite3.connect(collector.db_path) as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM metrics").fetchone()
        assert count == BUFFER_LIMIT


def test_cleanup_old_data(tmp_path):
    collector = TelemetryCollector(tmp_path / "test.db")
    collector.record(MetricEvent(MetricType.SESSION, "opened", timestamp=time.time() - 40 * 86400))
    collector.track_session("opened")

    assert collector.cleanup_old_data(days_to_keep=30) == 1
    assert collector.summary(MetricType.SESSION) == {"opened": 1.0}


def test_summary_window_excludes_old_events(tmp_path):
    collector = TelemetryCollector(tmp_path / "test.db")
    collector.record(MetricEvent(MetricType.SESSION, "closed", timestamp=time.time() - 7200))
    collector.track_session("closed")

    assert collector.summary(MetricType.SESSION) == {"closed": 2.0}
    assert collector.summary(MetricType.SESSION, hours=1) == {"closed": 1.0}


def test_get_telemetry_returns_installed_collector(isolated_telemetry):
    assert get_telemetry() is isolated_telemetry
    replacement = TelemetryCollector(isolated_telemetry.db_path.with_name("other.db"))
    set_telemetry(replacement)
    assert get_telemetry() is replacement


@pytest.mark.asyncio
async def test_track_command_decorator_records_failures(isolated_telemetry):
    @track_command
    async def run_prefix(context, message, args):
        raise ValueError("bad input")

    message = SimpleNamespace(author=SimpleNamespace(id=5), guild=None)
    with pytest.raises(ValueError):
        await run_prefix(None, message, [])

    events = isolated_telemetry.pending
    error = next(e for e in events if e.metric_type == MetricType.ERROR_RATE)
    usage = next(e for e in events if e.metric_type == MetricType.COMMAND_USAGE)
    assert error.name == "ValueError"
    assert usage.tags == {
        "player_id": "5",
        "guild_id": "dm",
        "success": "False",
        "surface": "prefix",
    }
