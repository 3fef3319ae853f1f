"""Background housekeeping: idle session eviction and telemetry retention."""

from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .telemetry import get_telemetry
from .ui.sessions import SessionTable

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "session-sweep"
RETENTION_JOB_ID = "telemetry-retention"


class SessionSweeper:
    """Runs :meth:`SessionTable.sweep` on an interval inside the bot's event loop."""

    def __init__(
        self,
        sessions: SessionTable,
        *,
        interval_seconds: float = 60.0,
        telemetry_retention_days: Optional[int] = 30,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        self.sessions = sessions
        self.interval_seconds = interval_seconds
        self.telemetry_retention_days = telemetry_retention_days
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def sweep(self) -> int:
        try:
            return self.sessions.sweep()
        except Exception:  # pragma: no cover - logged so the job keeps running
            logger.exception("Session sweep failed")
            return 0

    def prune_telemetry(self) -> int:
        if self.telemetry_retention_days is None:
            return 0
        try:
            return get_telemetry().cleanup_old_data(self.telemetry_retention_days)
        except Exception:  # pragma: no cover - logged so the job keeps running
            logger.exception("Telemetry retention failed")
            return 0

    def start(self) -> None:
        if self.running:
            return
        self.scheduler.add_job(
            self.sweep,
            "interval",
            seconds=self.interval_seconds,
            id=SWEEP_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        if self.telemetry_retention_days is not None:
            self.scheduler.add_job(
                self.prune_telemetry,
                "cron",
                hour=4,
                minute=0,
                id=RETENTION_JOB_ID,
                replace_existing=True,
                coalesce=True,
            )
        self.scheduler.start()
        logger.info("Session sweeper started (every %.0fs)", self.interval_seconds)

    def shutdown(self) -> None:
        """Stop the jobs and drop every outstanding session.

        Must run inside the event loop the scheduler was started on; the
        scheduler finishes stopping on that loop's next iteration.
        """

        try:
            if self.running:
                self.scheduler.shutdown(wait=False)
        except RuntimeError:
            logger.exception("Session sweeper could not be stopped cleanly")
        finally:
            dropped = self.sessions.clear()
            logger.info("Session sweeper stopped; dropped %d session(s)", dropped)


__all__ = ["RETENTION_JOB_ID", "SWEEP_JOB_ID", "SessionSweeper"]
