"""
Maintenance job registry.

Jobs are trigger-agnostic: an external timer (cron, systemd timer) runs
``scripts/run_maintenance.py <job>``, and admins can trigger the same jobs
over HTTP. Each run gets its own database session.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.database import SessionLocal
from backoffice.services.holiday_sync import sync_holidays
from backoffice.services.maintenance import auto_clock_out_sweep, auto_mark_attendance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaintenanceJob:
    name: str
    handler: Callable[[Session, datetime], Dict[str, Any]]
    schedule: str  # suggested cron expression
    description: str


def _holiday_sync(db: Session, now: datetime) -> Dict[str, Any]:
    return sync_holidays(db, year=now.year)


def _auto_clock_out(db: Session, now: datetime) -> Dict[str, Any]:
    if not settings.auto_clock_out.enabled:
        logger.info("Auto clock-out disabled; skipping")
        return {"status": "disabled"}
    return auto_clock_out_sweep(db, now=now)


def _auto_mark(db: Session, now: datetime) -> Dict[str, Any]:
    # Yesterday is complete: leave and absence can be settled too
    yesterday = auto_mark_attendance(db, day=now.date() - timedelta(days=1), now=now)
    today = auto_mark_attendance(db, day=now.date(), now=now)
    return {"yesterday": yesterday, "today": today}


JOBS: Dict[str, MaintenanceJob] = {
    job.name: job
    for job in (
        MaintenanceJob("holiday_sync", _holiday_sync, "5 0 1 1 *", "Import the year's government holidays"),
        MaintenanceJob("auto_clock_out", _auto_clock_out, "30 0 * * *", "Close sessions left open on past days"),
        MaintenanceJob("auto_mark_attendance", _auto_mark, "1 0 * * *", "Pre-fill attendance for non-working days"),
    )
}


class MaintenanceScheduler:
    """
    Runs registered jobs with a fresh session each, either inline or as a
    FastAPI background task after the response is sent.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    @staticmethod
    def get_job(name: str) -> MaintenanceJob:
        if name not in JOBS:
            raise ValueError(f"Unknown maintenance job: {name}")
        return JOBS[name]

    def run(self, name: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        job = self.get_job(name)
        now = now or datetime.now()
        db = self.session_factory()
        try:
            logger.info(f"Running maintenance job {name}")
            result = job.handler(db, now)
            logger.info(f"Maintenance job {name} finished", extra={"job": name})
            return result
        except Exception as e:
            db.rollback()
            logger.error(f"Maintenance job {name} failed: {e}", exc_info=True)
            raise
        finally:
            db.close()

    def enqueue(self, background_tasks: BackgroundTasks, name: str) -> None:
        self.get_job(name)
        background_tasks.add_task(self._run_in_background, name)

    def _run_in_background(self, name: str) -> None:
        try:
            self.run(name)
        except Exception as e:
            # Already logged with traceback; the response has been sent
            logger.error(f"Background maintenance job {name} aborted: {e}")


def run_job(name: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    return MaintenanceScheduler().run(name, now=now)
