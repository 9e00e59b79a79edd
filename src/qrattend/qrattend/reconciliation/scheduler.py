from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.calendar import LedgerCalendar
from ..core.constants import CUTOFF_JOB_ID, STARTUP_JOB_ID
from .service import ReconciliationService
from .settings import AutoCheckoutSettings, SettingsHolder

logger = logging.getLogger(__name__)


class ReconciliationScheduler:
    """Owns the single re-arming cutoff timer and the startup backlog job.

    The cutoff job is a one-shot `date` job; after every run (successful or not)
    it schedules the next occurrence of the configured cutoff time.
    """

    def __init__(
        self,
        sweeps: ReconciliationService,
        *,
        calendar: LedgerCalendar,
        settings: SettingsHolder,
        scheduler=None,
    ):
        self._sweeps = sweeps
        self._calendar = calendar
        self._settings = settings
        self._scheduler = scheduler or BackgroundScheduler(timezone=calendar.tz)

    @property
    def settings(self) -> AutoCheckoutSettings:
        return self._settings.get()

    def start(self, *, run_startup: bool = True) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
        if run_startup:
            # No trigger: APScheduler runs it once, right away, on a worker thread.
            self._scheduler.add_job(self._run_startup_job, id=STARTUP_JOB_ID, replace_existing=True)
        self.arm_cutoff()

    def shutdown(self, *, wait: bool = False) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)

    def arm_cutoff(self, *, now: datetime | None = None) -> Optional[datetime]:
        settings = self._settings.get()
        if not settings.enabled:
            if self._scheduler.get_job(CUTOFF_JOB_ID):
                self._scheduler.remove_job(CUTOFF_JOB_ID)
            logger.info("Auto-checkout disabled; cutoff sweep not scheduled")
            return None

        run_at = self._calendar.next_occurrence(settings.cutoff_time, now=now)
        self._scheduler.add_job(
            self._run_cutoff_job,
            trigger="date",
            run_date=run_at,
            id=CUTOFF_JOB_ID,
            replace_existing=True,
            misfire_grace_time=3600,
        )
        logger.info("Next cutoff sweep scheduled for %s", run_at.isoformat())
        return run_at

    def configure(
        self,
        *,
        enabled: bool | None = None,
        cutoff_time: time | None = None,
        send_notification: bool | None = None,
    ) -> AutoCheckoutSettings:
        updated = self._settings.update(enabled=enabled, cutoff_time=cutoff_time, send_notification=send_notification)
        logger.info("Auto-checkout settings updated: %s", updated.to_dict())
        if self._scheduler.running:
            self.arm_cutoff()
        return updated

    def _run_startup_job(self) -> None:
        try:
            self._sweeps.run_previous_day_sweep()
        except Exception:
            logger.exception("Startup backlog sweep failed")

    def _run_cutoff_job(self) -> None:
        try:
            if self._settings.get().enabled:
                self._sweeps.run_cutoff_sweep()
        except Exception:
            logger.exception("Cutoff sweep failed")
        finally:
            self.arm_cutoff()
