from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from ..core.constants import DEFAULT_CUTOFF_TIME, DEFAULT_TIMEZONE


class LedgerCalendar:
    """The one clock and calendar every day boundary in the ledger goes through.

    Ledger timestamps are naive local wall-clock times of the configured zone.
    Aware timestamps coming from callers are converted to that zone first, so a
    scan stamped in UTC lands on the same local day as one stamped locally.
    """

    def __init__(self, timezone: str = DEFAULT_TIMEZONE):
        self._tz = pytz.timezone(timezone)

    @property
    def tz(self):
        return self._tz

    @property
    def zone(self) -> str:
        return self._tz.zone

    def now(self) -> datetime:
        return datetime.now(self._tz).replace(tzinfo=None)

    def to_local(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value
        return value.astimezone(self._tz).replace(tzinfo=None)

    def day_of(self, value: datetime) -> date:
        return self.to_local(value).date()

    def today(self) -> date:
        return self.now().date()

    def yesterday(self, *, now: Optional[datetime] = None) -> date:
        return self.day_of(now or self.now()) - timedelta(days=1)

    def cutoff_for(self, day: date, cutoff: time = DEFAULT_CUTOFF_TIME) -> datetime:
        """Local timestamp of the cutoff on `day`, used to stamp forced closures."""
        return datetime.combine(day, cutoff)

    def next_occurrence(self, at: time, *, now: Optional[datetime] = None) -> datetime:
        """Next aware datetime (in the ledger zone) whose wall-clock time is `at`."""
        local_now = self.to_local(now) if now else self.now()
        target = datetime.combine(local_now.date(), at)
        if local_now >= target:
            target = datetime.combine(local_now.date() + timedelta(days=1), at)
        return self._tz.localize(target)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour HH:MM string into time."""
    return datetime.strptime(value.strip(), "%H:%M").time()
