from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, time
from typing import Optional

from ..core.constants import DEFAULT_CUTOFF_TIME


@dataclass(frozen=True)
class AutoCheckoutSettings:
    enabled: bool = True
    cutoff_time: time = DEFAULT_CUTOFF_TIME
    send_notification: bool = True
    last_run: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "time": self.cutoff_time.strftime("%H:%M"),
            "sendNotification": self.send_notification,
            "lastRun": self.last_run.isoformat() if self.last_run else None,
        }


@dataclass
class SettingsHolder:
    """Process-wide auto-checkout settings, shared by the sweeps and the scheduler."""

    current: AutoCheckoutSettings = field(default_factory=AutoCheckoutSettings)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self) -> AutoCheckoutSettings:
        with self._lock:
            return self.current

    def update(self, **changes) -> AutoCheckoutSettings:
        changes = {k: v for k, v in changes.items() if v is not None}
        with self._lock:
            self.current = replace(self.current, **changes)
            return self.current
