"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_TIMEZONE = "Asia/Colombo"
DEFAULT_CUTOFF_TIME = time(18, 30)
DEFAULT_SCAN_LOCATION = "Main Entrance"
DEFAULT_DEVICE_INFO = "Unknown Device"
MANUAL_SCAN_LOCATION = "Admin Portal"
MANUAL_DEVICE_INFO = "Manual entry by admin"
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_NOTIFY_TIMEOUT_SECONDS = 10
CUTOFF_JOB_ID = "attendance-cutoff-sweep"
STARTUP_JOB_ID = "attendance-startup-sweep"
