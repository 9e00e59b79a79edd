import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

TIMEZONE = "Asia/Colombo"

AUTO_CHECKOUT_ENABLED = True
AUTO_CHECKOUT_TIME = "18:30"
START_SCHEDULER = False

SEND_NOTIFICATIONS = False
NOTIFY_GATEWAY_URL = None
NOTIFY_GATEWAY_TOKEN = None
NOTIFY_TIMEOUT_SECONDS = 1
