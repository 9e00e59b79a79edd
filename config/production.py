import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

TIMEZONE = os.getenv("TIMEZONE", "Asia/Colombo")

AUTO_CHECKOUT_ENABLED = bool(int(os.getenv("AUTO_CHECKOUT_ENABLED", "1")))
AUTO_CHECKOUT_TIME = os.getenv("AUTO_CHECKOUT_TIME", "18:30")
START_SCHEDULER = bool(int(os.getenv("START_SCHEDULER", "1")))

SEND_NOTIFICATIONS = bool(int(os.getenv("SEND_NOTIFICATIONS", "1")))
NOTIFY_GATEWAY_URL = os.getenv("NOTIFY_GATEWAY_URL")
NOTIFY_GATEWAY_TOKEN = os.getenv("NOTIFY_GATEWAY_TOKEN")
NOTIFY_TIMEOUT_SECONDS = float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "10"))
