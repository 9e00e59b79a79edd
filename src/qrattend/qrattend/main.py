from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.calendar import parse_hhmm
from .common.http import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_NOTIFY_TIMEOUT_SECONDS, DEFAULT_TIMEZONE
from .database.bootstrap import apply_schema, list_tables
from .reconciliation.settings import AutoCheckoutSettings
from .attendance.controller import register as register_attendance
from .reconciliation.controller import register as register_reconciliation
from .reports.controller import register as register_reports
from .students.controller import register as register_students

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _auto_checkout_from(settings) -> AutoCheckoutSettings:
    return AutoCheckoutSettings(
        enabled=bool(getattr(settings, "AUTO_CHECKOUT_ENABLED", True)),
        cutoff_time=parse_hhmm(str(getattr(settings, "AUTO_CHECKOUT_TIME", "18:30"))),
        send_notification=bool(getattr(settings, "SEND_NOTIFICATIONS", True)),
    )


def create_app(*, container: Container | None = None) -> Flask:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format=LOG_FORMAT)

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            timezone=getattr(settings, "TIMEZONE", DEFAULT_TIMEZONE),
            auto_checkout=_auto_checkout_from(settings),
            send_notifications=bool(getattr(settings, "SEND_NOTIFICATIONS", True)),
            gateway_url=getattr(settings, "NOTIFY_GATEWAY_URL", None),
            gateway_token=getattr(settings, "NOTIFY_GATEWAY_TOKEN", None),
            notify_timeout=float(getattr(settings, "NOTIFY_TIMEOUT_SECONDS", DEFAULT_NOTIFY_TIMEOUT_SECONDS)),
        )

    app.extensions["qrattend"] = container
    register_error_handlers(app)
    register_students(app, container)
    register_attendance(app, container)
    register_reconciliation(app, container)
    register_reports(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify(
            {
                "success": True,
                "status": "ok",
                "timezone": container.calendar.zone,
                "time": container.calendar.now().isoformat(),
                "autoCheckout": container.scheduler.settings.to_dict(),
            }
        ), 200

    if bool(getattr(settings, "START_SCHEDULER", False)):
        container.scheduler.start()
        atexit.register(container.scheduler.shutdown)

    return app
