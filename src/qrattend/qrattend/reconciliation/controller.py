from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, parse_bool
from ..common.validators import require_hhmm
from ..core.enums import SweepKind
from ..core.exceptions import NotFound, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    sweeps = container.reconciliation_service
    runners = {
        SweepKind.STARTUP.value: sweeps.run_startup_sweep,
        SweepKind.PREVIOUS_DAY.value: sweeps.run_previous_day_sweep,
        SweepKind.CUTOFF.value: sweeps.run_cutoff_sweep,
    }

    @app.route("/api/attendance/sweeps/<kind>", methods=["POST"], endpoint="api_run_sweep")
    def api_run_sweep(kind: str):
        runner = runners.get(kind)
        if runner is None:
            raise NotFound(f"Unknown sweep: {kind}")
        report = runner()
        return jsonify({"success": True, "report": report.to_dict()}), 200

    @app.route("/api/attendance/auto-checkout", methods=["GET"], endpoint="api_get_auto_checkout")
    def api_get_auto_checkout():
        return jsonify({"success": True, "settings": container.scheduler.settings.to_dict()}), 200

    @app.route("/api/attendance/auto-checkout", methods=["PUT"], endpoint="api_update_auto_checkout")
    def api_update_auto_checkout():
        data = json_body()
        if not data:
            raise ValidationError("No settings given")

        cutoff_time = require_hhmm(data["time"], "time") if "time" in data else None
        enabled = parse_bool(data["enabled"], True) if "enabled" in data else None
        send_notification = parse_bool(data["sendNotification"], True) if "sendNotification" in data else None

        settings = container.scheduler.configure(
            enabled=enabled,
            cutoff_time=cutoff_time,
            send_notification=send_notification,
        )
        return jsonify(
            {"success": True, "message": "Auto-checkout settings updated", "settings": settings.to_dict()}
        ), 200
