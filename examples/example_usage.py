"""Example: drive the ledger through the service layer (no Flask).

Controllers are a thin layer; the rules live in the services.
"""

import importlib

from config import get_settings_module

from src.qrattend.qrattend.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, send_notifications=False)

    report = container.reconciliation_service.run_startup_sweep()
    print(report.to_dict())

    student = container.students_repo.get_by_index_number("S001")
    if student:
        outcome = container.attendance_service.record_scan(student.student_id)
        print(outcome.event.value, outcome.record)
        print(container.attendance_service.get_aggregates(student.student_id))


if __name__ == "__main__":
    main()
