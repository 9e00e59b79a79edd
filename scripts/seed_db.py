"""Register a handful of demo students (idempotent by index number)."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.qrattend.qrattend.database.connection import DBConfig, DatabaseConnection
from src.qrattend.qrattend.students.mysql_student_repository import MySQLStudentRepository
from src.qrattend.qrattend.students.service import StudentService

DEMO_STUDENTS = [
    ("S001", "Nimal Perera", "+94771234567"),
    ("S002", "Kasuni Fernando", "+94772345678"),
    ("S003", "Tharindu Silva", None),
]


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    repo = MySQLStudentRepository(DatabaseConnection.get_instance(DBConfig.from_dict(db_config)))
    roster = StudentService(repo)

    added = 0
    for index_number, name, phone in DEMO_STUDENTS:
        if repo.get_by_index_number(index_number):
            continue
        roster.register_student(index_number=index_number, name=name, guardian_phone=phone)
        added += 1

    print(
        f"OK: Seeded {added} student(s) -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
