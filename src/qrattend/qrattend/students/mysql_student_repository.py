from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..core.enums import AttendanceStatus, StudentStatus
from ..core.exceptions import VersionConflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, Student
from .repository import StudentRepository

_STUDENT_COLUMNS = """
    student_id, index_number, name, guardian_phone, status,
    attendance_count, attendance_percentage, last_attendance, version
"""

_RECORD_COLUMNS = """
    record_id, student_id, record_date, status, entry_time, leave_time,
    scan_location, device_info, marked_by
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        date=r["record_date"],
        status=AttendanceStatus(r["status"]),
        entry_time=r.get("entry_time"),
        leave_time=r.get("leave_time"),
        scan_location=r.get("scan_location"),
        device_info=r.get("device_info"),
        marked_by=r.get("marked_by"),
    )


def _to_student(row: dict, records: Sequence[AttendanceRecord]) -> Student:
    return Student(
        student_id=int(row["student_id"]),
        index_number=row["index_number"],
        name=row["name"],
        guardian_phone=row.get("guardian_phone"),
        status=StudentStatus(row["status"]),
        attendance_history=tuple(records),
        attendance_count=int(row.get("attendance_count") or 0),
        attendance_percentage=float(row.get("attendance_percentage") or 0.0),
        last_attendance=row.get("last_attendance"),
        version=int(row.get("version") or 0),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, rows: List[dict]) -> List[Student]:
        if not rows:
            return []
        ids = [int(r["student_id"]) for r in rows]
        placeholders = ",".join(["%s"] * len(ids))
        cur.execute(
            f"""
            SELECT {_RECORD_COLUMNS}
            FROM attendance_records
            WHERE student_id IN ({placeholders})
            ORDER BY record_id ASC
            """,
            tuple(ids),
        )
        by_student: Dict[int, List[AttendanceRecord]] = {sid: [] for sid in ids}
        for r in fetchall(cur):
            by_student[int(r["student_id"])].append(_to_record(r))
        return [_to_student(row, by_student[int(row["student_id"])]) for row in rows]

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            row = fetchone(cur)
            if not row:
                return None
            return self._load(cur, [row])[0]

    def get_by_index_number(self, index_number: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students WHERE index_number=%s", (index_number,))
            row = fetchone(cur)
            if not row:
                return None
            return self._load(cur, [row])[0]

    def list_students(self, *, active_only: bool = False) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            if active_only:
                cur.execute(
                    f"SELECT {_STUDENT_COLUMNS} FROM students WHERE status=%s ORDER BY index_number ASC",
                    (StudentStatus.ACTIVE.value,),
                )
            else:
                cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students ORDER BY index_number ASC")
            return self._load(cur, fetchall(cur))

    def _find_open(self, clause: str, day: date) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_STUDENT_COLUMNS}
                FROM students
                WHERE student_id IN (
                    SELECT DISTINCT student_id
                    FROM attendance_records
                    WHERE {clause}
                      AND entry_time IS NOT NULL
                      AND leave_time IS NULL
                      AND status <> %s
                )
                ORDER BY student_id ASC
                """,
                (day, AttendanceStatus.ABSENT.value),
            )
            return self._load(cur, fetchall(cur))

    def find_open_records_before(self, day: date) -> Sequence[Student]:
        return self._find_open("record_date < %s", day)

    def find_open_records_on(self, day: date) -> Sequence[Student]:
        return self._find_open("record_date = %s", day)

    def find_by_day(self, student_id: int, day: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE student_id=%s AND record_date=%s
                """,
                (int(student_id), day),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def add(self, student: Student) -> Student:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(index_number, name, guardian_phone, status,
                                     attendance_count, attendance_percentage, last_attendance, version)
                VALUES(%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    student.index_number,
                    student.name,
                    student.guardian_phone,
                    student.status.value,
                    student.attendance_count,
                    student.attendance_percentage,
                    student.last_attendance,
                ),
            )
            return replace(student, student_id=int(cur.lastrowid), version=0)

    def save(self, student: Student) -> Student:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET index_number=%s, name=%s, guardian_phone=%s, status=%s,
                    attendance_count=%s, attendance_percentage=%s, last_attendance=%s,
                    version=version+1
                WHERE student_id=%s AND version=%s
                """,
                (
                    student.index_number,
                    student.name,
                    student.guardian_phone,
                    student.status.value,
                    student.attendance_count,
                    student.attendance_percentage,
                    student.last_attendance,
                    int(student.student_id),
                    int(student.version),
                ),
            )
            if cur.rowcount == 0:
                raise VersionConflict(f"Student {student.student_id} changed since it was read")

            cur.execute("SELECT record_id FROM attendance_records WHERE student_id=%s", (int(student.student_id),))
            stored_ids = {int(r["record_id"]) for r in fetchall(cur)}
            kept_ids = {r.record_id for r in student.attendance_history if r.record_id is not None}

            # Deletes go first so a purged day can be recreated within the same save.
            for record_id in stored_ids - kept_ids:
                cur.execute("DELETE FROM attendance_records WHERE record_id=%s", (record_id,))

            saved: List[AttendanceRecord] = []
            for record in student.attendance_history:
                if record.record_id is not None:
                    cur.execute(
                        """
                        UPDATE attendance_records
                        SET status=%s, entry_time=%s, leave_time=%s,
                            scan_location=%s, device_info=%s, marked_by=%s
                        WHERE record_id=%s AND student_id=%s
                        """,
                        (
                            record.status.value,
                            record.entry_time,
                            record.leave_time,
                            record.scan_location,
                            record.device_info,
                            record.marked_by,
                            int(record.record_id),
                            int(student.student_id),
                        ),
                    )
                    saved.append(record)
                else:
                    cur.execute(
                        """
                        INSERT INTO attendance_records(student_id, record_date, status, entry_time, leave_time,
                                                       scan_location, device_info, marked_by)
                        VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                        """,
                        (
                            int(student.student_id),
                            record.date,
                            record.status.value,
                            record.entry_time,
                            record.leave_time,
                            record.scan_location,
                            record.device_info,
                            record.marked_by,
                        ),
                    )
                    saved.append(replace(record, record_id=int(cur.lastrowid)))

            return replace(student, attendance_history=tuple(saved), version=int(student.version) + 1)

    def delete(self, student_id: int) -> bool:
        # attendance_records go with it through ON DELETE CASCADE.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE student_id=%s", (int(student_id),))
            return cur.rowcount > 0
