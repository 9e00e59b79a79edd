from __future__ import annotations

from datetime import date

import pytest

from src.qrattend.qrattend.core.enums import StudentStatus
from src.qrattend.qrattend.core.exceptions import NotFound, ValidationError
from src.qrattend.qrattend.reports.service import ReportService
from src.qrattend.qrattend.students.service import StudentService
from tests.fakes import make_student, open_record


@pytest.fixture
def roster(repo, locks):
    return StudentService(repo, locks=locks)


def test_register_student(repo, roster):
    student = roster.register_student(index_number=" S010 ", name="Amaya Jayasinghe", guardian_phone="  ")

    stored = repo.get_by_id(student.student_id)
    assert stored.index_number == "S010"
    assert stored.guardian_phone is None
    assert stored.status == StudentStatus.ACTIVE
    assert stored.attendance_history == ()


def test_register_rejects_duplicate_index_number(roster):
    roster.register_student(index_number="S010", name="Amaya Jayasinghe")

    with pytest.raises(ValidationError, match="already exists"):
        roster.register_student(index_number="S010", name="Someone Else")


def test_register_requires_a_name(roster):
    with pytest.raises(ValidationError):
        roster.register_student(index_number="S011", name="")


def test_update_keeps_the_ledger_and_bumps_the_version(repo, roster):
    stored = repo.add(make_student(records=[open_record(date(2025, 3, 10))]))

    updated = roster.update_student(stored.student_id, name="Nimal K. Perera", guardian_phone=None)

    assert updated.name == "Nimal K. Perera"
    assert updated.guardian_phone is None
    assert updated.version == stored.version + 1
    assert repo.get_by_id(stored.student_id).attendance_history == stored.attendance_history


def test_update_without_changes_does_not_save(repo, roster):
    sid = repo.add(make_student()).student_id

    roster.update_student(sid)

    assert repo.save_calls == 0


def test_update_rejects_index_number_taken_by_another_student(repo, roster):
    repo.add(make_student("S001"))
    other = repo.add(make_student("S002")).student_id

    with pytest.raises(ValidationError):
        roster.update_student(other, index_number="S001")


def test_update_rejects_unknown_status(repo, roster):
    sid = repo.add(make_student()).student_id

    with pytest.raises(ValidationError, match="Invalid student status"):
        roster.update_student(sid, status="graduated")


def test_update_unknown_student(roster):
    with pytest.raises(NotFound):
        roster.update_student(999, name="Nobody")


def test_deactivated_student_drops_out_of_active_reports(repo, roster, calendar):
    day = date(2025, 3, 10)
    keep = repo.add(make_student("S001", records=[open_record(day)])).student_id
    gone = repo.add(make_student("S002", records=[open_record(day)])).student_id

    roster.deactivate_student(gone)

    assert repo.get_by_id(gone).status == StudentStatus.INACTIVE
    overview = ReportService(repo, calendar=calendar).daily_overview(day)
    assert overview.summary["total_students"] == 1
    assert [r["student_id"] for r in overview.rows] == [keep]
    assert [s.student_id for s in roster.list_students(active_only=True)] == [keep]


def test_delete_student(repo, roster):
    sid = repo.add(make_student()).student_id

    roster.delete_student(sid)

    assert repo.get_by_id(sid) is None
    with pytest.raises(NotFound):
        roster.delete_student(sid)
