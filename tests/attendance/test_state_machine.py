from datetime import date, datetime, timezone

from src.qrattend.qrattend.attendance import state_machine
from src.qrattend.qrattend.core.enums import AttendanceStatus, EventKind
from src.qrattend.qrattend.students.model import AttendanceRecord, Provenance
from tests.fakes import make_student, open_record

GATE = Provenance(scan_location="Main Entrance", device_info="Gate scanner")


def test_first_scan_of_the_day_creates_entered_record(calendar):
    student = make_student()

    t = state_machine.apply_scan(student, datetime(2025, 3, 10, 9, 0), GATE, calendar=calendar)

    assert t.event == EventKind.ENTRY
    assert len(t.student.attendance_history) == 1
    rec = t.student.attendance_history[0]
    assert rec.date == date(2025, 3, 10)
    assert rec.status == AttendanceStatus.ENTERED
    assert rec.entry_time == datetime(2025, 3, 10, 9, 0)
    assert rec.leave_time is None
    assert rec.scan_location == "Main Entrance"


def test_second_scan_closes_the_same_record(calendar):
    student = make_student()
    first = state_machine.apply_scan(student, datetime(2025, 3, 10, 9, 0), GATE, calendar=calendar)

    second = state_machine.apply_scan(first.student, datetime(2025, 3, 10, 15, 0), GATE, calendar=calendar)

    assert second.event == EventKind.EXIT
    assert len(second.student.attendance_history) == 1
    rec = second.student.attendance_history[0]
    assert rec.status == AttendanceStatus.LEFT
    assert rec.entry_time == datetime(2025, 3, 10, 9, 0)
    assert rec.leave_time == datetime(2025, 3, 10, 15, 0)


def test_third_scan_reopens_instead_of_adding_a_record(calendar):
    student = make_student()
    for hour in (9, 12):
        student = state_machine.apply_scan(student, datetime(2025, 3, 10, hour, 0), GATE, calendar=calendar).student

    third = state_machine.apply_scan(student, datetime(2025, 3, 10, 14, 0), GATE, calendar=calendar)

    assert third.event == EventKind.ENTRY
    assert len(third.student.attendance_history) == 1
    rec = third.student.attendance_history[0]
    assert rec.status == AttendanceStatus.ENTERED
    assert rec.entry_time == datetime(2025, 3, 10, 14, 0)
    assert rec.leave_time is None


def test_scan_only_looks_at_todays_record(calendar):
    student = make_student(records=[open_record(date(2025, 3, 9))])

    t = state_machine.apply_scan(student, datetime(2025, 3, 10, 9, 0), GATE, calendar=calendar)

    assert t.event == EventKind.ENTRY
    assert len(t.student.attendance_history) == 2
    # Yesterday's open record is left for the sweep.
    assert t.student.record_for(date(2025, 3, 9)).leave_time is None


def test_aware_scan_is_bucketed_on_the_local_day(calendar):
    student = make_student()
    utc_evening = datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc)

    t = state_machine.apply_scan(student, utc_evening, GATE, calendar=calendar)

    # 20:00 UTC is 01:30 the next morning in Colombo.
    assert t.record.date == date(2025, 3, 11)
    assert t.record.entry_time == datetime(2025, 3, 11, 1, 30)


def test_manual_absent_keeps_timestamps(calendar):
    student = make_student(records=[open_record(date(2025, 3, 10))])

    t = state_machine.apply_manual(
        student, AttendanceStatus.ABSENT, datetime(2025, 3, 10, 11, 0), GATE, calendar=calendar, actor_id="admin-1"
    )

    assert t.event == EventKind.MANUAL
    assert t.record.status == AttendanceStatus.ABSENT
    assert t.record.entry_time == datetime(2025, 3, 10, 8, 0)
    assert t.record.leave_time is None
    assert t.record.marked_by == "admin-1"
    assert not t.record.is_open


def test_manual_left_fills_leave_but_never_overwrites(calendar):
    student = make_student(records=[open_record(date(2025, 3, 10))])
    first = state_machine.apply_manual(
        student, AttendanceStatus.LEFT, datetime(2025, 3, 10, 13, 0), GATE, calendar=calendar
    )

    again = state_machine.apply_manual(
        first.student, AttendanceStatus.LEFT, datetime(2025, 3, 10, 16, 0), GATE, calendar=calendar
    )

    assert first.record.leave_time == datetime(2025, 3, 10, 13, 0)
    assert again.record.leave_time == datetime(2025, 3, 10, 13, 0)


def test_manual_entered_on_closed_day_reopens(calendar):
    closed = AttendanceRecord(
        date=date(2025, 3, 10),
        status=AttendanceStatus.LEFT,
        entry_time=datetime(2025, 3, 10, 8, 0),
        leave_time=datetime(2025, 3, 10, 12, 0),
    )
    student = make_student(records=[closed])

    t = state_machine.apply_manual(
        student, AttendanceStatus.ENTERED, datetime(2025, 3, 10, 13, 0), GATE, calendar=calendar
    )

    assert t.record.status == AttendanceStatus.ENTERED
    assert t.record.entry_time == datetime(2025, 3, 10, 13, 0)
    assert t.record.leave_time is None


def test_manual_present_on_new_day_creates_record_with_entry(calendar):
    student = make_student()

    t = state_machine.apply_manual(
        student, AttendanceStatus.PRESENT, datetime(2025, 3, 10, 10, 0), GATE, calendar=calendar
    )

    assert len(t.student.attendance_history) == 1
    assert t.record.status == AttendanceStatus.PRESENT
    assert t.record.entry_time == datetime(2025, 3, 10, 10, 0)


def test_close_record_never_ends_before_entry():
    late_arrival = open_record(date(2025, 3, 10), hour=19)
    student = make_student(records=[late_arrival])

    t = state_machine.close_record(student, late_arrival, datetime(2025, 3, 10, 18, 30))

    assert t.event == EventKind.AUTO_CHECKOUT
    assert t.record.status == AttendanceStatus.LEFT
    assert t.record.leave_time == datetime(2025, 3, 10, 19, 0)


def test_remove_and_clear_history():
    a = AttendanceRecord(date=date(2025, 3, 9), status=AttendanceStatus.PRESENT, record_id=1)
    b = AttendanceRecord(date=date(2025, 3, 10), status=AttendanceStatus.ABSENT, record_id=2)
    student = make_student(records=[a, b])

    assert state_machine.remove_record(student, 1).attendance_history == (b,)
    assert state_machine.clear_history(student).attendance_history == ()
