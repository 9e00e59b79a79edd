from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, Student


class StudentRepository(Protocol):
    """Ledger store interface.

    Note (DIP): services depend on this interface, never on a concrete database.
    `save` is last-writer-wins per student document, except that it raises
    VersionConflict when the stored version moved since `student` was read.
    """

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_index_number(self, index_number: str) -> Optional[Student]:
        raise NotImplementedError

    def list_students(self, *, active_only: bool = False) -> Sequence[Student]:
        raise NotImplementedError

    def find_open_records_before(self, day: date) -> Sequence[Student]:
        """Students owning at least one open record dated strictly before `day`."""
        raise NotImplementedError

    def find_open_records_on(self, day: date) -> Sequence[Student]:
        raise NotImplementedError

    def find_by_day(self, student_id: int, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def add(self, student: Student) -> Student:
        raise NotImplementedError

    def save(self, student: Student) -> Student:
        raise NotImplementedError

    def delete(self, student_id: int) -> bool:
        """Remove a student and their whole ledger. False when nothing was there."""
        raise NotImplementedError
