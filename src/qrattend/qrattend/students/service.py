from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from ..common.locks import StudentLocks
from ..common.validators import require_non_empty
from ..core.enums import StudentStatus
from ..core.exceptions import NotFound, ValidationError
from .model import Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)

_UNSET = object()


def _clean_phone(value) -> Optional[str]:
    if value is None:
        return None
    phone = str(value).strip()
    return phone or None


def require_student_status(value) -> StudentStatus:
    if isinstance(value, StudentStatus):
        return value
    try:
        return StudentStatus(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in StudentStatus)
        raise ValidationError(f"Invalid student status. Must be one of: {allowed}")


class StudentService:
    """Use case: manage the student roster (admin).

    Profile edits go through the same per-student lock and version check as
    scans, so an edit never drops a concurrent attendance write.
    """

    def __init__(self, students: StudentRepository, *, locks: StudentLocks | None = None):
        self._students = students
        self._locks = locks or StudentLocks()

    def get_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFound("Student not found")
        return student

    def list_students(self, *, active_only: bool = False) -> Sequence[Student]:
        return self._students.list_students(active_only=active_only)

    def register_student(
        self,
        *,
        index_number: str,
        name: str,
        guardian_phone: str | None = None,
    ) -> Student:
        index_number = require_non_empty(index_number, "indexNumber")
        name = require_non_empty(name, "name")

        if self._students.get_by_index_number(index_number):
            raise ValidationError("Student with this index number already exists")

        student = self._students.add(
            Student(
                student_id=None,
                index_number=index_number,
                name=name,
                guardian_phone=_clean_phone(guardian_phone),
            )
        )
        logger.info("Registered student %s (%s)", student.student_id, student.index_number)
        return student

    def update_student(
        self,
        student_id: int,
        *,
        index_number: str | None = None,
        name: str | None = None,
        guardian_phone=_UNSET,
        status: StudentStatus | str | None = None,
    ) -> Student:
        """Change profile fields; omitted fields keep their value.

        Pass `guardian_phone=None` to clear the number.
        """
        changes = {}
        if index_number is not None:
            changes["index_number"] = require_non_empty(index_number, "indexNumber")
        if name is not None:
            changes["name"] = require_non_empty(name, "name")
        if guardian_phone is not _UNSET:
            changes["guardian_phone"] = _clean_phone(guardian_phone)
        if status is not None:
            changes["status"] = require_student_status(status)

        with self._locks.hold(student_id):
            student = self.get_student(student_id)
            new_index = changes.get("index_number")
            if new_index and new_index != student.index_number:
                other = self._students.get_by_index_number(new_index)
                if other and other.student_id != student.student_id:
                    raise ValidationError("Student with this index number already exists")
            if not changes:
                return student
            saved = self._students.save(replace(student, **changes))

        logger.info("Updated student %s: %s", student_id, ", ".join(sorted(changes)))
        return saved

    def deactivate_student(self, student_id: int) -> Student:
        """Keep the ledger but drop the student from active rosters and reports."""
        return self.update_student(student_id, status=StudentStatus.INACTIVE)

    def delete_student(self, student_id: int) -> None:
        with self._locks.hold(student_id):
            if not self._students.delete(student_id):
                raise NotFound("Student not found")
        logger.warning("Deleted student %s and their attendance history", student_id)
