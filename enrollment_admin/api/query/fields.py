"""Listing field whitelist shared by filter and sort building."""

from typing import Dict, FrozenSet, Tuple

from sqlalchemy.orm import InstrumentedAttribute

from enrollment_admin.core.models import Course, Enrollment, Student

# external field name -> column on the student/course/enrollment join
FIELD_COLUMNS: Dict[str, InstrumentedAttribute] = {
    "student_nim": Student.nim,
    "student_name": Student.name,
    "course_code": Course.code,
    "course_name": Course.name,
    "semester": Enrollment.semester,
    "academic_year": Enrollment.academic_year,
    "status": Enrollment.status,
    "id": Enrollment.id,
}

INTEGER_FIELDS: FrozenSet[str] = frozenset({"semester", "id"})

# free-text search matches any of these (case-insensitive contains)
SEARCH_COLUMNS: Tuple[InstrumentedAttribute, ...] = (Student.nim, Student.name, Course.code)

TIE_BREAK_FIELD = "id"
