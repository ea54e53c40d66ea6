import io
import logging
from typing import Dict, List, Optional, Tuple

from fastapi import status
from openpyxl import Workbook
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_admin.api.query import service as query_service
from enrollment_admin.api.query.schemas import ListingSpec
from enrollment_admin.core.exceptions import ServiceError, ValidationFailed
from enrollment_admin.core.models import Course, Enrollment, Student

from .schemas import (
    CourseChoice,
    EnrollmentRow,
    EnrollmentWrite,
    ExistingCourse,
    ExistingStudent,
    StudentChoice,
)

logger = logging.getLogger(__name__)

Errors = Dict[str, List[str]]

EXPORT_COLUMNS: List[Tuple[str, str]] = [
    ("id", "ID"),
    ("student_nim", "NIM"),
    ("student_name", "Student"),
    ("course_code", "Course code"),
    ("course_name", "Course"),
    ("course_credits", "Credits"),
    ("academic_year", "Academic year"),
    ("semester", "Semester"),
    ("status", "Status"),
    ("created_at", "Created at"),
    ("updated_at", "Updated at"),
]


async def _resolve_student(db: AsyncSession, choice: StudentChoice, errors: Errors) -> Optional[Student]:
    """Existing student by id, or a new (not yet added) Student. Records a field error and returns None on failure."""
    if isinstance(choice, ExistingStudent):
        student = await db.get(Student, choice.id)
        if not student:
            errors["student.id"] = ["Selected student does not exist."]
        return student
    result = await db.execute(select(Student.id).where(Student.nim == choice.nim))
    if result.scalar_one_or_none() is not None:
        errors["student.nim"] = [f"NIM '{choice.nim}' is already registered."]
        return None
    return Student(nim=choice.nim, name=choice.name, email=str(choice.email))


async def _resolve_course(db: AsyncSession, choice: CourseChoice, errors: Errors) -> Optional[Course]:
    if isinstance(choice, ExistingCourse):
        course = await db.get(Course, choice.id)
        if not course:
            errors["course.id"] = ["Selected course does not exist."]
        return course
    result = await db.execute(select(Course.id).where(Course.code == choice.code))
    if result.scalar_one_or_none() is not None:
        errors["course.code"] = [f"Course code '{choice.code}' already exists."]
        return None
    return Course(code=choice.code, name=choice.name, credits=choice.credits)


async def _term_taken(
    db: AsyncSession,
    student: Student,
    course: Course,
    payload: EnrollmentWrite,
    exclude_enrollment_id: Optional[int] = None,
) -> bool:
    """True if the student already takes this course in the same academic year and semester."""
    # rows not yet flushed have no id and cannot collide
    if student.id is None or course.id is None:
        return False
    stmt = select(Enrollment.id).where(
        Enrollment.student_id == student.id,
        Enrollment.course_id == course.id,
        Enrollment.academic_year == payload.enrollment.academic_year,
        Enrollment.semester == payload.enrollment.semester,
    )
    if exclude_enrollment_id is not None:
        stmt = stmt.where(Enrollment.id != exclude_enrollment_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def _resolve_parties(
    db: AsyncSession,
    payload: EnrollmentWrite,
    exclude_enrollment_id: Optional[int] = None,
) -> Tuple[Student, Course]:
    errors: Errors = {}
    student = await _resolve_student(db, payload.student, errors)
    course = await _resolve_course(db, payload.course, errors)
    if student is not None and course is not None:
        if await _term_taken(db, student, course, payload, exclude_enrollment_id):
            errors["enrollment"] = [
                "Student is already enrolled in this course for the selected academic year and semester."
            ]
    if errors:
        raise ValidationFailed(errors)
    return student, course


async def _conflict(db: AsyncSession, e: IntegrityError) -> ServiceError:
    await db.rollback()
    err_msg = str(e.orig) if getattr(e, "orig", None) else str(e)
    logger.warning("Enrollment write rejected by database constraint: %s", err_msg)
    return ServiceError(
        "Could not save enrollment: it conflicts with existing data (duplicate NIM, course code or term).",
        status.HTTP_409_CONFLICT,
    )


async def get_enrollment(db: AsyncSession, enrollment_id: int) -> Optional[EnrollmentRow]:
    return await query_service.get_enrollment_row(db, enrollment_id)


async def create_enrollment(db: AsyncSession, payload: EnrollmentWrite) -> EnrollmentRow:
    """
    Create an enrollment, inserting a new student and/or course first when the
    payload asks for one. Everything is committed once, so a failure leaves no
    orphaned student or course rows.
    """
    student, course = await _resolve_parties(db, payload)
    try:
        db.add_all([student, course])
        await db.flush()
        enrollment = Enrollment(
            student_id=student.id,
            course_id=course.id,
            academic_year=payload.enrollment.academic_year,
            semester=payload.enrollment.semester,
            status=payload.enrollment.status.value,
        )
        db.add(enrollment)
        await db.commit()
    except IntegrityError as e:
        raise await _conflict(db, e)
    logger.info(
        "Created enrollment %s (student=%s, course=%s, term=%s/%s)",
        enrollment.id, student.nim, course.code, enrollment.academic_year, enrollment.semester,
    )
    return await query_service.get_enrollment_row(db, enrollment.id)


async def update_enrollment(
    db: AsyncSession,
    enrollment_id: int,
    payload: EnrollmentWrite,
) -> Optional[EnrollmentRow]:
    enrollment = await db.get(Enrollment, enrollment_id)
    if not enrollment:
        return None

    student, course = await _resolve_parties(db, payload, exclude_enrollment_id=enrollment_id)
    try:
        db.add_all([student, course])
        await db.flush()
        enrollment.student_id = student.id
        enrollment.course_id = course.id
        enrollment.academic_year = payload.enrollment.academic_year
        enrollment.semester = payload.enrollment.semester
        enrollment.status = payload.enrollment.status.value
        await db.commit()
    except IntegrityError as e:
        raise await _conflict(db, e)
    logger.info("Updated enrollment %s (status=%s)", enrollment_id, enrollment.status)
    return await query_service.get_enrollment_row(db, enrollment_id)


async def delete_enrollment(db: AsyncSession, enrollment_id: int) -> bool:
    enrollment = await db.get(Enrollment, enrollment_id)
    if not enrollment:
        return False
    await db.delete(enrollment)
    await db.commit()
    logger.info("Deleted enrollment %s", enrollment_id)
    return True


async def build_export_workbook(db: AsyncSession, spec: ListingSpec) -> bytes:
    """All enrollments matching the listing filters, in listing order, as an .xlsx workbook."""
    rows = await query_service.fetch_enrollment_rows(db, spec, paginate=False)
    wb = Workbook()
    ws = wb.active
    ws.title = "Enrollments"
    ws.append([header for _, header in EXPORT_COLUMNS])
    for row in rows:
        values = row.model_dump()
        line = []
        for key, _ in EXPORT_COLUMNS:
            value = values[key]
            if key == "status":
                value = row.status.value
            elif key in ("created_at", "updated_at") and value is not None:
                # openpyxl cannot write tz-aware datetimes
                value = value.replace(tzinfo=None)
            line.append(value)
        ws.append(line)
    bio = io.BytesIO()
    wb.save(bio)
    logger.info("Exported %d enrollments", len(rows))
    return bio.getvalue()
