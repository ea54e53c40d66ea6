"""Course enrollment of a student for one academic term (KRS row)."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint

from enrollment_admin.core.models.base import utcnow
from enrollment_admin.db.session import Base


class Enrollment(Base):
    """
    A student cannot take the same course twice in one term, so
    (student_id, course_id, academic_year, semester) is unique.
    Students and courses referenced here cannot be deleted.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "course_id", "academic_year", "semester",
            name="uq_enrollments_student_course_term",
        ),
        CheckConstraint("semester IN (1, 2)", name="ck_enrollments_semester"),
        CheckConstraint(
            "status IN ('DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED')",
            name="ck_enrollments_status",
        ),
        CheckConstraint("academic_year LIKE '____/____'", name="ck_enrollments_academic_year"),
        Index("idx_enrollments_term_status", "academic_year", "semester", "status"),
        Index("idx_enrollments_student", "student_id"),
        Index("idx_enrollments_course", "course_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(
        Integer,
        ForeignKey("students.id", name="fk_enrollments_student", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    )
    course_id = Column(
        Integer,
        ForeignKey("courses.id", name="fk_enrollments_course", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    )
    academic_year = Column(String(9), nullable=False)  # e.g. "2025/2026"
    semester = Column(Integer, nullable=False)  # 1 | 2
    status = Column(String(10), nullable=False, default="DRAFT")  # DRAFT | SUBMITTED | APPROVED | REJECTED
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
