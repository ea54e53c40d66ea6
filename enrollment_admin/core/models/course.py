from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, UniqueConstraint

from enrollment_admin.core.models.base import utcnow
from enrollment_admin.db.session import Base


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        UniqueConstraint("code", name="uq_courses_code"),
        CheckConstraint("credits BETWEEN 1 AND 6", name="ck_courses_credits"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(10), nullable=False)  # e.g. "IF101"
    name = Column(String(120), nullable=False)
    credits = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
