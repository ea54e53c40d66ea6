from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from enrollment_admin.core.models.base import utcnow
from enrollment_admin.db.session import Base


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (UniqueConstraint("nim", name="uq_students_nim"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    nim = Column(String(20), nullable=False)  # institutional id, e.g. "2021000001"
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
