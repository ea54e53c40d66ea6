from datetime import datetime
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, EmailStr, Field, field_validator

from enrollment_admin.api.query.schemas import PageMeta
from enrollment_admin.core.enums import (
    ACADEMIC_YEAR_PATTERN,
    COURSE_CODE_PATTERN,
    MAX_INT_VALUE,
    NIM_PATTERN,
    EnrollmentStatus,
)


# ----- Student / course choice: pick an existing row by id or create a new one -----
class ExistingStudent(BaseModel):
    mode: Literal["existing"]
    id: int = Field(..., ge=1, le=MAX_INT_VALUE)


class NewStudent(BaseModel):
    mode: Literal["new"]
    nim: str = Field(..., pattern=NIM_PATTERN, description="8-12 digits, no spaces")
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr

    class Config:
        str_strip_whitespace = True


class ExistingCourse(BaseModel):
    mode: Literal["existing"]
    id: int = Field(..., ge=1, le=MAX_INT_VALUE)


class NewCourse(BaseModel):
    mode: Literal["new"]
    code: str = Field(..., pattern=COURSE_CODE_PATTERN, description="e.g. IF101")
    name: str = Field(..., min_length=3, max_length=120)
    credits: int = Field(..., ge=1, le=6)

    class Config:
        str_strip_whitespace = True

    @field_validator("code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


StudentChoice = Annotated[Union[ExistingStudent, NewStudent], Field(discriminator="mode")]
CourseChoice = Annotated[Union[ExistingCourse, NewCourse], Field(discriminator="mode")]


class EnrollmentFields(BaseModel):
    academic_year: str = Field(..., pattern=ACADEMIC_YEAR_PATTERN, description="YYYY/YYYY, e.g. 2025/2026")
    semester: int = Field(..., ge=1, le=2)
    status: EnrollmentStatus = EnrollmentStatus.DRAFT

    class Config:
        str_strip_whitespace = True

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class EnrollmentWrite(BaseModel):
    """Create / update payload: student and course choices plus the enrollment term and status."""

    student: StudentChoice
    course: CourseChoice
    enrollment: EnrollmentFields


# ----- Responses -----
class EnrollmentRow(BaseModel):
    """One row of the student/course/enrollment join."""

    id: int
    student_id: int
    course_id: int
    student_nim: str
    student_name: str
    student_email: str
    course_code: str
    course_name: str
    course_credits: int
    semester: int
    academic_year: str
    status: EnrollmentStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EnrollmentListResponse(BaseModel):
    data: List[EnrollmentRow]
    meta: PageMeta
