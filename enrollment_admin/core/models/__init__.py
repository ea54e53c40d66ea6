from enrollment_admin.core.models.student import Student
from enrollment_admin.core.models.course import Course
from enrollment_admin.core.models.enrollment import Enrollment

__all__ = [
    "Course",
    "Enrollment",
    "Student",
]
