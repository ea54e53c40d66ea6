from enum import Enum


class EnrollmentStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


ENROLLMENT_STATUSES = tuple(s.value for s in EnrollmentStatus)
SEMESTERS = (1, 2)

# Quick-filter value meaning "no filter"
ALL_SENTINEL = "ALL"

ACADEMIC_YEAR_PATTERN = r"^[0-9]{4}/[0-9]{4}$"
NIM_PATTERN = r"^[0-9]{8,12}$"
COURSE_CODE_PATTERN = r"^[A-Z]{2,4}[0-9]{3}$"

# Upper bound of the Integer id / semester columns
MAX_INT_VALUE = 2**31 - 1
