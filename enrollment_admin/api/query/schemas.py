"""Listing query: validated filter rules, sort rules, and the parsed listing spec."""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from enrollment_admin.core.enums import EnrollmentStatus

Scalar = Union[int, float, str]


class FilterOperator(str, Enum):
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    EQUALS = "equals"
    BETWEEN = "between"
    IN = "in"


class FilterLogic(str, Enum):
    AND = "AND"
    OR = "OR"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ContainsRule(BaseModel):
    """Case-insensitive substring match."""

    field: str
    op: Literal["contains"] = "contains"
    value: str = Field(..., min_length=1)


class StartsWithRule(BaseModel):
    """Case-insensitive prefix match."""

    field: str
    op: Literal["startsWith"] = "startsWith"
    value: str = Field(..., min_length=1)


class EqualsRule(BaseModel):
    field: str
    op: Literal["equals"] = "equals"
    value: Scalar


class BetweenRule(BaseModel):
    """Inclusive range: low <= column <= high."""

    field: str
    op: Literal["between"] = "between"
    value: Tuple[Scalar, Scalar]


class InRule(BaseModel):
    field: str
    op: Literal["in"] = "in"
    value: List[Scalar] = Field(..., min_length=1)


FilterRule = Annotated[
    Union[ContainsRule, StartsWithRule, EqualsRule, BetweenRule, InRule],
    Field(discriminator="op"),
]


class SortRule(BaseModel):
    """Sort by one field."""

    field: str
    dir: SortDirection = SortDirection.ASC


class ListingSpec(BaseModel):
    """Validated listing request: pagination, quick filters, search, advanced filters and sort."""

    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=100)

    # quick filters; None means not applied
    status: Optional[EnrollmentStatus] = None
    semester: Optional[int] = None
    academic_year: Optional[str] = None

    search: Optional[str] = Field(None, description="Trimmed search term, unescaped")

    filters: List[FilterRule] = Field(default_factory=list)
    filter_logic: FilterLogic = FilterLogic.AND

    sorts: List[SortRule] = Field(default_factory=list)
    fallback_sort: SortRule = Field(
        default_factory=lambda: SortRule(field="id", dir=SortDirection.DESC),
        description="Single-column sort used only when `sorts` is empty",
    )


class PageMeta(BaseModel):
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0, description="Number of rows matching the filters")
    total_pages: int = Field(..., ge=0)
