"""Enrollment listing query: filter predicates, sort keys, count and page fetch over student/course/enrollment."""

import math
from typing import Any, List, Optional

from sqlalchemy import String, and_, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_admin.api.enrollments.schemas import EnrollmentListResponse, EnrollmentRow
from enrollment_admin.core.models import Course, Enrollment, Student

from .fields import FIELD_COLUMNS, INTEGER_FIELDS, SEARCH_COLUMNS, TIE_BREAK_FIELD
from .schemas import (
    BetweenRule,
    ContainsRule,
    EqualsRule,
    FilterLogic,
    FilterRule,
    InRule,
    ListingSpec,
    PageMeta,
    SortDirection,
    StartsWithRule,
)

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input only matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def enrollment_rows_stmt():
    """Base select over the three-way join, one labelled column per EnrollmentRow field."""
    return (
        select(
            Enrollment.id,
            Enrollment.student_id,
            Enrollment.course_id,
            Student.nim.label("student_nim"),
            Student.name.label("student_name"),
            Student.email.label("student_email"),
            Course.code.label("course_code"),
            Course.name.label("course_name"),
            Course.credits.label("course_credits"),
            Enrollment.semester,
            Enrollment.academic_year,
            Enrollment.status,
            Enrollment.created_at,
            Enrollment.updated_at,
        )
        .select_from(Enrollment)
        .join(Student, Student.id == Enrollment.student_id)
        .join(Course, Course.id == Enrollment.course_id)
    )


def _text_column(field: str):
    """Column usable in a pattern match; integer columns are matched on their text form."""
    col = FIELD_COLUMNS[field]
    return cast(col, String) if field in INTEGER_FIELDS else col


def _rule_clause(rule: FilterRule):
    col = FIELD_COLUMNS[rule.field]
    if isinstance(rule, ContainsRule):
        return _text_column(rule.field).ilike(f"%{escape_like(rule.value)}%", escape=LIKE_ESCAPE)
    if isinstance(rule, StartsWithRule):
        return _text_column(rule.field).ilike(f"{escape_like(rule.value)}%", escape=LIKE_ESCAPE)
    if isinstance(rule, EqualsRule):
        return col == rule.value
    if isinstance(rule, BetweenRule):
        low, high = rule.value
        return col.between(low, high)
    if isinstance(rule, InRule):
        return col.in_(rule.value)
    raise TypeError(f"Unsupported filter rule: {rule!r}")


def _rule_group(rules: List[FilterRule], logic: FilterLogic):
    """Combine advanced rules by the chosen logic; None when there are no rules."""
    if not rules:
        return None
    clauses = [_rule_clause(r) for r in rules]
    if len(clauses) == 1:
        return clauses[0]
    return or_(*clauses) if logic == FilterLogic.OR else and_(*clauses)


def build_conditions(spec: ListingSpec) -> List[Any]:
    """
    Top-level predicates, all ANDed together:
    quick filters, then search across nim/name/course code, then the advanced rule group.
    """
    conditions: List[Any] = []
    if spec.status is not None:
        conditions.append(Enrollment.status == spec.status.value)
    if spec.semester is not None:
        conditions.append(Enrollment.semester == spec.semester)
    if spec.academic_year is not None:
        conditions.append(Enrollment.academic_year == spec.academic_year)

    if spec.search:
        pattern = f"%{escape_like(spec.search)}%"
        conditions.append(or_(*[col.ilike(pattern, escape=LIKE_ESCAPE) for col in SEARCH_COLUMNS]))

    group = _rule_group(spec.filters, spec.filter_logic)
    if group is not None:
        conditions.append(group)
    return conditions


def build_order_by(spec: ListingSpec) -> List[Any]:
    """Sort keys in order, then enrollment id descending as tie-break (only if id is not already a key)."""
    keys = spec.sorts or [spec.fallback_sort]
    clauses = []
    for key in keys:
        col = FIELD_COLUMNS[key.field]
        clauses.append(col.asc() if key.dir == SortDirection.ASC else col.desc())
    if not any(key.field == TIE_BREAK_FIELD for key in keys):
        clauses.append(FIELD_COLUMNS[TIE_BREAK_FIELD].desc())
    return clauses


def filtered_stmt(spec: ListingSpec):
    stmt = enrollment_rows_stmt()
    conditions = build_conditions(spec)
    if conditions:
        stmt = stmt.where(and_(*conditions))
    return stmt


async def count_enrollments(db: AsyncSession, spec: ListingSpec) -> int:
    count_stmt = select(func.count()).select_from(filtered_stmt(spec).subquery())
    result = await db.execute(count_stmt)
    return result.scalar() or 0


async def fetch_enrollment_rows(
    db: AsyncSession,
    spec: ListingSpec,
    paginate: bool = True,
) -> List[EnrollmentRow]:
    stmt = filtered_stmt(spec).order_by(*build_order_by(spec))
    if paginate:
        stmt = stmt.offset((spec.page - 1) * spec.page_size).limit(spec.page_size)
    result = await db.execute(stmt)
    return [EnrollmentRow.model_validate(dict(row)) for row in result.mappings().all()]


async def run_listing(db: AsyncSession, spec: ListingSpec) -> EnrollmentListResponse:
    """
    Execute the listing: one COUNT over the filtered query, one page fetch.
    The two reads are not wrapped in a transaction; a concurrent write in
    between may leave `total` slightly off.
    """
    total = await count_enrollments(db, spec)
    data = await fetch_enrollment_rows(db, spec)
    total_pages = math.ceil(total / spec.page_size) if spec.page_size else 0
    return EnrollmentListResponse(
        data=data,
        meta=PageMeta(
            page=spec.page,
            page_size=spec.page_size,
            total=total,
            total_pages=total_pages,
        ),
    )


async def get_enrollment_row(db: AsyncSession, enrollment_id: int) -> Optional[EnrollmentRow]:
    result = await db.execute(enrollment_rows_stmt().where(Enrollment.id == enrollment_id))
    row = result.mappings().one_or_none()
    return EnrollmentRow.model_validate(dict(row)) if row else None
