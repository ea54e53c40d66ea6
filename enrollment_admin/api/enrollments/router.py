from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_admin.api.query import service as query_service
from enrollment_admin.api.query.parser import parse_listing_params
from enrollment_admin.core.enums import MAX_INT_VALUE
from enrollment_admin.core.exceptions import ServiceError
from enrollment_admin.db.session import get_db

from .schemas import EnrollmentListResponse, EnrollmentRow, EnrollmentWrite
from . import service

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])


def listing_params(
    page: Optional[str] = Query(None, description="1-based page number"),
    page_size: Optional[str] = Query(None, description="Rows per page, clamped to 1..100"),
    status: Optional[str] = Query(None, description="DRAFT, SUBMITTED, APPROVED, REJECTED or ALL"),
    semester: Optional[str] = Query(None, description="1, 2 or ALL"),
    academic_year: Optional[str] = Query(None, description="YYYY/YYYY or ALL"),
    search: Optional[str] = Query(None, description="Matches NIM, student name or course code"),
    filters: Optional[str] = Query(None, description='JSON array of {"field", "op", "value"}'),
    filter_logic: Optional[str] = Query(None, description="AND (default) or OR"),
    sorts: Optional[str] = Query(None, description='JSON array of {"field", "dir"}'),
    sort_by: Optional[str] = Query(None, description="Single sort field, used when `sorts` is empty"),
    sort_dir: Optional[str] = Query(None, description="asc or desc"),
) -> Dict[str, Any]:
    """
    Raw listing parameters, all accepted as plain strings. Invalid values are
    dropped by the parser instead of failing the request.
    """
    return {
        "page": page,
        "page_size": page_size,
        "status": status,
        "semester": semester,
        "academic_year": academic_year,
        "search": search,
        "filters": filters,
        "filter_logic": filter_logic,
        "sorts": sorts,
        "sort_by": sort_by,
        "sort_dir": sort_dir,
    }


@router.get("", response_model=EnrollmentListResponse)
async def list_enrollments(
    params: Dict[str, Any] = Depends(listing_params),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentListResponse:
    """
    Paginated enrollment listing over students, courses and enrollments.

    - **status / semester / academic_year**: quick filters; `ALL` disables one
    - **search**: case-insensitive match on NIM, student name or course code
    - **filters**: advanced rules; operators `contains`, `startsWith`, `equals`, `between`, `in`
    - **filter_logic**: how advanced rules combine (`AND` / `OR`)
    - **sorts**: multi-column sort; falls back to `sort_by` / `sort_dir`
    """
    spec = parse_listing_params(params)
    return await query_service.run_listing(db, spec)


@router.get("/export")
async def export_enrollments(
    params: Dict[str, Any] = Depends(listing_params),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """
    Download every enrollment matching the listing filters (no pagination).

    The file is an Excel workbook (`.xlsx`), not CSV.
    """
    spec = parse_listing_params(params)
    content = await service.build_export_workbook(db, spec)
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=enrollments.xlsx"},
    )


@router.get("/{enrollment_id}", response_model=EnrollmentRow)
async def get_enrollment(
    enrollment_id: int = Path(..., ge=1, le=MAX_INT_VALUE),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentRow:
    row = await service.get_enrollment(db, enrollment_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")
    return row


@router.post("", response_model=EnrollmentRow, status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    payload: EnrollmentWrite,
    db: AsyncSession = Depends(get_db),
) -> EnrollmentRow:
    """Create an enrollment; `student` / `course` either reference an existing row (`mode: existing`) or create one (`mode: new`)."""
    try:
        return await service.create_enrollment(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{enrollment_id}", response_model=EnrollmentRow)
async def update_enrollment(
    payload: EnrollmentWrite,
    enrollment_id: int = Path(..., ge=1, le=MAX_INT_VALUE),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentRow:
    try:
        row = await service.update_enrollment(db, enrollment_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")
    return row


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enrollment(
    enrollment_id: int = Path(..., ge=1, le=MAX_INT_VALUE),
    db: AsyncSession = Depends(get_db),
) -> None:
    deleted = await service.delete_enrollment(db, enrollment_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")
