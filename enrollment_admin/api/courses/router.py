from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_admin.db.session import get_db

from .schemas import CourseResponse
from . import service

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.get("", response_model=List[CourseResponse])
async def list_courses(db: AsyncSession = Depends(get_db)) -> List[CourseResponse]:
    return await service.list_courses(db)
