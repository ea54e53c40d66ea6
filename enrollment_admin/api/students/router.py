from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_admin.db.session import get_db

from .schemas import StudentResponse
from . import service

router = APIRouter(prefix="/api/students", tags=["students"])


@router.get("", response_model=List[StudentResponse])
async def list_students(db: AsyncSession = Depends(get_db)) -> List[StudentResponse]:
    """All students ordered by NIM, for the enrollment form's student picker."""
    return await service.list_students(db)
