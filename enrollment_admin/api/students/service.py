from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_admin.core.models import Student

from .schemas import StudentResponse


async def list_students(db: AsyncSession) -> List[StudentResponse]:
    result = await db.execute(select(Student).order_by(Student.nim))
    return [StudentResponse.model_validate(s) for s in result.scalars().all()]
