from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_admin.core.models import Course

from .schemas import CourseResponse


async def list_courses(db: AsyncSession) -> List[CourseResponse]:
    result = await db.execute(select(Course).order_by(Course.code))
    return [CourseResponse.model_validate(c) for c in result.scalars().all()]
