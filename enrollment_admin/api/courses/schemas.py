from datetime import datetime

from pydantic import BaseModel


class CourseResponse(BaseModel):
    id: int
    code: str
    name: str
    credits: int
    created_at: datetime

    class Config:
        from_attributes = True
