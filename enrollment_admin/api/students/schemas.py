from datetime import datetime

from pydantic import BaseModel


class StudentResponse(BaseModel):
    id: int
    nim: str
    name: str
    email: str
    created_at: datetime

    class Config:
        from_attributes = True
