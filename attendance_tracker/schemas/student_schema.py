from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator


class StudentCreate(BaseModel):
    roll_no: str = Field(..., max_length=64)
    name: str = Field(..., max_length=255)
    year: int = Field(1, ge=1, le=4)

    @field_validator("roll_no", "name")
    @classmethod
    def strip_and_require(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please fill in all fields")
        return value


class StudentBulkCreate(BaseModel):
    students: List[StudentCreate] = Field(..., min_length=1)


class StudentResponse(BaseModel):
    id: str
    roll_no: str
    name: str
    year: int
    created_at: datetime

    class Config:
        from_attributes = True


class StudentListResponse(BaseModel):
    total: int
    students: List[StudentResponse]


class StudentUploadResponse(BaseModel):
    success: bool
    message: str
    inserted: int
    preview: bool = False
    students: List[StudentCreate]


class DeleteResponse(BaseModel):
    success: bool
    message: str
    deleted: int
