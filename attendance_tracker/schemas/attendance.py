import datetime as dt
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from attendance_tracker.core.enums import AttendanceBand, AttendanceStatus


class SubjectEntry(BaseModel):
    subject: str = Field(..., max_length=255)
    status: AttendanceStatus = AttendanceStatus.PRESENT

    @field_validator("subject")
    @classmethod
    def require_subject(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("All subjects must have a name")
        return value


class ManualAttendanceCreate(BaseModel):
    roll_no: str = Field(..., min_length=1)
    date: dt.date
    entries: List[SubjectEntry] = Field(..., min_length=1)


class DailyAttendanceCreate(BaseModel):
    year: int = Field(..., ge=1, le=4)
    subject: str = Field(..., min_length=1)
    date: dt.date
    # unmarked students default to Present
    statuses: Dict[str, AttendanceStatus] = Field(default_factory=dict)
    # case-insensitive substring over roll number or name; blank means everyone
    search: Optional[str] = None


class AttendanceEntryCreate(BaseModel):
    roll_no: str
    date: dt.date
    subject: str
    status: AttendanceStatus


class AttendanceRecordResponse(BaseModel):
    id: str
    roll_no: str
    date: dt.date
    subject: str
    status: AttendanceStatus
    year: Optional[int] = None
    created_by: Optional[str] = None
    created_at: dt.datetime

    class Config:
        from_attributes = True


class AttendanceSaveResponse(BaseModel):
    success: bool
    message: str
    inserted: int
    preview: bool = False
    records: List[AttendanceEntryCreate] = Field(default_factory=list)


class AttendanceStats(BaseModel):
    present: int
    total: int
    percentage: int


class StudentSummary(BaseModel):
    id: str
    roll_no: str
    name: str
    year: int

    class Config:
        from_attributes = True


class StudentAttendanceResponse(BaseModel):
    student: StudentSummary
    records: List[AttendanceRecordResponse]
    dates: List[dt.date]
    selected_date: Optional[dt.date] = None
    daily_records: List[AttendanceRecordResponse]
    daily: AttendanceStats
    overall: AttendanceStats


class SubjectStatsResponse(BaseModel):
    present: int
    total: int
    percentage: float
    display: str


class StudentAnalyticsResponse(BaseModel):
    roll_no: str
    name: str
    year: int
    subjects: Dict[str, SubjectStatsResponse]
    overall_percentage: float
    overall_display: str
    band: AttendanceBand


class AnalyticsResponse(BaseModel):
    year: int
    subjects: List[str]
    students: List[StudentAnalyticsResponse]


class YearSubjectsResponse(BaseModel):
    year: int
    subjects: List[str]
    default_manual_subjects: List[str]
