from sqlalchemy import Column, Integer, String, DateTime, Date
from sqlalchemy.sql import func

from attendance_tracker.database import Base
from attendance_tracker.models.student import _new_id


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(String(36), primary_key=True, default=_new_id)
    # joined to students by value; no foreign key
    roll_no = Column(String(64), nullable=False, index=True)
    date = Column(Date, nullable=False)
    subject = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False)
    year = Column(Integer, nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
