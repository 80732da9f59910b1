import uuid

from sqlalchemy import Column, Integer, String, DateTime, func

from attendance_tracker.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Student(Base):
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=_new_id)
    roll_no = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    year = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
