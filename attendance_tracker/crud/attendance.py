import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from attendance_tracker.models.attendance import AttendanceRecord
from attendance_tracker.schemas.attendance import AttendanceEntryCreate

logger = logging.getLogger(__name__)


async def create_attendance_records(
        db: AsyncSession,
        entries: List[AttendanceEntryCreate],
        created_by: Optional[str],
        years: Optional[Dict[str, int]] = None
) -> int:
    """
    Insert attendance rows in one batch.

    Args:
        db: Database session
        entries: Rows to insert
        created_by: Identifier of the signed-in user
        years: roll number -> year of the student at recording time

    Returns:
        Number of inserted rows

    Raises:
        SQLAlchemyError: If the batch insert fails
    """
    years = years or {}
    try:
        logger.info(f"Inserting {len(entries)} attendance record(s) by user {created_by}")
        db.add_all([
            AttendanceRecord(
                roll_no=entry.roll_no,
                date=entry.date,
                subject=entry.subject,
                status=entry.status.value,
                year=years.get(entry.roll_no),
                created_by=created_by,
            )
            for entry in entries
        ])
        await db.commit()
        return len(entries)

    except SQLAlchemyError as e:
        logger.error(f"Database error inserting attendance records: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def get_attendance_for_roll_no(db: AsyncSession, roll_no: str) -> List[AttendanceRecord]:
    """All rows of one student, newest date first, subjects alphabetical within a date"""
    query = (
        select(AttendanceRecord)
        .where(AttendanceRecord.roll_no == roll_no)
        .order_by(AttendanceRecord.date.desc(), AttendanceRecord.subject.asc())
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_attendance_for_analytics(db: AsyncSession):
    """Only the columns the breakdown needs: roll number, subject, status"""
    query = select(AttendanceRecord.roll_no, AttendanceRecord.subject, AttendanceRecord.status)
    result = await db.execute(query)
    return result.all()
