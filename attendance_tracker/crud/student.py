import logging
from typing import List, Optional

from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from attendance_tracker.models.student import Student
from attendance_tracker.schemas.student_schema import StudentCreate

logger = logging.getLogger(__name__)


async def get_students(db: AsyncSession, year: Optional[int] = None) -> List[Student]:
    """
    Get students ordered by year, then roll number.

    Args:
        db: Database session
        year: Only students of this year when given

    Returns:
        List of Student instances
    """
    query = select(Student)
    if year is not None:
        query = query.where(Student.year == year)
    query = query.order_by(Student.year.asc(), Student.roll_no.asc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_student_by_id(db: AsyncSession, student_id: str) -> Optional[Student]:
    result = await db.execute(select(Student).where(Student.id == student_id))
    return result.scalar_one_or_none()


async def get_student_by_roll_no(db: AsyncSession, roll_no: str) -> Optional[Student]:
    result = await db.execute(select(Student).where(Student.roll_no == roll_no))
    return result.scalar_one_or_none()


async def get_students_by_roll_nos(db: AsyncSession, roll_nos: List[str]) -> List[Student]:
    if not roll_nos:
        return []
    result = await db.execute(select(Student).where(Student.roll_no.in_(set(roll_nos))))
    return list(result.scalars().all())


async def count_students_in_year(db: AsyncSession, year: int) -> int:
    result = await db.execute(select(func.count()).select_from(Student).where(Student.year == year))
    return result.scalar() or 0


async def create_students(db: AsyncSession, students: List[StudentCreate]) -> List[Student]:
    """
    Insert one or many students in a single commit.

    Args:
        db: Database session
        students: Validated student rows

    Returns:
        Created Student instances

    Raises:
        SQLAlchemyError: If the batch fails; no row of the batch is kept
    """
    try:
        logger.info(f"Inserting {len(students)} student(s)")
        db_students = [
            Student(roll_no=student.roll_no, name=student.name, year=student.year)
            for student in students
        ]
        db.add_all(db_students)
        await db.commit()
        for db_student in db_students:
            await db.refresh(db_student)

        logger.info(f"Inserted {len(db_students)} student(s)")
        return db_students

    except SQLAlchemyError as e:
        logger.error(f"Database error inserting students: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def delete_student(db: AsyncSession, student_id: str) -> bool:
    try:
        result = await db.execute(delete(Student).where(Student.id == student_id))
        await db.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted student with ID: {student_id}")
        else:
            logger.warning(f"Cannot delete: Student not found with ID: {student_id}")
        return deleted

    except SQLAlchemyError as e:
        logger.error(f"Database error deleting student {student_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def delete_students_in_year(db: AsyncSession, year: int) -> int:
    """Delete every student whose year equals `year`. Returns the number of rows removed."""
    try:
        result = await db.execute(delete(Student).where(Student.year == year))
        await db.commit()
        logger.info(f"Deleted {result.rowcount} student(s) from year {year}")
        return result.rowcount

    except SQLAlchemyError as e:
        logger.error(f"Database error deleting students of year {year}: {str(e)}", exc_info=True)
        await db.rollback()
        raise
