import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.config import get_settings
from attendance_tracker.core.enums import YEARS
from attendance_tracker.core.exceptions import ConfirmationMismatchError, FileValidationError
from attendance_tracker.crud.student import create_students, delete_student, get_student_by_id, get_students
from attendance_tracker.dependencies import get_current_session, get_db
from attendance_tracker.schemas.student_schema import (
    DeleteResponse,
    StudentBulkCreate,
    StudentCreate,
    StudentListResponse,
    StudentResponse,
    StudentUploadResponse,
)
from attendance_tracker.services.identity import Session
from attendance_tracker.services.student_service import delete_year_with_confirmation
from attendance_tracker.services.upload_parser import parse_student_upload

# Setup logger
logger = logging.getLogger(__name__)

students_router = APIRouter(prefix="/students", tags=["students"])


async def insert_students(db: AsyncSession, students: List[StudentCreate]) -> List[StudentResponse]:
    """Insert a batch and translate store errors into HTTP errors"""
    try:
        created = await create_students(db, students)
        return [StudentResponse.model_validate(student) for student in created]

    except IntegrityError as e:
        logger.error(f"Database integrity error inserting students: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Roll number already exists: {e.orig}"
        )
    except SQLAlchemyError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@students_router.get("", response_model=StudentListResponse)
async def list_students(
        year: Optional[int] = Query(None, ge=1, le=4, description="Filter by academic year"),
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    """
    List students ordered by year, then roll number.

    - **year**: Only this year (1-4) when given
    """
    try:
        students = await get_students(db, year=year)
        logger.info(f"Returning {len(students)} students (year: {year})")
        return StudentListResponse(
            total=len(students),
            students=[StudentResponse.model_validate(student) for student in students]
        )
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching students: {str(e)}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@students_router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def add_student(
        student: StudentCreate,
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    logger.info(f"Adding student {student.roll_no} to year {student.year}")
    created = await insert_students(db, [student])
    return created[0]


@students_router.post("/bulk", response_model=List[StudentResponse], status_code=status.HTTP_201_CREATED)
async def add_students(
        payload: StudentBulkCreate,
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    return await insert_students(db, payload.students)


@students_router.post("/upload", response_model=StudentUploadResponse)
async def upload_students(
        file: UploadFile = File(..., description="CSV or Excel file with RollNo, Name, Year columns"),
        preview: bool = Query(False, description="Parse only, insert nothing"),
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    """
    Bulk upload students from a spreadsheet.

    Rows missing a roll number or name, or with a year outside 1-4, are skipped.
    """
    content = await file.read()
    if len(content) > get_settings().max_upload_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size should be less than {get_settings().max_upload_size_mb}MB"
        )

    try:
        students = parse_student_upload(file.filename, content)
    except FileValidationError as e:
        logger.warning(f"Rejected student upload {file.filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if preview:
        return StudentUploadResponse(
            success=True,
            message=f"Found {len(students)} valid students",
            inserted=0,
            preview=True,
            students=students
        )

    await insert_students(db, students)
    return StudentUploadResponse(
        success=True,
        message=f"Successfully uploaded {len(students)} students!",
        inserted=len(students),
        students=students
    )


@students_router.delete("/year/{year}", response_model=DeleteResponse)
async def delete_students_of_year(
        year: int,
        confirmation: Optional[str] = Query(None, description="Must equal the current number of students in the year"),
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    if year not in YEARS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Year must be between 1 and 4")
    try:
        deleted = await delete_year_with_confirmation(db, year, confirmation)
        return DeleteResponse(
            success=True,
            message=f"Deleted {deleted} students from year {year}",
            deleted=deleted
        )
    except ConfirmationMismatchError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@students_router.delete("/{student_id}", response_model=DeleteResponse)
async def remove_student(
        student_id: str,
        confirm: bool = Query(False, description="Set to true to confirm the deletion"),
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deletion must be confirmed with confirm=true"
        )
    try:
        student = await get_student_by_id(db, student_id)
        if not student:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

        await delete_student(db, student_id)
        return DeleteResponse(success=True, message="Student deleted successfully!", deleted=1)

    except SQLAlchemyError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
