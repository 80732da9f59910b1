import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.config import get_settings
from attendance_tracker.core.enums import YEARS, AttendanceStatus
from attendance_tracker.core.exceptions import FileValidationError
from attendance_tracker.crud.attendance import (
    create_attendance_records,
    get_attendance_for_analytics,
    get_attendance_for_roll_no,
)
from attendance_tracker.crud.student import get_student_by_roll_no, get_students, get_students_by_roll_nos
from attendance_tracker.dependencies import get_current_session, get_db
from attendance_tracker.schemas.attendance import (
    AnalyticsResponse,
    AttendanceEntryCreate,
    AttendanceRecordResponse,
    AttendanceSaveResponse,
    AttendanceStats,
    DailyAttendanceCreate,
    ManualAttendanceCreate,
    StudentAnalyticsResponse,
    StudentAttendanceResponse,
    StudentSummary,
    SubjectStatsResponse,
    YearSubjectsResponse,
)
from attendance_tracker.services.aggregator import (
    attendance_band,
    build_subject_breakdown,
    calculate_daily_attendance,
    calculate_overall_attendance,
    format_percentage,
    group_by_date,
    subjects_in,
)
from attendance_tracker.services.export import export_analytics_csv, export_filename
from attendance_tracker.services.identity import Session
from attendance_tracker.services.student_service import filter_students
from attendance_tracker.services.subjects import DEFAULT_MANUAL_SUBJECTS, get_subjects_for_year
from attendance_tracker.services.upload_parser import parse_attendance_upload

# Setup logging
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/attendance", tags=["attendance"])


async def save_records(db: AsyncSession, entries: List[AttendanceEntryCreate], created_by: str, years) -> int:
    try:
        return await create_attendance_records(db, entries, created_by=created_by, years=years)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


def stats_response(stats) -> AttendanceStats:
    return AttendanceStats(present=stats.present, total=stats.total, percentage=stats.percentage)


@router.get("/subjects/{year}", response_model=YearSubjectsResponse)
async def subjects_for_year(year: int):
    """Subject catalogue of a year plus the default rows of the manual entry form"""
    if year not in YEARS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Year must be between 1 and 4")
    return YearSubjectsResponse(
        year=year,
        subjects=get_subjects_for_year(year),
        default_manual_subjects=DEFAULT_MANUAL_SUBJECTS
    )


@router.post("/manual", response_model=AttendanceSaveResponse, status_code=status.HTTP_201_CREATED)
async def manual_attendance(
        payload: ManualAttendanceCreate,
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    """
    Record one student's attendance for one date, one row per subject.
    """
    roll_no = payload.roll_no.strip()
    try:
        student = await get_student_by_roll_no(db, roll_no)
    except SQLAlchemyError as e:
        logger.error(f"Database error looking up student {roll_no}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if not student:
        logger.warning(f"Manual attendance for unknown roll number: {roll_no}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Please select a student")

    entries = [
        AttendanceEntryCreate(roll_no=roll_no, date=payload.date, subject=entry.subject, status=entry.status)
        for entry in payload.entries
    ]
    inserted = await save_records(db, entries, session.user_id, {roll_no: student.year})
    logger.info(f"Saved {inserted} manual attendance rows for {roll_no} on {payload.date}")
    return AttendanceSaveResponse(success=True, message="Attendance saved successfully!", inserted=inserted)


@router.post("/daily", response_model=AttendanceSaveResponse, status_code=status.HTTP_201_CREATED)
async def daily_attendance(
        payload: DailyAttendanceCreate,
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    """
    Record one subject's class for a whole year on one date.

    - **statuses**: roll number -> status; students not listed are Present
    - **search**: only students whose roll number or name contains this text
    """
    try:
        students = await get_students(db, year=payload.year)
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching students of year {payload.year}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if not students:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No students to mark attendance")

    students = filter_students(students, payload.search)
    if not students:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No students match your search")

    entries = [
        AttendanceEntryCreate(
            roll_no=student.roll_no,
            date=payload.date,
            subject=payload.subject,
            status=payload.statuses.get(student.roll_no, AttendanceStatus.PRESENT),
        )
        for student in students
    ]
    inserted = await save_records(db, entries, session.user_id, {s.roll_no: s.year for s in students})
    return AttendanceSaveResponse(
        success=True,
        message=f"Attendance saved for {inserted} students!",
        inserted=inserted
    )


@router.post("/upload", response_model=AttendanceSaveResponse)
async def upload_attendance(
        file: UploadFile = File(..., description="CSV or Excel file with RollNo, Date, Subject, Status columns"),
        preview: bool = Query(False, description="Parse only, insert nothing"),
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    """
    Bulk upload attendance. The whole file is rejected on a missing column,
    a blank cell or a status other than "Present"/"Absent".
    """
    content = await file.read()
    if len(content) > get_settings().max_upload_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size should be less than {get_settings().max_upload_size_mb}MB"
        )

    try:
        entries = parse_attendance_upload(file.filename, content)
    except FileValidationError as e:
        logger.warning(f"Rejected attendance upload {file.filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if preview:
        return AttendanceSaveResponse(
            success=True,
            message=f"Found {len(entries)} attendance records",
            inserted=0,
            preview=True,
            records=entries
        )

    try:
        known = await get_students_by_roll_nos(db, [entry.roll_no for entry in entries])
    except SQLAlchemyError as e:
        logger.error(f"Database error resolving uploaded roll numbers: {str(e)}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    inserted = await save_records(db, entries, session.user_id, {s.roll_no: s.year for s in known})
    return AttendanceSaveResponse(
        success=True,
        message=f"Successfully uploaded {inserted} attendance records!",
        inserted=inserted,
        records=entries
    )


@router.get("/student/{roll_no}", response_model=StudentAttendanceResponse)
async def student_attendance(
        roll_no: str,
        selected_date: Optional[date] = Query(None, alias="date", description="Day to summarise; newest by default"),
        db: AsyncSession = Depends(get_db)
):
    """
    Public lookup of a student's attendance by roll number.
    """
    roll_no = roll_no.strip()
    if not roll_no:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please enter a roll number")

    try:
        student = await get_student_by_roll_no(db, roll_no)
        if not student:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No record found.")

        records = await get_attendance_for_roll_no(db, roll_no)
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching attendance for {roll_no}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    grouped = group_by_date(records)
    dates = list(grouped)
    if selected_date is None and dates:
        selected_date = dates[0]
    daily_records = grouped.get(selected_date, []) if selected_date else []

    return StudentAttendanceResponse(
        student=StudentSummary.model_validate(student),
        records=[AttendanceRecordResponse.model_validate(record) for record in records],
        dates=dates,
        selected_date=selected_date,
        daily_records=[AttendanceRecordResponse.model_validate(record) for record in daily_records],
        daily=stats_response(calculate_daily_attendance(daily_records)),
        overall=stats_response(calculate_overall_attendance(records)),
    )


async def year_breakdown(db: AsyncSession, year: int):
    try:
        students = await get_students(db, year=year)
        rows = await get_attendance_for_analytics(db)
    except SQLAlchemyError as e:
        logger.error(f"Database error building analytics for year {year}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return build_subject_breakdown(students, rows)


@router.get("/analytics", response_model=AnalyticsResponse)
async def analytics(
        year: int = Query(1, ge=1, le=4),
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    """Per-subject attendance of every student in a year"""
    breakdown = await year_breakdown(db, year)
    students = [
        StudentAnalyticsResponse(
            roll_no=row.roll_no,
            name=row.name,
            year=row.year,
            subjects={
                subject: SubjectStatsResponse(
                    present=stats.present,
                    total=stats.total,
                    percentage=stats.percentage,
                    display=format_percentage(stats.percentage),
                )
                for subject, stats in sorted(row.subjects.items())
            },
            overall_percentage=row.overall_percentage,
            overall_display=format_percentage(row.overall_percentage),
            band=attendance_band(row.overall_percentage),
        )
        for row in breakdown
    ]
    return AnalyticsResponse(year=year, subjects=subjects_in(breakdown), students=students)


@router.get("/analytics/export")
async def export_analytics(
        year: int = Query(1, ge=1, le=4),
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    breakdown = await year_breakdown(db, year)
    if not breakdown:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No students found for Year {year}")

    filename = export_filename(year)
    logger.info(f"Exporting analytics of year {year} for {len(breakdown)} students as {filename}")
    return Response(
        content=export_analytics_csv(breakdown),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
