"""
CSV / Excel parsing for bulk uploads.

Everything here runs before the record store is touched: a file that
fails validation raises ``FileValidationError`` and nothing is inserted.
"""
import io
import logging
import os
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from attendance_tracker.core.enums import AttendanceStatus
from attendance_tracker.core.exceptions import FileValidationError
from attendance_tracker.schemas.attendance import AttendanceEntryCreate
from attendance_tracker.schemas.student_schema import StudentCreate

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}
ALLOWED_EXTENSIONS = CSV_EXTENSIONS | EXCEL_EXTENSIONS

# normalized header -> field name
HEADER_SYNONYMS: Dict[str, str] = {
    "rollno": "roll_no",
    "rollnumber": "roll_no",
    "name": "name",
    "year": "year",
    "date": "date",
    "subject": "subject",
    "status": "status",
}

STUDENT_COLUMNS = ("roll_no", "name", "year")
ATTENDANCE_COLUMNS = ("roll_no", "date", "subject", "status")

STATUS_VALUES = {status.value for status in AttendanceStatus}

INVALID_ATTENDANCE_FORMAT = (
    "Invalid file format. Ensure all rows have RollNo, Date, Subject, and Status columns."
)
INVALID_STATUS = 'Status must be either "Present" or "Absent"'
NO_VALID_STUDENTS = "No valid students found. Ensure columns: RollNo, Name, Year"


def normalize_header(header) -> str:
    return "".join(ch for ch in str(header).lower() if ch.isalnum())


def read_table(filename: str, content: bytes) -> pd.DataFrame:
    """Read the first sheet (or the CSV) into a frame of strings with canonical column names."""
    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise FileValidationError("Unsupported file type. Upload a .csv, .xlsx or .xls file.")
    if not content:
        raise FileValidationError("File is empty")

    try:
        if extension in CSV_EXTENSIONS:
            frame = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False)
        else:
            frame = pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=str)
    except pd.errors.EmptyDataError:
        raise FileValidationError("File is empty")
    except Exception as e:
        logger.warning(f"Failed to parse upload {filename}: {e}")
        raise FileValidationError("Failed to parse file. Please ensure it is a valid Excel or CSV file.")

    frame = frame.fillna("")
    renamed = {}
    for column in frame.columns:
        canonical = HEADER_SYNONYMS.get(normalize_header(column))
        if canonical and canonical not in renamed.values():
            renamed[column] = canonical
    frame = frame.rename(columns=renamed)

    if frame.empty:
        raise FileValidationError("File is empty")
    return frame


def missing_columns(frame: pd.DataFrame, required) -> List[str]:
    return [column for column in required if column not in frame.columns]


def parse_year(value: str) -> Optional[int]:
    value = value.strip()
    if not value:
        return 1
    try:
        return int(float(value))
    except ValueError:
        return None


def parse_date(value: str) -> Optional[date]:
    # spreadsheet cells arrive as "2024-01-15 00:00:00"
    value = value.strip()[:10]
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_student_upload(filename: str, content: bytes) -> List[StudentCreate]:
    frame = read_table(filename, content)

    missing = missing_columns(frame, STUDENT_COLUMNS)
    if missing:
        logger.warning(f"Student upload {filename} is missing columns: {missing}")
        raise FileValidationError(NO_VALID_STUDENTS)

    students = []
    for row in frame.to_dict(orient="records"):
        roll_no = str(row["roll_no"]).strip()
        name = str(row["name"]).strip()
        year = parse_year(str(row["year"]))
        if not roll_no or not name or year is None or not 1 <= year <= 4:
            continue
        students.append(StudentCreate(roll_no=roll_no, name=name, year=year))

    if not students:
        raise FileValidationError(NO_VALID_STUDENTS)

    logger.info(f"Parsed {len(students)} valid students out of {len(frame)} rows from {filename}")
    return students


def parse_attendance_upload(filename: str, content: bytes) -> List[AttendanceEntryCreate]:
    frame = read_table(filename, content)

    if missing_columns(frame, ATTENDANCE_COLUMNS):
        raise FileValidationError(INVALID_ATTENDANCE_FORMAT)

    rows = frame.to_dict(orient="records")
    for row in rows:
        if not all(str(row[column]).strip() for column in ATTENDANCE_COLUMNS):
            raise FileValidationError(INVALID_ATTENDANCE_FORMAT)

    # status must match exactly, no trimming or case folding
    bad_status = [row["status"] for row in rows if row["status"] not in STATUS_VALUES]
    if bad_status:
        logger.warning(f"Attendance upload {filename} has invalid statuses: {sorted(set(bad_status))}")
        raise FileValidationError(INVALID_STATUS)

    records = []
    for line, row in enumerate(rows, start=2):
        record_date = parse_date(str(row["date"]))
        if record_date is None:
            raise FileValidationError(f"Invalid date '{row['date']}' on line {line}. Use YYYY-MM-DD.")
        records.append(
            AttendanceEntryCreate(
                roll_no=str(row["roll_no"]).strip(),
                date=record_date,
                subject=str(row["subject"]).strip(),
                status=AttendanceStatus(row["status"]),
            )
        )

    logger.info(f"Parsed {len(records)} attendance records from {filename}")
    return records
