import io
from datetime import date

import pandas as pd
import pytest

from attendance_tracker.core.enums import AttendanceStatus
from attendance_tracker.core.exceptions import FileValidationError
from attendance_tracker.services.upload_parser import (
    INVALID_ATTENDANCE_FORMAT,
    INVALID_STATUS,
    NO_VALID_STUDENTS,
    normalize_header,
    parse_attendance_upload,
    parse_student_upload,
)


def csv_bytes(text: str) -> bytes:
    return text.strip().encode("utf-8") + b"\n"


def xlsx_bytes(frame: pd.DataFrame) -> bytes:
    buffer = io.BytesIO()
    frame.to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


@pytest.mark.parametrize("header", ["RollNo", "roll_no", "ROLLNO", "Roll No"])
def test_roll_number_synonyms(header):
    assert normalize_header(header) == "rollno"


def test_attendance_csv_is_parsed():
    content = csv_bytes("""
RollNo,Date,Subject,Status
21A01,2024-01-15,Maths,Present
21A02,2024-01-15,Maths,Absent
""")
    records = parse_attendance_upload("day.csv", content)

    assert [r.roll_no for r in records] == ["21A01", "21A02"]
    assert records[0].date == date(2024, 1, 15)
    assert records[1].status == AttendanceStatus.ABSENT


def test_attendance_headers_are_case_insensitive():
    content = csv_bytes("""
roll_no,date,subject,status
21A01,2024-01-15,Maths,Present
""")
    assert len(parse_attendance_upload("day.csv", content)) == 1


def test_attendance_missing_status_column_is_rejected():
    content = csv_bytes("""
RollNo,Date,Subject
21A01,2024-01-15,Maths
""")
    with pytest.raises(FileValidationError, match="Invalid file format"):
        parse_attendance_upload("day.csv", content)


@pytest.mark.parametrize("bad_status", ["present", "Late", "PRESENT", "Absent "])
def test_attendance_status_must_match_exactly(bad_status):
    content = csv_bytes(f"""
RollNo,Date,Subject,Status
21A02,2024-01-15,Maths,{bad_status}
21A01,2024-01-15,Maths,Present
""")
    with pytest.raises(FileValidationError) as excinfo:
        parse_attendance_upload("day.csv", content)
    assert str(excinfo.value) == INVALID_STATUS


def test_attendance_blank_cell_is_rejected():
    content = csv_bytes("""
RollNo,Date,Subject,Status
21A01,2024-01-15,,Present
""")
    with pytest.raises(FileValidationError) as excinfo:
        parse_attendance_upload("day.csv", content)
    assert str(excinfo.value) == INVALID_ATTENDANCE_FORMAT


def test_attendance_bad_date_is_rejected():
    content = csv_bytes("""
RollNo,Date,Subject,Status
21A01,15/01/2024,Maths,Present
""")
    with pytest.raises(FileValidationError, match="Invalid date"):
        parse_attendance_upload("day.csv", content)


def test_attendance_xlsx_with_date_cells():
    frame = pd.DataFrame({
        "RollNo": ["21A01", "21A02"],
        "Date": pd.to_datetime(["2024-02-01", "2024-02-01"]),
        "Subject": ["Physics", "Physics"],
        "Status": ["Present", "Absent"],
    })
    records = parse_attendance_upload("day.xlsx", xlsx_bytes(frame))
    assert [r.date for r in records] == [date(2024, 2, 1), date(2024, 2, 1)]


def test_student_csv_filters_invalid_rows():
    content = csv_bytes("""
RollNo,Name,Year
21A01,Asha,1
21A02,,2
21A03,Ravi,7
21A04,Meena,
21A05,Kiran,abc
""")
    students = parse_student_upload("students.csv", content)

    assert [(s.roll_no, s.name, s.year) for s in students] == [("21A01", "Asha", 1), ("21A04", "Meena", 1)]


def test_student_xlsx_lowercase_headers():
    frame = pd.DataFrame({"roll_no": ["22B01"], "name": ["Nila"], "year": [3]})
    [student] = parse_student_upload("students.xlsx", xlsx_bytes(frame))
    assert (student.roll_no, student.name, student.year) == ("22B01", "Nila", 3)


def test_student_missing_year_column_is_rejected():
    content = csv_bytes("""
RollNo,Name
21A01,Asha
""")
    with pytest.raises(FileValidationError) as excinfo:
        parse_student_upload("students.csv", content)
    assert str(excinfo.value) == NO_VALID_STUDENTS


def test_empty_file_is_rejected():
    with pytest.raises(FileValidationError, match="File is empty"):
        parse_student_upload("students.csv", b"")


def test_unsupported_extension_is_rejected():
    with pytest.raises(FileValidationError, match="Unsupported file type"):
        parse_attendance_upload("day.txt", b"RollNo,Date,Subject,Status\n")


def test_garbage_excel_is_rejected():
    with pytest.raises(FileValidationError, match="Failed to parse file"):
        parse_attendance_upload("day.xlsx", b"definitely not a workbook")
