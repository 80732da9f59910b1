"""
Attendance aggregation.

Pure functions over attendance entries already fetched from the record
store. An entry is anything with ``status`` (and, depending on the
operation, ``date``, ``subject`` and ``roll_no``) attributes: ORM rows,
SQLAlchemy ``Row`` objects and plain dataclasses all work.

Percentages use round-half-up, so 12.5 becomes 13 and 62.45 is shown
as "62.5". Python's built-in ``round`` is half-to-even and is not used.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List

from attendance_tracker.core.enums import AttendanceBand, AttendanceStatus

GOOD_THRESHOLD = 75.0
FAIR_THRESHOLD = 50.0


@dataclass(frozen=True)
class AttendanceStats:
    present: int
    total: int
    percentage: int


@dataclass
class SubjectStats:
    present: int = 0
    total: int = 0
    percentage: float = 0.0


@dataclass
class StudentBreakdown:
    roll_no: str
    name: str
    year: int
    subjects: Dict[str, SubjectStats] = field(default_factory=dict)
    overall_percentage: float = 0.0


def round_half_up(value: float) -> int:
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def ratio_percentage(present: int, total: int) -> Decimal:
    """present / total * 100 computed from the integers, so 23/40 is exactly 57.5."""
    if total <= 0:
        return Decimal(0)
    return Decimal(present * 100) / Decimal(total)


def format_percentage(value: float) -> str:
    """One decimal place, half-up: 62.5 -> "62.5", 200/3 -> "66.7"."""
    return str(Decimal(repr(float(value))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def is_present(entry: Any) -> bool:
    return entry.status == AttendanceStatus.PRESENT


def calculate_attendance(entries: Iterable[Any]) -> AttendanceStats:
    entries = list(entries)
    total = len(entries)
    present = sum(1 for entry in entries if is_present(entry))
    percentage = int(ratio_percentage(present, total).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return AttendanceStats(present=present, total=total, percentage=percentage)


def calculate_daily_attendance(entries_for_one_date: Iterable[Any]) -> AttendanceStats:
    return calculate_attendance(entries_for_one_date)


def calculate_overall_attendance(entries_for_one_student: Iterable[Any]) -> AttendanceStats:
    """Present over total across every date and subject combined."""
    return calculate_attendance(entries_for_one_student)


def group_by_date(entries: Iterable[Any]) -> "OrderedDict[Any, List[Any]]":
    """Group entries by date, newest date first, keeping entry order inside a date."""
    grouped: Dict[Any, List[Any]] = {}
    for entry in entries:
        grouped.setdefault(entry.date, []).append(entry)
    return OrderedDict((day, grouped[day]) for day in sorted(grouped, reverse=True))


def mean_subject_percentage(subjects: Dict[str, SubjectStats]) -> float:
    """Unweighted mean of per-subject percentages, 0 when there are none."""
    if not subjects:
        return 0.0
    total = sum(ratio_percentage(stats.present, stats.total) for stats in subjects.values())
    return float(total / len(subjects))


def build_subject_breakdown(students: Iterable[Any], entries: Iterable[Any]) -> List[StudentBreakdown]:
    """
    Per-student, per-subject attendance.

    Students keep the order they are given in. Entries whose roll number
    matches no student are dropped. Each student's overall percentage is
    the mean of their subject percentages, not present/total over all
    subjects; see ``calculate_overall_attendance`` for the latter.
    """
    breakdown: "OrderedDict[str, StudentBreakdown]" = OrderedDict()
    for student in students:
        breakdown[student.roll_no] = StudentBreakdown(
            roll_no=student.roll_no,
            name=student.name,
            year=student.year,
        )

    for entry in entries:
        row = breakdown.get(entry.roll_no)
        if row is None:
            continue
        stats = row.subjects.setdefault(entry.subject, SubjectStats())
        stats.total += 1
        if is_present(entry):
            stats.present += 1

    for row in breakdown.values():
        for stats in row.subjects.values():
            stats.percentage = float(ratio_percentage(stats.present, stats.total))
        row.overall_percentage = mean_subject_percentage(row.subjects)

    return list(breakdown.values())


def subjects_in(breakdown: Iterable[StudentBreakdown]) -> List[str]:
    names = set()
    for row in breakdown:
        names.update(row.subjects)
    return sorted(names)


def attendance_band(percentage: float) -> AttendanceBand:
    if percentage >= GOOD_THRESHOLD:
        return AttendanceBand.GOOD
    if percentage >= FAIR_THRESHOLD:
        return AttendanceBand.FAIR
    return AttendanceBand.LOW
