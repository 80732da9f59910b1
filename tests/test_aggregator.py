from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from attendance_tracker.core.enums import AttendanceBand, AttendanceStatus
from attendance_tracker.services.aggregator import (
    attendance_band,
    build_subject_breakdown,
    calculate_attendance,
    calculate_daily_attendance,
    calculate_overall_attendance,
    format_percentage,
    group_by_date,
    round_half_up,
    subjects_in,
)

P = AttendanceStatus.PRESENT.value
A = AttendanceStatus.ABSENT.value


@dataclass
class Entry:
    status: str
    roll_no: str = "R1"
    subject: str = "Maths"
    date: date = date(2024, 1, 15)


@dataclass
class StudentRow:
    roll_no: str
    name: str
    year: int = 1


def entries(*statuses, **kwargs):
    return [Entry(status=s, **kwargs) for s in statuses]


def test_empty_collection_is_zero():
    stats = calculate_attendance([])
    assert (stats.present, stats.total, stats.percentage) == (0, 0, 0)


@pytest.mark.parametrize("size", [1, 2, 7, 50])
def test_all_present_is_hundred(size):
    assert calculate_attendance(entries(*[P] * size)).percentage == 100


def test_three_of_four():
    stats = calculate_attendance(entries(P, P, P, A))
    assert (stats.present, stats.total, stats.percentage) == (3, 4, 75)


def test_one_of_three_rounds_down():
    assert calculate_attendance(entries(P, A, A)).percentage == 33


def test_half_rounds_up():
    # 1/8 = 12.5%; half-to-even would give 12
    assert calculate_attendance(entries(P, A, A, A, A, A, A, A)).percentage == 13
    assert round_half_up(62.5) == 63


@pytest.mark.parametrize("present,total,expected", [
    (23, 40, 58),
    (29, 200, 15),
    (113, 200, 57),
])
def test_exact_half_percentages_round_up(present, total, expected):
    # the float present / total * 100 lands just under .5 for these
    rows = entries(*([P] * present + [A] * (total - present)))
    assert calculate_attendance(rows).percentage == expected


def test_subject_display_uses_exact_ratio():
    students = [StudentRow("R1", "Asha")]
    rows = entries(*([P] * 23 + [A] * 17), subject="Maths") + entries(*([P] + [A] * 399), subject="Physics")
    (row,) = build_subject_breakdown(students, rows)
    assert format_percentage(row.subjects["Maths"].percentage) == "57.5"
    assert format_percentage(row.subjects["Physics"].percentage) == "0.3"
    assert row.overall_percentage == 28.875


def test_enum_statuses_are_counted():
    stats = calculate_attendance([Entry(status=AttendanceStatus.PRESENT), Entry(status=AttendanceStatus.ABSENT)])
    assert stats.present == 1


def test_daily_and_overall_share_the_formula():
    rows = entries(P, A, P)
    assert calculate_daily_attendance(rows) == calculate_overall_attendance(rows)


def test_group_by_date_newest_first():
    rows = [
        Entry(status=P, date=date(2024, 1, 1), subject="A"),
        Entry(status=A, date=date(2024, 1, 3), subject="A"),
        Entry(status=P, date=date(2024, 1, 1), subject="B"),
    ]
    grouped = group_by_date(rows)
    assert list(grouped) == [date(2024, 1, 3), date(2024, 1, 1)]
    assert [e.subject for e in grouped[date(2024, 1, 1)]] == ["A", "B"]
    assert calculate_daily_attendance(grouped[date(2024, 1, 1)]).percentage == 100


def test_breakdown_mean_of_subjects_diverges_from_combined_ratio():
    rows = (
        entries(P, P, roll_no="R1", subject="Maths")
        + entries(P, A, A, A, roll_no="R1", subject="Physics")
    )
    [student] = build_subject_breakdown([StudentRow("R1", "Asha")], rows)

    assert student.subjects["Maths"].percentage == 100
    assert student.subjects["Physics"].percentage == 25
    assert student.overall_percentage == 62.5
    assert format_percentage(student.overall_percentage) == "62.5"

    combined = calculate_overall_attendance(rows)
    assert (combined.present, combined.total, combined.percentage) == (3, 6, 50)
    assert combined.percentage != student.overall_percentage


def test_breakdown_drops_unknown_roll_numbers():
    rows = entries(P, roll_no="R1") + entries(A, A, roll_no="GHOST")
    result = build_subject_breakdown([StudentRow("R1", "Asha"), StudentRow("R2", "Ravi")], rows)

    assert [row.roll_no for row in result] == ["R1", "R2"]
    assert result[0].subjects["Maths"].total == 1
    assert result[1].subjects == {}
    assert result[1].overall_percentage == 0


def test_duplicate_sessions_accumulate():
    rows = entries(P, A, roll_no="R1", subject="Maths")
    [student] = build_subject_breakdown([StudentRow("R1", "Asha")], rows)
    assert student.subjects["Maths"].total == 2
    assert student.subjects["Maths"].percentage == 50


def test_subjects_in_is_sorted_union():
    rows = entries(P, roll_no="R1", subject="Physics") + entries(P, roll_no="R2", subject="Chemistry")
    result = build_subject_breakdown([StudentRow("R1", "A"), StudentRow("R2", "B")], rows)
    assert subjects_in(result) == ["Chemistry", "Physics"]


@pytest.mark.parametrize("value,expected", [
    (100.0, "100.0"),
    (0, "0.0"),
    (200 / 3, "66.7"),
    (100 / 3, "33.3"),
    (62.45, "62.5"),
])
def test_format_percentage(value, expected):
    assert format_percentage(value) == expected


@pytest.mark.parametrize("value,band", [
    (75, AttendanceBand.GOOD),
    (74.9, AttendanceBand.FAIR),
    (50, AttendanceBand.FAIR),
    (49.9, AttendanceBand.LOW),
])
def test_attendance_band(value, band):
    assert attendance_band(value) == band
