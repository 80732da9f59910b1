from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from attendance_tracker.services.aggregator import StudentBreakdown, format_percentage, subjects_in


def export_filename(year: int, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"attendance-year{year}-{today.isoformat()}.csv"


def analytics_frame(breakdown: Iterable[StudentBreakdown], subjects: Optional[List[str]] = None) -> pd.DataFrame:
    """One row per student with the same percentage strings the analytics table shows."""
    breakdown = list(breakdown)
    if subjects is None:
        subjects = subjects_in(breakdown)

    columns = ["Roll No", "Name", "Year", *subjects, "Overall %"]
    rows = []
    for student in breakdown:
        row = [student.roll_no, student.name, student.year]
        for subject in subjects:
            stats = student.subjects.get(subject)
            row.append(format_percentage(stats.percentage) if stats else "")
        row.append(format_percentage(student.overall_percentage))
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def export_analytics_csv(breakdown: Iterable[StudentBreakdown], subjects: Optional[List[str]] = None) -> str:
    frame = analytics_frame(breakdown, subjects)
    return frame.to_csv(index=False, lineterminator="\n")
