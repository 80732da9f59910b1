import logging
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.core.exceptions import ConfirmationMismatchError
from attendance_tracker.crud.student import count_students_in_year, delete_students_in_year

logger = logging.getLogger(__name__)


def confirmation_matches(expected_count: int, confirmation: Optional[str]) -> bool:
    """The typed confirmation must be exactly the student count, e.g. "42"."""
    return confirmation == str(expected_count)


async def delete_year_with_confirmation(db: AsyncSession, year: int, confirmation: Optional[str]) -> int:
    """
    Delete all students of a year once the caller has typed the current count.

    Raises:
        ConfirmationMismatchError: confirmation differs from the count; nothing is deleted
    """
    count = await count_students_in_year(db, year)
    if not confirmation_matches(count, confirmation):
        logger.warning(f"Bulk delete of year {year} aborted: expected confirmation {count!r}, got {confirmation!r}")
        raise ConfirmationMismatchError(
            f"Type {count} to confirm deleting all {count} students of year {year}"
        )
    return await delete_students_in_year(db, year)


def filter_students(students: List[Any], search: Optional[str]) -> List[Any]:
    """Students whose roll number or name contains ``search``, ignoring case."""
    term = (search or "").strip().lower()
    if not term:
        return list(students)
    return [s for s in students if term in s.roll_no.lower() or term in s.name.lower()]
