from enum import Enum


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class AttendanceBand(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    LOW = "low"


YEARS = (1, 2, 3, 4)
