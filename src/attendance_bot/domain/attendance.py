"""Domain models for attendance records."""

from dataclasses import dataclass
from datetime import date, time
from enum import Enum


class AttendanceStatus(str, Enum):
    """Closed set of attendance statuses, valued as stored in the database."""

    ON_TIME = "Tepat Waktu"
    LATE = "Terlambat"
    MANUAL_PRESENT = "Hadir (Manual)"
    SICK = "Sakit"
    EXCUSED = "Izin"
    UNEXCUSED_ABSENT = "Alfa"

    @property
    def report_code(self) -> str:
        """Single-letter code used in attendance recaps."""
        return _REPORT_CODES[self]

    @property
    def score(self) -> int:
        """Leaderboard points earned by this status."""
        return _SCORES[self]

    @property
    def is_present(self) -> bool:
        return self in {
            AttendanceStatus.ON_TIME,
            AttendanceStatus.LATE,
            AttendanceStatus.MANUAL_PRESENT,
        }


_REPORT_CODES: dict[AttendanceStatus, str] = {
    AttendanceStatus.ON_TIME: "H",
    AttendanceStatus.LATE: "T",
    AttendanceStatus.MANUAL_PRESENT: "H",
    AttendanceStatus.SICK: "S",
    AttendanceStatus.EXCUSED: "I",
    AttendanceStatus.UNEXCUSED_ABSENT: "A",
}

_SCORES: dict[AttendanceStatus, int] = {
    AttendanceStatus.ON_TIME: 2,
    AttendanceStatus.LATE: 1,
    AttendanceStatus.MANUAL_PRESENT: 1,
    AttendanceStatus.SICK: 0,
    AttendanceStatus.EXCUSED: 0,
    AttendanceStatus.UNEXCUSED_ABSENT: 0,
}


@dataclass(frozen=True)
class AttendanceRecord:
    """One attendance entry per person per calendar day."""

    person_id: str
    attendance_date: date
    session_id: int
    scan_time: time | None
    status: AttendanceStatus


@dataclass(frozen=True)
class RosterEntry:
    """A person with their status for a given day, if any."""

    person_id: str
    name: str
    status: AttendanceStatus | None
    scan_time: time | None


@dataclass(frozen=True)
class RankingEntry:
    """Leaderboard row."""

    person_id: str
    name: str
    score: int
