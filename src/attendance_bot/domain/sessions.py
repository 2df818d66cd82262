"""Domain models for attendance sessions."""

from dataclasses import dataclass
from datetime import datetime, time


@dataclass(frozen=True)
class AttendanceSession:
    """A named session with a late-arrival threshold."""

    id: int
    name: str
    late_threshold: time
    is_active: bool
    created_at: datetime | None = None
