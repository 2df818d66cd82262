"""Request bodies and response payloads for the HTTP API."""

from datetime import date, time

from pydantic import BaseModel, Field

from attendance_bot.domain.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    RankingEntry,
    RosterEntry,
)
from attendance_bot.domain.people import Person
from attendance_bot.domain.sessions import AttendanceSession


class ScanRequest(BaseModel):
    """Scanned identity token."""

    token: str


class ManualAttendanceRequest(BaseModel):
    """Status set by an operator for a person and day."""

    person_id: str
    status: AttendanceStatus
    on_date: date | None = Field(default=None, alias="date")


class SessionRequest(BaseModel):
    """Session name and late threshold."""

    name: str
    late_threshold: time


class PersonRequest(BaseModel):
    """Roster entry fields."""

    name: str
    contact: str | None = None


class PhotoRequestBody(BaseModel):
    """Optional override for the photo request wording."""

    is_change_request: bool | None = None


class BroadcastRequest(BaseModel):
    """Text sent to every contact on the roster."""

    message: str


def person_payload(person: Person) -> dict[str, object]:
    return {
        "id": person.id,
        "name": person.name,
        "contact": person.contact,
        "photo_ref": person.photo_ref,
        "photo_request_state": person.photo_request_state.value,
        "photo_requested_at": (
            person.photo_requested_at.isoformat()
            if person.photo_requested_at
            else None
        ),
    }


def session_payload(session: AttendanceSession) -> dict[str, object]:
    return {
        "id": session.id,
        "name": session.name,
        "late_threshold": session.late_threshold.isoformat(),
        "is_active": session.is_active,
    }


def record_payload(record: AttendanceRecord) -> dict[str, object]:
    return {
        "person_id": record.person_id,
        "date": record.attendance_date.isoformat(),
        "session_id": record.session_id,
        "scan_time": record.scan_time.isoformat() if record.scan_time else None,
        "status": record.status.value,
        "code": record.status.report_code,
    }


def roster_payload(entry: RosterEntry) -> dict[str, object]:
    return {
        "person_id": entry.person_id,
        "name": entry.name,
        "status": entry.status.value if entry.status else None,
        "scan_time": entry.scan_time.isoformat() if entry.scan_time else None,
    }


def ranking_payload(entry: RankingEntry) -> dict[str, object]:
    return {"person_id": entry.person_id, "name": entry.name, "score": entry.score}

