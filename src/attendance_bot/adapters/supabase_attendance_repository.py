"""Supabase-backed attendance record repository."""

from dataclasses import dataclass
from datetime import date, time

from supabase import Client, PostgrestAPIError

from attendance_bot.domain.attendance import AttendanceRecord, AttendanceStatus
from attendance_bot.errors import Conflict
from attendance_bot.services.attendance import AttendanceRepository

_COLUMNS = "person_id, attendance_date, session_id, scan_time, status"
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseAttendanceRepository(AttendanceRepository):
    """Supabase implementation for attendance records."""

    client: Client

    def get_record(self, person_id: str, on_date: date) -> AttendanceRecord | None:
        """Return the record for a person and day, if present."""
        response = (
            self.client.table("attendance")
            .select(_COLUMNS)
            .eq("person_id", person_id)
            .eq("attendance_date", on_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_record(response.data[0])

    def insert_record(self, record: AttendanceRecord) -> None:
        """Insert a record; the unique (person, date) key rejects duplicates."""
        try:
            self.client.table("attendance").insert(_to_row(record)).execute()
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise Conflict(
                    "Attendance is already recorded for today.",
                    code="already_recorded",
                ) from exc
            raise

    def upsert_record(self, record: AttendanceRecord) -> None:
        """Insert or replace the record for that person and day."""
        self.client.table("attendance").upsert(
            _to_row(record), on_conflict="person_id,attendance_date"
        ).execute()

    def delete_record(self, person_id: str, on_date: date) -> bool:
        """Delete the record for a person and day."""
        response = (
            self.client.table("attendance")
            .delete()
            .eq("person_id", person_id)
            .eq("attendance_date", on_date.isoformat())
            .execute()
        )
        return bool(response.data)

    def list_records(
        self, start: date | None = None, end: date | None = None
    ) -> list[AttendanceRecord]:
        """Return records within the inclusive date range."""
        query = self.client.table("attendance").select(_COLUMNS)
        if start is not None:
            query = query.gte("attendance_date", start.isoformat())
        if end is not None:
            query = query.lte("attendance_date", end.isoformat())
        response = query.order("attendance_date").execute()
        return [_to_record(row) for row in response.data or []]

    def list_records_for_person(self, person_id: str) -> list[AttendanceRecord]:
        """Return a person's records, oldest first."""
        response = (
            self.client.table("attendance")
            .select(_COLUMNS)
            .eq("person_id", person_id)
            .order("attendance_date")
            .execute()
        )
        return [_to_record(row) for row in response.data or []]

    def has_records_for_session(self, session_id: int) -> bool:
        """Return true when a record references the session."""
        response = (
            self.client.table("attendance")
            .select("person_id")
            .eq("session_id", session_id)
            .limit(1)
            .execute()
        )
        return bool(response.data)


def _to_row(record: AttendanceRecord) -> dict[str, object]:
    return {
        "person_id": record.person_id,
        "attendance_date": record.attendance_date.isoformat(),
        "session_id": record.session_id,
        "scan_time": record.scan_time.isoformat() if record.scan_time else None,
        "status": record.status.value,
    }


def _to_record(row: dict[str, object]) -> AttendanceRecord:
    scan_time = row.get("scan_time")
    return AttendanceRecord(
        person_id=str(row["person_id"]),
        attendance_date=date.fromisoformat(str(row["attendance_date"])),
        session_id=int(row["session_id"]),
        scan_time=time.fromisoformat(scan_time) if isinstance(scan_time, str) else None,
        status=AttendanceStatus(row["status"]),
    )
