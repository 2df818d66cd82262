"""Supabase-backed attendance session repository."""

from dataclasses import dataclass
from datetime import datetime, time

from supabase import Client, PostgrestAPIError

from attendance_bot.domain.sessions import AttendanceSession
from attendance_bot.errors import Conflict
from attendance_bot.services.sessions import SessionRepository

_COLUMNS = "id, name, late_threshold, is_active, created_at"
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for attendance sessions."""

    client: Client

    def create_session(self, name: str, late_threshold: time) -> AttendanceSession:
        """Create a session row and return it."""
        response = (
            self.client.table("attendance_sessions")
            .insert(
                {
                    "name": name,
                    "late_threshold": late_threshold.isoformat(),
                    "is_active": False,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _to_session(response.data[0])

    def update_session(
        self, session_id: int, name: str, late_threshold: time
    ) -> AttendanceSession | None:
        """Update a session row."""
        response = (
            self.client.table("attendance_sessions")
            .update({"name": name, "late_threshold": late_threshold.isoformat()})
            .eq("id", session_id)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def get_session(self, session_id: int) -> AttendanceSession | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("attendance_sessions")
            .select(_COLUMNS)
            .eq("id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def list_sessions(self) -> list[AttendanceSession]:
        """Return sessions, newest first."""
        response = (
            self.client.table("attendance_sessions")
            .select(_COLUMNS)
            .order("created_at", desc=True)
            .execute()
        )
        return [_to_session(row) for row in response.data or []]

    def get_active_session(self) -> AttendanceSession | None:
        """Return the active session, if any."""
        response = (
            self.client.table("attendance_sessions")
            .select(_COLUMNS)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def activate_session(self, session_id: int) -> bool:
        """Swap the active session inside one database transaction."""
        try:
            response = self.client.rpc(
                "activate_attendance_session", {"target_id": session_id}
            ).execute()
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise Conflict(
                    "Another session was activated at the same time."
                ) from exc
            raise
        return bool(response.data)

    def delete_session(self, session_id: int) -> bool:
        """Delete a session row."""
        try:
            response = (
                self.client.table("attendance_sessions")
                .delete()
                .eq("id", session_id)
                .execute()
            )
        except PostgrestAPIError as exc:
            if exc.code == _FOREIGN_KEY_VIOLATION:
                raise Conflict(
                    "This session is referenced by attendance records."
                ) from exc
            raise
        return bool(response.data)


def _to_session(row: dict[str, object]) -> AttendanceSession:
    created_at = row.get("created_at")
    return AttendanceSession(
        id=int(row["id"]),
        name=str(row["name"]),
        late_threshold=time.fromisoformat(str(row["late_threshold"])),
        is_active=bool(row.get("is_active")),
        created_at=(
            datetime.fromisoformat(created_at)
            if isinstance(created_at, str) and created_at
            else None
        ),
    )
