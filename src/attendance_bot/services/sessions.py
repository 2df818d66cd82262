"""Attendance session registry."""

import logging
from dataclasses import dataclass
from datetime import time
from typing import Protocol

from attendance_bot.domain.sessions import AttendanceSession
from attendance_bot.errors import Conflict, NotFound, ValidationError
from attendance_bot.services.events import EventSink, publish_log

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for attendance sessions."""

    def create_session(self, name: str, late_threshold: time) -> AttendanceSession:
        """Create a new, inactive session and return it."""

    def update_session(
        self, session_id: int, name: str, late_threshold: time
    ) -> AttendanceSession | None:
        """Update a session, returning None if it does not exist."""

    def get_session(self, session_id: int) -> AttendanceSession | None:
        """Return a session by id, if present."""

    def list_sessions(self) -> list[AttendanceSession]:
        """Return all sessions, newest first."""

    def get_active_session(self) -> AttendanceSession | None:
        """Return the active session, if any."""

    def activate_session(self, session_id: int) -> bool:
        """Atomically make ``session_id`` the only active session.

        Returns False, leaving every session untouched, if it does not exist.
        """

    def delete_session(self, session_id: int) -> bool:
        """Delete a session, returning False if it did not exist."""


class SessionUsage(Protocol):
    """Answers whether attendance records reference a session."""

    def has_records_for_session(self, session_id: int) -> bool:
        """Return true when any record references the session."""


@dataclass
class SessionRegistry:
    """Holds the single active session and its late threshold."""

    repository: SessionRepository
    usage: SessionUsage
    events: EventSink

    def create(self, name: str, late_threshold: time) -> AttendanceSession:
        """Create an inactive session."""
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Session name and late threshold are required.")
        return self.repository.create_session(cleaned, late_threshold)

    def update(
        self, session_id: int, name: str, late_threshold: time
    ) -> AttendanceSession:
        """Rename a session or move its late threshold."""
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Session name is required.")
        updated = self.repository.update_session(session_id, cleaned, late_threshold)
        if updated is None:
            raise NotFound(f"Session {session_id} not found.")
        return updated

    def list_sessions(self) -> list[AttendanceSession]:
        return self.repository.list_sessions()

    def get_active(self) -> AttendanceSession | None:
        return self.repository.get_active_session()

    def activate(self, session_id: int) -> AttendanceSession:
        """Make one session the active one."""
        if not self.repository.activate_session(session_id):
            raise NotFound(f"Session {session_id} not found.")
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFound(f"Session {session_id} not found.")
        logger.info("Activated session %s (%s)", session.id, session.name)
        publish_log(self.events, f"Session '{session.name}' is now active.", "info")
        return session

    def delete(self, session_id: int) -> None:
        """Delete an inactive, unused session."""
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFound(f"Session {session_id} not found.")
        if session.is_active:
            raise Conflict("The active session cannot be deleted.")
        if self.usage.has_records_for_session(session_id):
            raise Conflict("This session is referenced by attendance records.")
        if not self.repository.delete_session(session_id):
            raise NotFound(f"Session {session_id} not found.")
