"""Attendance check-ins and manual overrides."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import Protocol
from zoneinfo import ZoneInfo

from attendance_bot.domain.attendance import AttendanceRecord, AttendanceStatus
from attendance_bot.domain.people import Person
from attendance_bot.domain.sessions import AttendanceSession
from attendance_bot.errors import Conflict, NoActiveSession, NotFound
from attendance_bot.services import notifications
from attendance_bot.services.dispatch import OutboundDispatcher
from attendance_bot.services.events import EventSink, publish_log
from attendance_bot.services.photos import PersonRepository
from attendance_bot.services.sessions import SessionRepository
from attendance_bot.services.tasks import BackgroundTaskRunner

logger = logging.getLogger(__name__)


class AttendanceRepository(Protocol):
    """Persistence interface for attendance records."""

    def get_record(self, person_id: str, on_date: date) -> AttendanceRecord | None:
        """Return the record for a person on a date, if present."""

    def insert_record(self, record: AttendanceRecord) -> None:
        """Insert a record, raising Conflict if one exists for that day."""

    def upsert_record(self, record: AttendanceRecord) -> None:
        """Insert or replace the record for that person and day."""

    def delete_record(self, person_id: str, on_date: date) -> bool:
        """Delete a record, returning False if none existed."""

    def list_records(
        self, start: date | None = None, end: date | None = None
    ) -> list[AttendanceRecord]:
        """Return records with start <= date <= end (open bounds allowed)."""

    def list_records_for_person(self, person_id: str) -> list[AttendanceRecord]:
        """Return every record for a person, oldest first."""

    def has_records_for_session(self, session_id: int) -> bool:
        """Return true when any record references the session."""


@dataclass(frozen=True)
class ScanOutcome:
    """Result of a successful scan."""

    person: Person
    record: AttendanceRecord
    session: AttendanceSession


def classify(scan_time: time, late_threshold: time) -> AttendanceStatus:
    """On time up to and including the threshold, late afterwards."""
    if scan_time <= late_threshold:
        return AttendanceStatus.ON_TIME
    return AttendanceStatus.LATE


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class AttendanceRecorder:
    """Classifies and persists check-ins against the active session."""

    repository: AttendanceRepository
    session_repository: SessionRepository
    person_repository: PersonRepository
    dispatcher: OutboundDispatcher
    tasks: BackgroundTaskRunner
    events: EventSink
    timezone: ZoneInfo
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def scan(self, person_id: str, now: datetime | None = None) -> ScanOutcome:
        """Record a check-in for today and notify the person in the background."""
        session = self.session_repository.get_active_session()
        if session is None:
            raise NoActiveSession("No attendance session is active.")
        person = self.person_repository.get_person(person_id)
        if person is None:
            raise NotFound(f"Person {person_id} not found.")

        local_now = self._local(now)
        today = local_now.date()
        if self.repository.get_record(person.id, today) is not None:
            raise Conflict(
                f"{person.name} is already recorded today.", code="already_recorded"
            )
        scan_time = local_now.time().replace(microsecond=0)
        record = AttendanceRecord(
            person_id=person.id,
            attendance_date=today,
            session_id=session.id,
            scan_time=scan_time,
            status=classify(scan_time, session.late_threshold),
        )
        self.repository.insert_record(record)
        logger.info("Recorded %s for %s", record.status.value, person.name)

        if person.contact:
            text = notifications.scan_confirmation(
                person.name, scan_time, record.status, session.name
            )
            self.tasks.spawn(
                self._notify(person, text), name=f"scan-notify:{person.id}"
            )
        return ScanOutcome(person=person, record=record, session=session)

    async def manual_set(
        self,
        person_id: str,
        status: AttendanceStatus,
        on_date: date,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """Write a status for a person and day, replacing any existing record."""
        session = self.session_repository.get_active_session()
        if session is None:
            raise NoActiveSession("No attendance session is active.")
        person = self.person_repository.get_person(person_id)
        if person is None:
            raise NotFound(f"Person {person_id} not found.")

        scan_time = None
        if status is AttendanceStatus.MANUAL_PRESENT:
            scan_time = self._local(now).time().replace(microsecond=0)
        record = AttendanceRecord(
            person_id=person.id,
            attendance_date=on_date,
            session_id=session.id,
            scan_time=scan_time,
            status=status,
        )
        self.repository.upsert_record(record)
        logger.info(
            "Set %s for %s on %s", status.value, person.name, on_date.isoformat()
        )

        text = notifications.manual_notice(person.name, status, on_date)
        if text is not None and person.contact:
            self.tasks.spawn(
                self._notify(person, text), name=f"manual-notify:{person.id}"
            )
        return record

    def record_for(self, person_id: str, on_date: date) -> AttendanceRecord | None:
        return self.repository.get_record(person_id, on_date)

    def cancel(self, person_id: str, on_date: date) -> None:
        """Remove the record for a person and day."""
        if not self.repository.delete_record(person_id, on_date):
            raise NotFound("No attendance record found.")

    def _local(self, now: datetime | None) -> datetime:
        return (now or self.clock()).astimezone(self.timezone)

    async def _notify(self, person: Person, text: str) -> None:
        if not person.contact:
            return
        result = await self.dispatcher.notify(person.contact, text)
        if not result.ok:
            publish_log(
                self.events,
                f"Could not notify {person.name}: {result.error}",
                "warning",
            )
