"""Attendance statistics for dashboards."""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from attendance_bot.domain.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    RankingEntry,
    RosterEntry,
)
from attendance_bot.errors import NotFound, ValidationError
from attendance_bot.services.attendance import AttendanceRepository
from attendance_bot.services.photos import PersonRepository

RANKING_PERIODS = {"all", "weekly", "monthly"}
TREND_DAYS = 30


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class StatsService:
    """Read-only views over attendance records."""

    repository: AttendanceRepository
    person_repository: PersonRepository
    timezone: ZoneInfo
    clock: Callable[[], datetime] = field(default=_utcnow)

    def today(self) -> date:
        return self.clock().astimezone(self.timezone).date()

    def day_roster(self, on_date: date) -> list[RosterEntry]:
        """Return every person with their status for the day, if any."""
        by_person = {
            record.person_id: record
            for record in self.repository.list_records(on_date, on_date)
        }
        entries = []
        for person in self.person_repository.list_people():
            record = by_person.get(person.id)
            entries.append(
                RosterEntry(
                    person_id=person.id,
                    name=person.name,
                    status=record.status if record else None,
                    scan_time=record.scan_time if record else None,
                )
            )
        return entries

    def today_scans(self) -> list[RosterEntry]:
        """Return today's entries with a scan time, latest first."""
        scanned = [
            entry
            for entry in self.day_roster(self.today())
            if entry.scan_time is not None
        ]
        return sorted(scanned, key=lambda entry: entry.scan_time, reverse=True)

    def dashboard_summary(self) -> dict[str, object]:
        """Return headcounts for today."""
        total = len(self.person_repository.list_people())
        today = self.today()
        records = self.repository.list_records(today, today)
        breakdown = Counter(record.status.value for record in records)
        return {
            "total_people": total,
            "present_today": len(records),
            "not_present_today": total - len(records),
            "status_breakdown": dict(breakdown),
        }

    def rankings(self, period: str = "all", limit: int = 10) -> list[RankingEntry]:
        """Return the top scorers for the period."""
        if period not in RANKING_PERIODS:
            raise ValidationError(f"Unknown ranking period: {period}")
        today = self.today()
        start: date | None = None
        if period == "weekly":
            start = today - timedelta(days=6)
        elif period == "monthly":
            start = today.replace(day=1)
        scores: Counter[str] = Counter()
        for record in self.repository.list_records(start, today if start else None):
            scores[record.person_id] += record.status.score
        names = {
            person.id: person.name for person in self.person_repository.list_people()
        }
        entries = [
            RankingEntry(person_id=person_id, name=names[person_id], score=score)
            for person_id, score in scores.items()
            if score > 0 and person_id in names
        ]
        entries.sort(key=lambda entry: (-entry.score, entry.name))
        return entries[:limit]

    def person_stats(self, person_id: str) -> dict[str, object]:
        """Return status counts, a 30-day trend and earned badges."""
        person = self.person_repository.get_person(person_id)
        if person is None:
            raise NotFound(f"Person {person_id} not found.")
        records = self.repository.list_records_for_person(person_id)
        trend_start = self.today() - timedelta(days=TREND_DAYS)
        return {
            "name": person.name,
            "stats": dict(Counter(record.status.value for record in records)),
            "trend": [
                {
                    "date": record.attendance_date.isoformat(),
                    "status": record.status.value,
                    "code": record.status.report_code,
                }
                for record in records
                if record.attendance_date >= trend_start
            ],
            "badges": _badges(records),
        }


def _badges(records: list[AttendanceRecord]) -> list[dict[str, str]]:
    if not records:
        return []
    badges = []
    if all(record.status.is_present for record in records):
        badges.append(
            {
                "name": "Kehadiran Sempurna",
                "description": "Tidak pernah absen (Sakit/Izin/Alfa).",
            }
        )
    if not any(record.status is AttendanceStatus.LATE for record in records):
        badges.append(
            {
                "name": "Anti-Telat",
                "description": "Tidak pernah sekalipun tercatat terlambat.",
            }
        )
    return badges
