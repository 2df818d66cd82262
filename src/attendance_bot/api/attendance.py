"""Attendance, roster and messaging endpoints."""

from __future__ import annotations

import logging
from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request, Response, status

from attendance_bot.api.schemas import (
    BroadcastRequest,
    ManualAttendanceRequest,
    PersonRequest,
    PhotoRequestBody,
    ScanRequest,
    SessionRequest,
    person_payload,
    ranking_payload,
    record_payload,
    roster_payload,
    session_payload,
)

if TYPE_CHECKING:
    from attendance_bot.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["attendance"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.post("/scan")
async def scan(body: ScanRequest, request: Request) -> dict[str, object]:
    """Record a check-in from a scanned identity token."""
    container = _container(request)
    person_id = container.token_issuer.decode(body.token)
    outcome = await container.attendance_recorder.scan(person_id)
    return {
        "name": outcome.person.name,
        "session": outcome.session.name,
        "record": record_payload(outcome.record),
    }


@router.get("/people/{person_id}/details")
async def person_details(person_id: str, request: Request) -> dict[str, object]:
    """Return a person for scan verification, with today's record if any."""
    container = _container(request)
    person = container.roster_service.get_person(person_id)
    today = container.stats_service.today()
    record = container.attendance_recorder.record_for(person.id, today)
    return {
        "person": person_payload(person),
        "today": record_payload(record) if record else None,
    }


@router.post("/attendance/manual")
async def manual_attendance(
    body: ManualAttendanceRequest, request: Request
) -> dict[str, object]:
    """Set a status for a person and day."""
    container = _container(request)
    on_date = body.on_date or container.stats_service.today()
    record = await container.attendance_recorder.manual_set(
        body.person_id, body.status, on_date
    )
    return {"record": record_payload(record)}


@router.delete("/attendance", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_attendance(
    person_id: str,
    request: Request,
    on_date: date | None = Query(default=None, alias="date"),
) -> Response:
    """Delete the record for a person and day."""
    container = _container(request)
    container.attendance_recorder.cancel(
        person_id, on_date or container.stats_service.today()
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/attendance/status")
async def attendance_status(
    request: Request, on_date: date | None = Query(default=None, alias="date")
) -> dict[str, object]:
    """Return every person with their status for the day."""
    container = _container(request)
    target = on_date or container.stats_service.today()
    roster = container.stats_service.day_roster(target)
    return {
        "date": target.isoformat(),
        "people": [roster_payload(entry) for entry in roster],
    }


@router.get("/attendance/today")
async def attendance_today(request: Request) -> dict[str, object]:
    """Return today's scans, latest first."""
    container = _container(request)
    scans = container.stats_service.today_scans()
    return {"scans": [roster_payload(entry) for entry in scans]}


@router.get("/dashboard/summary")
async def dashboard_summary(request: Request) -> dict[str, object]:
    return _container(request).stats_service.dashboard_summary()


@router.get("/rankings")
async def rankings(request: Request, period: str = "all") -> dict[str, object]:
    """Return the leaderboard for all time, this week or this month."""
    entries = _container(request).stats_service.rankings(period)
    return {"period": period, "rankings": [ranking_payload(e) for e in entries]}


@router.get("/people/{person_id}/stats")
async def person_stats(person_id: str, request: Request) -> dict[str, object]:
    return _container(request).stats_service.person_stats(person_id)


@router.get("/sessions")
async def list_sessions(request: Request) -> dict[str, object]:
    """Return all sessions, newest first."""
    sessions = _container(request).session_registry.list_sessions()
    return {"sessions": [session_payload(session) for session in sessions]}


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(body: SessionRequest, request: Request) -> dict[str, object]:
    session = _container(request).session_registry.create(
        body.name, body.late_threshold
    )
    return {"session": session_payload(session)}


@router.put("/sessions/{session_id}")
async def update_session(
    session_id: int, body: SessionRequest, request: Request
) -> dict[str, object]:
    session = _container(request).session_registry.update(
        session_id, body.name, body.late_threshold
    )
    return {"session": session_payload(session)}


@router.put("/sessions/{session_id}/activate")
async def activate_session(session_id: int, request: Request) -> dict[str, object]:
    """Make the session the only active one."""
    session = _container(request).session_registry.activate(session_id)
    return {"session": session_payload(session)}


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: int, request: Request) -> Response:
    _container(request).session_registry.delete(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/people")
async def list_people(request: Request) -> dict[str, object]:
    people = _container(request).roster_service.list_people()
    return {"people": [person_payload(person) for person in people]}


@router.post("/people", status_code=status.HTTP_201_CREATED)
async def add_person(body: PersonRequest, request: Request) -> dict[str, object]:
    """Register a person; the QR code is sent to them in the background."""
    person = await _container(request).roster_service.add_person(
        body.name, body.contact
    )
    return {"person": person_payload(person)}


@router.post("/people/bulk-request-photo", status_code=status.HTTP_202_ACCEPTED)
async def bulk_request_photo(request: Request) -> dict[str, object]:
    """Ask everyone without a photo for one, paced in the background."""
    selected = await _container(request).photo_service.bulk_request_photo()
    return {"selected": selected}


@router.put("/people/{person_id}")
async def update_person(
    person_id: str, body: PersonRequest, request: Request
) -> dict[str, object]:
    person = _container(request).roster_service.update_person(
        person_id, body.name, body.contact
    )
    return {"person": person_payload(person)}


@router.delete("/people/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_person(person_id: str, request: Request) -> Response:
    _container(request).roster_service.delete_person(person_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/people/{person_id}/token")
async def person_token(person_id: str, request: Request) -> Response:
    """Return the identity token as a PNG image."""
    image = _container(request).roster_service.token_image(person_id)
    return Response(content=image, media_type="image/png")


@router.post("/people/{person_id}/resend-token")
async def resend_token(person_id: str, request: Request) -> dict[str, str]:
    await _container(request).roster_service.resend_token(person_id)
    return {"status": "sent"}


@router.post("/people/{person_id}/request-photo")
async def request_photo(
    person_id: str, request: Request, body: PhotoRequestBody | None = None
) -> dict[str, str]:
    """Send a photo request and mark the person PENDING."""
    kind = await _container(request).photo_service.request_photo(
        person_id, body.is_change_request if body else None
    )
    return {"status": "sent", "kind": kind.value}


@router.post("/people/{person_id}/reset-photo-status")
async def reset_photo_status(person_id: str, request: Request) -> dict[str, str]:
    _container(request).photo_service.reset(person_id)
    return {"status": "idle"}


@router.post("/photo-requests/expire")
async def expire_photo_requests(request: Request) -> dict[str, object]:
    """Revert photo requests left unanswered longer than the configured TTL."""
    expired = _container(request).photo_service.expire_pending()
    return {"expired": expired}


@router.post("/broadcast", status_code=status.HTTP_202_ACCEPTED)
async def broadcast(body: BroadcastRequest, request: Request) -> dict[str, object]:
    """Start a paced broadcast to every contact on the roster."""
    recipients = await _container(request).roster_service.broadcast(body.message)
    logger.info("Broadcast queued for %d recipients", recipients)
    return {"recipients": recipients}
