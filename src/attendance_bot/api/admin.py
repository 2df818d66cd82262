"""Operator endpoints for the event log and messaging readiness."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

if TYPE_CHECKING:
    from attendance_bot.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _messaging_status(container: AppContainer) -> dict[str, object]:
    readiness = container.readiness
    return {"ready": readiness.is_ready, "reason": readiness.reason}


@router.get("/events")
async def events(request: Request) -> dict[str, object]:
    """Return recent log events and component statuses."""
    container: AppContainer = request.app.state.container
    return container.events.snapshot()


@router.get("/messaging/status")
async def messaging_status(request: Request) -> dict[str, object]:
    """Return whether WhatsApp is ready to send."""
    container: AppContainer = request.app.state.container
    return _messaging_status(container)


@router.post("/messaging/probe")
async def messaging_probe(request: Request) -> dict[str, object]:
    """Probe WhatsApp again and update readiness."""
    container: AppContainer = request.app.state.container
    await container.dispatcher.refresh_readiness()
    return _messaging_status(container)
