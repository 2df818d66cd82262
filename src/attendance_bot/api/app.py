"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from attendance_bot.api.admin import router as admin_router
from attendance_bot.api.attendance import router as attendance_router
from attendance_bot.api.whatsapp_models import WhatsAppWebhook
from attendance_bot.app_logging import configure_logging
from attendance_bot.containers import AppContainer
from attendance_bot.errors import AttendanceBotError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        await state_container.dispatcher.refresh_readiness()
        yield
        await state_container.tasks.join()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(attendance_router)
    app.include_router(admin_router)

    @app.exception_handler(AttendanceBotError)
    async def attendance_bot_error(
        request: Request, exc: AttendanceBotError
    ) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        content: dict[str, object] = {"detail": exc.message}
        if exc.code:
            content["code"] = exc.code
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/whatsapp/webhook")
    async def verify_webhook(
        request: Request,
        mode: str | None = Query(default=None, alias="hub.mode"),
        verify_token: str | None = Query(default=None, alias="hub.verify_token"),
        challenge: str | None = Query(default=None, alias="hub.challenge"),
    ) -> PlainTextResponse:
        """Answer the WhatsApp subscription handshake."""
        state_container: AppContainer = request.app.state.container
        expected = state_container.settings.whatsapp_verify_token
        if mode != "subscribe" or verify_token != expected or challenge is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
        return PlainTextResponse(challenge)

    @app.post("/whatsapp/webhook")
    async def whatsapp_webhook(
        payload: WhatsAppWebhook, request: Request
    ) -> dict[str, str]:
        """Route inbound WhatsApp messages to pending photo requests."""
        state_container: AppContainer = request.app.state.container
        for event in payload.events():
            handled = await state_container.inbound_router.route(event)
            if not handled:
                logger.debug(
                    "Ignored %s message from %s", event.kind.value, event.sender
                )
        return {"status": "ok"}

    return app
