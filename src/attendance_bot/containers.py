"""Dependency container wiring for the application."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from zoneinfo import ZoneInfo

from supabase import create_client

from attendance_bot.adapters.qr_renderer import QrCodeRenderer
from attendance_bot.adapters.supabase_attendance_repository import (
    SupabaseAttendanceRepository,
)
from attendance_bot.adapters.supabase_people_repository import SupabasePersonRepository
from attendance_bot.adapters.supabase_photo_storage import SupabasePhotoStorage
from attendance_bot.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from attendance_bot.adapters.whatsapp_client import (
    HttpxWhatsAppClient,
    MessagingClient,
)
from attendance_bot.config import Settings
from attendance_bot.services.attendance import (
    AttendanceRecorder,
    AttendanceRepository,
)
from attendance_bot.services.dispatch import (
    OutboundDispatcher,
    PlatformReadiness,
    Sleeper,
)
from attendance_bot.services.events import InMemoryEventLog
from attendance_bot.services.inbound import InboundMessageRouter
from attendance_bot.services.people import RosterService
from attendance_bot.services.photos import (
    PersonRepository,
    PhotoProvisioningService,
    PhotoStorage,
)
from attendance_bot.services.sessions import SessionRegistry, SessionRepository
from attendance_bot.services.stats import StatsService
from attendance_bot.services.tasks import BackgroundTaskRunner
from attendance_bot.services.tokens import IdentityTokenIssuer


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    events: InMemoryEventLog
    readiness: PlatformReadiness
    tasks: BackgroundTaskRunner
    whatsapp_client: MessagingClient
    dispatcher: OutboundDispatcher
    token_issuer: IdentityTokenIssuer
    session_registry: SessionRegistry
    attendance_recorder: AttendanceRecorder
    photo_service: PhotoProvisioningService
    roster_service: RosterService
    stats_service: StatsService
    inbound_router: InboundMessageRouter
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    whatsapp_client = HttpxWhatsAppClient.create(
        access_token=resolved_settings.whatsapp_access_token,
        phone_number_id=resolved_settings.whatsapp_phone_number_id,
        base_url=resolved_settings.whatsapp_api_base_url,
    )

    async def close_resources() -> None:
        await whatsapp_client.close()

    return wire_container(
        settings=resolved_settings,
        person_repository=SupabasePersonRepository(supabase_client),
        session_repository=SupabaseSessionRepository(supabase_client),
        attendance_repository=SupabaseAttendanceRepository(supabase_client),
        photo_storage=SupabasePhotoStorage(
            supabase_client, resolved_settings.photo_bucket
        ),
        whatsapp_client=whatsapp_client,
        close_resources=close_resources,
    )


def wire_container(  # noqa: PLR0913
    settings: Settings,
    person_repository: PersonRepository,
    session_repository: SessionRepository,
    attendance_repository: AttendanceRepository,
    photo_storage: PhotoStorage,
    whatsapp_client: MessagingClient,
    close_resources: Callable[[], Awaitable[None]],
    sleep: Sleeper = asyncio.sleep,
) -> AppContainer:
    """Assemble services around the given adapters."""
    timezone = ZoneInfo(settings.timezone)
    events = InMemoryEventLog()
    readiness = PlatformReadiness()
    tasks = BackgroundTaskRunner()
    dispatcher = OutboundDispatcher(
        client=whatsapp_client,
        readiness=readiness,
        events=events,
        min_delay_ms=settings.broadcast_min_delay_ms,
        max_delay_ms=settings.broadcast_max_delay_ms,
        sleep=sleep,
    )
    token_issuer = IdentityTokenIssuer(QrCodeRenderer())
    photo_service = PhotoProvisioningService(
        person_repository=person_repository,
        photo_storage=photo_storage,
        dispatcher=dispatcher,
        token_issuer=token_issuer,
        tasks=tasks,
        events=events,
        request_ttl=(
            timedelta(hours=settings.photo_request_ttl_hours)
            if settings.photo_request_ttl_hours is not None
            else None
        ),
    )
    return AppContainer(
        settings=settings,
        events=events,
        readiness=readiness,
        tasks=tasks,
        whatsapp_client=whatsapp_client,
        dispatcher=dispatcher,
        token_issuer=token_issuer,
        session_registry=SessionRegistry(
            repository=session_repository,
            usage=attendance_repository,
            events=events,
        ),
        attendance_recorder=AttendanceRecorder(
            repository=attendance_repository,
            session_repository=session_repository,
            person_repository=person_repository,
            dispatcher=dispatcher,
            tasks=tasks,
            events=events,
            timezone=timezone,
        ),
        photo_service=photo_service,
        roster_service=RosterService(
            repository=person_repository,
            photo_storage=photo_storage,
            photo_service=photo_service,
            token_issuer=token_issuer,
            dispatcher=dispatcher,
            tasks=tasks,
            events=events,
            welcome_photo_request_delay=settings.welcome_photo_request_delay_seconds,
            sleep=sleep,
        ),
        stats_service=StatsService(
            repository=attendance_repository,
            person_repository=person_repository,
            timezone=timezone,
        ),
        inbound_router=InboundMessageRouter(
            person_repository=person_repository,
            photo_service=photo_service,
            client=whatsapp_client,
            dispatcher=dispatcher,
        ),
        close_resources=close_resources,
    )
