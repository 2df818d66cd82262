"""Routes inbound WhatsApp messages to pending photo requests."""

import asyncio
import logging
from dataclasses import dataclass, field

from attendance_bot.adapters.whatsapp_client import MessagingClient
from attendance_bot.domain.messages import InboundMessageEvent, PayloadKind
from attendance_bot.services import notifications
from attendance_bot.services.dispatch import OutboundDispatcher
from attendance_bot.services.photos import PersonRepository, PhotoProvisioningService

logger = logging.getLogger(__name__)


@dataclass
class InboundMessageRouter:
    """Matches each inbound message to a PENDING person and resolves it.

    Messages from anyone without a pending request are dropped silently.
    Messages from the same sender are handled one at a time, in arrival
    order.
    """

    person_repository: PersonRepository
    photo_service: PhotoProvisioningService
    client: MessagingClient
    dispatcher: OutboundDispatcher
    _locks: dict[str, asyncio.Lock] = field(default_factory=dict)
    _waiting: dict[str, int] = field(default_factory=dict)

    async def route(self, event: InboundMessageEvent) -> bool:
        """Handle one event; return whether it changed a photo request."""
        sender = event.sender
        lock = self._locks.setdefault(sender, asyncio.Lock())
        self._waiting[sender] = self._waiting.get(sender, 0) + 1
        try:
            async with lock:
                return await self._handle(event)
        finally:
            self._waiting[sender] -= 1
            if not self._waiting[sender]:
                del self._waiting[sender]
                self._locks.pop(sender, None)

    async def _handle(self, event: InboundMessageEvent) -> bool:
        person = self.person_repository.find_pending_by_contact(event.sender)
        if person is None:
            return False
        try:
            if event.kind is PayloadKind.MEDIA:
                logger.info("Received a photo from %s", person.name)
                data = await self.client.download_media(event.content)
                return await self.photo_service.resolve_media(
                    person.id, data, event.mime_type
                )
            if event.content.strip().casefold() == notifications.DECLINE_KEYWORD:
                return await self.photo_service.resolve_decline(person.id)
        except Exception:
            logger.exception(
                "Failed to process inbound message", extra={"person_id": person.id}
            )
            await self.dispatcher.notify(event.sender, notifications.SYSTEM_ERROR)
        return False
