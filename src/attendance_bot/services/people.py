"""Roster management and identity token delivery."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import uuid4

from attendance_bot.config import normalize_contact
from attendance_bot.domain.messages import BroadcastResult
from attendance_bot.domain.people import Person, PhotoRequestState
from attendance_bot.errors import (
    AttendanceBotError,
    NotFound,
    UpstreamDeliveryFailure,
    ValidationError,
)
from attendance_bot.services import notifications
from attendance_bot.services.dispatch import OutboundDispatcher
from attendance_bot.services.events import EventSink, publish_log
from attendance_bot.services.photos import (
    PersonRepository,
    PhotoProvisioningService,
    PhotoStorage,
)
from attendance_bot.services.tasks import BackgroundTaskRunner
from attendance_bot.services.tokens import IdentityTokenIssuer

logger = logging.getLogger(__name__)


@dataclass
class RosterService:
    """Application service for the people on the roster."""

    repository: PersonRepository
    photo_storage: PhotoStorage
    photo_service: PhotoProvisioningService
    token_issuer: IdentityTokenIssuer
    dispatcher: OutboundDispatcher
    tasks: BackgroundTaskRunner
    events: EventSink
    welcome_photo_request_delay: float = 5.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def list_people(self) -> list[Person]:
        return self.repository.list_people()

    def get_person(self, person_id: str) -> Person:
        person = self.repository.get_person(person_id)
        if person is None:
            raise NotFound(f"Person {person_id} not found.")
        return person

    async def add_person(self, name: str, contact: str | None) -> Person:
        """Register a person and start the welcome sequence in the background.

        The welcome sequence sends the identity token and then, after a short
        delay, asks whether the person wants to add a photo.
        """
        cleaned_name = name.strip()
        if not cleaned_name:
            raise ValidationError("Name is required.")
        person = self.repository.create_person(
            Person(
                id=f"person-{uuid4()}",
                name=cleaned_name,
                contact=_clean_contact(contact),
                photo_ref=None,
                photo_request_state=PhotoRequestState.IDLE,
            )
        )
        logger.info("Registered %s (%s)", person.name, person.id)
        if person.contact:
            self.tasks.spawn(self._welcome(person), name=f"welcome:{person.id}")
        return person

    def update_person(self, person_id: str, name: str, contact: str | None) -> Person:
        cleaned_name = name.strip()
        if not cleaned_name:
            raise ValidationError("Name is required.")
        updated = self.repository.update_person(
            person_id, cleaned_name, _clean_contact(contact)
        )
        if updated is None:
            raise NotFound(f"Person {person_id} not found.")
        return updated

    def delete_person(self, person_id: str) -> None:
        person = self.get_person(person_id)
        if not self.repository.delete_person(person_id):
            raise NotFound(f"Person {person_id} not found.")
        if person.photo_ref:
            self.photo_storage.delete(person.photo_ref)

    def token_image(self, person_id: str) -> bytes:
        """Render the person's identity token with their photo, if stored."""
        person = self.get_person(person_id)
        return self._render_token(person)

    async def resend_token(self, person_id: str) -> None:
        """Send the identity token image to the person again."""
        person = self.get_person(person_id)
        if not person.contact:
            raise ValidationError("This person has no WhatsApp number.")
        result = await self.dispatcher.send_image(
            person.contact,
            self._render_token(person),
            notifications.TOKEN_UPDATED_CAPTION,
        )
        if not result.ok:
            raise UpstreamDeliveryFailure(
                f"Could not send the QR code to {person.name}."
            )

    async def broadcast(self, message: str) -> int:
        """Start a broadcast to every contact; return the number of recipients."""
        if not message.strip():
            raise ValidationError("Message must not be empty.")
        self.dispatcher.ensure_ready()
        contacts = self.repository.list_contacts()
        if not contacts:
            raise NotFound("No contact numbers found.")
        self.tasks.spawn(self._broadcast(contacts, message), name="broadcast")
        return len(contacts)

    async def _broadcast(self, contacts: list[str], message: str) -> BroadcastResult:
        return await self.dispatcher.send_broadcast(contacts, message)

    async def _welcome(self, person: Person) -> None:
        if not person.contact:
            return
        result = await self.dispatcher.notify_image(
            person.contact,
            self._render_token(person),
            notifications.token_caption(person.name),
        )
        if not result.ok:
            publish_log(
                self.events,
                f"Could not send the QR code to {person.name}: {result.error}",
                "warning",
            )
            return
        if person.photo_ref:
            return
        await self.sleep(self.welcome_photo_request_delay)
        try:
            await self.photo_service.request_first_photo(person.id)
        except AttendanceBotError as exc:
            logger.warning("First photo request to %s failed: %s", person.name, exc)

    def _render_token(self, person: Person) -> bytes:
        photo = self.photo_storage.load(person.photo_ref) if person.photo_ref else None
        return self.token_issuer.issue(person.id, person.name, photo)


def _clean_contact(raw: str | None) -> str | None:
    try:
        return normalize_contact(raw)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
