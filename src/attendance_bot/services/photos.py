"""Photo provisioning state machine.

Each person moves IDLE -> PENDING when a photo request is sent and
PENDING -> COMPLETED when they answer with a photo or decline. Admins may
re-request from COMPLETED (a change request) or reset anyone to IDLE.
Transitions out of and into PENDING are compare-and-swap updates in the
store, so concurrent requests for the same person cannot both succeed.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from attendance_bot.domain.messages import BroadcastResult
from attendance_bot.domain.people import Person, PhotoRequestState
from attendance_bot.errors import (
    AttendanceBotError,
    Conflict,
    NotFound,
    NotReady,
    UpstreamDeliveryFailure,
    ValidationError,
)
from attendance_bot.services import notifications
from attendance_bot.services.dispatch import OutboundDispatcher
from attendance_bot.services.events import EventSink, publish_log
from attendance_bot.services.notifications import PhotoRequestKind
from attendance_bot.services.tasks import BackgroundTaskRunner
from attendance_bot.services.tokens import IdentityTokenIssuer

logger = logging.getLogger(__name__)


class PersonRepository(Protocol):
    """Persistence interface for people on the roster."""

    def create_person(self, person: Person) -> Person:
        """Insert a person and return the stored row."""

    def get_person(self, person_id: str) -> Person | None:
        """Return a person by id, if present."""

    def list_people(self) -> list[Person]:
        """Return everyone, ordered by name."""

    def update_person(
        self, person_id: str, name: str, contact: str | None
    ) -> Person | None:
        """Update name and contact, returning None if the person is missing."""

    def delete_person(self, person_id: str) -> bool:
        """Delete a person, returning False if they did not exist."""

    def list_contacts(self) -> list[str]:
        """Return every non-empty contact address."""

    def find_pending_by_contact(self, contact: str) -> Person | None:
        """Return the PENDING person with this contact, if any."""

    def list_photo_candidates(self) -> list[Person]:
        """Return people with no photo, not PENDING, and with a contact."""

    def mark_photo_pending(self, person_id: str, requested_at: datetime) -> bool:
        """Set PENDING unless already PENDING; return whether a row changed."""

    def release_pending(self, person_id: str) -> bool:
        """Set IDLE only if currently PENDING; return whether a row changed."""

    def complete_photo_request(self, person_id: str, photo_ref: str | None) -> bool:
        """Set COMPLETED (and the photo, when given) only if PENDING."""

    def set_photo_state(self, person_id: str, state: PhotoRequestState) -> bool:
        """Unconditionally set the state; return False for an unknown person."""

    def expire_pending(self, requested_before: datetime) -> list[str]:
        """Set IDLE for PENDING requests older than the cutoff; return their ids."""


class PhotoStorage(Protocol):
    """Binary storage for profile photos."""

    def save(self, person_id: str, data: bytes, mime_type: str | None) -> str:
        """Store a photo and return its reference."""

    def load(self, photo_ref: str) -> bytes | None:
        """Return the photo bytes, or None when unavailable."""

    def delete(self, photo_ref: str) -> None:
        """Remove a stored photo."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class PhotoProvisioningService:
    """Drives the photo request conversation for each person."""

    person_repository: PersonRepository
    photo_storage: PhotoStorage
    dispatcher: OutboundDispatcher
    token_issuer: IdentityTokenIssuer
    tasks: BackgroundTaskRunner
    events: EventSink
    request_ttl: timedelta | None = None
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def request_photo(
        self, person_id: str, is_change_request: bool | None = None
    ) -> PhotoRequestKind:
        """Send a photo request to one person.

        When ``is_change_request`` is not given it is inferred from whether
        the person already has a photo.
        """
        person = self._get(person_id)
        if person.photo_request_state is PhotoRequestState.PENDING:
            raise Conflict(
                "A photo request was already sent and is awaiting a reply."
            )
        if not person.contact:
            raise ValidationError("This person has no WhatsApp number.")
        if is_change_request is None:
            is_change_request = person.photo_ref is not None
        kind = PhotoRequestKind.SUBSEQUENT
        if is_change_request:
            kind = PhotoRequestKind.CHANGE
        await self._send_request(person, kind)
        return kind

    async def request_first_photo(self, person_id: str) -> None:
        """Ask a newly registered person whether they want a photo."""
        person = self._get(person_id)
        if not person.contact:
            raise ValidationError("This person has no WhatsApp number.")
        await self._send_request(person, PhotoRequestKind.FIRST)

    async def bulk_request_photo(self) -> int:
        """Start a background batch of requests; return how many were selected."""
        self.dispatcher.ensure_ready()
        candidates = self.person_repository.list_photo_candidates()
        if candidates:
            self.tasks.spawn(self.run_bulk_request(candidates), name="bulk-photo")
            publish_log(
                self.events,
                f"Bulk photo request started for {len(candidates)} people.",
            )
        return len(candidates)

    async def run_bulk_request(self, people: list[Person]) -> BroadcastResult:
        """Request photos one person at a time, isolating failures."""
        success_count = 0
        fail_count = 0
        for index, person in enumerate(people):
            if index:
                await self.dispatcher.pause()
            try:
                await self._send_request(person, PhotoRequestKind.SUBSEQUENT)
            except AttendanceBotError as exc:
                fail_count += 1
                logger.warning("Photo request to %s failed: %s", person.name, exc)
                continue
            except Exception:
                fail_count += 1
                logger.exception("Photo request to %s failed", person.name)
                self._release_quietly(person)
                continue
            success_count += 1
            logger.info("Photo request sent to %s", person.name)
        publish_log(
            self.events,
            f"Bulk photo request finished. Sent: {success_count}, "
            f"failed: {fail_count}.",
            "success" if not fail_count else "warning",
        )
        return BroadcastResult(
            success_count=success_count, fail_count=fail_count, total=len(people)
        )

    async def resolve_media(
        self, person_id: str, data: bytes, mime_type: str | None = None
    ) -> bool:
        """Accept a photo reply; return False when no request was pending."""
        person = self.person_repository.get_person(person_id)
        if person is None:
            return False
        if person.photo_request_state is not PhotoRequestState.PENDING:
            return False
        photo_ref = self.photo_storage.save(person.id, data, mime_type)
        if not self.person_repository.complete_photo_request(person.id, photo_ref):
            self.photo_storage.delete(photo_ref)
            return False
        if person.photo_ref and person.photo_ref != photo_ref:
            self.photo_storage.delete(person.photo_ref)
        logger.info("Stored photo for %s", person.name)
        publish_log(self.events, f"Received a profile photo from {person.name}.")
        if person.contact:
            await self.dispatcher.notify(person.contact, notifications.PHOTO_RECEIVED)
            token_image = self.token_issuer.issue(person.id, person.name, data)
            await self.dispatcher.notify_image(
                person.contact, token_image, notifications.TOKEN_UPDATED_CAPTION
            )
        return True

    async def resolve_decline(self, person_id: str) -> bool:
        """Accept a decline; return False when no request was pending."""
        person = self.person_repository.get_person(person_id)
        if person is None:
            return False
        if not self.person_repository.complete_photo_request(person.id, None):
            return False
        logger.info("%s declined the photo request", person.name)
        publish_log(self.events, f"{person.name} declined the photo request.")
        if person.contact:
            await self.dispatcher.notify(person.contact, notifications.PHOTO_DECLINED)
        return True

    def reset(self, person_id: str) -> None:
        """Force a person back to IDLE."""
        if not self.person_repository.set_photo_state(
            person_id, PhotoRequestState.IDLE
        ):
            raise NotFound(f"Person {person_id} not found.")

    def expire_pending(self, now: datetime | None = None) -> list[str]:
        """Revert requests pending longer than the TTL; no-op without a TTL."""
        if self.request_ttl is None:
            return []
        cutoff = (now or self.clock()) - self.request_ttl
        expired = self.person_repository.expire_pending(cutoff)
        if expired:
            publish_log(
                self.events, f"{len(expired)} pending photo requests expired."
            )
        return expired

    async def _send_request(self, person: Person, kind: PhotoRequestKind) -> None:
        if not person.contact:
            raise ValidationError(f"{person.name} has no WhatsApp number.")
        if not self.person_repository.mark_photo_pending(person.id, self.clock()):
            raise Conflict(
                "A photo request was already sent and is awaiting a reply."
            )
        text = notifications.photo_request(person.name, kind)
        try:
            result = await self.dispatcher.send_single(person.contact, text)
        except NotReady:
            self.person_repository.release_pending(person.id)
            raise
        if not result.ok:
            self.person_repository.release_pending(person.id)
            raise UpstreamDeliveryFailure(
                f"Could not send the photo request to {person.name}."
            )

    def _release_quietly(self, person: Person) -> None:
        try:
            self.person_repository.release_pending(person.id)
        except Exception:
            logger.exception("Could not reset the photo request for %s", person.name)

    def _get(self, person_id: str) -> Person:
        person = self.person_repository.get_person(person_id)
        if person is None:
            raise NotFound(f"Person {person_id} not found.")
        return person
