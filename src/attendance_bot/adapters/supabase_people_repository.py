"""Supabase-backed roster repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from attendance_bot.domain.people import Person, PhotoRequestState
from attendance_bot.services.photos import PersonRepository

_COLUMNS = "id, name, contact, photo_ref, photo_request_state, photo_requested_at"
_PENDING = PhotoRequestState.PENDING.value


@dataclass
class SupabasePersonRepository(PersonRepository):
    """Supabase implementation for people on the roster."""

    client: Client

    def create_person(self, person: Person) -> Person:
        """Insert a person row and return it."""
        response = (
            self.client.table("people")
            .insert(
                {
                    "id": person.id,
                    "name": person.name,
                    "contact": person.contact,
                    "photo_ref": person.photo_ref,
                    "photo_request_state": person.photo_request_state.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create person")
        return _to_person(response.data[0])

    def get_person(self, person_id: str) -> Person | None:
        """Return a person by id, if present."""
        response = (
            self.client.table("people")
            .select(_COLUMNS)
            .eq("id", person_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_person(response.data[0])

    def list_people(self) -> list[Person]:
        """Return all people ordered by name."""
        response = self.client.table("people").select(_COLUMNS).order("name").execute()
        return [_to_person(row) for row in response.data or []]

    def update_person(
        self, person_id: str, name: str, contact: str | None
    ) -> Person | None:
        """Update name and contact."""
        response = (
            self.client.table("people")
            .update({"name": name, "contact": contact})
            .eq("id", person_id)
            .execute()
        )
        if not response.data:
            return None
        return _to_person(response.data[0])

    def delete_person(self, person_id: str) -> bool:
        """Delete a person row."""
        response = self.client.table("people").delete().eq("id", person_id).execute()
        return bool(response.data)

    def list_contacts(self) -> list[str]:
        """Return every non-empty contact."""
        response = (
            self.client.table("people")
            .select("contact")
            .neq("contact", "")
            .execute()
        )
        return [row["contact"] for row in response.data or [] if row.get("contact")]

    def find_pending_by_contact(self, contact: str) -> Person | None:
        """Return the pending person with this contact, if any."""
        response = (
            self.client.table("people")
            .select(_COLUMNS)
            .eq("contact", contact)
            .eq("photo_request_state", _PENDING)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_person(response.data[0])

    def list_photo_candidates(self) -> list[Person]:
        """Return people without a photo who can be asked for one."""
        response = (
            self.client.table("people")
            .select(_COLUMNS)
            .is_("photo_ref", "null")
            .neq("photo_request_state", _PENDING)
            .neq("contact", "")
            .order("name")
            .execute()
        )
        return [_to_person(row) for row in response.data or []]

    def mark_photo_pending(self, person_id: str, requested_at: datetime) -> bool:
        """Move to PENDING unless already there."""
        response = (
            self.client.table("people")
            .update(
                {
                    "photo_request_state": _PENDING,
                    "photo_requested_at": requested_at.isoformat(),
                }
            )
            .eq("id", person_id)
            .neq("photo_request_state", _PENDING)
            .execute()
        )
        return bool(response.data)

    def release_pending(self, person_id: str) -> bool:
        """Move PENDING back to IDLE."""
        response = (
            self.client.table("people")
            .update({"photo_request_state": PhotoRequestState.IDLE.value})
            .eq("id", person_id)
            .eq("photo_request_state", _PENDING)
            .execute()
        )
        return bool(response.data)

    def complete_photo_request(self, person_id: str, photo_ref: str | None) -> bool:
        """Move PENDING to COMPLETED, storing the photo when given."""
        payload: dict[str, object] = {
            "photo_request_state": PhotoRequestState.COMPLETED.value
        }
        if photo_ref is not None:
            payload["photo_ref"] = photo_ref
        response = (
            self.client.table("people")
            .update(payload)
            .eq("id", person_id)
            .eq("photo_request_state", _PENDING)
            .execute()
        )
        return bool(response.data)

    def set_photo_state(self, person_id: str, state: PhotoRequestState) -> bool:
        """Set the state unconditionally."""
        response = (
            self.client.table("people")
            .update({"photo_request_state": state.value})
            .eq("id", person_id)
            .execute()
        )
        return bool(response.data)

    def expire_pending(self, requested_before: datetime) -> list[str]:
        """Revert stale pending requests."""
        response = (
            self.client.table("people")
            .update({"photo_request_state": PhotoRequestState.IDLE.value})
            .eq("photo_request_state", _PENDING)
            .lt("photo_requested_at", requested_before.isoformat())
            .execute()
        )
        return [row["id"] for row in response.data or []]


def _to_person(row: dict[str, object]) -> Person:
    requested_at = row.get("photo_requested_at")
    return Person(
        id=str(row["id"]),
        name=str(row["name"]),
        contact=row.get("contact") or None,
        photo_ref=row.get("photo_ref") or None,
        photo_request_state=PhotoRequestState(
            row.get("photo_request_state") or PhotoRequestState.IDLE.value
        ),
        photo_requested_at=(
            datetime.fromisoformat(requested_at)
            if isinstance(requested_at, str) and requested_at
            else None
        ),
    )
