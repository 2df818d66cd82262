"""Supabase Storage bucket for profile photos."""

import logging
from dataclasses import dataclass
from uuid import uuid4

from supabase import Client

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


@dataclass
class SupabasePhotoStorage:
    """Stores photos as objects named after the person."""

    client: Client
    bucket: str

    def save(self, person_id: str, data: bytes, mime_type: str | None) -> str:
        """Upload a photo and return its object path."""
        content_type = mime_type or "image/jpeg"
        extension = _EXTENSIONS.get(content_type, "jpg")
        path = f"{person_id}-{uuid4().hex[:8]}.{extension}"
        self.client.storage.from_(self.bucket).upload(
            path, data, {"content-type": content_type}
        )
        return path

    def load(self, photo_ref: str) -> bytes | None:
        """Download a photo, or return None if it cannot be fetched."""
        try:
            return self.client.storage.from_(self.bucket).download(photo_ref)
        except Exception:
            logger.warning("Could not download photo %s", photo_ref, exc_info=True)
            return None

    def delete(self, photo_ref: str) -> None:
        """Remove a photo object."""
        self.client.storage.from_(self.bucket).remove([photo_ref])
