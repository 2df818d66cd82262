"""Identity tokens printed on each person's QR code."""

from dataclasses import dataclass
from typing import Protocol

from attendance_bot.errors import ValidationError

TOKEN_PREFIX = "att1:"


class TokenImageRenderer(Protocol):
    """Renders a token payload into an image."""

    def render(self, payload: str, name: str, photo: bytes | None) -> bytes:
        """Return PNG bytes for the token."""


@dataclass
class IdentityTokenIssuer:
    """Maps person identifiers to scannable tokens and back."""

    renderer: TokenImageRenderer

    def encode(self, person_id: str) -> str:
        """Return the scannable payload for a person."""
        if not person_id:
            raise ValidationError("Person id is required.")
        return f"{TOKEN_PREFIX}{person_id}"

    def decode(self, token: str) -> str:
        """Return the person id carried by a scanned token.

        Tokens printed before the prefix was introduced carry the bare id.
        """
        cleaned = (token or "").strip()
        if cleaned.startswith(TOKEN_PREFIX):
            cleaned = cleaned[len(TOKEN_PREFIX) :]
        if not cleaned or any(ch.isspace() for ch in cleaned):
            raise ValidationError("Invalid identity token.")
        return cleaned

    def issue(self, person_id: str, name: str, photo: bytes | None = None) -> bytes:
        """Render the token image for a person."""
        return self.renderer.render(self.encode(person_id), name, photo)
