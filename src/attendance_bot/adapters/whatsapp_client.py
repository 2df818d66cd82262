"""WhatsApp Cloud API client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class MessagingClient(Protocol):
    """Interface for messaging platform interactions."""

    async def send_text(self, to: str, text: str) -> None:
        """Send a text message to a contact."""

    async def send_image(self, to: str, image: bytes, caption: str | None) -> None:
        """Send a PNG image with an optional caption to a contact."""

    async def download_media(self, media_id: str) -> bytes:
        """Download inbound media and return its bytes."""

    async def check_connection(self) -> bool:
        """Return true when the platform accepts requests for our number."""


@dataclass
class HttpxWhatsAppClient:
    """WhatsApp client implemented with httpx."""

    access_token: str
    phone_number_id: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, access_token: str, phone_number_id: str, base_url: str
    ) -> "HttpxWhatsAppClient":
        """Create a WhatsApp client with a managed httpx session."""
        return cls(
            access_token=access_token,
            phone_number_id=phone_number_id,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
        )

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    async def send_text(self, to: str, text: str) -> None:
        """Send a message using the Cloud API messages endpoint."""
        await self._post_message(
            {
                "messaging_product": "whatsapp",
                "to": to,
                "type": "text",
                "text": {"body": text},
            }
        )

    async def send_image(self, to: str, image: bytes, caption: str | None) -> None:
        """Upload the image as media, then send it by id."""
        upload_url = f"{self.base_url}/{self.phone_number_id}/media"
        response = await self.http_client.post(
            upload_url,
            headers=self._headers(),
            data={"messaging_product": "whatsapp", "type": "image/png"},
            files={"file": ("token.png", image, "image/png")},
            timeout=20,
        )
        response.raise_for_status()
        media_id = response.json().get("id")
        if not media_id:
            raise RuntimeError("WhatsApp media upload returned no id")
        image_payload: dict[str, object] = {"id": media_id}
        if caption is not None:
            image_payload["caption"] = caption
        await self._post_message(
            {
                "messaging_product": "whatsapp",
                "to": to,
                "type": "image",
                "image": image_payload,
            }
        )

    async def download_media(self, media_id: str) -> bytes:
        """Resolve a media id to its download URL and fetch the bytes."""
        response = await self.http_client.get(
            f"{self.base_url}/{media_id}", headers=self._headers(), timeout=10
        )
        response.raise_for_status()
        media_url = response.json().get("url")
        if not media_url:
            raise RuntimeError("WhatsApp media lookup returned no url")
        file_response = await self.http_client.get(
            media_url, headers=self._headers(), timeout=20
        )
        file_response.raise_for_status()
        return file_response.content

    async def check_connection(self) -> bool:
        """Probe the phone number resource."""
        try:
            response = await self.http_client.get(
                f"{self.base_url}/{self.phone_number_id}",
                headers=self._headers(),
                timeout=10,
            )
        except httpx.HTTPError:
            return False
        return response.status_code == httpx.codes.OK

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _post_message(self, payload: dict[str, object]) -> None:
        url = f"{self.base_url}/{self.phone_number_id}/messages"
        response = await self.http_client.post(
            url, headers=self._headers(), json=payload, timeout=10
        )
        response.raise_for_status()
