"""Outbound message delivery through the messaging platform."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from attendance_bot.adapters.whatsapp_client import MessagingClient
from attendance_bot.domain.messages import BroadcastResult, DeliveryResult
from attendance_bot.errors import NotReady
from attendance_bot.services.events import EventSink, publish_log, publish_status

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class PlatformReadiness:
    """Shared readiness flag for the messaging platform session."""

    _ready: bool = False
    reason: str | None = "not connected"

    @property
    def is_ready(self) -> bool:
        return self._ready

    def mark_ready(self) -> None:
        """Mark the platform as connected."""
        self._ready = True
        self.reason = None

    def mark_not_ready(self, reason: str) -> None:
        """Mark the platform as unavailable."""
        self._ready = False
        self.reason = reason


@dataclass
class OutboundDispatcher:
    """Sends single messages and paced broadcasts.

    Every send checks readiness first. Single sends make exactly one attempt
    and report the outcome instead of raising; broadcasts run sequentially
    with a randomized pause between recipients.
    """

    client: MessagingClient
    readiness: PlatformReadiness
    events: EventSink
    min_delay_ms: int = 3000
    max_delay_ms: int = 7000
    sleep: Sleeper = asyncio.sleep
    rng: random.Random = field(default_factory=random.Random)

    def ensure_ready(self) -> None:
        """Fail fast when the platform session is not established."""
        if not self.readiness.is_ready:
            raise NotReady("WhatsApp is not ready.")

    async def refresh_readiness(self) -> bool:
        """Probe the platform and update the readiness flag."""
        publish_status(self.events, "whatsapp", "connecting")
        try:
            connected = await self.client.check_connection()
        except Exception:
            logger.exception("WhatsApp readiness probe failed")
            connected = False
        if connected:
            self.readiness.mark_ready()
            publish_status(self.events, "whatsapp", "connected")
        else:
            self.readiness.mark_not_ready("probe failed")
            publish_status(self.events, "whatsapp", "disconnected")
            publish_log(self.events, "WhatsApp connection is unavailable.", "error")
        return connected

    async def send_single(self, address: str, text: str) -> DeliveryResult:
        """Send one text message."""
        self.ensure_ready()
        return await self._attempt(address, self.client.send_text(address, text))

    async def send_image(
        self, address: str, image: bytes, caption: str | None = None
    ) -> DeliveryResult:
        """Send one image message."""
        self.ensure_ready()
        return await self._attempt(
            address, self.client.send_image(address, image, caption)
        )

    async def notify(self, address: str, text: str) -> DeliveryResult:
        """Best-effort text send for side-effect notifications; never raises."""
        if not self.readiness.is_ready:
            logger.warning("WhatsApp not ready; notification to %s dropped", address)
            return DeliveryResult(ok=False, error="not ready")
        return await self._attempt(address, self.client.send_text(address, text))

    async def notify_image(
        self, address: str, image: bytes, caption: str | None = None
    ) -> DeliveryResult:
        """Best-effort image send; never raises."""
        if not self.readiness.is_ready:
            logger.warning("WhatsApp not ready; image to %s dropped", address)
            return DeliveryResult(ok=False, error="not ready")
        return await self._attempt(
            address, self.client.send_image(address, image, caption)
        )

    async def pause(self) -> None:
        """Wait a human-like random interval between automated sends."""
        delay_ms = self.rng.uniform(self.min_delay_ms, self.max_delay_ms)
        await self.sleep(delay_ms / 1000)

    async def send_broadcast(
        self, addresses: list[str], message: str
    ) -> BroadcastResult:
        """Send the same message to every address, one at a time."""
        self.ensure_ready()
        logger.info("Starting broadcast to %d contacts", len(addresses))
        success_count = 0
        fail_count = 0
        for index, address in enumerate(addresses):
            if index:
                await self.pause()
            try:
                result = await self.send_single(address, message)
            except NotReady as exc:
                result = DeliveryResult(ok=False, error=str(exc))
            if result.ok:
                success_count += 1
            else:
                fail_count += 1
                logger.warning(
                    "Broadcast delivery to %s failed: %s", address, result.error
                )
        summary = BroadcastResult(
            success_count=success_count,
            fail_count=fail_count,
            total=len(addresses),
        )
        publish_log(
            self.events,
            f"Broadcast finished. Sent: {success_count}, failed: {fail_count}.",
            "success" if not fail_count else "warning",
        )
        return summary

    async def _attempt(self, address: str, send: Awaitable[None]) -> DeliveryResult:
        try:
            await send
        except Exception as exc:
            logger.warning("Failed to deliver message to %s: %s", address, exc)
            return DeliveryResult(ok=False, error=f"{type(exc).__name__}: {exc}")
        logger.info("Message delivered to %s", address)
        return DeliveryResult(ok=True)
