"""Domain models for messaging platform traffic."""

from dataclasses import dataclass
from enum import Enum


class PayloadKind(str, Enum):
    """Kind of payload carried by an inbound message."""

    MEDIA = "MEDIA"
    TEXT = "TEXT"


@dataclass(frozen=True)
class InboundMessageEvent:
    """A message received from a contact.

    For MEDIA payloads ``content`` holds the platform media id; the bytes are
    only downloaded once the sender is matched to a pending photo request.
    """

    sender: str
    kind: PayloadKind
    content: str
    mime_type: str | None = None


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a single send attempt."""

    ok: bool
    error: str | None = None


@dataclass(frozen=True)
class BroadcastResult:
    """Aggregated outcome of a sequential broadcast."""

    success_count: int
    fail_count: int
    total: int
