"""Pydantic models for WhatsApp Cloud API webhook payloads."""

from pydantic import BaseModel, Field

from attendance_bot.domain.messages import InboundMessageEvent, PayloadKind


class WhatsAppText(BaseModel):
    """Text message body."""

    body: str


class WhatsAppMedia(BaseModel):
    """Media attachment reference."""

    id: str
    mime_type: str | None = None
    caption: str | None = None


class WhatsAppMessage(BaseModel):
    """Inbound message payload."""

    id: str | None = None
    from_number: str = Field(alias="from")
    timestamp: str | None = None
    type: str
    text: WhatsAppText | None = None
    image: WhatsAppMedia | None = None


class WhatsAppValue(BaseModel):
    """Change value carrying messages and delivery statuses."""

    messaging_product: str | None = None
    messages: list[WhatsAppMessage] = Field(default_factory=list)


class WhatsAppChange(BaseModel):
    """One change notification."""

    field: str
    value: WhatsAppValue


class WhatsAppEntry(BaseModel):
    """One business account entry."""

    id: str | None = None
    changes: list[WhatsAppChange] = Field(default_factory=list)


class WhatsAppWebhook(BaseModel):
    """Top-level webhook notification."""

    object: str
    entry: list[WhatsAppEntry] = Field(default_factory=list)

    def events(self) -> list[InboundMessageEvent]:
        """Return the image and text messages as inbound events."""
        events = []
        for entry in self.entry:
            for change in entry.changes:
                if change.field != "messages":
                    continue
                for message in change.value.messages:
                    event = _to_event(message)
                    if event is not None:
                        events.append(event)
        return events


def _to_event(message: WhatsAppMessage) -> InboundMessageEvent | None:
    if message.type == "image" and message.image:
        return InboundMessageEvent(
            sender=message.from_number,
            kind=PayloadKind.MEDIA,
            content=message.image.id,
            mime_type=message.image.mime_type,
        )
    if message.type == "text" and message.text:
        return InboundMessageEvent(
            sender=message.from_number,
            kind=PayloadKind.TEXT,
            content=message.text.body,
        )
    return None
