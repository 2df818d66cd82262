"""Domain models for the roster."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class PhotoRequestState(str, Enum):
    """Where a person is in the photo collection conversation."""

    IDLE = "IDLE"
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class Person:
    """A person on the attendance roster."""

    id: str
    name: str
    contact: str | None
    photo_ref: str | None
    photo_request_state: PhotoRequestState = PhotoRequestState.IDLE
    photo_requested_at: datetime | None = None
