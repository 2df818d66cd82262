"""Administrative event log."""

from collections import deque
from dataclasses import dataclass, field
from typing import Protocol

MAX_LOG_HISTORY = 50


class EventSink(Protocol):
    """Push channel for administrative status and log events."""

    def publish(self, event: dict[str, object]) -> None:
        """Publish an event."""


@dataclass
class InMemoryEventLog(EventSink):
    """Keeps recent log events and the latest status of each component."""

    history: deque[dict[str, object]] = field(
        default_factory=lambda: deque(maxlen=MAX_LOG_HISTORY)
    )
    statuses: dict[str, str] = field(default_factory=dict)

    def publish(self, event: dict[str, object]) -> None:
        """Record an event."""
        if event.get("type") == "log":
            self.history.append(event)
        elif event.get("type") == "status_update":
            self.statuses[str(event["component"])] = str(event["status"])

    def snapshot(self) -> dict[str, object]:
        """Return log history and component statuses."""
        return {"history": list(self.history), "statuses": dict(self.statuses)}


def publish_log(sink: EventSink, message: str, level: str = "info") -> None:
    """Publish a log line to the admin sink."""
    sink.publish({"type": "log", "message": message, "level": level})


def publish_status(sink: EventSink, component: str, status: str) -> None:
    """Publish a component status change to the admin sink."""
    sink.publish({"type": "status_update", "component": component, "status": status})
