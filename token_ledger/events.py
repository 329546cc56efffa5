import logging
from typing import Protocol, Sequence

from .models import LedgerEvent

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    def emit(self, event: LedgerEvent) -> None: ...


class InMemoryEventSink:
    def __init__(self):
        self.events: list[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def named(self, name: str) -> list[LedgerEvent]:
        return [e for e in self.events if e.name == name]

    def clear(self) -> None:
        self.events.clear()


class LoggingEventSink:
    """Writes every event to the ``token_ledger.events`` logger at INFO."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def emit(self, event: LedgerEvent) -> None:
        fields = event.model_dump(mode="json", exclude={"name"})
        self.log.info(
            "%s %s",
            event.name,
            fields,
            extra={
                "event_name": event.name,
                "operator": fields.get("operator"),
                "token_id": fields.get("id"),
            },
        )


class FanOutEventSink:
    def __init__(self, sinks: Sequence[EventSink]):
        self.sinks = list(sinks)

    def emit(self, event: LedgerEvent) -> None:
        for sink in self.sinks:
            sink.emit(event)
