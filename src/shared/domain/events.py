"""Domain events primitives for the modular monolith.

Events are immutable dataclasses.  Every concrete subclass is registered
by class name so that events persisted in the transactional outbox can be
rebuilt into their typed form by the relay worker.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Type
from uuid import UUID, uuid4

_EVENT_REGISTRY: Dict[str, Type["DomainEvent"]] = {}


class UnknownEventType(LookupError):
    """No event class is registered under the given name."""


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable)."""

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    topic: ClassVar[str] = "domain"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        _EVENT_REGISTRY[cls.__name__] = cls

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)


def event_from_payload(event_type: str, payload: Dict[str, Any]) -> DomainEvent:
    """Rebuild a typed event from its outbox representation.

    Raises:
        UnknownEventType: ``event_type`` has no registered class.
    """
    event_cls = _EVENT_REGISTRY.get(event_type)
    if event_cls is None:
        raise UnknownEventType(f"No domain event registered as '{event_type}'.")

    init_names = {f.name for f in fields(event_cls) if f.init}
    kwargs = {key: value for key, value in payload.items() if key in init_names}
    kwargs["aggregate_id"] = UUID(str(kwargs["aggregate_id"]))
    if "event_id" in kwargs:
        kwargs["event_id"] = UUID(str(kwargs["event_id"]))
    if isinstance(kwargs.get("occurred_on"), str):
        kwargs["occurred_on"] = datetime.fromisoformat(kwargs["occurred_on"])
    return event_cls(**kwargs)


class DomainEventMixin:
    """Mixin for aggregate roots that collect domain events in memory."""

    _domain_events: list[DomainEvent]

    def add_domain_event(self, event: DomainEvent) -> None:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        self._domain_events.append(event)

    def clear_domain_events(self) -> None:
        if hasattr(self, "_domain_events"):
            self._domain_events.clear()

    @property
    def domain_events(self) -> list[DomainEvent]:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        return list(self._domain_events)
