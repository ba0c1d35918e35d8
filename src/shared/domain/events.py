"""Domain events.

Aggregates record what happened as immutable ``DomainEvent`` dataclasses;
the aggregate's repository turns them into outbox rows when it saves.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Union
from uuid import UUID, uuid4


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    return value


@dataclass(frozen=True)
class DomainEvent:
    """Base event.  ``event_name`` is the concrete class name.

    ``aggregate_id`` is a string for orders and a UUID elsewhere.
    """

    aggregate_id: Union[str, UUID]
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", type(self).__name__)

    def to_payload(self) -> Dict[str, Any]:
        """All fields as JSON-compatible values (ids, decimals, datetimes as str)."""
        return _jsonable(asdict(self))


class DomainEventMixin:
    """Collects events on an aggregate until its repository flushes them."""

    def _pending_events(self) -> List[DomainEvent]:
        if "_domain_events" not in self.__dict__:
            self._domain_events: List[DomainEvent] = []
        return self._domain_events

    def add_domain_event(self, event: DomainEvent) -> None:
        self._pending_events().append(event)

    def clear_domain_events(self) -> None:
        self._pending_events().clear()

    @property
    def domain_events(self) -> List[DomainEvent]:
        return list(self._pending_events())
