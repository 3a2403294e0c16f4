"""In-process change feed.

Stores publish a ChangeEvent after each successful write so callers can
refresh views when another party changes a watched record.
"""

import logging
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class ChangeAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(BaseModel):
    """A committed write to one record."""

    model_config = ConfigDict(frozen=True)

    entity: str
    record_id: str
    action: ChangeAction


Subscriber = Callable[[ChangeEvent], None]


class ChangeFeed:
    """Fan-out of ChangeEvents to subscribers.

    Usage::

        feed = ChangeFeed()
        unsubscribe = feed.subscribe(lambda e: print(e.record_id), entity="matches")
        ...
        unsubscribe()
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[str | None, Subscriber]] = []

    def subscribe(self, callback: Subscriber, entity: str | None = None) -> Callable[[], None]:
        """Register ``callback`` for events on ``entity`` (all entities if None)."""
        entry = (entity, callback)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        """Deliver an event. A failing subscriber does not stop the others."""
        for entity, callback in list(self._subscribers):
            if entity is not None and entity != event.entity:
                continue
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Change subscriber failed for %s %s", event.entity, event.record_id,
                )

    def __len__(self) -> int:
        return len(self._subscribers)
