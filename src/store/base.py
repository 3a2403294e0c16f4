"""Abstract base class for record stores."""

from abc import ABC, abstractmethod
from typing import Any

ENTITIES = ("job_posts", "talent_profiles", "matches", "assignments")


class RecordStore(ABC):
    """Capability interface the lifecycle persists through.

    Implementations raise ``StoreError`` for any failure of the backing
    store; they never return partial results.
    """

    @abstractmethod
    async def select(
        self, entity: str, filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return all records of ``entity`` whose fields equal ``filters``."""

    @abstractmethod
    async def insert(self, entity: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it as stored."""

    @abstractmethod
    async def update(
        self,
        entity: str,
        record_id: str,
        changes: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> bool:
        """Apply ``changes`` to one record.

        When ``expected`` is given the write only happens if the stored
        record still has those field values. Returns True if a record was
        updated.
        """

    @abstractmethod
    async def delete(self, entity: str, record_id: str) -> bool:
        """Delete one record. Returns True if it existed."""

    async def get(self, entity: str, record_id: str) -> dict[str, Any] | None:
        """Return a single record by id, or None."""
        rows = await self.select(entity, {"id": record_id})
        return rows[0] if rows else None
