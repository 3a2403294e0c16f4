"""RecordStore backed by the local SQLite database.

List-valued fields are stored as JSON text; booleans as 0/1. Every
``sqlite3.Error`` surfaces as ``StoreError``.
"""

import json
import logging
import sqlite3
from typing import Any

from src.core.db import ENTITY_COLUMNS
from src.core.errors import StoreError
from src.store.base import RecordStore
from src.store.feed import ChangeAction, ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)


class SqliteRecordStore(RecordStore):
    """Usage::

        store = SqliteRecordStore(init_db("data/matching.db"))
        rows = await store.select("matches", {"status": "pending"})
    """

    def __init__(self, conn: sqlite3.Connection, feed: ChangeFeed | None = None) -> None:
        self._conn = conn
        self._feed = feed

    async def select(
        self, entity: str, filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        columns, _, _ = self._schema(entity)
        where, params = self._where(entity, filters or {})
        sql = f"SELECT {', '.join(columns)} FROM {entity}{where} ORDER BY created_at, rowid"
        try:
            rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"select from {entity} failed: {e}", entity=entity) from e
        return [self._decode(entity, row) for row in rows]

    async def insert(self, entity: str, record: dict[str, Any]) -> dict[str, Any]:
        columns, _, _ = self._schema(entity)
        self._check_fields(entity, record)
        encoded = self._encode(entity, record)
        names = [c for c in columns if c in encoded]
        placeholders = ", ".join("?" for _ in names)
        sql = f"INSERT INTO {entity} ({', '.join(names)}) VALUES ({placeholders})"
        try:
            self._conn.execute(sql, [encoded[n] for n in names])
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreError(f"insert into {entity} failed: {e}", entity=entity) from e

        logger.debug("Inserted %s %s", entity, record.get("id"))
        self._publish(entity, str(record.get("id")), ChangeAction.INSERT)
        stored = await self.get(entity, str(record.get("id")))
        return stored if stored is not None else dict(record)

    async def update(
        self,
        entity: str,
        record_id: str,
        changes: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> bool:
        self._schema(entity)
        self._check_fields(entity, changes)
        if not changes:
            return False
        encoded = self._encode(entity, changes)
        assignments = ", ".join(f"{name} = ?" for name in encoded)
        conditions = {"id": record_id, **(expected or {})}
        where, params = self._where(entity, conditions)
        sql = f"UPDATE {entity} SET {assignments}{where}"
        try:
            cursor = self._conn.execute(sql, [*encoded.values(), *params])
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreError(f"update of {entity} {record_id} failed: {e}", entity=entity) from e

        updated = cursor.rowcount > 0
        if updated:
            logger.debug("Updated %s %s: %s", entity, record_id, sorted(changes))
            self._publish(entity, record_id, ChangeAction.UPDATE)
        else:
            logger.debug("Update of %s %s matched no row (expected=%s)", entity, record_id, expected)
        return updated

    async def delete(self, entity: str, record_id: str) -> bool:
        self._schema(entity)
        try:
            cursor = self._conn.execute(f"DELETE FROM {entity} WHERE id = ?", (record_id,))
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreError(f"delete of {entity} {record_id} failed: {e}", entity=entity) from e

        deleted = cursor.rowcount > 0
        if deleted:
            self._publish(entity, record_id, ChangeAction.DELETE)
        return deleted

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _schema(entity: str) -> tuple[tuple[str, ...], frozenset[str], frozenset[str]]:
        try:
            return ENTITY_COLUMNS[entity]
        except KeyError:
            msg = f"Unknown entity: {entity}"
            raise StoreError(msg, entity=entity) from None

    def _check_fields(self, entity: str, record: dict[str, Any]) -> None:
        columns, _, _ = self._schema(entity)
        unknown = set(record) - set(columns)
        if unknown:
            msg = f"Unknown fields for {entity}: {sorted(unknown)}"
            raise StoreError(msg, entity=entity)

    def _where(self, entity: str, filters: dict[str, Any]) -> tuple[str, list[Any]]:
        if not filters:
            return "", []
        self._check_fields(entity, filters)
        encoded = self._encode(entity, filters)
        clauses: list[str] = []
        params: list[Any] = []
        for name, value in encoded.items():
            if value is None:
                clauses.append(f"{name} IS NULL")
            else:
                clauses.append(f"{name} = ?")
                params.append(value)
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _encode(entity: str, record: dict[str, Any]) -> dict[str, Any]:
        _, json_columns, bool_columns = ENTITY_COLUMNS[entity]
        out: dict[str, Any] = {}
        for name, value in record.items():
            if name in json_columns:
                out[name] = json.dumps(list(value or []), ensure_ascii=False)
            elif name in bool_columns:
                out[name] = int(bool(value))
            elif hasattr(value, "value"):
                out[name] = value.value
            elif hasattr(value, "isoformat"):
                out[name] = value.isoformat()
            else:
                out[name] = value
        return out

    @staticmethod
    def _decode(entity: str, row: sqlite3.Row) -> dict[str, Any]:
        _, json_columns, bool_columns = ENTITY_COLUMNS[entity]
        out: dict[str, Any] = dict(row)
        for name in json_columns:
            out[name] = json.loads(out[name]) if out.get(name) else []
        for name in bool_columns:
            out[name] = bool(out[name])
        return out

    def _publish(self, entity: str, record_id: str, action: ChangeAction) -> None:
        if self._feed is not None:
            self._feed.publish(ChangeEvent(entity=entity, record_id=record_id, action=action))
