"""
tablestore.store.engine

Table engine: named, ordered tables of JSON records with positional CRUD.

Responsibilities:
- Own the in-memory database (`{table name: [records]}`).
- Validate positions on every call (positions shift after deletes).
- Refuse records the snapshot could not save and reload, before touching state.
- Persist the full database through `SnapshotStore` after every mutation.
- Serialize all access behind one lock so mutate+save is atomic per request.
"""

from __future__ import annotations

import copy
import re
import threading
from collections.abc import Callable

from pydantic import JsonValue

from tablestore.errors import InvalidArgumentError, NotFoundError, PersistenceError
from tablestore.observability.logging import get_logger
from tablestore.store.snapshot import SnapshotStore, Tables, check_record

log = get_logger(__name__)

_DIGITS = re.compile(r"[0-9]+")
_NEGATIVE = re.compile(r"-[0-9]+")

POSITION_NOT_INT = "Position could not be converted to int"

TABLE_NOT_FOUND = "Table not found"
TABLE_DOES_NOT_EXIST = "Table does not exist"
POSITION_OUT_OF_RANGE = "Position is bigger than the number of elements in the table"


def parse_position(position: int | str) -> int:
    """
    Normalize a position from a path segment or a caller-supplied int.

    Only plain decimal digits are accepted for strings; signs, whitespace,
    underscores and non-ASCII digits are rejected.
    """

    if isinstance(position, bool):
        raise InvalidArgumentError(POSITION_NOT_INT)
    if isinstance(position, int):
        if position < 0:
            raise InvalidArgumentError("Position must be a non-negative integer")
        return position
    if _NEGATIVE.fullmatch(position):
        raise InvalidArgumentError("Position must be a non-negative integer")
    if not _DIGITS.fullmatch(position):
        raise InvalidArgumentError(POSITION_NOT_INT)
    return int(position)


class TableEngine:
    def __init__(
        self,
        snapshot: SnapshotStore,
        *,
        rollback_on_persist_failure: bool = False,
    ) -> None:
        self._snapshot = snapshot
        self._rollback_on_persist_failure = rollback_on_persist_failure
        self._tables: Tables = {}
        # One exclusive lock for reads and writes; tables are small and saves are short.
        self._lock = threading.Lock()

    def load(self) -> None:
        """
        Replace the in-memory database with the snapshot contents.
        Raises `CorruptSnapshotError` unchanged; callers treat it as fatal.
        """

        tables = self._snapshot.load()
        with self._lock:
            self._tables = tables

    def tables(self) -> list[str]:
        with self._lock:
            return sorted(self._tables)

    # Reads ------------------------------------------------------------------

    def get_all(self, table: str) -> list[JsonValue]:
        with self._lock:
            records = self._table(table, TABLE_NOT_FOUND)
            return copy.deepcopy(records)

    def get_at(self, table: str, position: int | str) -> JsonValue:
        index = parse_position(position)
        with self._lock:
            records = self._table(table, TABLE_NOT_FOUND)
            _check_range(records, index)
            return copy.deepcopy(records[index])

    # Mutations --------------------------------------------------------------

    def append(self, table: str, record: JsonValue) -> None:
        check_record(record)
        with self._lock:
            created = table not in self._tables
            records = self._tables.setdefault(table, [])
            records.append(copy.deepcopy(record))

            def undo() -> None:
                if created:
                    del self._tables[table]
                else:
                    records.pop()

            self._persist(undo)
            log.info("table_appended", table=table, size=len(records), created=created)

    def replace_at(self, table: str, position: int | str, record: JsonValue) -> None:
        index = parse_position(position)
        check_record(record)
        with self._lock:
            records = self._table(table, TABLE_NOT_FOUND)
            _check_range(records, index)
            previous = records[index]
            records[index] = copy.deepcopy(record)

            def undo() -> None:
                records[index] = previous

            self._persist(undo)
            log.info("record_replaced", table=table, position=index)

    def delete_table(self, table: str) -> None:
        with self._lock:
            self._table(table, TABLE_DOES_NOT_EXIST)
            # Shallow copy keeps table order intact if the delete has to be undone.
            before = dict(self._tables)
            removed = self._tables.pop(table)

            def undo() -> None:
                self._tables = before

            self._persist(undo)
            log.info("table_deleted", table=table, size=len(removed))

    def delete_at(self, table: str, position: int | str) -> None:
        index = parse_position(position)
        with self._lock:
            records = self._table(table, TABLE_NOT_FOUND)
            _check_range(records, index)
            # O(n) splice; later records shift one position earlier.
            removed = records.pop(index)

            def undo() -> None:
                records.insert(index, removed)

            self._persist(undo)
            log.info("record_deleted", table=table, position=index, size=len(records))

    # Internals --------------------------------------------------------------

    def _table(self, table: str, missing_message: str) -> list[JsonValue]:
        records = self._tables.get(table)
        if records is None:
            raise NotFoundError(missing_message)
        return records

    def _persist(self, undo: Callable[[], None]) -> None:
        # Caller must hold self._lock.
        try:
            self._snapshot.save(self._tables)
        except PersistenceError:
            if self._rollback_on_persist_failure:
                undo()
                log.warning("mutation_rolled_back")
            else:
                log.warning("mutation_kept_after_failed_save")
            raise


def _check_range(records: list[JsonValue], index: int) -> None:
    if index >= len(records):
        raise NotFoundError(POSITION_OUT_OF_RANGE)


# --- Module Notes -----------------------------------------------------------
# Returned records are deep copies; callers never hold references into engine state.
