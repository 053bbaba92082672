"""
tablestore.store.snapshot

Whole-database snapshot persisted as one JSON document.

Responsibilities:
- Load the snapshot file into `{table name: [records]}` at startup.
- Overwrite the snapshot file with the full database after each mutation.

Note:
- There is no temp-file rename or write-ahead log. A crash mid-write can leave a
  truncated file, which the next `load()` reports as `CorruptSnapshotError`.
"""

from __future__ import annotations

import math
from pathlib import Path

from pydantic import JsonValue, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from tablestore.errors import CorruptSnapshotError, InvalidArgumentError, PersistenceError
from tablestore.observability.logging import get_logger

Tables = dict[str, list[JsonValue]]

# Container nesting allowed inside one record. The snapshot wraps every record in
# two more levels (object, array) and must stay well under pydantic's JSON depth limit.
MAX_RECORD_DEPTH = 128

# Validates both JSON syntax and the object-of-arrays shape in one pass.
_tables_adapter: TypeAdapter[Tables] = TypeAdapter(Tables)
_record_adapter: TypeAdapter[JsonValue] = TypeAdapter(JsonValue)

log = get_logger(__name__)


def check_record(record: JsonValue) -> None:
    """
    Reject values the snapshot could not write and read back unchanged:
    containers nested deeper than `MAX_RECORD_DEPTH` and non-finite floats.
    """

    stack: list[tuple[JsonValue, int]] = [(record, 0)]
    while stack:
        value, depth = stack.pop()
        if isinstance(value, float):
            if not math.isfinite(value):
                raise InvalidArgumentError("Record contains a non-finite number")
        elif isinstance(value, (list, dict)):
            depth += 1
            if depth > MAX_RECORD_DEPTH:
                raise InvalidArgumentError(
                    f"Record is nested deeper than {MAX_RECORD_DEPTH} levels"
                )
            children = value.values() if isinstance(value, dict) else value
            stack.extend((child, depth) for child in children)


def decode_record(raw: bytes) -> JsonValue:
    """
    Decode one request body with the same decoder the snapshot uses on load.
    """

    try:
        record = _record_adapter.validate_json(raw)
        check_record(record)
    except (ValidationError, InvalidArgumentError) as e:
        raise InvalidArgumentError("Error decoding data") from e
    return record


class SnapshotStore:
    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Tables:
        """
        Read and decode the snapshot. A missing file is a first run and yields
        an empty database.
        """

        if not self._path.exists():
            log.info("snapshot_missing", path=str(self._path))
            return {}

        try:
            raw = self._path.read_bytes()
        except OSError as e:
            raise CorruptSnapshotError(f"Snapshot could not be read: {e.strerror}") from e

        try:
            tables = _tables_adapter.validate_json(raw)
        except ValidationError as e:
            raise CorruptSnapshotError(
                f"Snapshot is not a JSON object of arrays ({e.error_count()} errors)"
            ) from e

        log.info("snapshot_loaded", path=str(self._path), tables=len(tables))
        return tables

    def save(self, tables: Tables) -> None:
        try:
            payload = _tables_adapter.dump_json(tables)
            self._path.write_bytes(payload)
        except (OSError, PydanticSerializationError) as e:
            log.error("snapshot_save_failed", path=str(self._path), error=str(e))
            raise PersistenceError("Error writing data in db") from e


# --- Module Notes -----------------------------------------------------------
# Output is compact JSON with table and key order preserved, so load(save(x)) == x.
