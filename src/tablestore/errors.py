"""
tablestore.errors

Error taxonomy shared by the engine, the snapshot store and the HTTP adapter.

Responsibilities:
- Define one exception per failure class the store can report.
- Carry a client-safe message and the HTTP status the adapter should use.
"""

from __future__ import annotations


class TableStoreError(Exception):
    """
    Base class for failures the store reports to its callers.

    `message` is safe to show to clients; it never contains paths or tracebacks.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(TableStoreError):
    status_code = 400


class NotFoundError(TableStoreError):
    status_code = 404


class PersistenceError(TableStoreError):
    # Raised after the in-memory mutation was applied (unless rollback is enabled).
    status_code = 500


class CorruptSnapshotError(TableStoreError):
    """
    The snapshot file exists but cannot be decoded into tables of JSON values.

    Only raised by `SnapshotStore.load()`; startup treats it as fatal.
    """


# --- Module Notes -----------------------------------------------------------
# The API layer maps these to `{"error_message": ...}` responses in `api.errors`.
