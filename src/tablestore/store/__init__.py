"""
tablestore.store

Storage package: the in-memory table engine and its single-file snapshot.

Responsibilities:
- Own the database state and every operation over it.
- Own durability of that state on disk.
"""

from tablestore.store.engine import TableEngine
from tablestore.store.snapshot import SnapshotStore, Tables

__all__ = ["SnapshotStore", "TableEngine", "Tables"]


# --- Module Notes -----------------------------------------------------------
# The API layer only ever talks to `TableEngine`; `SnapshotStore` sits below it.
