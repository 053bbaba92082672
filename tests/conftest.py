"""
tests.conftest

Shared fixtures: a snapshot file under tmp_path and engines bound to it.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tablestore.errors import PersistenceError
from tablestore.store.engine import TableEngine
from tablestore.store.snapshot import SnapshotStore, Tables


class FlakySnapshot(SnapshotStore):
    """
    Real snapshot store whose saves can be switched to fail.
    """

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        self.fail_saves = False
        self.saves = 0

    def save(self, tables: Tables) -> None:
        if self.fail_saves:
            raise PersistenceError("Error writing data in db")
        super().save(tables)
        self.saves += 1


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    return tmp_path / "db.json"


@pytest.fixture
def snapshot(snapshot_path: Path) -> FlakySnapshot:
    return FlakySnapshot(snapshot_path)


@pytest.fixture
def engine(snapshot: FlakySnapshot) -> TableEngine:
    eng = TableEngine(snapshot)
    eng.load()
    return eng


@pytest.fixture
def rollback_engine(snapshot: FlakySnapshot) -> TableEngine:
    eng = TableEngine(snapshot, rollback_on_persist_failure=True)
    eng.load()
    return eng
