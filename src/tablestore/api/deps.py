"""
tablestore.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Encapsulate app.state access to the process-wide `TableEngine`.
"""

from __future__ import annotations

from fastapi import Request

from tablestore.store.engine import TableEngine


def engine_dep(request: Request) -> TableEngine:
    # The engine is created once in `tablestore.api.app.create_app`.
    return request.app.state.engine  # type: ignore[attr-defined]
