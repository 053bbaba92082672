"""
tablestore.api.routers.tables

Table endpoints: `/{table}` and `/{table}/{position}`.

Responsibilities:
- Decode request bodies into JSON records.
- Delegate to `TableEngine` off the event loop (engine calls block on file I/O).
- Render reads as JSON and mutations as plain confirmation strings.
"""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import JsonValue
from starlette.concurrency import run_in_threadpool

from tablestore.api.deps import engine_dep
from tablestore.errors import InvalidArgumentError
from tablestore.store.engine import POSITION_NOT_INT, TableEngine
from tablestore.store.snapshot import decode_record

router = APIRouter()

_ANY_METHOD = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


async def read_record(request: Request) -> JsonValue:
    # Same decoder and limits as snapshot loading, so accepted records always reload.
    return decode_record(await request.body())


@router.api_route("/", methods=_ANY_METHOD, response_model=None, include_in_schema=False)
async def missing_table_name() -> NoReturn:
    raise InvalidArgumentError("Table name is required")


@router.get("/{table}")
async def get_table(table: str, engine: TableEngine = Depends(engine_dep)) -> JSONResponse:
    records = await run_in_threadpool(engine.get_all, table)
    return JSONResponse(records)


@router.get("/{table}/{position}")
async def get_record(
    table: str,
    position: str,
    engine: TableEngine = Depends(engine_dep),
) -> JSONResponse:
    record = await run_in_threadpool(engine.get_at, table, position)
    return JSONResponse(record)


@router.post("/{table}")
@router.post("/{table}/")
async def append_record(
    table: str,
    record: JsonValue = Depends(read_record),
    engine: TableEngine = Depends(engine_dep),
) -> PlainTextResponse:
    await run_in_threadpool(engine.append, table, record)
    return PlainTextResponse("Data appended")


@router.api_route("/{table}/", methods=["GET", "PUT", "DELETE"], response_model=None)
async def empty_position(table: str) -> NoReturn:
    # `/users/` addresses an empty position, never the whole table.
    raise InvalidArgumentError(POSITION_NOT_INT)


@router.post("/{table}/{position}")
async def append_record_ignoring_position(
    table: str,
    position: str,
    record: JsonValue = Depends(read_record),
    engine: TableEngine = Depends(engine_dep),
) -> PlainTextResponse:
    # Appends always go to the end; a trailing position segment is ignored.
    await run_in_threadpool(engine.append, table, record)
    return PlainTextResponse("Data appended")


@router.put("/{table}", response_model=None)
async def replace_without_position(table: str) -> NoReturn:
    raise InvalidArgumentError("Position number is missing")


@router.put("/{table}/{position}")
async def replace_record(
    table: str,
    position: str,
    record: JsonValue = Depends(read_record),
    engine: TableEngine = Depends(engine_dep),
) -> PlainTextResponse:
    await run_in_threadpool(engine.replace_at, table, position, record)
    return PlainTextResponse("Data modified")


@router.delete("/{table}")
async def delete_table(table: str, engine: TableEngine = Depends(engine_dep)) -> PlainTextResponse:
    await run_in_threadpool(engine.delete_table, table)
    return PlainTextResponse("Table deleted")


@router.delete("/{table}/{position}")
async def delete_record(
    table: str,
    position: str,
    engine: TableEngine = Depends(engine_dep),
) -> PlainTextResponse:
    await run_in_threadpool(engine.delete_at, table, position)
    return PlainTextResponse("Data deleted")


# --- Module Notes -----------------------------------------------------------
# Route order matters: "/" must be registered before "/{table}" patterns.
