"""
tests.test_api

HTTP-level tests: routing, status codes, error bodies and startup behavior.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI

from tablestore.api.app import create_app
from tablestore.errors import CorruptSnapshotError
from tablestore.settings import Settings
from tablestore.store.engine import TableEngine
from tablestore.store.snapshot import MAX_RECORD_DEPTH


@asynccontextmanager
async def serve(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not manage lifespan automatically; do it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


def _settings(snapshot_path: Path) -> Settings:
    return Settings(env="test", snapshot_path=snapshot_path)


@pytest.mark.asyncio
async def test_end_to_end_users_scenario(snapshot_path: Path) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        r = await client.post("/users", json={"name": "a"})
        assert r.status_code == 200
        assert r.text == "Data appended"

        r = await client.post("/users", json={"name": "b"})
        assert r.status_code == 200

        r = await client.get("/users")
        assert r.status_code == 200
        assert r.json() == [{"name": "a"}, {"name": "b"}]

        r = await client.delete("/users/0")
        assert r.status_code == 200
        assert r.text == "Data deleted"

        r = await client.get("/users")
        assert r.status_code == 200
        assert r.json() == [{"name": "b"}]

        r = await client.get("/users/5")
        assert r.status_code == 404
        assert r.json() == {
            "error_message": "Position is bigger than the number of elements in the table"
        }

    assert snapshot_path.read_text(encoding="utf-8") == '{"users":[{"name":"b"}]}'


@pytest.mark.asyncio
async def test_get_record_put_and_delete_table(snapshot_path: Path) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        await client.post("/items", json=[1, 2])
        await client.post("/items", content=b"null")

        r = await client.get("/items/1")
        assert r.status_code == 200
        assert r.json() is None

        r = await client.put("/items/0", json={"replaced": True})
        assert r.status_code == 200
        assert r.text == "Data modified"
        assert (await client.get("/items/0")).json() == {"replaced": True}

        r = await client.delete("/items")
        assert r.status_code == 200
        assert r.text == "Table deleted"

        r = await client.get("/items")
        assert r.status_code == 404
        assert r.json() == {"error_message": "Table not found"}

        r = await client.delete("/items")
        assert r.status_code == 404
        assert r.json() == {"error_message": "Table does not exist"}


@pytest.mark.asyncio
async def test_post_with_position_appends(snapshot_path: Path) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        await client.post("/t", json="first")
        r = await client.post("/t/0", json="second")
        assert r.status_code == 200

        assert (await client.get("/t")).json() == ["first", "second"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "path", "body", "message"),
    [
        ("GET", "/", None, "Table name is required"),
        ("POST", "/", b"{}", "Table name is required"),
        ("POST", "/t", b"{not json", "Error decoding data"),
        ("POST", "/t", b"", "Error decoding data"),
        ("POST", "/t", b"NaN", "Error decoding data"),
        ("PUT", "/t", b"{}", "Position number is missing"),
        ("PUT", "/t/0", b"{oops", "Error decoding data"),
        ("GET", "/t/abc", None, "Position could not be converted to int"),
        ("GET", "/t/-1", None, "Position must be a non-negative integer"),
        ("DELETE", "/t/1.5", None, "Position could not be converted to int"),
    ],
)
async def test_malformed_input_is_400(
    snapshot_path: Path, method: str, path: str, body: bytes | None, message: str
) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        await client.post("/t", json={"seed": True})
        r = await client.request(method, path, content=body)

        assert r.status_code == 400
        assert r.json() == {"error_message": message}
        assert (await client.get("/t")).json() == [{"seed": True}]


@pytest.mark.asyncio
async def test_unsupported_method_is_405(snapshot_path: Path) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        r = await client.patch("/t", json={})

        assert r.status_code == 405
        assert r.json() == {
            "error_message": "Unknown method. Use instead GET, POST, PUT or DELETE."
        }


@pytest.mark.asyncio
async def test_persistence_failure_is_500_and_mutation_stays(snapshot_path: Path, snapshot) -> None:
    engine = TableEngine(snapshot)
    app = create_app(settings=_settings(snapshot_path), engine=engine)

    async with serve(app) as client:
        await client.post("/t", json=1)
        snapshot.fail_saves = True

        r = await client.post("/t", json=2)
        assert r.status_code == 500
        assert r.json() == {"error_message": "Error writing data in db"}

        assert (await client.get("/t")).json() == [1, 2]


@pytest.mark.asyncio
async def test_persistence_failure_rolls_back_when_configured(
    snapshot_path: Path, snapshot
) -> None:
    engine = TableEngine(snapshot, rollback_on_persist_failure=True)
    app = create_app(settings=_settings(snapshot_path), engine=engine)

    async with serve(app) as client:
        await client.post("/t", json=1)
        snapshot.fail_saves = True

        r = await client.put("/t/0", json=2)
        assert r.status_code == 500

        assert (await client.get("/t")).json() == [1]


@pytest.mark.asyncio
async def test_state_survives_restart(snapshot_path: Path) -> None:
    async with serve(create_app(settings=_settings(snapshot_path))) as client:
        await client.post("/users", json={"name": "a"})

    async with serve(create_app(settings=_settings(snapshot_path))) as client:
        r = await client.get("/users/0")
        assert r.status_code == 200
        assert r.json() == {"name": "a"}


@pytest.mark.asyncio
async def test_corrupt_snapshot_aborts_startup(snapshot_path: Path) -> None:
    snapshot_path.write_text('{"users": ', encoding="utf-8")
    app = create_app(settings=_settings(snapshot_path))

    with pytest.raises(CorruptSnapshotError):
        async with app.router.lifespan_context(app):
            pass


@pytest.mark.asyncio
async def test_request_id_is_echoed(snapshot_path: Path) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        r = await client.get("/missing", headers={"x-request-id": "req-123"})
        assert r.status_code == 404
        assert r.headers["x-request-id"] == "req-123"

        r = await client.get("/missing")
        assert r.headers["x-request-id"]


def _nested(depth: int) -> bytes:
    return ("[" * depth + "]" * depth).encode()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [_nested(MAX_RECORD_DEPTH + 1), _nested(210), _nested(300), b'{"a": ' * 5000 + b"1"],
)
async def test_overly_nested_body_is_rejected(snapshot_path: Path, body: bytes) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        await client.post("/t", json="seed")

        r = await client.post("/t", content=body)
        assert r.status_code == 400
        assert r.json() == {"error_message": "Error decoding data"}

        r = await client.put("/t/0", content=body)
        assert r.status_code == 400

        # Later writes to any table still save.
        r = await client.post("/other", json={"a": 1})
        assert r.status_code == 200
        assert (await client.get("/t")).json() == ["seed"]


@pytest.mark.asyncio
async def test_deepest_accepted_record_survives_restart(snapshot_path: Path) -> None:
    deepest = _nested(MAX_RECORD_DEPTH)

    async with serve(create_app(settings=_settings(snapshot_path))) as client:
        r = await client.post("/deep", content=deepest)
        assert r.status_code == 200

    async with serve(create_app(settings=_settings(snapshot_path))) as client:
        r = await client.get("/deep/0")
        assert r.status_code == 200
        assert r.content.replace(b" ", b"") == deepest


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"1e400", b"-1e400", b'{"x": [1, 1e999]}', b"NaN", b"Infinity"])
async def test_non_finite_numbers_are_rejected(snapshot_path: Path, body: bytes) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        await client.post("/t", json=1.5)

        r = await client.post("/t", content=body)
        assert r.status_code == 400
        assert r.json() == {"error_message": "Error decoding data"}

        r = await client.get("/t")
        assert r.status_code == 200
        assert r.json() == [1.5]

    assert snapshot_path.read_text(encoding="utf-8") == '{"t":[1.5]}'


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
async def test_trailing_slash_is_an_empty_position(snapshot_path: Path, method: str) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        await client.post("/users", json={"name": "a"})

        r = await client.request(method, "/users/", content=b"{}")
        assert r.status_code == 400
        assert r.json() == {"error_message": "Position could not be converted to int"}
        assert "location" not in r.headers

        assert (await client.get("/users")).json() == [{"name": "a"}]


@pytest.mark.asyncio
async def test_post_with_trailing_slash_appends(snapshot_path: Path) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        r = await client.post("/users/", json={"name": "a"})
        assert r.status_code == 200

        assert (await client.get("/users")).json() == [{"name": "a"}]


@pytest.mark.asyncio
async def test_unknown_path_shape_names_expected_shapes(snapshot_path: Path) -> None:
    app = create_app(settings=_settings(snapshot_path))

    async with serve(app) as client:
        await client.post("/users", json={"name": "a"})

        r = await client.get("/users/0/extra")
        assert r.status_code == 404
        assert r.json() == {"error_message": "Not found. Use /{table} or /{table}/{position}."}
