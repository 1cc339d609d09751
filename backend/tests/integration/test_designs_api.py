"""Integration tests for the design endpoints on SQLite."""

import pytest
from httpx import ASGITransport, AsyncClient

from devsketch.infrastructure.database import Base, build_engine, build_session_factory
from devsketch.infrastructure.dependencies import get_design_notifier, get_session_factory
from devsketch.infrastructure.realtime import DesignChangeNotifier
from devsketch.main import create_app

ELEMENTS = [{"id": "r1", "type": "rectangle", "x": 0, "y": 0, "width": 60, "height": 30}]


async def _client(database_path, *, create_tables: bool = True) -> AsyncClient:
    engine = build_engine(f"sqlite:///{database_path}")
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    session_factory = build_session_factory(engine)
    notifier = DesignChangeNotifier()

    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_design_notifier] = lambda: notifier
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_design_lifecycle(tmp_path):
    async with await _client(tmp_path / "designs.db") as client:
        created = await client.post(
            "/api/v1/designs",
            json={"owner_id": "user-1", "session_id": "session-1", "elements": ELEMENTS},
        )
        assert created.status_code == 201
        design_id = created.json()["id"]

        code = await client.patch(
            f"/api/v1/designs/{design_id}/code", json={"code": "export default X;"}
        )
        assert code.status_code == 200
        assert code.json()["elements"] == ELEMENTS

        elements = await client.patch(
            f"/api/v1/designs/{design_id}/elements", json={"elements": []}
        )
        assert elements.json()["code"] == "export default X;"

        fetched = await client.get(f"/api/v1/designs/{design_id}")
        assert fetched.status_code == 200
        assert fetched.json()["elements"] == []
        assert fetched.json()["session_id"] == "session-1"

        latest = await client.get("/api/v1/designs/latest", params={"session_id": "session-1"})
        assert latest.json()["id"] == design_id

        by_owner = await client.get("/api/v1/designs/latest", params={"owner_id": "user-1"})
        assert by_owner.json()["id"] == design_id


@pytest.mark.asyncio
async def test_missing_designs_are_404(tmp_path):
    async with await _client(tmp_path / "designs.db") as client:
        assert (await client.get("/api/v1/designs/nope")).status_code == 404
        assert (await client.get("/api/v1/designs/nope/events")).status_code == 404
        assert (
            await client.patch("/api/v1/designs/nope/code", json={"code": "x"})
        ).status_code == 404
        assert (
            await client.get("/api/v1/designs/latest", params={"session_id": "nope"})
        ).status_code == 404


@pytest.mark.asyncio
async def test_constraint_violations_are_422(tmp_path):
    async with await _client(tmp_path / "designs.db") as client:
        response = await client.post(
            "/api/v1/designs", json={"session_id": "session-1", "elements": []}
        )
        assert response.status_code == 422

        latest = await client.get("/api/v1/designs/latest")
        assert latest.status_code == 422


@pytest.mark.asyncio
async def test_unreachable_store_is_503(tmp_path):
    async with await _client(tmp_path / "missing" / "designs.db", create_tables=False) as client:
        response = await client.get("/api/v1/designs/any")

    assert response.status_code == 503
