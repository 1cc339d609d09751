"""Integration tests for the SQLAlchemy design repository on SQLite."""

import pytest

from devsketch.domain.entities import Design
from devsketch.domain.exceptions import (
    ConstraintViolationError,
    EntityNotFoundError,
    RemoteUnavailableError,
)
from devsketch.infrastructure.database import Base, build_engine, build_session_factory
from devsketch.infrastructure.database.repositories import SQLAlchemyDesignRepository
from devsketch.infrastructure.realtime import DesignChangeNotifier

ELEMENTS = [{"id": "r1", "type": "rectangle", "x": 0, "y": 0, "width": 60, "height": 30}]


async def _repository(tmp_path) -> tuple[SQLAlchemyDesignRepository, DesignChangeNotifier]:
    engine = build_engine(f"sqlite:///{tmp_path / 'designs.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    notifier = DesignChangeNotifier()
    return SQLAlchemyDesignRepository(build_session_factory(engine), notifier), notifier


@pytest.mark.asyncio
async def test_create_and_get_round_trip(tmp_path):
    repository, _ = await _repository(tmp_path)

    design_id = await repository.create("user-1", "session-1", ELEMENTS)
    design = await repository.get_by_id(design_id)

    assert design.id == design_id
    assert design.owner_id == "user-1"
    assert design.session_id == "session-1"
    assert design.elements == ELEMENTS
    assert design.code is None


@pytest.mark.asyncio
async def test_get_missing_design_returns_none(tmp_path):
    repository, _ = await _repository(tmp_path)
    assert await repository.get_by_id("does-not-exist") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(("owner_id", "session_id"), [(None, "session-1"), ("user-1", "")])
async def test_create_requires_owner_and_session(tmp_path, owner_id, session_id):
    repository, _ = await _repository(tmp_path)

    with pytest.raises(ConstraintViolationError):
        await repository.create(owner_id, session_id, ELEMENTS)


@pytest.mark.asyncio
async def test_latest_lookups_return_newest_design(tmp_path):
    repository, _ = await _repository(tmp_path)
    await repository.create("user-1", "session-1", [])
    newest_of_session = await repository.create("user-1", "session-1", ELEMENTS)
    newest_of_owner = await repository.create("user-1", "session-2", [])

    by_session = await repository.find_latest_for_session("session-1")
    by_owner = await repository.find_latest_for_owner("user-1")

    assert by_session.id == newest_of_session
    assert by_owner.id == newest_of_owner
    assert await repository.find_latest_for_session("unknown") is None


@pytest.mark.asyncio
async def test_partial_updates_leave_other_field_untouched(tmp_path):
    repository, _ = await _repository(tmp_path)
    design_id = await repository.create("user-1", "session-1", ELEMENTS)

    await repository.update_code(design_id, "export default X;")
    updated = await repository.update_elements(design_id, [])

    assert updated.elements == []
    assert updated.code == "export default X;"
    reloaded = await repository.get_by_id(design_id)
    assert reloaded.code == "export default X;"


@pytest.mark.asyncio
async def test_updates_are_published_to_subscribers(tmp_path):
    repository, _ = await _repository(tmp_path)
    design_id = await repository.create("user-1", "session-1", [])
    received: list[Design] = []
    unsubscribe = repository.subscribe(design_id, received.append)

    await repository.update_elements(design_id, ELEMENTS)
    unsubscribe()
    await repository.update_code(design_id, "export default X;")

    assert len(received) == 1
    assert received[0].elements == ELEMENTS


@pytest.mark.asyncio
async def test_updating_missing_design_raises_not_found(tmp_path):
    repository, _ = await _repository(tmp_path)

    with pytest.raises(EntityNotFoundError):
        await repository.update_elements("does-not-exist", ELEMENTS)


@pytest.mark.asyncio
async def test_unreachable_database_is_remote_unavailable(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'designs.db'}")
    repository = SQLAlchemyDesignRepository(build_session_factory(engine), DesignChangeNotifier())

    with pytest.raises(RemoteUnavailableError):
        await repository.get_by_id("any")
