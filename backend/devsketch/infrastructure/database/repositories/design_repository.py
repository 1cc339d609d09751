"""Concrete design repository backed by SQLAlchemy async sessions."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devsketch.application.interfaces import (
    ChannelErrorHandler,
    DesignRepository,
    RemoteUpdateHandler,
    Unsubscribe,
)
from devsketch.domain.entities import Design, Element
from devsketch.domain.exceptions import (
    ConstraintViolationError,
    EntityNotFoundError,
    RemoteUnavailableError,
)
from devsketch.infrastructure.database.models import DesignModel
from devsketch.infrastructure.realtime import DesignChangeNotifier

logger = logging.getLogger(__name__)


class SQLAlchemyDesignRepository(DesignRepository):
    """Implements the DesignRepository port on top of a session factory.

    Each operation runs in its own session/transaction so the repository can
    be held by long-lived editor sessions. Committed updates are published
    through the change notifier.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: DesignChangeNotifier,
    ):
        self._session_factory = session_factory
        self._notifier = notifier

    @asynccontextmanager
    async def _session_scope(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Yield a transactional session and translate driver errors."""
        try:
            async with self._session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except IntegrityError as e:
            raise ConstraintViolationError("Design", str(e.orig)) from e
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Design store error during %s: %s", operation, e)
            raise RemoteUnavailableError(operation, str(e)) from e

    def _to_entity(self, model: DesignModel) -> Design:
        """Map ORM model → domain entity."""
        return Design(
            id=model.id,
            owner_id=model.user_id,
            session_id=model.session_id,
            elements=list(model.excalidraw_data or []),
            code=model.code,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(
        self,
        owner_id: str | None,
        session_id: str,
        elements: list[Element],
    ) -> str:
        if not owner_id:
            raise ConstraintViolationError("Design", "owner_id is required")
        if not session_id:
            raise ConstraintViolationError("Design", "session_id is required")

        async with self._session_scope("create") as session:
            model = DesignModel(
                user_id=owner_id,
                session_id=session_id,
                excalidraw_data=list(elements),
            )
            session.add(model)
            await session.flush()
            design_id = model.id

        logger.info("Created design %s for session %s", design_id, session_id)
        return design_id

    async def get_by_id(self, design_id: str) -> Design | None:
        async with self._session_scope("get_by_id") as session:
            model = await session.get(DesignModel, design_id)
            return self._to_entity(model) if model else None

    async def find_latest_for_owner(self, owner_id: str) -> Design | None:
        async with self._session_scope("find_latest_for_owner") as session:
            result = await session.execute(
                select(DesignModel)
                .where(DesignModel.user_id == owner_id)
                .order_by(DesignModel.created_at.desc())
                .limit(1)
            )
            model = result.scalars().first()
            return self._to_entity(model) if model else None

    async def find_latest_for_session(self, session_id: str) -> Design | None:
        async with self._session_scope("find_latest_for_session") as session:
            result = await session.execute(
                select(DesignModel)
                .where(DesignModel.session_id == session_id)
                .order_by(DesignModel.created_at.desc())
                .limit(1)
            )
            model = result.scalars().first()
            return self._to_entity(model) if model else None

    async def update_elements(self, design_id: str, elements: list[Element]) -> Design:
        async with self._session_scope("update_elements") as session:
            model = await session.get(DesignModel, design_id)
            if model is None:
                raise EntityNotFoundError("Design", design_id)
            model.excalidraw_data = list(elements)
            await session.flush()
            await session.refresh(model)
            design = self._to_entity(model)

        self._notifier.publish(design)
        return design

    async def update_code(self, design_id: str, code: str) -> Design:
        async with self._session_scope("update_code") as session:
            model = await session.get(DesignModel, design_id)
            if model is None:
                raise EntityNotFoundError("Design", design_id)
            model.code = code
            await session.flush()
            await session.refresh(model)
            design = self._to_entity(model)

        self._notifier.publish(design)
        return design

    def subscribe(
        self,
        design_id: str,
        on_update: RemoteUpdateHandler,
        on_channel_error: ChannelErrorHandler | None = None,
    ) -> Unsubscribe:
        return self._notifier.subscribe(design_id, on_update, on_channel_error)
