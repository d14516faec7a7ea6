# recordgate/core/db.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from starlette.exceptions import HTTPException

from recordgate.core.config import settings
from recordgate.orm.record import ActiveRecordMixin

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        logger.info("Creating async DB engine")
        options: dict = {"pool_pre_ping": True}
        if not settings.database_url.startswith("sqlite"):
            options.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
            )
        _engine = create_async_engine(settings.database_url, **options)
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(
            get_engine(),
            expire_on_commit=False,
            autoflush=False,
            autocommit=False,
        )
    return _sessionmaker


async def dispose_engine() -> None:
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
        logger.info("Async DB engine disposed")
    _engine = None
    _sessionmaker = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Async context manager for DB sessions.

    One session per request: committed when the block exits cleanly,
    rolled back when it raises.
    """
    Session = get_sessionmaker()
    async with Session() as session:
        try:
            yield session
            await session.commit()
        except HTTPException as exc:
            await session.rollback()
            logger.info("DB transaction rolled back: HTTP %s", exc.status_code)
            raise
        except Exception:
            await session.rollback()
            logger.exception("DB transaction rolled back")
            raise


class Base(ActiveRecordMixin, DeclarativeBase):
    """
    Shared SQLAlchemy declarative base for active records.

    - Uses a single metadata instance
    - Tables live in `settings.database_schema` when one is configured
    - Every model gets the active-record helpers (`from_dict`, `to_dict`, ...)
    """

    metadata = MetaData(
        schema=settings.database_schema,
        naming_convention=NAMING_CONVENTION,
    )
