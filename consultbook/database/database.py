from __future__ import annotations

from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Any, AsyncIterator, TypeVar

from sqlalchemy import DateTime, TypeDecorator
from sqlalchemy.engine import Dialect, Result
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import Executable, Select
from sqlalchemy.sql import select as sa_select

from ..logger import get_logger
from ..settings import settings
from ..utils.utc import as_utc


T = TypeVar("T")

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator[datetime]):
    """Stores naive UTC timestamps and hands out timezone aware ones."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)


def select(*entities: Any) -> Select[Any]:
    return sa_select(*entities)


def filter_by(cls: Any, *args: Any, **kwargs: Any) -> Select[Any]:
    return select(cls).where(*args).filter_by(**kwargs)


class DB:
    def __init__(self, url: str, echo: bool = False) -> None:
        options: dict[str, Any] = {}
        if not url.startswith("sqlite"):
            options = {
                "pool_recycle": settings.pool_recycle,
                "pool_size": settings.pool_size,
                "max_overflow": settings.max_overflow,
            }

        self.engine = create_async_engine(url, echo=echo, pool_pre_ping=True, **options)
        self._sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)
        self._session: ContextVar[AsyncSession | None] = ContextVar("session", default=None)

    @property
    def session(self) -> AsyncSession:
        session = self._session.get()
        if session is None:
            raise RuntimeError("No database session in this context")
        return session

    async def create_tables(self) -> None:
        logger.debug("Creating tables")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        logger.debug("Dropping tables")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def context(self) -> AsyncIterator[AsyncSession]:
        """
        Run the enclosed block inside one session and transaction.

        Nested contexts reuse the outer session; only the outermost one commits or rolls back.
        """

        if (session := self._session.get()) is not None:
            yield session
            return

        session = self._sessionmaker()
        token = self._session.set(session)
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()
            self._session.reset(token)

    async def add(self, obj: T) -> T:
        self.session.add(obj)
        return obj

    async def exec(self, statement: Executable) -> Result[Any]:
        return await self.session.execute(statement)

    async def all(self, statement: Select[Any]) -> list[Any]:
        return list((await self.session.scalars(statement)).all())

    async def first(self, statement: Select[Any]) -> Any | None:
        return (await self.session.scalars(statement)).first()

    async def close(self) -> None:
        await self.engine.dispose()


db = DB(settings.database_url, echo=settings.sql_show_statements)
