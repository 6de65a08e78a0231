# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Module Registry Store

Single responsibility: Persist module records and run parameters

Tables:
    modules(id, path UNIQUE, state, error, latest_version, info_time, origin)
    params(name PRIMARY KEY, value)

Write discipline: the SQLite engine admits one writer at a time, so every
write method takes `write_lock` before opening its transaction, no matter how
many resolver tasks call in concurrently. Reads are not serialized.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import Column, Integer, String, Text, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker

from ecoregistry.core.errors import StorageError
from ecoregistry.models.module_models import ModuleRecord, ModuleState

logger = logging.getLogger(__name__)

Base = declarative_base()

WATERMARK_PARAM = "indexSince"
# JSON list of the events at the watermark timestamp already ingested.
BOUNDARY_PARAM = "indexBoundary"


class ModuleRow(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True)
    path = Column(String, nullable=False, unique=True)
    state = Column(String, nullable=False, default=ModuleState.INDEX.value)
    error = Column(Text, nullable=True)
    latest_version = Column(String, nullable=True)
    info_time = Column(String, nullable=True)
    origin = Column(Text, nullable=True)

    def to_record(self) -> ModuleRecord:
        return ModuleRecord(
            path=self.path,
            state=ModuleState(self.state),
            latest_version=self.latest_version,
            info_time=self.info_time,
            origin=self.origin,
            error=self.error,
        )


class ParamRow(Base):
    __tablename__ = "params"

    name = Column(String, primary_key=True)
    value = Column(Text, nullable=False)


class ModuleRegistry:
    """Transactional store of module records and the feed watermark"""

    def __init__(self, database_url: str, echo: bool = False):
        """
        Initialize registry store.

        Args:
            database_url: SQLAlchemy async URL (sqlite+aiosqlite:///path)
            echo: Log SQL statements
        """
        self.engine = create_async_engine(database_url, echo=echo)
        self.session_maker = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )
        self.write_lock = asyncio.Lock()

    async def create_schema(self):
        """Create tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self):
        """Close database connections"""
        await self.engine.dispose()

    async def load_all(self) -> Dict[str, ModuleRecord]:
        """
        Read every module record.

        Returns:
            Records keyed by module path

        Raises:
            StorageError: If the query fails
        """
        try:
            async with self.session_maker() as session:
                result = await session.execute(select(ModuleRow))
                return {row.path: row.to_record() for row in result.scalars()}
        except SQLAlchemyError as e:
            raise StorageError(f"loading modules: {e}", operation="load_all") from e

    async def get_param(self, name: str) -> Optional[str]:
        """
        Read a run parameter.

        Args:
            name: Parameter name

        Returns:
            Value, or None if the parameter has never been set
        """
        try:
            async with self.session_maker() as session:
                row = await session.get(ParamRow, name)
                return row.value if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"reading param {name}: {e}", operation="get_param") from e

    async def insert_modules(
        self,
        paths: Iterable[str],
        params: Optional[Dict[str, str]] = None
    ) -> int:
        """
        Insert new index-only records and upsert parameters in one transaction.

        Nothing is written if any statement fails.

        Args:
            paths: Module paths not yet in the registry
            params: Parameters to upsert in the same transaction

        Returns:
            Number of records inserted

        Raises:
            StorageError: If the transaction fails (rolled back)
        """
        rows = [ModuleRow(path=p, state=ModuleState.INDEX.value) for p in paths]
        async with self.write_lock:
            try:
                async with self.session_maker() as session:
                    async with session.begin():
                        session.add_all(rows)
                        for name, value in (params or {}).items():
                            await session.merge(ParamRow(name=name, value=value))
            except SQLAlchemyError as e:
                raise StorageError(f"inserting {len(rows)} modules: {e}", operation="insert") from e
        logger.info(f"Inserted {len(rows)} modules")
        return len(rows)

    async def update_module(self, record: ModuleRecord):
        """
        Write one record's resolution fields.

        Args:
            record: Record whose path already exists

        Raises:
            StorageError: If the path is unknown or the update fails
        """
        stmt = (
            update(ModuleRow)
            .where(ModuleRow.path == record.path)
            .values(
                state=record.state.value,
                error=record.error,
                latest_version=record.latest_version,
                info_time=record.info_time,
                origin=record.origin,
            )
        )
        async with self.write_lock:
            try:
                async with self.session_maker() as session:
                    async with session.begin():
                        result = await session.execute(stmt)
                        if result.rowcount != 1:
                            raise StorageError(
                                f"updating module {record.path}: no such module",
                                operation="update"
                            )
            except SQLAlchemyError as e:
                raise StorageError(f"updating module {record.path}: {e}", operation="update") from e

    async def upsert_param(self, name: str, value: str):
        """
        Set a run parameter, creating it if needed.

        Args:
            name: Parameter name
            value: New value
        """
        async with self.write_lock:
            try:
                async with self.session_maker() as session:
                    async with session.begin():
                        await session.merge(ParamRow(name=name, value=value))
            except SQLAlchemyError as e:
                raise StorageError(f"updating param {name}: {e}", operation="upsert_param") from e
