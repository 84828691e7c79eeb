"""
WordShelf Backend: SQL Record Store
====================================

What:  RecordStore over a relational table via async SQLAlchemy.
How:   One session and one transaction per operation. The table mapping
       assigns `id` (UUID string) and `created_at` (UTC) at insert.

Query plans:
    list       SELECT * FROM words ORDER BY created_at DESC
               (idx_words_created_at)
    get_by_id  SELECT * FROM words WHERE id = :id  (primary key)
"""

import logging
from typing import List, Optional, Type

from pydantic import BaseModel
from sqlalchemy import delete, desc, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wordshelf.database import Base
from wordshelf.schemas.kinds import RecordKind
from wordshelf.stores.base import RecordStore

logger = logging.getLogger(__name__)

# Connection refusals can surface as plain OSError before SQLAlchemy wraps them
_DRIVER_ERRORS = (SQLAlchemyError, OSError)


class SqlRecordStore(RecordStore):
    backend = "sql"

    def __init__(
        self,
        kind: RecordKind,
        session_factory: async_sessionmaker[AsyncSession],
        row_model: Type[Base],
    ):
        super().__init__(kind)
        self._session_factory = session_factory
        self._row = row_model

    async def list(self) -> List[BaseModel]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(self._row).order_by(desc(self._row.created_at))
                )
                rows = result.scalars().all()
        except _DRIVER_ERRORS as e:
            raise self._unavailable(f"load {self.kind.plural}", e)
        return [self._to_record(row) for row in rows]

    async def get_by_id(self, record_id: str) -> Optional[BaseModel]:
        try:
            async with self._session_factory() as session:
                row = await session.get(self._row, record_id)
        except _DRIVER_ERRORS as e:
            raise self._unavailable(f"load the {self.kind.name}", e, record_id)
        if row is None:
            return None
        return self._to_record(row)

    async def create(self, fields: BaseModel) -> str:
        row = self._row(**fields.model_dump(mode="json"))
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(row)
        except _DRIVER_ERRORS as e:
            raise self._unavailable(f"save the {self.kind.name}", e)
        logger.info("Created %s %s", self.kind.name, row.id)
        return row.id

    async def update(self, record_id: str, patch: BaseModel) -> None:
        values = patch.model_dump(mode="json", exclude_unset=True)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    row = await session.get(self._row, record_id)
                    if row is not None:
                        for name, value in values.items():
                            setattr(row, name, value)
        except _DRIVER_ERRORS as e:
            raise self._unavailable(f"update the {self.kind.name}", e, record_id)
        if row is None:
            raise self._missing(record_id)
        logger.info("Updated %s %s (%s)", self.kind.name, record_id, ", ".join(values) or "no fields")

    async def delete(self, record_id: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(delete(self._row).where(self._row.id == record_id))
        except _DRIVER_ERRORS as e:
            raise self._unavailable(f"delete the {self.kind.name}", e, record_id)
        logger.info("Deleted %s %s", self.kind.name, record_id)

    async def health_check(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except _DRIVER_ERRORS as e:
            logger.warning("Health check: database unreachable: %s", e)
            return False
        return True
