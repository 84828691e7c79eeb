"""
WordShelf Backend: Document Record Store
=========================================

What:  RecordStore over a MongoDB collection via motor.
How:   The collection is named after the kind (`words`, `quotes`). The
       store's ObjectId, rendered as a string, is the record id, and
       `created_at` is stamped on insert. A string that is not a valid
       ObjectId cannot name any document, so it reads as not-found.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from wordshelf.schemas.kinds import RecordKind
from wordshelf.stores.base import RecordStore

logger = logging.getLogger(__name__)


def _object_id(record_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError):
        return None


class DocumentRecordStore(RecordStore):
    backend = "document"

    def __init__(self, kind: RecordKind, database: AsyncIOMotorDatabase):
        super().__init__(kind)
        self._database = database
        self._collection = database[kind.plural]

    def _from_document(self, document: Dict[str, Any]) -> BaseModel:
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        return self._to_record(data)

    async def list(self) -> List[BaseModel]:
        try:
            cursor = self._collection.find({}).sort("created_at", DESCENDING)
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._unavailable(f"load {self.kind.plural}", e)
        return [self._from_document(doc) for doc in documents]

    async def get_by_id(self, record_id: str) -> Optional[BaseModel]:
        oid = _object_id(record_id)
        if oid is None:
            return None
        try:
            document = await self._collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise self._unavailable(f"load the {self.kind.name}", e, record_id)
        if document is None:
            return None
        return self._from_document(document)

    async def create(self, fields: BaseModel) -> str:
        document = fields.model_dump(mode="json", exclude_none=True)
        document["created_at"] = datetime.now(timezone.utc)
        try:
            result = await self._collection.insert_one(document)
        except PyMongoError as e:
            raise self._unavailable(f"save the {self.kind.name}", e)
        record_id = str(result.inserted_id)
        logger.info("Created %s %s", self.kind.name, record_id)
        return record_id

    async def update(self, record_id: str, patch: BaseModel) -> None:
        oid = _object_id(record_id)
        if oid is None:
            raise self._missing(record_id)
        values = patch.model_dump(mode="json", exclude_unset=True)
        try:
            if values:
                result = await self._collection.update_one({"_id": oid}, {"$set": values})
                matched = result.matched_count
            else:
                # "$set" must not be empty; an empty patch only checks existence
                matched = await self._collection.count_documents({"_id": oid}, limit=1)
        except PyMongoError as e:
            raise self._unavailable(f"update the {self.kind.name}", e, record_id)
        if not matched:
            raise self._missing(record_id)
        logger.info("Updated %s %s (%s)", self.kind.name, record_id, ", ".join(values) or "no fields")

    async def delete(self, record_id: str) -> None:
        oid = _object_id(record_id)
        if oid is None:
            return
        try:
            await self._collection.delete_one({"_id": oid})
        except PyMongoError as e:
            raise self._unavailable(f"delete the {self.kind.name}", e, record_id)
        logger.info("Deleted %s %s", self.kind.name, record_id)

    async def health_check(self) -> bool:
        try:
            await self._database.command("ping")
        except PyMongoError as e:
            logger.warning("Health check: MongoDB unreachable: %s", e)
            return False
        return True
