"""
WordShelf Backend: REST Record Store
=====================================

What:  RecordStore over a hosted PostgREST table (Supabase's `/rest/v1`).
How:   A shared `httpx.AsyncClient` carries the base URL, the `apikey` and
       bearer headers and the transport timeout; this adapter only builds
       the query for each operation.

Requests:
    list       GET    /rest/v1/words?select=*&order=created_at.desc
    get_by_id  GET    /rest/v1/words?select=*&id=eq.<id>
    create     POST   /rest/v1/words          Prefer: return=representation
    update     PATCH  /rest/v1/words?id=eq.<id>  Prefer: return=representation
    delete     DELETE /rest/v1/words?id=eq.<id>

The table assigns `id` and `created_at`. A malformed uuid comes back as
400 with Postgres code 22P02; it cannot name a row, so it reads as
not-found.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from wordshelf.schemas.kinds import RecordKind
from wordshelf.stores.base import RecordStore

logger = logging.getLogger(__name__)

_RETURN_REPRESENTATION = {"Prefer": "return=representation"}
_INVALID_TEXT_REPRESENTATION = "22P02"
_REQUEST_ERRORS = (httpx.HTTPError, ValueError)


def _is_malformed_id(response: httpx.Response) -> bool:
    if response.status_code != 400:
        return False
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("code") == _INVALID_TEXT_REPRESENTATION


class RestRecordStore(RecordStore):
    backend = "rest"

    def __init__(self, kind: RecordKind, client: httpx.AsyncClient):
        super().__init__(kind)
        self._client = client
        self._path = f"/rest/v1/{kind.plural}"

    @staticmethod
    def _id_filter(record_id: str) -> Dict[str, str]:
        return {"id": f"eq.{record_id}"}

    async def list(self) -> List[BaseModel]:
        try:
            response = await self._client.get(
                self._path, params={"select": "*", "order": "created_at.desc"}
            )
            response.raise_for_status()
            rows: List[Dict[str, Any]] = response.json()
        except _REQUEST_ERRORS as e:
            raise self._unavailable(f"load {self.kind.plural}", e)
        return [self._to_record(row) for row in rows]

    async def get_by_id(self, record_id: str) -> Optional[BaseModel]:
        try:
            response = await self._client.get(
                self._path, params={"select": "*", **self._id_filter(record_id)}
            )
            if _is_malformed_id(response):
                return None
            response.raise_for_status()
            rows = response.json()
        except _REQUEST_ERRORS as e:
            raise self._unavailable(f"load the {self.kind.name}", e, record_id)
        if not rows:
            return None
        return self._to_record(rows[0])

    async def create(self, fields: BaseModel) -> str:
        try:
            response = await self._client.post(
                self._path,
                json=fields.model_dump(mode="json", exclude_none=True),
                headers=_RETURN_REPRESENTATION,
            )
            response.raise_for_status()
            record_id = str(response.json()[0]["id"])
        except (*_REQUEST_ERRORS, KeyError, IndexError) as e:
            raise self._unavailable(f"save the {self.kind.name}", e)
        logger.info("Created %s %s", self.kind.name, record_id)
        return record_id

    async def update(self, record_id: str, patch: BaseModel) -> None:
        values = patch.model_dump(mode="json", exclude_unset=True)
        if not values:
            if await self.get_by_id(record_id) is None:
                raise self._missing(record_id)
            return
        try:
            response = await self._client.patch(
                self._path,
                params=self._id_filter(record_id),
                json=values,
                headers=_RETURN_REPRESENTATION,
            )
            if _is_malformed_id(response):
                raise self._missing(record_id)
            response.raise_for_status()
            rows = response.json()
        except _REQUEST_ERRORS as e:
            raise self._unavailable(f"update the {self.kind.name}", e, record_id)
        # PATCH with a filter that matches nothing succeeds with an empty list
        if not rows:
            raise self._missing(record_id)
        logger.info("Updated %s %s (%s)", self.kind.name, record_id, ", ".join(values))

    async def delete(self, record_id: str) -> None:
        try:
            response = await self._client.delete(self._path, params=self._id_filter(record_id))
            if _is_malformed_id(response):
                return
            response.raise_for_status()
        except _REQUEST_ERRORS as e:
            raise self._unavailable(f"delete the {self.kind.name}", e, record_id)
        logger.info("Deleted %s %s", self.kind.name, record_id)

    async def health_check(self) -> bool:
        try:
            response = await self._client.get(
                self._path, params={"select": "id", "limit": "1"}
            )
        except httpx.HTTPError as e:
            logger.warning("Health check: REST store unreachable: %s", e)
            return False
        return response.is_success
