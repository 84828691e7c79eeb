"""
WordShelf Backend: Record Store Contract
=========================================

What:  Abstract base class shared by every record store adapter.
How:   Subclasses implement the six operations below for one record kind.
Who:   Used by the view state controller; built by `services/catalog.py`.

Contract:
    list()               records newest first; failure raises StoreUnavailable
    get_by_id(id)        the record, or None when absent
    create(fields)       store-assigned id; atomic
    update(id, patch)    only supplied fields change; unknown id raises
                         StoreUnavailable
    delete(id)           absent id is a success
    health_check()       True when the backing store answers

Error Handling:
    Adapters never retry and never recover. Driver errors are logged here
    and wrapped in StoreUnavailable with the driver exception type kept in
    the context; the caller decides what the user sees.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ValidationError

from wordshelf.exceptions import StoreUnavailable
from wordshelf.schemas.kinds import RecordKind

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Data access for one record kind."""

    backend = "abstract"

    def __init__(self, kind: RecordKind):
        self.kind = kind

    @abstractmethod
    async def list(self) -> List[BaseModel]:
        ...

    @abstractmethod
    async def get_by_id(self, record_id: str) -> Optional[BaseModel]:
        ...

    @abstractmethod
    async def create(self, fields: BaseModel) -> str:
        ...

    @abstractmethod
    async def update(self, record_id: str, patch: BaseModel) -> None:
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...

    async def close(self) -> None:
        """Release adapter-owned resources. Shared clients are closed by the catalog."""

    # ── Helpers for subclasses ────────────────────────────────────────────

    def _to_record(self, data: Any) -> BaseModel:
        """Validate raw store output (a dict or an ORM row) as a stored record."""
        try:
            return self.kind.record_model.model_validate(data)
        except ValidationError as e:
            raise self._unavailable(f"read {self.kind.plural}", e)

    def _unavailable(
        self,
        action: str,
        error: BaseException,
        record_id: Optional[str] = None,
    ) -> StoreUnavailable:
        """Log a driver failure and build the StoreUnavailable to raise."""
        context: Mapping[str, Any] = {
            "kind": self.kind.name,
            "backend": self.backend,
            "error_type": type(error).__name__,
        }
        if record_id is not None:
            context = {**context, "record_id": record_id}
        logger.error(
            "%s store could not %s (%s): %s",
            self.backend,
            action,
            self.kind.plural,
            error,
        )
        return StoreUnavailable(
            message=f"Could not {action}. Please try again.",
            context=dict(context),
        )

    def _missing(self, record_id: str) -> StoreUnavailable:
        """An update addressed to a record that does not exist."""
        logger.warning(
            "%s store: update of missing %s %s", self.backend, self.kind.name, record_id
        )
        return StoreUnavailable(
            message=f"Could not update the {self.kind.name}. It may have been deleted.",
            context={"kind": self.kind.name, "backend": self.backend, "record_id": record_id},
        )
