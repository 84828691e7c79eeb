"""
WordShelf Backend: Test Configuration (conftest.py)
====================================================

Shared fixtures for the whole suite.

Fixture Hierarchy (all function-scoped):
    ├── test_settings:      Settings pointing at a throwaway SQLite file
    ├── temp_storage:       Temporary image storage directory
    ├── sample_image_bytes: Tiny PNG for upload tests
    ├── sql_engine / session_factory / word_sql_store / quote_sql_store:
    │                       real SQLite database through aiosqlite
    ├── word_store / quote_store:
    │                       InMemoryRecordStore doubles with failure injection
    ├── uploaders:          ImageUploaders over LocalBlobStorage in temp_storage
    ├── memory_catalog:     Catalog wired with the in-memory stores
    └── test_client:        HTTPX AsyncClient bound to the app via ASGITransport
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

# Set before any wordshelf import: wordshelf.config reads the environment once
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="wordshelf_test_")
os.environ["LOG_LEVEL"] = "WARNING"

from wordshelf.config import Settings  # noqa: E402
from wordshelf.database import create_engine, create_session_factory, init_models  # noqa: E402
from wordshelf.exceptions import StoreUnavailable  # noqa: E402
from wordshelf.models.quote import QuoteRow  # noqa: E402
from wordshelf.models.word import WordRow  # noqa: E402
from wordshelf.schemas.kinds import QUOTE, WORD, RecordKind  # noqa: E402
from wordshelf.services.blob_service import ImageUploader, LocalBlobStorage  # noqa: E402
from wordshelf.services.catalog import Catalog  # noqa: E402
from wordshelf.stores.base import RecordStore  # noqa: E402
from wordshelf.stores.sql_store import SqlRecordStore  # noqa: E402

# 1x1 transparent PNG
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f"
    b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)

FIXED_NOW = 1718000000.0


class InMemoryRecordStore(RecordStore):
    """
    Dict-backed RecordStore honouring the full store contract.

    `calls` records every operation in order; adding an operation name to
    `failing` makes that operation raise StoreUnavailable.
    """

    backend = "memory"

    def __init__(self, kind: RecordKind):
        super().__init__(kind)
        self.records: Dict[str, BaseModel] = {}
        self.calls: List[str] = []
        self.failing: Set[str] = set()
        self._created = 0
        self._epoch = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failing:
            raise StoreUnavailable(
                message=f"Could not {operation} {self.kind.plural}. Please try again.",
                context={"operation": operation},
            )

    async def list(self):
        self._enter("list")
        return sorted(self.records.values(), key=lambda r: r.created_at, reverse=True)

    async def get_by_id(self, record_id: str) -> Optional[BaseModel]:
        self._enter("get_by_id")
        return self.records.get(record_id)

    async def create(self, fields: BaseModel) -> str:
        self._enter("create")
        self._created += 1
        record_id = f"{self.kind.name}-{self._created}"
        self.records[record_id] = self.kind.record_model(
            id=record_id,
            created_at=self._epoch + timedelta(minutes=self._created),
            **fields.model_dump(mode="json"),
        )
        return record_id

    async def update(self, record_id: str, patch: BaseModel) -> None:
        self._enter("update")
        if record_id not in self.records:
            raise StoreUnavailable(message=f"Could not update the {self.kind.name}.")
        merged = {
            **self.records[record_id].model_dump(),
            **patch.model_dump(mode="json", exclude_unset=True),
        }
        self.records[record_id] = self.kind.record_model.model_validate(merged)

    async def delete(self, record_id: str) -> None:
        self._enter("delete")
        self.records.pop(record_id, None)

    async def health_check(self) -> bool:
        return "health_check" not in self.failing


# ══════════════════════════════════════════════════════════════════════════
# Settings & storage
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        store_backend="sql",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'wordshelf_test.db'}",
        blob_backend="local",
        storage_root=str(tmp_path / "storage"),
        public_base_url="http://test",
        log_level="WARNING",
    )


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "images"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    return PNG_BYTES


# ══════════════════════════════════════════════════════════════════════════
# SQL store on a real SQLite file
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def sql_engine(test_settings):
    engine = create_engine(test_settings)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(sql_engine):
    return create_session_factory(sql_engine)


@pytest.fixture
def word_sql_store(session_factory):
    return SqlRecordStore(WORD, session_factory, WordRow)


@pytest.fixture
def quote_sql_store(session_factory):
    return SqlRecordStore(QUOTE, session_factory, QuoteRow)


# ══════════════════════════════════════════════════════════════════════════
# In-memory doubles and the HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def word_store():
    return InMemoryRecordStore(WORD)


@pytest.fixture
def quote_store():
    return InMemoryRecordStore(QUOTE)


@pytest.fixture
def local_storage(temp_storage):
    return LocalBlobStorage(temp_storage, "http://test")


@pytest.fixture
def uploaders(local_storage):
    return {
        kind.name: ImageUploader(
            local_storage,
            prefix=kind.blob_prefix,
            max_file_size=1_048_576,
            clock=lambda: FIXED_NOW,
        )
        for kind in (WORD, QUOTE)
    }


@pytest.fixture
def memory_catalog(word_store, quote_store, uploaders, local_storage):
    return Catalog(
        stores={WORD.name: word_store, QUOTE.name: quote_store},
        uploaders=uploaders,
        store_backend="memory",
        local_storage=local_storage,
    )


@pytest_asyncio.fixture
async def test_client(memory_catalog, test_settings):
    """
    HTTPX AsyncClient talking to a fresh app.

    ASGITransport does not run the lifespan, so the catalog is attached to
    app.state directly.
    """
    from wordshelf.main import create_app

    app = create_app(test_settings)
    app.state.catalog = memory_catalog
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
