"""
WordShelf Backend: Catalog Wiring
==================================

What:  Builds the record stores and image uploaders selected by settings.
How:   `build_catalog()` constructs the clients explicitly (engine, motor
       client, httpx client) and returns a `Catalog` that owns them. The app
       keeps it on `app.state.catalog`; routes reach it through the
       `get_catalog` dependency. There is no module-level store client.
When:  Once per app startup (lifespan); closed on shutdown.

Backends:
    STORE_BACKEND=sql        SqlRecordStore per kind, shared engine
    STORE_BACKEND=document   DocumentRecordStore per kind, shared motor client
    STORE_BACKEND=rest       RestRecordStore per kind, shared httpx client
    BLOB_BACKEND=local       one LocalBlobStorage for every kind
    BLOB_BACKEND=supabase    one SupabaseBlobStorage per kind (its own bucket)
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

import httpx
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient
from sqlalchemy.exc import SQLAlchemyError

from wordshelf.config import Settings
from wordshelf.database import (
    create_engine,
    create_session_factory,
    dispose_engine,
    init_models,
)
from wordshelf.models.quote import QuoteRow
from wordshelf.models.word import WordRow
from wordshelf.schemas.kinds import ALL_KINDS, QUOTE, WORD, RecordKind
from wordshelf.services.blob_service import (
    BlobStorage,
    ImageUploader,
    LocalBlobStorage,
    SupabaseBlobStorage,
)
from wordshelf.stores.base import RecordStore
from wordshelf.stores.document_store import DocumentRecordStore
from wordshelf.stores.rest_store import RestRecordStore
from wordshelf.stores.sql_store import SqlRecordStore

logger = logging.getLogger(__name__)

Closer = Callable[[], Awaitable[None]]

ROW_MODELS = {WORD.name: WordRow, QUOTE.name: QuoteRow}


class Catalog:
    """Stores and uploaders for every record kind, plus the clients they share."""

    def __init__(
        self,
        stores: Dict[str, RecordStore],
        uploaders: Dict[str, ImageUploader],
        store_backend: str,
        local_storage: Optional[LocalBlobStorage] = None,
        closers: Optional[List[Closer]] = None,
    ):
        self.stores = stores
        self.uploaders = uploaders
        self.store_backend = store_backend
        # Set only when images are served by this app (/files/<path>)
        self.local_storage = local_storage
        self._closers = closers or []

    def store_for(self, kind: RecordKind) -> RecordStore:
        return self.stores[kind.name]

    def uploader_for(self, kind: RecordKind) -> Optional[ImageUploader]:
        return self.uploaders.get(kind.name)

    async def health_check(self) -> bool:
        for store in self.stores.values():
            if not await store.health_check():
                return False
        return True

    async def aclose(self) -> None:
        for store in self.stores.values():
            await store.close()
        for closer in self._closers:
            await closer()
        self._closers = []


def _supabase_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.supabase_url,
        headers={
            "apikey": settings.supabase_key,
            "Authorization": f"Bearer {settings.supabase_key}",
        },
        timeout=settings.http_timeout,
    )


async def _build_sql_stores(settings: Settings, closers: List[Closer]) -> Dict[str, RecordStore]:
    engine = create_engine(settings)
    closers.append(lambda: dispose_engine(engine))
    if settings.db_create_tables:
        try:
            await init_models(engine)
        except (SQLAlchemyError, OSError) as e:
            # Requests report StoreUnavailable until the database is reachable
            logger.error("Could not create tables: %s", e)
    session_factory = create_session_factory(engine)
    return {
        kind.name: SqlRecordStore(kind, session_factory, ROW_MODELS[kind.name])
        for kind in ALL_KINDS
    }


def _build_document_stores(settings: Settings, closers: List[Closer]) -> Dict[str, RecordStore]:
    client = AsyncIOMotorClient(
        settings.mongodb_url,
        tz_aware=True,
        serverSelectionTimeoutMS=int(settings.http_timeout * 1000),
    )

    async def close_client() -> None:
        client.close()
        logger.info("MongoDB connection closed")

    closers.append(close_client)
    database = client[settings.mongodb_database]
    logger.info("Connected to MongoDB database %s", settings.mongodb_database)
    return {kind.name: DocumentRecordStore(kind, database) for kind in ALL_KINDS}


async def build_catalog(settings: Settings) -> Catalog:
    """Construct every client the selected backends need."""
    closers: List[Closer] = []
    supabase: Optional[httpx.AsyncClient] = None
    if settings.store_backend == "rest" or settings.blob_backend == "supabase":
        supabase = _supabase_client(settings)
        closers.append(supabase.aclose)

    if settings.store_backend == "sql":
        stores = await _build_sql_stores(settings, closers)
    elif settings.store_backend == "document":
        stores = _build_document_stores(settings, closers)
    else:
        stores = {kind.name: RestRecordStore(kind, supabase) for kind in ALL_KINDS}

    local_storage: Optional[LocalBlobStorage] = None
    storages: Dict[str, BlobStorage] = {}
    if settings.blob_backend == "local":
        local_storage = LocalBlobStorage(settings.storage_root, settings.public_base_url)
        storages = {kind.name: local_storage for kind in ALL_KINDS}
    else:
        storages = {
            kind.name: SupabaseBlobStorage(
                supabase,
                bucket=getattr(settings, f"{kind.name}_image_bucket", kind.default_bucket),
                project_url=settings.supabase_url,
            )
            for kind in ALL_KINDS
        }

    uploaders = {
        kind.name: ImageUploader(
            storages[kind.name],
            prefix=kind.blob_prefix,
            max_file_size=settings.max_file_size,
        )
        for kind in ALL_KINDS
    }
    logger.info(
        "Catalog ready (store=%s, images=%s)", settings.store_backend, settings.blob_backend
    )
    return Catalog(
        stores=stores,
        uploaders=uploaders,
        store_backend=settings.store_backend,
        local_storage=local_storage,
        closers=closers,
    )


def get_catalog(request: Request) -> Catalog:
    """FastAPI dependency: the catalog built at startup."""
    return request.app.state.catalog
