"""
WordShelf Backend: Record Store Adapters
=========================================

One adapter instance per record kind, all behind the `RecordStore` contract:

    SqlRecordStore       relational tables through async SQLAlchemy
    DocumentRecordStore  MongoDB collections through motor
    RestRecordStore      PostgREST / Supabase tables over httpx
"""

from wordshelf.stores.base import RecordStore

__all__ = ["RecordStore"]
