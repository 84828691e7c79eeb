"""
WordShelf Backend: Application Package Initializer
===================================================

What:  Marks the `wordshelf` directory as a Python package.
Who:   Imported by uvicorn (`wordshelf.main:app`), Alembic and pytest.

Architecture Note:
    The catalog keeps two verticals (words and quotes) that share one
    layered structure:

    ┌─────────────────────────────────────┐
    │   Routes (Presentation, JSON views) │  ← one request = one page instance
    ├─────────────────────────────────────┤
    │   Controllers (view state machine)  │  ← Loading / Ready / Failed / Saving
    ├─────────────────────────────────────┤
    │   Services (validation, uploads)    │  ← local checks, blob storage
    ├─────────────────────────────────────┤
    │   Stores (record store adapters)    │  ← SQL, document, REST backends
    └─────────────────────────────────────┘

    Reads flow upward (store → controller → route). Writes flow downward on
    user intent and are always followed by a full re-read, so what a page
    shows is whatever the store holds.
"""

__version__ = "1.0.0"
