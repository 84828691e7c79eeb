"""
WordShelf Backend: API Routes Package
======================================

Route Inventory:
    - records.py:  router factory shared by both record kinds
    - words.py:    /api/words, /api/words/{id}
    - quotes.py:   /api/quotes, /api/quotes/{id}
    - files.py:    GET /files/{path}   (locally stored images)
    - health.py:   GET /health

Routes stay thin: every request builds one page controller, mounts it,
applies the user's action and renders the resulting state.
"""
