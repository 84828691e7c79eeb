"""
WordShelf Backend: Page Controllers
====================================

`view_state.ViewStateController` is the page state machine: one instance per
list or detail page, built with `list_page()` or `detail_page()`.
"""

from wordshelf.controllers.view_state import (
    Failed,
    Loading,
    Ready,
    Saving,
    ViewStateController,
    detail_page,
    list_page,
)

__all__ = [
    "Failed",
    "Loading",
    "Ready",
    "Saving",
    "ViewStateController",
    "detail_page",
    "list_page",
]
