"""
WordShelf Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every failure the catalog reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers in `main.py` map them to HTTP status codes; the
       view state controller turns them into notices.
Who:   Raised by stores, the image uploader and form validation.

Exception Hierarchy:
    WordShelfError (base)
    ├── ValidationFailed   → 400 (required field empty, caught before any store call)
    ├── NotFound           → 404 (get_by_id found no record)
    ├── InvalidTransition  → 409 (page action not allowed in its current state)
    ├── UploadFailed       → 502 (image step failed, record not saved)
    └── StoreUnavailable   → 503 (any failure reaching or querying the store)

Stores never recover from their own errors: they wrap the driver exception
in StoreUnavailable (keeping its type name in `context`) and re-raise. The
controller is the only place that turns errors into user-visible state.
"""

from typing import Any, Dict, Optional


class WordShelfError(Exception):
    """
    Base exception for all WordShelf application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but not returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationFailed(WordShelfError):
    """
    Raised when form input fails local validation.

    When:    Required field empty, unknown part of speech, malformed image URL.
    HTTP:    400 Bad Request

    Never reaches a store: the controller validates before issuing any call.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFound(WordShelfError):
    """
    Raised when a detail page asks for a record the store does not hold.

    Stores signal absence by returning None from get_by_id; the detail page
    fetch converts that None into this exception. A deleted record and a bad
    id look the same to the user.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "record",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class InvalidTransition(WordShelfError):
    """
    Raised when a page action is requested in a state that does not allow it.

    Example: submitting a form while the page is Failed. A page must go
    through Loading and reach Ready before it may save again.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        action: str,
        state: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"action": action, "state": state})
        super().__init__(
            message=f"Cannot {action} while the page is {state}.",
            context=ctx,
        )
        self.action = action
        self.state = state


class UploadFailed(WordShelfError):
    """
    Raised when storing an image or building its public URL fails.

    Reported separately from StoreUnavailable so the user knows the record
    was not saved because of the image step, not the text fields.
    HTTP:    502 Bad Gateway
    """

    def __init__(
        self,
        message: str = "Image upload failed. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreUnavailable(WordShelfError):
    """
    Raised for any failure reaching or executing against the record store.

    Covers network errors, authentication errors, query errors, and updates
    addressed to an id that does not exist. The message is generic and
    retry-oriented; the driver error is kept in `context`.
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "The catalog store is unavailable. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
