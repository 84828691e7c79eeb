"""
WordShelf Backend: Middleware Package
======================================

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for every log line of the request
    2. Logging: method, path, status and duration, tagged with that ID

    Responses pass back through the chain in reverse, so the logging
    middleware sees the final status code and the request ID header is
    set on every response.
"""
