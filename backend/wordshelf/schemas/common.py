"""
WordShelf Backend: Shared Field Rules
======================================

Field checks shared by the word and quote payload models.
"""

from typing import Optional
from urllib.parse import urlparse


def check_image_url(value: Optional[str]) -> Optional[str]:
    """
    Accept an absolute http(s) URL and return it unchanged.

    The catalog never fetches the URL; this only rejects values that a
    browser could not load as an image source at all.
    """
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Image URL must be an absolute http(s) URL")
    return value
