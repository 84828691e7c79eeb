"""
WordShelf Backend: Image Blob Service
======================================

What:  Stores record images and hands back the public URL saved on the record.
How:   `ImageUploader` checks the file, builds a never-reused path and writes
       it through a `BlobStorage` backend:

           LocalBlobStorage     files under STORAGE_ROOT, served at /files/<path>
           SupabaseBlobStorage  Supabase Storage bucket over httpx

Who:   Called by the view state controller before a record is written. A
       failed upload means the record is not written at all.

Path Scheme:
    <prefix>/<unix ms timestamp>_<original file name>
    e.g. quotes/1718000000000_sunrise.png

    Uploads never overwrite: local files are opened in exclusive-create
    mode and Supabase uploads are sent with `x-upsert: false`. Two uploads
    of the same name in the same millisecond fail the second one.

    Images are never deleted; removing a record leaves its image in place.

Validation order (cheapest first):
    1. File name present with an allowed image extension
    2. Content non-empty
    3. Size within MAX_FILE_SIZE
"""

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Callable, Optional
from urllib.parse import quote

import aiofiles
import httpx

from wordshelf.exceptions import UploadFailed, ValidationFailed

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
# Extension → content type sent to the storage backend
ALLOWED_EXTENSIONS = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


class BlobStorage(ABC):
    """Write-once object storage addressed by relative paths."""

    backend = "abstract"

    @abstractmethod
    async def put(self, path: str, content: bytes, content_type: str) -> None:
        """Store `content` at `path`; raises UploadFailed, never overwrites."""

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Absolute URL a browser can load the stored object from."""


class LocalBlobStorage(BlobStorage):
    """
    Images on the local file system.

    Directory Structure:
        storage/
        ├── words/
        │   └── 1718000000000_nihao.png
        └── quotes/
            └── 1718000000123_sunrise.jpg
    """

    backend = "local"

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")
        logger.info("LocalBlobStorage initialized with root=%s", self.root)

    def resolve(self, path: str) -> Path:
        """
        Absolute location of `path` inside the storage root.

        Raises ValidationFailed when the path escapes the root
        (e.g. `../../etc/passwd`).
        """
        full_path = (self.root / path).resolve()
        if not full_path.is_relative_to(self.root):
            raise ValidationFailed(message="Invalid file path", field="path")
        return full_path

    async def put(self, path: str, content: bytes, content_type: str) -> None:
        try:
            target = self.resolve(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            # "xb": fails with FileExistsError instead of overwriting
            async with aiofiles.open(target, "xb") as f:
                await f.write(content)
        except (OSError, ValueError) as e:
            # ValueError: names the filesystem cannot hold (embedded NUL)
            logger.error("Failed to store image at %r: %s", path, e)
            raise UploadFailed(
                context={"path": path, "os_error": type(e).__name__},
            )

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/files/{quote(path)}"


class SupabaseBlobStorage(BlobStorage):
    """Images in one Supabase Storage bucket."""

    backend = "supabase"

    def __init__(self, client: httpx.AsyncClient, bucket: str, project_url: str):
        self._client = client
        self.bucket = bucket
        self.project_url = project_url.rstrip("/")

    async def put(self, path: str, content: bytes, content_type: str) -> None:
        try:
            response = await self._client.post(
                f"/storage/v1/object/{self.bucket}/{quote(path)}",
                content=content,
                headers={
                    "content-type": content_type,
                    "cache-control": "max-age=3600",
                    "x-upsert": "false",
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Upload to bucket %s failed for %s: %s", self.bucket, path, e)
            raise UploadFailed(
                context={"bucket": self.bucket, "path": path, "error_type": type(e).__name__},
            )

    def public_url(self, path: str) -> str:
        return f"{self.project_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"


class ImageUploader:
    """
    Uploads images for one record kind.

    Args:
        storage:        Backend the image is written to
        prefix:         First path segment ("words" or "quotes")
        max_file_size:  Largest accepted image in bytes
        clock:          Seconds since the epoch; injectable for tests
    """

    def __init__(
        self,
        storage: BlobStorage,
        prefix: str,
        max_file_size: int,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.prefix = prefix
        self.max_file_size = max_file_size
        self._clock = clock

    def build_path(self, name_hint: str) -> str:
        # Browsers on Windows may send the full client-side path
        name = PurePosixPath(name_hint.replace("\\", "/")).name
        return f"{self.prefix}/{int(self._clock() * 1000)}_{name}"

    def content_type_for(self, name_hint: str) -> str:
        ext = PurePosixPath(name_hint.replace("\\", "/")).suffix.lower()
        content_type: Optional[str] = ALLOWED_EXTENSIONS.get(ext)
        if content_type is None:
            raise UploadFailed(
                message=(
                    f"File type '{ext or name_hint}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                context={"extension": ext},
            )
        return content_type

    async def upload(self, content: bytes, name_hint: str) -> str:
        """Store the image and return its public URL; raises UploadFailed."""
        content_type = self.content_type_for(name_hint)
        if not content:
            raise UploadFailed(message="The selected image is empty.")
        if len(content) > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise UploadFailed(
                message=f"Image exceeds the maximum size of {max_mb:.0f}MB.",
                context={"size": len(content), "max_size": self.max_file_size},
            )

        path = self.build_path(name_hint)
        await self.storage.put(path, content, content_type)
        url = self.storage.public_url(path)
        logger.info("Image stored: %s (%d bytes)", path, len(content))
        return url
