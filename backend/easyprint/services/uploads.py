import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from easyprint.models.enums import UploadFolder
from easyprint.utils.image_quality import inspect_image
from easyprint.utils.pdf_reader import count_pdf_pages

logger = logging.getLogger(__name__)

MEDIA_ROOT = os.getenv("MEDIA_ROOT", "./media")
MEDIA_URL = os.getenv("MEDIA_URL", "/media")

MB = 1024 * 1024
MAX_SIZE = {
    UploadFolder.DOCUMENTS: 10 * MB,
    UploadFolder.PAYMENTS: 5 * MB,
}
DOCUMENT_EXTENSIONS = {".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png"}


class UploadError(ValueError):
    """Upload refused; the message says what to fix."""


class UploadService:
    """Stores customer uploads under ``media_root/<folder>/`` and reports page counts."""

    def __init__(self, media_root: Optional[str] = None, media_url: Optional[str] = None):
        self.media_root = Path(media_root or MEDIA_ROOT)
        self.media_url = (media_url or MEDIA_URL).rstrip("/")

    def _check(self, content: bytes, filename: str, content_type: str, folder: UploadFolder) -> str:
        if not content:
            raise UploadError("No file provided")

        limit = MAX_SIZE[folder]
        if len(content) > limit:
            if folder is UploadFolder.PAYMENTS:
                raise UploadError(f"Payment screenshot must be less than {limit // MB}MB")
            raise UploadError(f"File size exceeds {limit // MB}MB limit")

        ext = Path(filename).suffix.lower()
        if folder is UploadFolder.PAYMENTS:
            if not (content_type or "").startswith("image/") or inspect_image(content) is None:
                raise UploadError("Please upload an image file (JPG, PNG, etc.)")
        elif ext not in DOCUMENT_EXTENSIONS:
            raise UploadError(f"File type {ext or filename} is not supported")
        return ext

    def _pages(self, content: bytes, ext: str, content_type: str) -> int:
        if ext == ".pdf" or content_type == "application/pdf":
            return count_pdf_pages(content) or 1
        return 1

    def save(self, content: bytes, filename: str, content_type: str = "",
             folder: UploadFolder = UploadFolder.DOCUMENTS) -> Dict[str, Any]:
        folder = UploadFolder(folder)
        filename = os.path.basename(filename or "upload")
        ext = self._check(content, filename, content_type, folder)

        stem = re.sub(r"[^\w.-]+", "_", Path(filename).stem) or "file"
        stored_name = f"{int(time.time() * 1000)}_{uuid4().hex[:8]}_{stem}{ext}"
        target_dir = self.media_root / folder.value
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / stored_name).write_bytes(content)

        pages = self._pages(content, ext, content_type) if folder is UploadFolder.DOCUMENTS else 1
        logger.info("Stored upload %s folder=%s size=%s pages=%s", stored_name, folder.value, len(content), pages)
        return {
            "url": f"{self.media_url}/{folder.value}/{stored_name}",
            "file_name": filename,
            "file_size": len(content),
            "file_type": content_type,
            "pages": pages,
        }

    def delete(self, url: str) -> bool:
        """Remove a file this service stored, given its public URL.

        URLs outside ``media_url`` are left alone. Returns whether a file was removed.
        """
        prefix = self.media_url + "/"
        if not url or not url.startswith(prefix):
            return False
        target = (self.media_root / url[len(prefix):]).resolve()
        if self.media_root.resolve() not in target.parents:
            logger.warning("Refusing to delete outside media root: %s", url)
            return False
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted upload %s", url)
        return True
