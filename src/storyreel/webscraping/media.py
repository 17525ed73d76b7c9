"""Fetch remote images and videos into a workspace's uploads directory."""

import logging
import mimetypes
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlsplit

import requests

from ..core.errors import MediaUploadError

logger = logging.getLogger("StoryReel.webscraping.media")

_KNOWN_EXTENSIONS = {
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg",
    ".mp4", ".webm", ".ogg", ".mov",
}
_CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/ogg": ".ogg",
    "video/quicktime": ".mov",
}


def guess_extension(url: str, content_type: Optional[str] = None) -> str:
    """Pick a file extension from the URL path, falling back to Content-Type."""
    suffix = PurePosixPath(unquote(urlsplit(url).path)).suffix.lower()
    if suffix in _KNOWN_EXTENSIONS:
        return suffix
    if content_type:
        mime = content_type.split(";")[0].strip().lower()
        ext = _CONTENT_TYPE_EXTENSIONS.get(mime) or mimetypes.guess_extension(mime)
        if ext:
            return ext
    return ".jpg"


class MediaDownloader:
    """Streams remote media to disk."""

    TIMEOUT = 30
    CHUNK_SIZE = 8192

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session or requests.Session()

    def download(self, url: str, dest_dir: Path, filename: Optional[str] = None) -> Path:
        """Download ``url`` into ``dest_dir`` and return the written path."""
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest_path = None
        try:
            response = self._session.get(url, timeout=self.TIMEOUT, stream=True)
            response.raise_for_status()

            if not filename:
                ext = guess_extension(url, response.headers.get("Content-Type"))
                filename = f"{uuid.uuid4().hex[:12]}{ext}"
            dest_path = dest_dir / filename

            with open(dest_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                    f.write(chunk)
        except (requests.RequestException, OSError) as e:
            if dest_path is not None:
                dest_path.unlink(missing_ok=True)
            logger.error(f"Download of {url} failed: {e}")
            raise MediaUploadError(f"Could not download {url}: {e}") from e

        logger.info(f"Downloaded media to {dest_path}")
        return dest_path
