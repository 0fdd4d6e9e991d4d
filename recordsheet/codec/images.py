"""
Image loading for IMAGE columns.

The writer asks an ImageLoader for the bytes behind a cell's reference
(a URL or a ``/profile/...`` resource path). The default loader fetches
``http(s)`` references with httpx and resolves everything else below the
configured profile directory.
"""

import io
import logging
import struct
from pathlib import Path
from typing import Protocol

import httpx
from xlsxwriter.exceptions import UndefinedImageSize, UnsupportedImageFormat
from xlsxwriter.image import Image

from recordsheet.config import Settings, get_settings

logger = logging.getLogger(__name__)

PROFILE_PREFIX = "/profile"

# Resolution XlsxWriter assumes when it converts pixels to cell units
SCREEN_DPI = 96


class ImageLoader(Protocol):
    """Source of raw image bytes for a cell reference."""

    def load(self, reference: str) -> bytes | None:
        """Return the image bytes, or None if the image is unavailable."""
        ...


def read_image(data: bytes) -> Image | None:
    """
    Parse picture bytes with XlsxWriter.

    Returns:
        The parsed Image carrying its type, pixel size and DPI, or None if
        the bytes are not a picture format a worksheet can hold.
    """
    try:
        return Image(io.BytesIO(data))
    except (UnsupportedImageFormat, UndefinedImageSize, struct.error) as e:
        logger.warning("Unreadable image data: %s", e)
        return None


class DefaultImageLoader:
    """
    Loads images from HTTP(S) URLs or from the local profile directory.

    Attributes:
        profile_dir: Directory that ``/profile/...`` references resolve into.
        timeout: HTTP timeout in seconds.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.profile_dir = Path(settings.profile_dir)
        self.timeout = settings.image_timeout_seconds

    def load(self, reference: str) -> bytes | None:
        if not reference:
            return None

        if reference.startswith(("http://", "https://")):
            return self._load_url(reference)
        return self._load_file(reference)

    def _load_url(self, url: str) -> bytes | None:
        try:
            response = httpx.get(url, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to fetch image %s: %s", url, e)
            return None
        return response.content

    def _load_file(self, reference: str) -> bytes | None:
        relative = reference
        if relative.startswith(PROFILE_PREFIX):
            relative = relative[len(PROFILE_PREFIX):]
        path = self.profile_dir / relative.lstrip("/")

        try:
            return path.read_bytes()
        except OSError as e:
            logger.warning("Failed to read image %s: %s", path, e)
            return None
