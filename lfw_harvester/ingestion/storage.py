"""
Share Storage Module
====================

Stores downloaded files under the share directory, where the file
service of the webshop serves them from ``share://`` URIs.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

import filetype

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    DEFAULT_MIME_TYPE: "bin",
}


@dataclass
class StoredFile:
    """A file persisted to the share directory."""

    filename: str
    path: Path
    size_bytes: int
    mime_type: str

    @property
    def share_uri(self) -> str:
        return f"share://{self.filename}"


def filename_from_url(url: str) -> str:
    """Last path segment of a URL, e.g. ``c0339609.png``."""
    path = unquote(urlparse(url).path)
    return PurePosixPath(path).name


def extension_from_url(url: str) -> str:
    """File extension of the last path segment of a URL, without the dot."""
    return PurePosixPath(filename_from_url(url)).suffix.lstrip(".").lower()


def extension_for_mime(mime_type: str) -> str:
    """Usual extension of a MIME type, "bin" when unknown."""
    if mime_type in MIME_EXTENSIONS:
        return MIME_EXTENSIONS[mime_type]
    guessed = mimetypes.guess_extension(mime_type)
    return guessed.lstrip(".") if guessed else "bin"


def detect_mime_type(
    content: bytes,
    filename: str | None = None,
    content_type: str | None = None,
) -> str:
    """
    Determine the MIME type of a downloaded file.

    Args:
        content: Raw bytes, their signature decides when recognised
        filename: Name of the file, its extension is looked up
        content_type: Content-Type header of the download, if any

    Returns:
        The sniffed type, else the header type when it names one, else the
        type guessed from the extension, else ``application/octet-stream``
    """
    kind = filetype.guess(content)
    if kind is not None:
        return kind.mime
    if content_type:
        mime_type = content_type.split(";")[0].strip().lower()
        if mime_type and mime_type != DEFAULT_MIME_TYPE:
            return mime_type
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return DEFAULT_MIME_TYPE


class ShareStorage:
    """
    Local filesystem storage for share files.

    Files are written flat under ``base_path`` with the name they get in
    their ``share://`` URI.
    """

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path).expanduser()

    def path_for(self, filename: str) -> Path:
        return self.base_path / filename

    def save(self, filename: str, content: bytes, mime_type: str | None = None) -> StoredFile:
        """
        Persist file content.

        Args:
            filename: Name of the file inside the share directory
            content: Raw bytes
            mime_type: Known MIME type, guessed from the filename when omitted

        Returns:
            StoredFile describing the written file
        """
        self.base_path.mkdir(parents=True, exist_ok=True)
        path = self.path_for(filename)
        with open(path, "wb") as f:
            f.write(content)

        logger.debug(f"Stored {len(content)} bytes at {path}")
        return StoredFile(
            filename=filename,
            path=path,
            size_bytes=len(content),
            mime_type=mime_type or detect_mime_type(content, filename),
        )

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).exists()
