"""Content type detection and hashing utilities."""

from __future__ import annotations

import hashlib
from pathlib import Path, PurePosixPath
from typing import Iterable, NamedTuple, Optional, Protocol, Tuple

from .errors import AssetReadError

SITE_ASSOCIATION_SUFFIX = ".well-known/site-association-json"
NO_CHARSET = "none"
FALLBACK_MIME = "application/octet-stream"
_CHUNK_SIZE = 1024 * 1024


class MimeEntry(NamedTuple):
    mime: str
    is_text: bool


EXTENSION_TABLE: dict[str, MimeEntry] = {
    ".txt": MimeEntry("text/plain", True),
    ".htm": MimeEntry("text/html", True),
    ".html": MimeEntry("text/html", True),
    ".xhtml": MimeEntry("application/xhtml+xml", True),
    ".css": MimeEntry("text/css", True),
    ".js": MimeEntry("text/javascript", True),
    ".mjs": MimeEntry("text/javascript", True),
    ".apng": MimeEntry("image/apng", False),
    ".avif": MimeEntry("image/avif", False),
    ".gif": MimeEntry("image/gif", False),
    ".jpeg": MimeEntry("image/jpeg", False),
    ".jpg": MimeEntry("image/jpeg", False),
    ".png": MimeEntry("image/png", False),
    ".svg": MimeEntry("image/svg+xml", True),
    ".bmp": MimeEntry("image/bmp", False),
    ".tiff": MimeEntry("image/tiff", False),
    ".webp": MimeEntry("image/webp", False),
    ".ico": MimeEntry("image/vnd.microsoft.icon", False),
    ".eot": MimeEntry("application/vnd.ms-fontobject", False),
    ".ttf": MimeEntry("font/ttf", False),
    ".otf": MimeEntry("font/otf", False),
    ".woff": MimeEntry("font/woff", False),
    ".woff2": MimeEntry("font/woff2", False),
    ".json": MimeEntry("application/json", True),
    ".jsonld": MimeEntry("application/ld+json", True),
    ".xml": MimeEntry("application/xml", True),
    ".pdf": MimeEntry("application/pdf", False),
    ".zip": MimeEntry("application/zip", False),
    ".wasm": MimeEntry("application/wasm", False),
}


class ContentTypeResolver:
    """Map file names to MIME types using a static extension table."""

    def __init__(self, table: Optional[dict[str, MimeEntry]] = None) -> None:
        self._table = dict(EXTENSION_TABLE if table is None else table)

    def resolve(self, relative_path: str) -> Tuple[str, bool]:
        """Return the MIME type and whether the format is text-like.

        Unknown extensions fall back to ``application/octet-stream``. Extensions are
        matched case-sensitively.
        """
        if relative_path.endswith(SITE_ASSOCIATION_SUFFIX):
            extension = ".json"
        else:
            extension = PurePosixPath(relative_path).suffix
        entry = self._table.get(extension)
        if entry is None:
            return FALLBACK_MIME, False
        return entry.mime, entry.is_text

    def content_type(
        self,
        relative_path: str,
        text_encoding: str = "utf-8",
        override: Optional[str] = None,
    ) -> str:
        """Return the ``Content-Type`` header value for a file.

        Args:
            relative_path: Path of the file relative to the output root.
            text_encoding: Charset for text-like types, or ``"none"`` to omit it.
            override: Header value supplied by a rule; returned verbatim.

        Returns:
            str: MIME type, with ``;charset=`` appended for text-like formats.
        """
        if override:
            return override
        mime, is_text = self.resolve(relative_path)
        if is_text and text_encoding != NO_CHARSET:
            return f"{mime};charset={text_encoding}"
        return mime


class _Digest(Protocol):
    def update(self, data: bytes, /) -> None: ...


class HashComputer:
    """Compute content fingerprints for files and whole trees."""

    def __init__(self, chunk_size: int = _CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    def compute(self, path: Path) -> str:
        """Return the hex SHA-256 digest of the file's raw bytes."""
        digest = hashlib.sha256()
        self._feed(digest, path)
        return digest.hexdigest()

    def compute_tree(self, paths: Iterable[Path]) -> str:
        """Return one hex MD5 digest over the bytes of ``paths``, in the given order."""
        digest = hashlib.md5(usedforsecurity=False)
        for path in paths:
            self._feed(digest, path)
        return digest.hexdigest()

    def _feed(self, digest: _Digest, path: Path) -> None:
        try:
            with path.open("rb") as handle:
                for chunk in iter(lambda: handle.read(self.chunk_size), b""):
                    digest.update(chunk)
        except OSError as exc:
            raise AssetReadError(f"Unable to read {path}: {exc}") from exc
