"""Document and key-value store abstractions with local filesystem implementations."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import PurePath
from typing import TYPE_CHECKING, Protocol

from slugify import slugify

if TYPE_CHECKING:
    from datetime import date
    from pathlib import Path

    from warranty_tracker.models import InvoiceDocument

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Protocol for uploaded-invoice storage backends."""

    def save(self, document: InvoiceDocument, received: date) -> str: ...

    def read(self, relative_path: str) -> bytes: ...

    def exists(self, relative_path: str) -> bool: ...


class KeyValueStore(Protocol):
    """Protocol for durable string storage under well-known keys."""

    def load(self, key: str) -> str | None: ...

    def save(self, key: str, value: str) -> None: ...


class LocalDocumentStore:
    """Local filesystem implementation of DocumentStore.

    Directory layout: {root}/{YYYY}/{MM}/{YYYY-MM-DD}__{name}.{ext}
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def save(self, document: InvoiceDocument, received: date) -> str:
        """Save the document bytes and return the path relative to the store root."""
        slug = self._slugify_name(document.filename)
        ext = self._extension_for(document)
        dir_path = self.root / str(received.year) / f"{received.month:02d}"
        dir_path.mkdir(parents=True, exist_ok=True)

        filename = f"{received.isoformat()}__{slug}{ext}"
        file_path = dir_path / filename

        # Handle duplicates by appending numeric suffix
        counter = 1
        while file_path.exists():
            counter += 1
            filename = f"{received.isoformat()}__{slug}_{counter}{ext}"
            file_path = dir_path / filename

        file_path.write_bytes(document.data)
        return file_path.relative_to(self.root).as_posix()

    def get_path(self, relative_path: str) -> Path:
        """Return the absolute path for a relative store path."""
        return self.root / relative_path

    def read(self, relative_path: str) -> bytes:
        """Return the stored bytes for a relative store path."""
        return self.get_path(relative_path).read_bytes()

    def exists(self, relative_path: str) -> bool:
        """Check whether a file exists in the store."""
        return (self.root / relative_path).exists()

    @staticmethod
    def _slugify_name(filename: str) -> str:
        """Convert the original file stem to a filesystem-safe slug, max 50 chars."""
        return str(slugify(PurePath(filename).stem, max_length=50)) or "invoice"

    @staticmethod
    def _extension_for(document: InvoiceDocument) -> str:
        suffix = PurePath(document.filename).suffix.lower()
        if suffix in {".pdf", ".jpg", ".jpeg", ".png"}:
            return suffix
        return mimetypes.guess_extension(document.media_type) or ""


class JsonFileStore:
    """KeyValueStore backed by one JSON file per key.

    Layout: {root}/{key}.json, replaced atomically on every save.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def load(self, key: str) -> str | None:
        """Return the stored text for key, or None if nothing is stored."""
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, key: str, value: str) -> None:
        """Write value under key, replacing any previous value."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)
        logger.debug("Wrote %d bytes to %s", len(value), path)

    def _path_for(self, key: str) -> Path:
        return self.root / f"{slugify(key, separator='_')}.json"
