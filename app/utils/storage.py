"""Local disk storage for question paper files."""

import logging
import re
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from fastapi import Request

from app.exceptions import FileTooLargeError, StorageError

logger = logging.getLogger(__name__)

PUBLIC_URL_PREFIX = "/uploads/papers"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._ -]")


@dataclass(frozen=True)
class StoredFile:
    """A file placed in permanent storage.

    Attributes:
        name: Unique stored filename.
        path: Absolute path on disk.
        url: Public URL the file is served under.
        size: Size in bytes.
    """

    name: str
    path: Path
    url: str
    size: int


class LocalStorage:
    """Stores files in one directory under unique, time-prefixed names.

    Names have the form ``<epoch milliseconds>-<original basename>``; when two
    files land in the same millisecond with the same basename the timestamp
    is bumped until the name is free.
    """

    def __init__(
        self,
        root: Path,
        max_file_size: Optional[int] = None,
        url_prefix: str = PUBLIC_URL_PREFIX,
    ) -> None:
        """Initialize storage rooted at ``root`` (created if missing).

        Args:
            root: Directory holding stored files.
            max_file_size: Upload size limit in bytes for ``save``.
            url_prefix: Public URL prefix for stored files.
        """
        self._root = Path(root).resolve()
        self._max_file_size = max_file_size
        self._url_prefix = url_prefix.rstrip("/")
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info("Local storage initialized", extra={"root": str(self._root)})

    @property
    def root(self) -> Path:
        return self._root

    @staticmethod
    def _clean_basename(original_name: str) -> str:
        basename = Path(original_name.replace("\\", "/")).name
        cleaned = _UNSAFE_CHARS.sub("_", basename).strip(". ")
        return cleaned or "file"

    def generate_unique_name(self, original_name: str) -> str:
        """Generate a free filename from the current time and ``original_name``."""
        basename = self._clean_basename(original_name)
        stamp = time.time_ns() // 1_000_000
        candidate = f"{stamp}-{basename}"
        while (self._root / candidate).exists():
            stamp += 1
            candidate = f"{stamp}-{basename}"
        return candidate

    def path_for(self, stored_name: str) -> Path:
        """Resolve a stored name to its path, refusing names outside the root."""
        path = (self._root / stored_name).resolve()
        if path.parent != self._root:
            raise StorageError(f"Invalid stored file name: {stored_name!r}")
        return path

    def url_for(self, stored_name: str) -> str:
        return f"{self._url_prefix}/{stored_name}"

    @staticmethod
    def name_from_url(file_url: str) -> str:
        """Extract the stored filename from a public file URL."""
        return file_url.rstrip("/").rsplit("/", 1)[-1]

    def _stored(self, name: str, path: Path) -> StoredFile:
        return StoredFile(
            name=name, path=path, url=self.url_for(name), size=path.stat().st_size
        )

    def save(self, file_data: BinaryIO, original_name: str) -> StoredFile:
        """Write an uploaded file stream into storage.

        Args:
            file_data: File-like object with binary data.
            original_name: Filename as uploaded.

        Returns:
            Description of the stored file.

        Raises:
            FileTooLargeError: If the stream exceeds the size limit.
            StorageError: If writing fails.
        """
        file_data.seek(0, 2)
        size = file_data.tell()
        file_data.seek(0)

        if self._max_file_size is not None and size > self._max_file_size:
            raise FileTooLargeError(size, self._max_file_size)

        name = self.generate_unique_name(original_name)
        path = self._root / name
        try:
            with open(path, "wb") as out_file:
                shutil.copyfileobj(file_data, out_file)
        except OSError as e:
            path.unlink(missing_ok=True)
            logger.error(f"Failed to store uploaded file: {e}")
            raise StorageError(f"Failed to store file: {e}") from e

        logger.info("File stored", extra={"stored_name": name, "size": size})
        return self._stored(name, path)

    def copy_from(self, source: Path) -> StoredFile:
        """Copy a file from disk into storage, leaving the source in place.

        Raises:
            StorageError: If copying fails.
        """
        name = self.generate_unique_name(source.name)
        path = self._root / name
        try:
            shutil.copyfile(source, path)
        except OSError as e:
            path.unlink(missing_ok=True)
            logger.error(f"Failed to copy {source} into storage: {e}")
            raise StorageError(f"Failed to copy file: {e}") from e

        logger.debug("File copied into storage", extra={"stored_name": name})
        return self._stored(name, path)

    def exists(self, stored_name: str) -> bool:
        try:
            return self.path_for(stored_name).is_file()
        except StorageError:
            return False

    def delete(self, stored_name: str) -> None:
        """Delete a stored file; a missing file is not an error.

        Raises:
            StorageError: If deletion fails.
        """
        try:
            self.path_for(stored_name).unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete stored file: {e}")
            raise StorageError(f"Failed to delete file: {e}") from e
        logger.info("File deleted from storage", extra={"stored_name": stored_name})


def get_storage(request: Request) -> LocalStorage:
    """Get the application's LocalStorage for dependency injection."""
    return request.app.state.storage
