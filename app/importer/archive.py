"""Archive extraction for bulk imports."""

import logging
import os
import shutil
import zipfile
from io import BytesIO
from pathlib import Path, PurePosixPath
from typing import Optional

from app.exceptions import ArchiveError

logger = logging.getLogger(__name__)

METADATA_EXTENSION = ".csv"


def _safe_member_path(member_name: str) -> PurePosixPath:
    name = member_name.replace("\\", "/")
    if "\x00" in name:
        raise ArchiveError("Archive contains invalid file paths")
    path = PurePosixPath(name)
    if path.is_absolute() or ".." in path.parts:
        raise ArchiveError(f"Archive contains unsafe file path: {member_name!r}")
    return path


def extract_archive(data: bytes, destination: Path) -> int:
    """Extract every entry of a ZIP archive into ``destination``.

    Relative folder structure is preserved. The whole archive is validated
    before anything is written, so an unsafe member leaves the destination
    untouched.

    Args:
        data: Raw ZIP archive bytes.
        destination: Existing, empty directory.

    Returns:
        Number of files extracted.

    Raises:
        ArchiveError: If the archive is corrupt, not a ZIP, contains unsafe
            paths, or the destination is missing or not empty.
    """
    if not destination.is_dir():
        raise ArchiveError(f"Extraction directory does not exist: {destination}")
    if any(destination.iterdir()):
        raise ArchiveError(f"Extraction directory is not empty: {destination}")

    root = destination.resolve()
    extracted = 0
    try:
        with zipfile.ZipFile(BytesIO(data)) as archive:
            members = [
                (member, _safe_member_path(member.filename))
                for member in archive.infolist()
            ]
            for member, relative in members:
                target = root.joinpath(*relative.parts)
                if member.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(member) as src_file, open(target, "wb") as out_file:
                    shutil.copyfileobj(src_file, out_file)
                extracted += 1
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Invalid or corrupt ZIP archive: {e}") from e
    except (zipfile.LargeZipFile, NotImplementedError, RuntimeError) as e:
        # RuntimeError covers encrypted members
        raise ArchiveError(f"Unsupported ZIP archive: {e}") from e

    logger.info(
        "Archive extracted",
        extra={"destination": str(root), "files": extracted},
    )
    return extracted


def find_metadata_file(root: Path) -> Optional[Path]:
    """Find the first CSV file, depth-first.

    Files of a directory are checked (in name order) before descending into
    its subdirectories (also in name order).

    Returns:
        Path of the metadata file, or None when the tree has none.
    """
    entries = sorted(root.iterdir(), key=lambda entry: entry.name)
    for entry in entries:
        if entry.is_file() and entry.name.lower().endswith(METADATA_EXTENSION):
            return entry
    for entry in entries:
        if entry.is_dir() and not entry.is_symlink():
            found = find_metadata_file(entry)
            if found is not None:
                return found
    return None


def remove_tree(path: Path) -> None:
    """Remove a scratch directory tree if it exists."""
    if os.path.lexists(path):
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Scratch directory removed", extra={"path": str(path)})
