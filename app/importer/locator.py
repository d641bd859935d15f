"""Index document files in an extracted archive by their embedded code."""

import logging
import os
import re
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSION = ".pdf"

# "133750_1762152327189.pdf" -> "133750"
_CODE_PREFIX = re.compile(r"^(\d+)_")


def document_code(filename: str) -> str | None:
    """Return the leading digit run before the first underscore, if any."""
    match = _CODE_PREFIX.match(filename)
    return match.group(1) if match else None


def locate_documents(
    root: Path, extension: str = DOCUMENT_EXTENSION
) -> Dict[str, Path]:
    """Map paper codes to document paths under ``root``.

    Walks the tree in name order. When two files carry the same code the
    one visited last wins.

    Args:
        root: Directory to scan recursively.
        extension: Document file extension, compared case-insensitively.

    Returns:
        Mapping of code to absolute file path.
    """
    documents: Dict[str, Path] = {}
    extension = extension.lower()

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            if not filename.lower().endswith(extension):
                continue
            code = document_code(filename)
            if code is None:
                continue
            path = Path(dirpath, filename).resolve()
            previous = documents.get(code)
            if previous is not None:
                logger.warning(
                    "Duplicate document code, keeping the later file",
                    extra={
                        "code": code,
                        "replaced": str(previous),
                        "kept": str(path),
                    },
                )
            documents[code] = path

    logger.info("Documents located", extra={"root": str(root), "count": len(documents)})
    return documents
