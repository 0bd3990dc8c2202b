from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, NamedTuple

from photo_gallery.core.errors import DiscoveryError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


class SourceFile(NamedTuple):
    path: Path
    filename: str  # POSIX path relative to the scan root


def _walk_error(exc: OSError) -> None:
    logger.warning("Skipping unreadable entry %s: %s", exc.filename, exc.strerror or exc)


def scan_photos(root: str | Path, *, recursive: bool = True) -> Iterator[SourceFile]:
    """Yield supported photo files under root, sorted within each directory.

    Raises DiscoveryError up front if root itself cannot be listed.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise DiscoveryError(f"Source directory not found or not a folder: {root_path}")
    try:
        os.listdir(root_path)
    except OSError as exc:
        raise DiscoveryError(f"Cannot read source directory {root_path}: {exc}") from exc

    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_walk_error):
        dirnames.sort()
        if not recursive:
            dirnames[:] = []
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                logger.debug("Ignoring unsupported file %s", path)
                continue
            if not path.is_file():
                logger.warning("Skipping %s: not a regular file", path)
                continue
            if not os.access(path, os.R_OK):
                logger.warning("Skipping %s: not readable", path)
                continue
            yield SourceFile(path=path, filename=path.relative_to(root_path).as_posix())
