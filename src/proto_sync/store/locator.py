"""Mapping from source URLs to working copies inside the store directory."""

from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Iterable, List

from ..errors import FilesystemError

logger = logging.getLogger(__name__)

DEFAULT_STORE_DIR = ".proto-sync"
IGNORE_FILE = ".gitignore"
IGNORE_ALL = "*\n"


def store_key(url: str) -> str:
    """Return the store directory name for a source URL (hex SHA-256)."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def ignore_path(path: Path) -> bool:
    """Mark a directory as ignored by an enclosing git repository.

    Writes `.gitignore` containing `*` unless the file already holds exactly
    that. Returns True when the file was written.
    """
    marker = path / IGNORE_FILE
    try:
        if marker.is_file() and marker.read_text(encoding="utf-8") == IGNORE_ALL:
            return False
        marker.write_text(IGNORE_ALL, encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Could not write {marker}: {e}") from e
    logger.debug("Wrote ignore marker %s", marker)
    return True


class Store:
    """The cache directory holding one git working copy per source URL."""

    def __init__(self, root: Path | str = DEFAULT_STORE_DIR) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"Store({str(self.root)!r})"

    def ensure(self) -> Path:
        """Create the store root if needed and mark it ignored."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Could not create store {self.root}: {e}") from e
        ignore_path(self.root)
        return self.root

    def key(self, url: str) -> str:
        return store_key(url)

    def locate(self, url: str) -> Path:
        """Return the working copy path for `url`, ensuring the store exists."""
        self.ensure()
        return self.root / store_key(url)

    def keys(self) -> List[str]:
        """Names of the working copies currently in the store."""
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_dir())

    def collect_garbage(self, urls: Iterable[str]) -> List[Path]:
        """Delete working copies whose URL is not in `urls`.

        Returns the paths that were removed.
        """
        keep = {store_key(url) for url in urls}
        logger.debug("Keeping store keys: %s", sorted(keep))
        removed: List[Path] = []
        for name in self.keys():
            if name in keep:
                continue
            path = self.root / name
            logger.info("Removing unused repository %s", path)
            try:
                shutil.rmtree(path)
            except OSError as e:
                raise FilesystemError(f"Could not remove {path}: {e}") from e
            removed.append(path)
        return removed
