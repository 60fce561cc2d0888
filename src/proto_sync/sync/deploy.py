"""Copy a subtree of a working copy into its destination directory."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path, PurePosixPath
from typing import List, Optional

from ..config import ManifestEntry
from ..errors import FilesystemError, UnsafePathError
from ..store import ignore_path

logger = logging.getLogger(__name__)

# Never deployed, even when a whole repository is selected.
SKIPPED_NAMES = frozenset({".git"})


def safe_relative(path: str, allow_root: bool = False) -> PurePosixPath:
    """Validate a manifest path that must stay inside its base directory."""
    rel = PurePosixPath(path.replace("\\", "/"))
    if rel.is_absolute() or Path(path).is_absolute():
        raise UnsafePathError(f"Manifest path must be relative: {path}")
    if ".." in rel.parts:
        raise UnsafePathError(f"Manifest path cannot contain '..': {path}")
    if not allow_root and not rel.parts:
        raise UnsafePathError(f"Manifest path cannot be the base directory: {path!r}")
    return rel


def check_outside_store(destination: Path, store_root: Optional[Path]) -> None:
    """Refuse destinations that are, contain, or live inside the store."""
    if store_root is None:
        return
    dest = destination.resolve()
    store = store_root.resolve()
    if dest == store or store in dest.parents or dest in store.parents:
        raise UnsafePathError(f"Destination {destination} overlaps the store {store_root}")


def copy_tree(src: Path, dest: Path) -> List[Path]:
    """Recursively copy files from `src` to `dest`, mirroring the layout.

    Symlinks are recreated as links, never followed. Returns the destination
    path of every copied file and link.
    """
    dest.mkdir(parents=True, exist_ok=True)
    copied: List[Path] = []
    for entry in sorted(src.iterdir(), key=lambda p: p.name):
        if entry.name in SKIPPED_NAMES:
            continue
        target = dest / entry.name
        if entry.is_symlink():
            logger.debug("Copying link %s", entry)
            os.symlink(os.readlink(entry), target)
            copied.append(target)
        elif entry.is_dir():
            copied.extend(copy_tree(entry, target))
        else:
            logger.debug("Copying file %s", entry)
            shutil.copyfile(entry, target)
            copied.append(target)
    return copied


def deploy_entry(
    working_copy: Path,
    entry: ManifestEntry,
    base_path: Path,
    ignore_generated: bool = False,
    store_root: Optional[Path] = None,
) -> List[Path]:
    """Replace the entry's destination with the selected source subtree."""
    source = working_copy / safe_relative(entry.src_directory, allow_root=True)
    destination = base_path / safe_relative(entry.destination)
    check_outside_store(destination, store_root)
    logger.debug("Copying proto files from %s to %s", source, destination)

    if not source.is_dir():
        raise FilesystemError(
            f"{entry.src_directory!r} is not a directory in {entry.url} at {entry.rev}"
        )

    try:
        if destination.exists():
            logger.debug("Removing existing files in %s", destination)
            shutil.rmtree(destination)
        destination.mkdir(parents=True)
        if ignore_generated:
            ignore_path(destination)
        return copy_tree(source, destination)
    except OSError as e:
        raise FilesystemError(f"Could not deploy to {destination}: {e}") from e


def remove_destination(
    entry: ManifestEntry, base_path: Path, store_root: Optional[Path] = None
) -> bool:
    """Delete a deployed destination directory; True when something was removed."""
    destination = base_path / safe_relative(entry.destination)
    check_outside_store(destination, store_root)
    if not destination.exists():
        return False
    try:
        shutil.rmtree(destination)
    except OSError as e:
        raise FilesystemError(f"Could not remove {destination}: {e}") from e
    return True
