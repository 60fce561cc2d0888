"""Bring a local working copy into exact agreement with a remote revision.

`Reconciler.reconcile` is idempotent and convergent: whatever state the
working copy is in (missing, pointed at another remote, on another commit,
carrying local edits or leftover files), a successful call leaves it with
exactly the files of the requested revision and HEAD detached there.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import (
    FilesystemError,
    RemoteMismatch,
    RepositoryRootMissing,
    RevisionNotFound,
)
from .backend import GitBackend, VersionControlBackend

logger = logging.getLogger(__name__)

DEFAULT_MAX_HEAL_ATTEMPTS = 3

_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{7,64}$")


def looks_like_object_id(revision: str) -> bool:
    """True for full or abbreviated hexadecimal commit ids."""
    return bool(_OBJECT_ID.match(revision))


@dataclass(frozen=True)
class RepositoryHandle:
    """A working copy known to match `commit` exactly."""

    url: str
    path: Path
    commit: str


class Reconciler:
    """State machine driving a `VersionControlBackend`."""

    def __init__(
        self,
        backend: Optional[VersionControlBackend] = None,
        max_heal_attempts: int = DEFAULT_MAX_HEAL_ATTEMPTS,
    ) -> None:
        if max_heal_attempts < 1:
            raise ValueError("max_heal_attempts must be at least 1")
        self.backend = backend if backend is not None else GitBackend()
        self.max_heal_attempts = max_heal_attempts

    def reconcile(self, remote_url: str, local_path: Path, revision: str) -> RepositoryHandle:
        logger.debug("Updating %s at %s to revision %s", remote_url, local_path, revision)
        local_path = Path(local_path)
        self._ensure_working_copy(remote_url, local_path)

        target = self._resolve(remote_url, local_path, revision)
        current = self.backend.current_position(local_path)
        logger.debug("Currently on %s, target %s -> %s", current, revision, target)

        if current == target:
            if self.backend.status_of(local_path, target).is_dirty:
                logger.info("Working copy %s is dirty, resetting", local_path)
                self._reset_and_clean(local_path, target)
            else:
                logger.debug("Already on revision %s", target)
            return RepositoryHandle(remote_url, local_path, target)

        self.backend.materialize_tree(local_path, target)
        if self.backend.status_of(local_path, target).is_dirty:
            self._reset_and_clean(local_path, target)
        self.backend.detach_at(local_path, target)
        logger.debug("Checked out revision %s", revision)
        return RepositoryHandle(remote_url, local_path, target)

    def _ensure_working_copy(self, remote_url: str, local_path: Path) -> None:
        """Clone when missing; delete and re-clone when the remote differs."""
        found: Optional[str] = None
        for attempt in range(1, self.max_heal_attempts + 1):
            if not local_path.exists():
                logger.debug("Repo does not exist, cloning %s", remote_url)
                self.backend.clone(remote_url, local_path)

            found = self.backend.remote_url(local_path)
            if found == remote_url:
                return

            logger.warning(
                "Repository URL does not match! Expected: %s, Found: %s. "
                "Deleting and retrying (attempt %d of %d)",
                remote_url,
                found,
                attempt,
                self.max_heal_attempts,
            )
            try:
                if local_path.is_dir() and not local_path.is_symlink():
                    shutil.rmtree(local_path)
                else:
                    local_path.unlink()
            except OSError as e:
                raise FilesystemError(f"Could not remove {local_path}: {e}") from e
            if local_path.exists():
                break
        raise RemoteMismatch(remote_url, found, attempt)

    def _resolve(self, remote_url: str, local_path: Path, revision: str) -> str:
        if not revision or revision.startswith("-"):
            raise RevisionNotFound(revision, remote_url)

        is_oid = looks_like_object_id(revision)
        if is_oid:
            commit = self.backend.resolve_revision(local_path, revision)
            if commit:
                return commit

        logger.debug("Fetching %s from %s", revision, remote_url)
        commit = self.backend.fetch_ref(local_path, remote_url, revision)
        if commit:
            return commit

        if is_oid:
            # Commit ids cannot always be fetched directly; pull every ref and retry.
            self.backend.fetch_all(local_path, remote_url)
            commit = self.backend.resolve_revision(local_path, revision)
            if commit:
                return commit

        raise RevisionNotFound(revision, remote_url)

    def _reset_and_clean(self, local_path: Path, target: str) -> None:
        root = self.backend.repository_root(local_path)
        if root is None or not _same_path(root, local_path):
            raise RepositoryRootMissing(local_path)

        self.backend.reset_hard(local_path, target)
        status = self.backend.status_of(local_path, target)
        for entry in status.untracked:
            leftover = root / entry
            logger.debug("Removing untracked %s", leftover)
            try:
                if leftover.is_dir() and not leftover.is_symlink():
                    shutil.rmtree(leftover)
                else:
                    leftover.unlink()
            except OSError as e:
                logger.warning("Failed to remove untracked path %s: %s", leftover, e)


def _same_path(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return False


def reconcile(
    remote_url: str,
    local_path: Path,
    revision: str,
    backend: Optional[VersionControlBackend] = None,
) -> RepositoryHandle:
    """Reconcile with a default `Reconciler`."""
    return Reconciler(backend).reconcile(remote_url, local_path, revision)
