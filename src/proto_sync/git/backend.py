"""Version-control backend used by the reconciliation engine.

The engine only talks to the narrow `VersionControlBackend` protocol. The
`GitBackend` implementation drives the `git` executable; authentication is
left to git itself (ssh agent, key files, credential helpers), with terminal
prompts disabled so a missing credential fails instead of hanging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from ..errors import AuthenticationFailure, GitCommandError
from ..utils import git_output, run_git_command

logger = logging.getLogger(__name__)

_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "terminal prompts disabled",
    "permission denied",
    "access denied",
    "could not read from remote repository",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
)

_MISSING_REF_MARKERS = (
    "couldn't find remote ref",
    "could not find remote ref",
    "not our ref",
    "invalid refspec",
    "unadvertised object",
)


def is_auth_error(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in _AUTH_MARKERS)


def is_missing_ref_error(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in _MISSING_REF_MARKERS)


@dataclass
class StatusReport:
    """Differences between a working tree and a commit."""

    modified: List[str] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)

    @property
    def is_dirty(self) -> bool:
        return bool(self.modified or self.untracked)


@runtime_checkable
class VersionControlBackend(Protocol):
    """Capabilities the reconciliation engine needs from a VCS."""

    def clone(self, url: str, path: Path) -> None: ...

    def remote_url(self, path: Path) -> Optional[str]: ...

    def resolve_revision(self, path: Path, revision: str) -> Optional[str]: ...

    def fetch_ref(self, path: Path, url: str, ref: str) -> Optional[str]: ...

    def fetch_all(self, path: Path, url: str) -> None: ...

    def current_position(self, path: Path) -> Optional[str]: ...

    def status_of(self, path: Path, commit: str) -> StatusReport: ...

    def materialize_tree(self, path: Path, commit: str) -> None: ...

    def reset_hard(self, path: Path, commit: str) -> None: ...

    def repository_root(self, path: Path) -> Optional[Path]: ...

    def detach_at(self, path: Path, commit: str) -> None: ...


def _split_z(output: str) -> List[str]:
    return [item for item in output.split("\0") if item]


class GitBackend:
    """`VersionControlBackend` implemented with the git command line."""

    remote_name = "origin"

    def clone(self, url: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            run_git_command(["clone", "--quiet", url, str(path)])
        except GitCommandError as e:
            if is_auth_error(e.stderr):
                raise AuthenticationFailure(url, e.stderr.strip()) from e
            raise
        # git rewrites local paths to absolute ones in remote.origin.url, so
        # keep the url as given alongside the value git stored for it.
        origin = self._config(path, f"remote.{self.remote_name}.url")
        run_git_command(["config", "proto-sync.url", url], cwd=path)
        if origin is not None:
            run_git_command(["config", "proto-sync.origin", origin], cwd=path)

    def _config(self, path: Path, key: str) -> Optional[str]:
        try:
            return git_output(["config", "--get", key], cwd=path)
        except GitCommandError:
            return None

    def remote_url(self, path: Path) -> Optional[str]:
        """The url the working copy was cloned from.

        Falls back to the configured remote once it no longer matches what
        git recorded at clone time.
        """
        origin = self._config(path, f"remote.{self.remote_name}.url")
        if origin is not None and origin == self._config(path, "proto-sync.origin"):
            return self._config(path, "proto-sync.url") or origin
        return origin

    def resolve_revision(self, path: Path, revision: str) -> Optional[str]:
        """Resolve `revision` to a commit id using local objects only."""
        try:
            return git_output(
                ["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"],
                cwd=path,
            )
        except GitCommandError:
            return None

    def fetch_ref(self, path: Path, url: str, ref: str) -> Optional[str]:
        """Fetch exactly `ref` from the remote and return the fetched commit.

        Returns None when the remote has no such ref.
        """
        try:
            run_git_command(["fetch", "--quiet", self.remote_name, ref], cwd=path)
        except GitCommandError as e:
            if is_auth_error(e.stderr):
                raise AuthenticationFailure(url, e.stderr.strip()) from e
            if is_missing_ref_error(e.stderr):
                logger.debug("Remote has no ref %s", ref)
                return None
            raise
        return self.resolve_revision(path, "FETCH_HEAD")

    def fetch_all(self, path: Path, url: str) -> None:
        try:
            run_git_command(["fetch", "--quiet", "--tags", self.remote_name], cwd=path)
        except GitCommandError as e:
            if is_auth_error(e.stderr):
                raise AuthenticationFailure(url, e.stderr.strip()) from e
            raise

    def current_position(self, path: Path) -> Optional[str]:
        return self.resolve_revision(path, "HEAD")

    def status_of(self, path: Path, commit: str) -> StatusReport:
        """Compare the working tree with `commit`.

        Untracked entries include ignored files; untracked directories are
        reported once, with a trailing slash.
        """
        modified = _split_z(
            git_output(["diff", "--name-only", "-z", "--no-renames", commit, "--"], cwd=path)
        )
        untracked = _split_z(
            run_git_command(["ls-files", "--others", "--directory", "-z"], cwd=path).stdout
        )
        return StatusReport(modified=modified, untracked=untracked)

    def materialize_tree(self, path: Path, commit: str) -> None:
        """Install the tree of `commit` into the index and working tree."""
        run_git_command(["read-tree", "--reset", "-u", commit], cwd=path)

    def reset_hard(self, path: Path, commit: str) -> None:
        """Force index and working tree to `commit` without moving HEAD."""
        run_git_command(["read-tree", "--reset", "-u", commit], cwd=path)
        run_git_command(["checkout-index", "--all", "--force"], cwd=path)

    def repository_root(self, path: Path) -> Optional[Path]:
        try:
            return Path(git_output(["rev-parse", "--show-toplevel"], cwd=path))
        except (GitCommandError, OSError):
            return None

    def detach_at(self, path: Path, commit: str) -> None:
        run_git_command(
            ["update-ref", "--no-deref", "-m", "proto-sync: reconcile", "HEAD", commit],
            cwd=path,
        )
