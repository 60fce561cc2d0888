"""Error types raised by proto-sync."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple


class ProtoSyncError(Exception):
    """Base class for every error proto-sync raises on purpose."""


class ConfigurationError(ProtoSyncError):
    """Raise when required settings (paths, output directory) are missing"""


class ManifestParseError(ProtoSyncError):
    """Raise when the manifest file exists but cannot be understood"""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class DuplicateEntry(ProtoSyncError):
    """Raise when adding a manifest entry whose URL is already present"""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Manifest already contains an entry for {url}")


class GitCommandError(ProtoSyncError):
    """Raise when a git subprocess exits non-zero"""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(
            f"`{' '.join(self.args_list)}` failed with exit code {returncode}: {detail}"
        )


class AuthenticationFailure(ProtoSyncError):
    """Raise when git could not authenticate against the remote"""

    def __init__(self, url: str, detail: str = "") -> None:
        self.url = url
        super().__init__(
            f"Authentication failed for {url}" + (f": {detail}" if detail else "")
        )


class RevisionNotFound(ProtoSyncError):
    """Raise when a revision resolves neither as an object id nor a remote ref"""

    def __init__(self, revision: str, url: Optional[str] = None) -> None:
        self.revision = revision
        self.url = url
        where = f" in {url}" if url else ""
        super().__init__(f"Revision not found{where}: {revision}")


class RemoteMismatch(ProtoSyncError):
    """Raise when a working copy keeps pointing at the wrong remote after self-healing"""

    def __init__(self, expected: str, found: Optional[str], attempts: int) -> None:
        self.expected = expected
        self.found = found
        self.attempts = attempts
        super().__init__(
            f"Working copy remote is {found!r}, expected {expected!r} "
            f"(gave up after {attempts} attempts)"
        )


class FilesystemError(ProtoSyncError):
    """Raise when a structural filesystem operation fails"""


class UnsafePathError(FilesystemError):
    """Raise when a manifest path would escape the base directory"""


class RepositoryRootMissing(ProtoSyncError):
    """Raise when the root of a working copy cannot be determined"""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Could not determine repository root of {path}")


class SyncFailed(ProtoSyncError):
    """Raise at the end of a run that continued past failing entries"""

    def __init__(
        self, failures: List[Tuple[str, ProtoSyncError]], deployed: List[Path]
    ) -> None:
        self.failures = failures
        self.deployed = deployed
        lines = [f"{len(failures)} manifest entr{'y' if len(failures) == 1 else 'ies'} failed:"]
        lines.extend(f"  - {name}: {err}" for name, err in failures)
        super().__init__("\n".join(lines))
