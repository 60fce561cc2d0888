"""Git operations for proto-sync."""

from .backend import GitBackend, StatusReport, VersionControlBackend
from .reconcile import Reconciler, RepositoryHandle, reconcile

__all__ = [
    "GitBackend",
    "StatusReport",
    "VersionControlBackend",
    "Reconciler",
    "RepositoryHandle",
    "reconcile",
]
