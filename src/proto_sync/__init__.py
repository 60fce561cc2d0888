"""proto-sync - vendor protobuf schemas from pinned git revisions."""

from .build import synchronize_protobufs
from .config import Manifest, ManifestEntry, load_manifest, save_manifest
from .git import Reconciler, RepositoryHandle, reconcile
from .store import Store
from .sync import SyncOptions, synchronize

__version__ = "0.1.0"

__all__ = [
    "Manifest",
    "ManifestEntry",
    "Reconciler",
    "RepositoryHandle",
    "Store",
    "SyncOptions",
    "load_manifest",
    "reconcile",
    "save_manifest",
    "synchronize",
    "synchronize_protobufs",
]
