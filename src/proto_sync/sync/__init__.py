"""Synchronization logic for proto-sync."""

from .deploy import copy_tree, deploy_entry, remove_destination
from .pipeline import SyncOptions, synchronize

__all__ = [
    "copy_tree",
    "deploy_entry",
    "remove_destination",
    "SyncOptions",
    "synchronize",
]
