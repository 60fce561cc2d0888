"""Synchronize every manifest entry into its destination."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from ..config import Manifest
from ..errors import ProtoSyncError, SyncFailed
from ..git import Reconciler, VersionControlBackend
from ..git.reconcile import DEFAULT_MAX_HEAL_ATTEMPTS
from ..store import DEFAULT_STORE_DIR, Store
from .deploy import deploy_entry

logger = logging.getLogger(__name__)


@dataclass
class SyncOptions:
    """Where to deploy and how to behave on failure."""

    base_path: Path = field(default_factory=Path.cwd)
    store_root: Path = Path(DEFAULT_STORE_DIR)
    ignore_generated: bool = False
    continue_on_error: bool = False
    max_heal_attempts: int = DEFAULT_MAX_HEAL_ATTEMPTS


def synchronize(
    manifest: Manifest,
    options: Optional[SyncOptions] = None,
    backend: Optional[VersionControlBackend] = None,
) -> List[Path]:
    """Reconcile, deploy and garbage-collect; return every deployed file path.

    Each distinct URL is reconciled at most once per run, but every entry is
    deployed. By default the first failing entry aborts the run. With
    `continue_on_error`, failures are collected and raised together as
    `SyncFailed` after garbage collection.
    """
    options = options or SyncOptions()
    store = Store(options.store_root)
    store.ensure()
    reconciler = Reconciler(backend, max_heal_attempts=options.max_heal_attempts)

    deployed: List[Path] = []
    reconciled: Set[str] = set()
    broken: Dict[str, ProtoSyncError] = {}
    failures: List[Tuple[str, ProtoSyncError]] = []

    for entry in manifest:
        name = f"{entry.url} ({entry.src_directory} -> {entry.destination})"
        logger.info("Synchronizing protos from %s", entry.url)
        key = store.key(entry.url)
        path = store.locate(entry.url)
        try:
            if key in broken:
                raise broken[key]
            if key not in reconciled:
                reconciler.reconcile(entry.url, path, entry.rev)
                reconciled.add(key)
                logger.info("Updated %s", entry.url)
            else:
                logger.info("Already updated %s", entry.url)
            deployed.extend(
                deploy_entry(
                    path,
                    entry,
                    options.base_path,
                    options.ignore_generated,
                    store_root=options.store_root,
                )
            )
        except ProtoSyncError as e:
            if not options.continue_on_error:
                raise
            logger.error("Failed to synchronize %s: %s", name, e)
            if key not in reconciled:
                broken[key] = e
            failures.append((name, e))

    store.collect_garbage(manifest.urls())

    if failures:
        raise SyncFailed(failures, deployed)
    return deployed
