"""Resolution of the manifest, store and base paths.

Precedence: explicit value (CLI option) > environment variable > discovery.

- Manifest: `PROTO_SYNC_MANIFEST`, else the nearest `proto-sync.toml`
  walking up from the working directory, else `./proto-sync.toml`.
- Store: `PROTO_SYNC_STORE`, else `.proto-sync` beside the manifest.
- Base path: the directory holding the manifest.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..store import DEFAULT_STORE_DIR
from .manifest import MANIFEST_FILE

MANIFEST_ENV = "PROTO_SYNC_MANIFEST"
STORE_ENV = "PROTO_SYNC_STORE"


def discover_manifest_path(start: Optional[Path] = None) -> Optional[Path]:
    """Return the nearest manifest at or above `start`, if any."""
    here = (start or Path.cwd()).resolve()
    for parent in (here, *here.parents):
        candidate = parent / MANIFEST_FILE
        if candidate.is_file():
            return candidate
    return None


@dataclass
class Settings:
    manifest_path: Path
    store_root: Path

    @property
    def base_path(self) -> Path:
        return self.manifest_path.parent

    @classmethod
    def resolve(
        cls,
        manifest: Optional[Path] = None,
        store: Optional[Path] = None,
        cwd: Optional[Path] = None,
    ) -> "Settings":
        cwd = cwd or Path.cwd()
        env_manifest = os.getenv(MANIFEST_ENV)
        if manifest is not None:
            manifest_path = Path(manifest)
        elif env_manifest:
            manifest_path = Path(env_manifest)
        else:
            manifest_path = discover_manifest_path(cwd) or cwd / MANIFEST_FILE
        if not manifest_path.is_absolute():
            manifest_path = cwd / manifest_path

        env_store = os.getenv(STORE_ENV)
        if store is not None:
            store_root = Path(store)
        elif env_store:
            store_root = Path(env_store)
        else:
            store_root = manifest_path.parent / DEFAULT_STORE_DIR
        if not store_root.is_absolute():
            store_root = cwd / store_root

        return cls(manifest_path=manifest_path, store_root=store_root)
