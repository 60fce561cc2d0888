"""Entry point for running a sync from inside another build.

Call `synchronize_protobufs` from a build hook or code-generation script. It
announces the manifest as an input of the step, deploys every entry under
`out_dir` and returns the deployed paths so the generator can consume exactly
those files.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, List, Optional

from .config import load_manifest
from .errors import ConfigurationError
from .store import DEFAULT_STORE_DIR, Store
from .sync import SyncOptions, synchronize

OUT_DIR_ENV = "PROTO_SYNC_OUT_DIR"


def rerun_if_changed(path: Path) -> None:
    print(f"proto-sync:rerun-if-changed={path}", flush=True)


def synchronize_protobufs(
    manifest_path: str | Path,
    out_dir: Optional[str | Path] = None,
    *,
    store_root: Optional[str | Path] = None,
    emit: Callable[[Path], None] = rerun_if_changed,
) -> List[Path]:
    """Synchronize all protobuf files in the manifest into `out_dir`.

    `out_dir` falls back to $PROTO_SYNC_OUT_DIR. The store defaults to
    `.proto-sync` beside the manifest. Generated directories are not marked
    ignored; they live in the build's own output tree.
    """
    manifest_file = Path(manifest_path)
    emit(manifest_file)

    target = out_dir if out_dir is not None else os.getenv(OUT_DIR_ENV)
    if not target:
        raise ConfigurationError(
            f"No output directory given and ${OUT_DIR_ENV} is not set"
        )

    manifest = load_manifest(manifest_file)
    store = Store(
        Path(store_root) if store_root is not None
        else manifest_file.parent / DEFAULT_STORE_DIR
    )
    store.ensure()

    return synchronize(
        manifest,
        SyncOptions(
            base_path=Path(target),
            store_root=store.root,
            ignore_generated=False,
        ),
    )
