"""Configuration management for proto-sync."""

from .manifest import (
    MANIFEST_FILE,
    Manifest,
    ManifestEntry,
    dump_manifest,
    load_manifest,
    parse_manifest,
    save_manifest,
)
from .settings import Settings, discover_manifest_path

__all__ = [
    "MANIFEST_FILE",
    "Manifest",
    "ManifestEntry",
    "dump_manifest",
    "load_manifest",
    "parse_manifest",
    "save_manifest",
    "Settings",
    "discover_manifest_path",
]
