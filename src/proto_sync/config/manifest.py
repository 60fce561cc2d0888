"""Manifest file handling.

The manifest is a TOML document with one `[[entry]]` table per source:

    [[entry]]
    url = "https://example.com/a.git"
    rev = "v1.0.0"
    src_directory = "protos"
    dest_directory = "gen/a"   # optional, defaults to src_directory

A missing manifest reads as empty; writing always produces the file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, List, Optional

import tomlkit
from tomlkit.exceptions import TOMLKitError

from ..errors import DuplicateEntry, ManifestParseError

MANIFEST_FILE = "proto-sync.toml"

_REQUIRED = ("url", "rev", "src_directory")


@dataclass(frozen=True)
class ManifestEntry:
    """One source repository and the subtree to take from it."""

    url: str  # git@github.com:acme/apis.git
    rev: str  # commit id, tag or branch
    src_directory: str  # path inside the source repository
    dest_directory: Optional[str] = None  # path under the base directory

    @property
    def destination(self) -> str:
        return self.dest_directory or self.src_directory


@dataclass
class Manifest:
    entries: List[ManifestEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def urls(self) -> List[str]:
        """Distinct URLs in declaration order."""
        return list(dict.fromkeys(entry.url for entry in self.entries))

    def find_by_url(self, url: str) -> Optional[ManifestEntry]:
        return next((e for e in self.entries if e.url == url), None)

    def find_by_destination(self, destination: str) -> Optional[ManifestEntry]:
        wanted = _normalize(destination)
        return next(
            (e for e in self.entries if _normalize(e.destination) == wanted), None
        )

    def add(self, entry: ManifestEntry) -> None:
        if self.find_by_url(entry.url) is not None:
            raise DuplicateEntry(entry.url)
        self.entries.append(entry)

    def remove(self, destination: str) -> Optional[ManifestEntry]:
        """Remove the entry deployed to `destination`; None when absent."""
        entry = self.find_by_destination(destination)
        if entry is not None:
            self.entries.remove(entry)
        return entry


def _normalize(path: str) -> str:
    return Path(path).as_posix().rstrip("/")


def _parse_entry(path: Path, index: int, raw: Any) -> ManifestEntry:
    if not isinstance(raw, dict):
        raise ManifestParseError(path, f"entry {index} is not a table")
    values = {}
    for key in _REQUIRED:
        value = raw.get(key)
        if value is None:
            raise ManifestParseError(path, f"entry {index} is missing '{key}'")
        if not isinstance(value, str):
            raise ManifestParseError(path, f"entry {index}: '{key}' must be a string")
        values[key] = str(value)
    dest = raw.get("dest_directory")
    if dest is not None and not isinstance(dest, str):
        raise ManifestParseError(path, f"entry {index}: 'dest_directory' must be a string")
    return ManifestEntry(
        url=values["url"],
        rev=values["rev"],
        src_directory=values["src_directory"],
        dest_directory=str(dest) if dest is not None else None,
    )


def parse_manifest(content: str, path: Path = Path(MANIFEST_FILE)) -> Manifest:
    try:
        data = tomlkit.parse(content).unwrap()
    except TOMLKitError as e:
        raise ManifestParseError(path, f"invalid TOML: {e}") from e
    raw_entries = data.get("entry", [])
    if not isinstance(raw_entries, list):
        raise ManifestParseError(path, "'entry' must be an array of tables ([[entry]])")
    return Manifest([_parse_entry(path, i, raw) for i, raw in enumerate(raw_entries)])


def load_manifest(path: Path) -> Manifest:
    """Load a manifest; a missing file is an empty manifest."""
    if not path.exists():
        return Manifest()
    with path.open("r", encoding="utf-8") as f:
        return parse_manifest(f.read(), path)


def dump_manifest(manifest: Manifest) -> str:
    doc = tomlkit.document()
    entries = tomlkit.aot()
    for entry in manifest.entries:
        table = tomlkit.table()
        table["url"] = entry.url
        table["rev"] = entry.rev
        table["src_directory"] = entry.src_directory
        if entry.dest_directory:
            table["dest_directory"] = entry.dest_directory
        entries.append(table)
    if len(entries):
        doc["entry"] = entries
    return tomlkit.dumps(doc)


def save_manifest(path: Path, manifest: Manifest) -> None:
    """Persist the manifest, creating the file and its parent directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(dump_manifest(manifest))
