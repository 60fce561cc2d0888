"""CLI interface for proto-sync - vendor protobuf schemas from git repositories."""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import click

from .config import ManifestEntry, Settings, load_manifest, save_manifest
from .errors import DuplicateEntry, ProtoSyncError, SyncFailed
from .sync import SyncOptions, remove_destination, synchronize
from .utils import console, err_console, setup_logging

F = TypeVar("F", bound=Callable[..., Any])


def reports_errors(func: F) -> F:
    """Turn proto-sync errors into a red message and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ProtoSyncError as e:
            err_console.print(f"❌ {e}", style="bold red", markup=False)
            raise SystemExit(1)

    return wrapper  # type: ignore[return-value]


@click.group()
@click.option(
    "--manifest",
    "manifest",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Manifest file (default: nearest proto-sync.toml or $PROTO_SYNC_MANIFEST)",
)
@click.option(
    "--store",
    "store",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Store directory (default: .proto-sync beside the manifest or $PROTO_SYNC_STORE)",
)
@click.option("-v", "--verbose", count=True, help="-v for progress, -vv for git commands")
@click.pass_context
def cli(
    ctx: click.Context, manifest: Optional[Path], store: Optional[Path], verbose: int
) -> None:
    """Vendor protobuf schemas from git repositories."""
    setup_logging(verbose)
    ctx.obj = Settings.resolve(manifest=manifest, store=store)


@cli.command("sync")
@click.option(
    "--ignore-generated",
    is_flag=True,
    help="Write a .gitignore into every destination directory",
)
@click.option(
    "--continue-on-error",
    is_flag=True,
    help="Keep going when an entry fails and report all failures at the end",
)
@click.pass_obj
@reports_errors
def sync_cmd(settings: Settings, ignore_generated: bool, continue_on_error: bool) -> None:
    """
    Synchronize every manifest entry into its destination.

    Each repository is cloned (or updated) once in the store, pinned to the
    manifest revision, and the selected directory is copied over the
    destination. Repositories no longer in the manifest are removed from the
    store.
    """
    manifest = load_manifest(settings.manifest_path)
    if not len(manifest):
        console.print(f"No entries in {settings.manifest_path}", style="yellow")
    options = SyncOptions(
        base_path=settings.base_path,
        store_root=settings.store_root,
        ignore_generated=ignore_generated,
        continue_on_error=continue_on_error,
    )
    try:
        deployed = synchronize(manifest, options)
    except SyncFailed as e:
        console.print(f"Deployed {len(e.deployed)} files before failures", style="yellow")
        raise
    console.print(
        f"✓ Synchronized {len(manifest)} entries, deployed {len(deployed)} files",
        style="green",
    )


@cli.command("add")
@click.argument("url")
@click.argument("rev")
@click.argument("path")
@click.argument("dest", required=False)
@click.pass_obj
@reports_errors
def add_cmd(settings: Settings, url: str, rev: str, path: str, dest: Optional[str]) -> None:
    """
    Add a repository to the manifest.

    PATH is the directory inside the repository to take; DEST is where it is
    deployed (defaults to PATH). Run `sync` afterwards to fetch it.
    """
    manifest = load_manifest(settings.manifest_path)
    try:
        manifest.add(ManifestEntry(url=url, rev=rev, src_directory=path, dest_directory=dest))
    except DuplicateEntry as e:
        console.print(f"⚠️  {e}", style="yellow", markup=False)
        return
    save_manifest(settings.manifest_path, manifest)
    console.print(f"✓ Added {url} at {rev}", style="green")


@cli.command("remove")
@click.argument("path")
@click.option("--cleanup", is_flag=True, help="Also delete the deployed files")
@click.pass_obj
@reports_errors
def remove_cmd(settings: Settings, path: str, cleanup: bool) -> None:
    """Remove the manifest entry deployed to PATH."""
    manifest = load_manifest(settings.manifest_path)
    entry = manifest.remove(path)
    if entry is None:
        console.print(f"⚠️  No entry deploys to {path}", style="yellow", markup=False)
        return
    save_manifest(settings.manifest_path, manifest)
    console.print(f"✓ Removed {entry.url}", style="green")
    if cleanup and remove_destination(entry, settings.base_path, settings.store_root):
        console.print(f"  deleted {entry.destination}", style="dim")


@cli.command("list")
@click.pass_obj
@reports_errors
def list_cmd(settings: Settings) -> None:
    """List manifest entries."""
    manifest = load_manifest(settings.manifest_path)
    if not len(manifest):
        console.print("No entries.", style="yellow")
        return
    for entry in manifest:
        print(entry.url)
        print(f"  rev: {entry.rev}")
        print(f"  src: {entry.src_directory}")
        print(f"  dest: {entry.destination}")


@cli.command("clean")
@click.pass_obj
@reports_errors
def clean_cmd(settings: Settings) -> None:
    """Delete all deployed directories. The manifest and store are kept."""
    manifest = load_manifest(settings.manifest_path)
    for entry in manifest:
        if remove_destination(entry, settings.base_path, settings.store_root):
            console.print(f"Deleted {entry.destination}")
    console.print("✓ Clean", style="green")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
