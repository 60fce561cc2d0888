from __future__ import annotations

from pathlib import Path

import proto_sync.config.settings as settings_mod
from proto_sync.config import Settings, discover_manifest_path


def test_discovers_manifest_in_parent(tmp_path: Path) -> None:
    manifest = tmp_path / "proto-sync.toml"
    manifest.write_text("")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert discover_manifest_path(nested) == manifest.resolve()


def test_defaults_without_manifest(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("PROTO_SYNC_MANIFEST", raising=False)
    monkeypatch.delenv("PROTO_SYNC_STORE", raising=False)
    monkeypatch.setattr(settings_mod, "discover_manifest_path", lambda start=None: None)

    settings = Settings.resolve(cwd=tmp_path)

    assert settings.manifest_path == tmp_path / "proto-sync.toml"
    assert settings.store_root == tmp_path / ".proto-sync"
    assert settings.base_path == tmp_path


def test_environment_overrides_discovery(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PROTO_SYNC_MANIFEST", "conf/protos.toml")
    monkeypatch.setenv("PROTO_SYNC_STORE", str(tmp_path / "cache"))

    settings = Settings.resolve(cwd=tmp_path)

    assert settings.manifest_path == tmp_path / "conf" / "protos.toml"
    assert settings.store_root == tmp_path / "cache"
    assert settings.base_path == tmp_path / "conf"


def test_explicit_values_win(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PROTO_SYNC_MANIFEST", "ignored.toml")
    monkeypatch.setenv("PROTO_SYNC_STORE", "ignored")

    settings = Settings.resolve(
        manifest=tmp_path / "m.toml", store=Path("store"), cwd=tmp_path
    )

    assert settings.manifest_path == tmp_path / "m.toml"
    assert settings.store_root == tmp_path / "store"
