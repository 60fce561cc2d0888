from __future__ import annotations

import hashlib
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from proto_sync.errors import GitCommandError
from proto_sync.git.backend import StatusReport


class FakeBackend:
    """In-memory remotes materialized into real directories.

    Commits are dicts of relative path -> text. Working copies are real
    directories so deploy and cleanup code can be exercised without git.
    """

    def __init__(self) -> None:
        self.remotes: Dict[str, dict] = {}
        self.copies: Dict[str, dict] = {}
        self.calls: List[Tuple[str, ...]] = []
        self._counter = 0

    # test helpers

    def add_commit(
        self, url: str, files: Dict[str, str], refs: Iterable[str] = ("main",)
    ) -> str:
        self._counter += 1
        commit = hashlib.sha1(f"{url}:{self._counter}".encode()).hexdigest()
        remote = self.remotes.setdefault(url, {"refs": {}, "commits": {}})
        remote["commits"][commit] = dict(files)
        for ref in refs:
            remote["refs"][ref] = commit
        return commit

    def copy(self, path: Path) -> dict:
        return self.copies[str(Path(path).resolve())]

    def network_calls(self) -> List[Tuple[str, ...]]:
        return [c for c in self.calls if c[0] in ("clone", "fetch_ref", "fetch_all")]

    def _write_tree(self, path: Path, copy: dict, commit: str) -> None:
        files = self.remotes[copy["remote"]]["commits"][commit]
        for rel in copy.get("tracked", set()) - set(files):
            target = path / rel
            if target.exists():
                target.unlink()
        for rel, text in files.items():
            target = path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text)
        copy["tracked"] = set(files)

    # VersionControlBackend

    def clone(self, url: str, path: Path) -> None:
        self.calls.append(("clone", url))
        if url not in self.remotes:
            raise GitCommandError(["git", "clone", url], 128, "fatal: repository not found")
        path.mkdir(parents=True)
        remote = self.remotes[url]
        copy = {"remote": url, "head": remote["refs"].get("main"), "known": set(remote["commits"])}
        self.copies[str(path.resolve())] = copy
        if copy["head"]:
            self._write_tree(path, copy, copy["head"])

    def remote_url(self, path: Path) -> Optional[str]:
        self.calls.append(("remote_url", str(path)))
        copy = self.copies.get(str(path.resolve()))
        return copy["remote"] if copy else None

    def resolve_revision(self, path: Path, revision: str) -> Optional[str]:
        self.calls.append(("resolve_revision", revision))
        copy = self.copy(path)
        if revision == "FETCH_HEAD":
            return copy.get("fetch_head")
        matches = [c for c in copy["known"] if c.startswith(revision.lower())]
        return matches[0] if len(matches) == 1 else None

    def fetch_ref(self, path: Path, url: str, ref: str) -> Optional[str]:
        self.calls.append(("fetch_ref", url, ref))
        remote = self.remotes[url]
        commit = remote["refs"].get(ref)
        if commit is None:
            return None
        copy = self.copy(path)
        copy["known"] |= set(remote["commits"])
        copy["fetch_head"] = commit
        return commit

    def fetch_all(self, path: Path, url: str) -> None:
        self.calls.append(("fetch_all", url))
        self.copy(path)["known"] |= set(self.remotes[url]["commits"])

    def current_position(self, path: Path) -> Optional[str]:
        return self.copy(path)["head"]

    def status_of(self, path: Path, commit: str) -> StatusReport:
        self.calls.append(("status_of", commit))
        files = self.remotes[self.copy(path)["remote"]]["commits"][commit]
        modified = sorted(
            rel
            for rel, text in files.items()
            if not (path / rel).is_file() or (path / rel).read_text() != text
        )
        untracked = sorted(
            p.relative_to(path).as_posix()
            for p in path.rglob("*")
            if p.is_file() and p.relative_to(path).as_posix() not in files
        )
        return StatusReport(modified=modified, untracked=untracked)

    def materialize_tree(self, path: Path, commit: str) -> None:
        self.calls.append(("materialize_tree", commit))
        self._write_tree(path, self.copy(path), commit)

    def reset_hard(self, path: Path, commit: str) -> None:
        self.calls.append(("reset_hard", commit))
        self._write_tree(path, self.copy(path), commit)

    def repository_root(self, path: Path) -> Optional[Path]:
        return path

    def detach_at(self, path: Path, commit: str) -> None:
        self.calls.append(("detach_at", commit))
        self.copy(path)["head"] = commit


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


# Real git repositories


class SourceRepo:
    """A local git repository used as a remote through its path."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.url = str(path)
        path.mkdir(parents=True)
        self.git("init", "--quiet")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")

    def git(self, *args: str) -> str:
        return subprocess.check_output(["git", *args], cwd=self.path, text=True).strip()

    def commit(self, files: Dict[str, Optional[str]], message: str = "update") -> str:
        for rel, text in files.items():
            target = self.path / rel
            if text is None:
                target.unlink()
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text)
        self.git("add", "--all")
        self.git("commit", "--quiet", "-m", message)
        return self.git("rev-parse", "HEAD")

    def tag(self, name: str, annotated: bool = False) -> None:
        if annotated:
            self.git("tag", "-a", name, "-m", name)
        else:
            self.git("tag", name)


def git_status(path: Path) -> str:
    return subprocess.check_output(
        ["git", "status", "--porcelain", "--ignored", "--untracked-files=all"],
        cwd=path,
        text=True,
    )


def head_of(path: Path) -> str:
    return subprocess.check_output(["git", "rev-parse", "HEAD"], cwd=path, text=True).strip()


def listing(root: Path) -> List[str]:
    return sorted(
        p.relative_to(root).as_posix()
        for p in root.rglob("*")
        if p.is_file() and ".git" not in p.relative_to(root).parts
    )


@pytest.fixture
def isolated_git(monkeypatch, tmp_path: Path) -> None:
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in ("GIT_AUTHOR", "GIT_COMMITTER"):
        monkeypatch.setenv(f"{var}_NAME", "Proto Sync")
        monkeypatch.setenv(f"{var}_EMAIL", "proto-sync@example.com")


@pytest.fixture
def source_repo(isolated_git, tmp_path: Path) -> SourceRepo:
    """Repository with tag v1.0.0 (one proto) and main one commit ahead."""
    repo = SourceRepo(tmp_path / "remote" / "apis")
    repo.commit(
        {
            "protos/a.proto": 'syntax = "proto3";\nmessage A {}\n',
            "protos/nested/b.proto": 'syntax = "proto3";\nmessage B {}\n',
            "README.md": "apis\n",
        },
        "initial",
    )
    repo.tag("v1.0.0")
    repo.commit(
        {
            "protos/c.proto": 'syntax = "proto3";\nmessage C {}\n',
            "protos/nested/b.proto": None,
        },
        "second",
    )
    return repo
