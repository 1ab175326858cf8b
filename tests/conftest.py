"""Shared test fixtures for sealsync."""

from __future__ import annotations

import difflib
import os
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from sealsync.config import Settings
from sealsync.errors import CapabilityFailure
from sealsync.ledger import Ledger
from sealsync.transformer import Transformer

FAKE_HEADER = b"FAKEPGP:"

# Fixed, well-separated timestamps (ns) so tests never depend on clock resolution
T_OLD = 1_600_000_000_000_000_000
T_MID = 1_650_000_000_000_000_000
T_NEW = 1_700_000_000_000_000_000


def set_mtime(path: Path, mtime_ns: int) -> None:
    os.utime(path, ns=(mtime_ns, mtime_ns))


def fake_encrypt_bytes(data: bytes, nonce: int = 0) -> bytes:
    return FAKE_HEADER + str(nonce).encode() + b":" + data


class FakeGpg:
    """Stand-in for gpg: reversible, but never produces the same bytes twice."""

    def __init__(self, session: bool = True):
        self.session = session
        self.encrypt_calls: List[Path] = []
        self.decrypt_calls: List[Path] = []
        self.fail_encrypt: Dict[str, int] = {}
        self.fail_decrypt: Dict[bytes, int] = {}
        self._nonce = 0

    def session_available(self) -> bool:
        return self.session

    def encrypt(self, source: Path, target: Path, recipient: Optional[str]) -> int:
        self.encrypt_calls.append(Path(source))
        status = self.fail_encrypt.get(Path(source).name)
        if status:
            return status
        self._nonce += 1
        Path(target).write_bytes(fake_encrypt_bytes(Path(source).read_bytes(), self._nonce))
        return 0

    def decrypt(self, source: Path, target: Path) -> int:
        self.decrypt_calls.append(Path(source))
        data = Path(source).read_bytes()
        for marker, status in self.fail_decrypt.items():
            if marker in data:
                return status
        if not data.startswith(FAKE_HEADER):
            return 2
        Path(target).write_bytes(data.split(b":", 2)[2])
        return 0


class FakeGit:
    def __init__(self):
        self.ignored: Dict[str, Optional[bool]] = {}
        self.config: Dict[str, str] = {}
        self.history: List[str] = []
        self.blobs: Dict[str, bytes] = {}
        self.messages: Dict[str, str] = {}
        self.unreadable: Dict[str, int] = {}

    def config_get(self, key: str) -> Optional[str]:
        return self.config.get(key)

    def git_dir(self) -> Optional[Path]:
        return None

    def toplevel(self) -> Optional[Path]:
        return None

    def is_ignored(self, path: Path) -> Optional[bool]:
        return self.ignored.get(Path(path).name, True)

    def revisions(self, path: Path) -> List[str]:
        return list(self.history)

    def blob_at(self, path: Path, rev: str) -> bytes:
        if rev in self.unreadable:
            raise CapabilityFailure("read", Path(f"{rev}:{Path(path).name}"), self.unreadable[rev])
        return self.blobs.get(rev, b"")

    def log_message(self, commit: str, cwd: Optional[Path] = None) -> str:
        return self.messages.get(commit, f"commit {commit}\n")


class FakeDiffer:
    """Unified diff via difflib; remembers which files existed while diffing."""

    def __init__(self):
        self.seen: List[Path] = []

    def diff(self, pre: Path, post: Path, label: str) -> str:
        self.seen.extend([Path(pre), Path(post)])
        assert Path(pre).exists() and Path(post).exists()
        return "".join(
            difflib.unified_diff(
                Path(pre).read_text().splitlines(keepends=True),
                Path(post).read_text().splitlines(keepends=True),
                fromfile=f"a/{label}",
                tofile=f"b/{label}",
            )
        )


@pytest.fixture
def gpg() -> FakeGpg:
    return FakeGpg()


@pytest.fixture
def git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def differ() -> FakeDiffer:
    return FakeDiffer()


@pytest.fixture
def settings() -> Settings:
    return Settings(recipient="alice@example.org")


@pytest.fixture
def transformer(gpg: FakeGpg, git: FakeGit, settings: Settings) -> Transformer:
    return Transformer(gpg, git, settings, Ledger())


@pytest.fixture
def plaintext(tmp_path: Path) -> Path:
    """A plaintext file with a timestamp in the past."""
    f = tmp_path / "secret.txt"
    f.write_text("api_key=hunter2\n", encoding="utf-8")
    os.chmod(f, 0o644)
    set_mtime(f, T_MID)
    return f
