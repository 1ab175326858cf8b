"""
Fingerprint ledger loading, validation, and persistence.

This module answers one question:
    "Did this exact plaintext produce this exact ciphertext?"

Timestamps alone cannot tell a touched file from an edited one, and a
clock coarser than the backdating delta can make a freshly decrypted
plaintext look newer than its ciphertext. The ledger remembers the
SHA-256 of both sides after every successful transform so that such
files are not re-encrypted for nothing.

Responsibilities:
- Load the ledger YAML file
- Validate structure and version
- Record and query fingerprint pairs
- Save the ledger back

This module does NOT:
- Decide staleness from timestamps
- Invoke gpg
- Walk the filesystem

The ledger lives inside the git directory so it is never committed.
Entry keys are ciphertext paths relative to the working tree, so a moved
or re-cloned checkout keeps its entries.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .config import LEDGER_DIRNAME, LEDGER_FILENAME, SUPPORTED_LEDGER_VERSION
from .utils import file_fingerprint, scratch_file


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FingerprintPair:
    plaintext: str
    ciphertext: str


@dataclass
class Ledger:
    path: Optional[Path] = None
    entries: Dict[str, FingerprintPair] = field(default_factory=dict)
    version: int = SUPPORTED_LEDGER_VERSION
    # Keys are relative to this directory when set, absolute otherwise
    worktree: Optional[Path] = None

    # ------------------------------------------------------------------
    # Loading API
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: str | Path, worktree: str | Path | None = None) -> "Ledger":
        """
        Load and validate a ledger file. A missing file is an empty ledger.

        Args:
            path: ledger YAML file
            worktree: working tree the entry keys are relative to

        Raises:
            RuntimeError: if the ledger is invalid

        Returns:
            Ledger
        """

        path = Path(path)
        worktree = Path(worktree).resolve() if worktree is not None else None
        if not path.exists():
            return cls(path=path, worktree=worktree)

        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

        ledger = cls._from_dict(raw, path)
        ledger.worktree = worktree
        return ledger

    @classmethod
    def for_git_dir(cls, git_dir: Optional[Path], worktree: Optional[Path] = None) -> "Ledger":
        """
        Ledger stored under the repository's git directory; in-memory outside a repo.

        ``worktree`` defaults to the parent of ``git_dir``.
        """
        if git_dir is None:
            return cls()
        git_dir = Path(git_dir)
        return cls.load(git_dir / LEDGER_DIRNAME / LEDGER_FILENAME, worktree or git_dir.parent)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @classmethod
    def _from_dict(cls, data: Dict[str, Any], path: Path) -> "Ledger":
        if not isinstance(data, dict):
            raise RuntimeError(f"Malformed ledger: {path}")

        version = data.get("version")
        if version != SUPPORTED_LEDGER_VERSION:
            raise RuntimeError(f"Unsupported ledger version: {version}")

        entries: Dict[str, FingerprintPair] = {}
        for key, entry in (data.get("entries") or {}).items():
            if not isinstance(entry, dict) or "plaintext" not in entry or "ciphertext" not in entry:
                raise RuntimeError(f"Ledger entry '{key}' is missing a fingerprint")
            entries[str(key)] = FingerprintPair(
                plaintext=str(entry["plaintext"]),
                ciphertext=str(entry["ciphertext"]),
            )

        return cls(path=path, entries=entries, version=version)

    def _to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "entries": {
                key: {"plaintext": pair.plaintext, "ciphertext": pair.ciphertext}
                for key, pair in sorted(self.entries.items())
            },
        }

    def _key(self, ciphertext: Path) -> str:
        absolute = Path(ciphertext).resolve()
        if self.worktree is not None:
            try:
                return absolute.relative_to(self.worktree).as_posix()
            except ValueError:
                pass
        return str(absolute)

    def _prune(self) -> None:
        """Drop entries whose ciphertext no longer exists in the working tree."""
        if self.worktree is None:
            return
        for key in list(self.entries):
            if not Path(key).is_absolute() and not (self.worktree / key).exists():
                del self.entries[key]

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    def record(self, plaintext: Path, ciphertext: Path) -> None:
        """Remember the current content of a freshly synchronized pair."""
        self.entries[self._key(ciphertext)] = FingerprintPair(
            plaintext=file_fingerprint(Path(plaintext)),
            ciphertext=file_fingerprint(Path(ciphertext)),
        )
        self.save()

    def matches(self, plaintext: Path, ciphertext: Path) -> bool:
        """True if both files still hold the content last recorded for the pair."""
        pair = self.entries.get(self._key(ciphertext))
        if pair is None:
            return False

        plaintext, ciphertext = Path(plaintext), Path(ciphertext)
        if not plaintext.exists() or not ciphertext.exists():
            return False

        return (
            file_fingerprint(plaintext) == pair.plaintext
            and file_fingerprint(ciphertext) == pair.ciphertext
        )

    def save(self) -> None:
        """Write the ledger atomically; a crash leaves the previous file intact."""
        if self.path is None:
            return

        self._prune()
        data = yaml.safe_dump(self._to_dict(), default_flow_style=False).encode("utf-8")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with scratch_file(prefix=self.path.name + ".", suffix=".tmp", directory=self.path.parent, data=data) as scratch:
            os.replace(scratch, self.path)
