"""
Shared utility helpers.

This module contains small, reusable helpers that do not belong
to the staleness policy, gpg invocation, or history replay.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import BACKDATE_NS, PRIVATE_MODE


# ---------------------------------------------------------------------------
# Hashing / identifiers
# ---------------------------------------------------------------------------


def file_fingerprint(path: Path, block_size: int = 65536) -> str:
    """Return the SHA-256 hex digest of a file's content."""
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for block in iter(lambda: fh.read(block_size), b""):
            digest.update(block)
    return digest.hexdigest()


def short_rev(rev: str, length: int = 8) -> str:
    """Return an abbreviated commit id useful for filenames."""
    return rev[:length]


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


def make_private(path: Path) -> None:
    """Restrict a file to owner read/write."""
    os.chmod(path, PRIVATE_MODE)


def backdate(path: Path, reference: Path, delta_ns: int = BACKDATE_NS) -> None:
    """Set path's mtime to ``delta_ns`` before reference's mtime."""
    ref = reference.stat()
    mtime = ref.st_mtime_ns - delta_ns
    os.utime(path, ns=(mtime, mtime))


@contextmanager
def scratch_file(
    prefix: str,
    suffix: str = "",
    directory: str | Path | None = None,
    data: bytes | None = None,
) -> Iterator[Path]:
    """
    Create a private temporary file and remove it on every exit path.

    The file is created by mkstemp, so it is 0600 from the start.
    """

    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            if data:
                fh.write(data)
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
