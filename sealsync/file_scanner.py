"""
Filesystem scanning for encrypted files.

This module is responsible for:
- walking the working tree, hidden directories included
- yielding every file named like an encrypted sibling

This module does NOT:
- decrypt or encrypt data
- modify files
- decide staleness
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, List

from .paths import is_ciphertext_name

logger = logging.getLogger(__name__)

SKIP_DIRS = frozenset({".git"})


class FileScanner:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def scan(self) -> Iterator[Path]:
        """
        Walk the tree and yield encrypted files in enumeration order.

        Every call starts a fresh walk.
        """

        logger.debug("scanning %s", self.root)

        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]

            for name in filenames:
                if not is_ciphertext_name(name):
                    continue

                path = Path(dirpath) / name
                if path.is_file():
                    yield path

    def __iter__(self) -> Iterator[Path]:
        return self.scan()

    def sorted_paths(self) -> List[Path]:
        """All encrypted files, sorted for deterministic processing."""
        return sorted(self.scan())
