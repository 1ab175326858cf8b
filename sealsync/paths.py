"""
Mapping between plaintext paths and their encrypted siblings.

Both directions stay inside the same directory: "notes.txt" maps to
".notes.txt.encrypted" and back.
"""

from __future__ import annotations

from pathlib import Path

from .config import CIPHERTEXT_PREFIX, CIPHERTEXT_SUFFIX
from .errors import InvalidName


def is_ciphertext_name(name: str) -> bool:
    """Return True if a basename follows the '.<name>.encrypted' convention."""
    return (
        name.startswith(CIPHERTEXT_PREFIX)
        and name.endswith(CIPHERTEXT_SUFFIX)
        and len(name) > len(CIPHERTEXT_PREFIX) + len(CIPHERTEXT_SUFFIX)
    )


def to_ciphertext(plaintext: str | Path) -> Path:
    plaintext = Path(plaintext)
    return plaintext.with_name(f"{CIPHERTEXT_PREFIX}{plaintext.name}{CIPHERTEXT_SUFFIX}")


def to_plaintext(ciphertext: str | Path) -> Path:
    """
    Return the plaintext sibling of an encrypted file.

    Raises:
        InvalidName: if the basename does not follow the convention
    """

    ciphertext = Path(ciphertext)
    name = ciphertext.name
    if not is_ciphertext_name(name):
        raise InvalidName(ciphertext)

    return ciphertext.with_name(name[len(CIPHERTEXT_PREFIX) : -len(CIPHERTEXT_SUFFIX)])
