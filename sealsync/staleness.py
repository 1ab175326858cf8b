"""
Timestamp-based staleness decisions.

gpg output is not deterministic, so two encryptions of the same plaintext
never produce the same bytes. Instead of comparing content, a derived file
is considered current when it is at least as new as its source.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class Decision(enum.Enum):
    SKIP = "skip"
    TRANSFORM = "transform"


def is_up_to_date(source: Path, target: Path) -> bool:
    """True if target exists and is not older than source."""
    try:
        target_mtime = target.stat().st_mtime_ns
    except FileNotFoundError:
        return False

    return target_mtime >= source.stat().st_mtime_ns


def decide(source: str | Path, target: str | Path, force: bool = False) -> Decision:
    """
    Decide whether ``target`` has to be regenerated from ``source``.

    ``force`` always yields TRANSFORM. The caller decides what a SKIP
    means: silent for encryption, a warning for decryption.
    """

    if force:
        return Decision.TRANSFORM

    source, target = Path(source), Path(target)
    if is_up_to_date(source, target):
        logger.debug("%s is up to date with %s", target, source)
        return Decision.SKIP

    return Decision.TRANSFORM
