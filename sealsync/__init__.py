"""
sealsync

Keeps sensitive plaintext files and their gpg-encrypted siblings in sync
inside a git working tree, without ever committing the plaintext.
"""

__version__ = "0.1.0"

from .config import Settings
from .errors import (
    SealsyncError,
    NotFound,
    InvalidName,
    AgentUnavailable,
    DependencyMissing,
    CapabilityFailure,
)
from .file_scanner import FileScanner
from .history import HistoryReconstructor, DiffReport
from .paths import to_ciphertext, to_plaintext
from .transformer import Transformer, TransformResult, Outcome

__all__ = [
    "Settings",
    "SealsyncError",
    "NotFound",
    "InvalidName",
    "AgentUnavailable",
    "DependencyMissing",
    "CapabilityFailure",
    "FileScanner",
    "HistoryReconstructor",
    "DiffReport",
    "to_ciphertext",
    "to_plaintext",
    "Transformer",
    "TransformResult",
    "Outcome",
]
