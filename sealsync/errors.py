"""
Error kinds surfaced by sealsync.

Every error carries the exit code the CLI hands back to the shell:
precondition violations use the generic failure code, while a failing
gpg invocation propagates gpg's own exit status unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

GENERIC_FAILURE = 1


class SealsyncError(RuntimeError):
    """Base class for all errors reported to the user."""

    exit_code = GENERIC_FAILURE

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class NotFound(SealsyncError):
    def __init__(self, path: Path):
        super().__init__(f"File not found: {path}", path)


class InvalidName(SealsyncError):
    def __init__(self, path: Path):
        super().__init__(
            f"Not an encrypted file name (expected '.<name>.encrypted'): {path}",
            path,
        )


class AgentUnavailable(SealsyncError):
    def __init__(self, helper: str):
        super().__init__(
            f"No gpg agent session available (checked with '{helper}'); "
            "start the agent and cache your passphrase first"
        )


class DependencyMissing(SealsyncError):
    def __init__(self, tool: str):
        super().__init__(f"Required tool not found in PATH: {tool}")
        self.tool = tool


class CapabilityFailure(SealsyncError):
    """An external gpg/git/diff process exited non-zero."""

    def __init__(self, action: str, path: Path, status: int, detail: str = ""):
        message = f"Failed to {action} {path}: exit status {status}"
        if detail:
            message += f" ({detail})"
        super().__init__(message, path)
        self.status = status

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        # subprocess reports death by signal N as -N; shells use 128 + N
        if self.status < 0:
            return 128 - self.status
        return self.status or GENERIC_FAILURE
