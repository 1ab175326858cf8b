"""
Bindings to the external tools sealsync drives: gpg, git and diff.

Each class is a thin subprocess wrapper returning exit statuses or
captured output. The transform engine and the history replay only talk
to these objects, so tests can hand in stand-ins with the same methods.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .errors import CapabilityFailure, DependencyMissing

logger = logging.getLogger(__name__)


def require_tools(tools: Iterable[str]) -> None:
    """
    Ensure every named executable can be found in PATH.

    Raises:
        DependencyMissing: for the first tool that cannot be located
    """

    for tool in tools:
        if shutil.which(tool) is None:
            raise DependencyMissing(tool)


def _run(argv: Sequence[str], **kwargs) -> subprocess.CompletedProcess:
    logger.debug("running %s", " ".join(str(a) for a in argv))
    return subprocess.run(list(argv), **kwargs)


# ---------------------------------------------------------------------------
# gpg
# ---------------------------------------------------------------------------


class Gpg:
    def __init__(self, binary: str = "gpg", agent_helper: Optional[List[str]] = None):
        self.binary = binary
        self.agent_helper = agent_helper or ["gpg-connect-agent", "--no-autostart", "/bye"]

    def encrypt(self, source: Path, target: Path, recipient: Optional[str]) -> int:
        """Write armored ciphertext of ``source`` to ``target``."""
        argv = [self.binary, "--batch", "--yes", "--armor", "--encrypt"]
        if recipient:
            argv += ["--recipient", recipient]
        else:
            argv.append("--default-recipient-self")
        argv += ["--output", str(target), str(source)]
        return _run(argv).returncode

    def decrypt(self, source: Path, target: Path) -> int:
        """Write the plaintext of ``source`` to ``target``; needs a live agent."""
        argv = [
            self.binary, "--batch", "--yes", "--quiet",
            "--decrypt", "--output", str(target), str(source),
        ]
        return _run(argv).returncode

    def session_available(self) -> bool:
        """
        True if the agent helper reports a running agent.

        Raises:
            DependencyMissing: if the helper itself is not installed
        """
        require_tools(self.agent_helper[:1])
        try:
            result = _run(
                self.agent_helper,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug("agent helper failed to start: %s", e)
            return False
        return result.returncode == 0


# ---------------------------------------------------------------------------
# git
# ---------------------------------------------------------------------------


class Git:
    def __init__(self, binary: str = "git", cwd: Optional[Path] = None):
        self.binary = binary
        self.cwd = cwd

    def _git(self, args: Sequence[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
        return _run(
            [self.binary, *args],
            cwd=cwd or self.cwd,
            capture_output=True,
        )

    def config_get(self, key: str) -> Optional[str]:
        try:
            result = self._git(["config", "--get", key])
        except OSError:
            return None
        if result.returncode != 0:
            return None
        return result.stdout.decode("utf-8").strip() or None

    def git_dir(self) -> Optional[Path]:
        """Absolute path of the repository's git directory, or None outside a repo."""
        try:
            result = self._git(["rev-parse", "--absolute-git-dir"])
        except OSError:
            return None
        if result.returncode != 0:
            return None
        return Path(result.stdout.decode("utf-8").strip())

    def toplevel(self) -> Optional[Path]:
        """Root of the working tree, or None outside a repo."""
        try:
            result = self._git(["rev-parse", "--show-toplevel"])
        except OSError:
            return None
        if result.returncode != 0:
            return None
        return Path(result.stdout.decode("utf-8").strip())

    def is_ignored(self, path: Path) -> Optional[bool]:
        """
        Ask git whether a path is excluded by the ignore rules.

        Returns None when the question cannot be answered (not a
        repository, git missing).
        """

        path = Path(path)
        try:
            result = self._git(["check-ignore", "-q", "--", path.name], cwd=path.parent)
        except OSError:
            return None
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        return None

    def revisions(self, path: Path) -> List[str]:
        """Commits that touched ``path``, newest first."""
        path = Path(path)
        result = self._git(["rev-list", "HEAD", "--", path.name], cwd=path.parent)
        if result.returncode != 0:
            raise CapabilityFailure(
                "list history of", path, result.returncode,
                result.stderr.decode("utf-8", "replace").strip(),
            )
        return result.stdout.decode("utf-8").split()

    def blob_at(self, path: Path, rev: str) -> bytes:
        """
        Content of ``path`` at ``rev``.

        Empty if ``rev`` names no commit (the parent of a root commit) or
        the file is not in that commit's tree. Any other git failure
        raises CapabilityFailure.
        """

        path = Path(path)

        # --verify --quiet exits 1 for a name that does not resolve
        result = self._git(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], cwd=path.parent)
        if result.returncode == 1:
            return b""
        self._check(result, "resolve", Path(rev))

        result = self._git(["ls-tree", "--name-only", rev, "--", path.name], cwd=path.parent)
        self._check(result, "list tree of", Path(f"{rev}:{path.name}"))
        if not result.stdout.strip():
            return b""

        result = self._git(["show", f"{rev}:./{path.name}"], cwd=path.parent)
        self._check(result, "read", Path(f"{rev}:{path.name}"))
        return result.stdout

    @staticmethod
    def _check(result: subprocess.CompletedProcess, action: str, path: Path) -> None:
        if result.returncode != 0:
            raise CapabilityFailure(
                action, path, result.returncode,
                result.stderr.decode("utf-8", "replace").strip(),
            )

    def log_message(self, commit: str, cwd: Optional[Path] = None) -> str:
        result = self._git(["log", "-1", "--format=medium", commit], cwd=cwd)
        if result.returncode != 0:
            raise CapabilityFailure(
                "read log message of", Path(commit), result.returncode,
                result.stderr.decode("utf-8", "replace").strip(),
            )
        return result.stdout.decode("utf-8", "replace")


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


class Differ:
    def __init__(self, binary: str = "diff"):
        self.binary = binary

    def diff(self, pre: Path, post: Path, label: str) -> str:
        """Unified diff between two files, labelled a/<label> and b/<label>."""
        result = _run(
            [
                self.binary, "-u",
                "--label", f"a/{label}", "--label", f"b/{label}",
                str(pre), str(post),
            ],
            capture_output=True,
        )
        # 0: identical, 1: differences found, anything else is trouble
        if result.returncode > 1:
            raise CapabilityFailure(
                "diff", Path(label), result.returncode,
                result.stderr.decode("utf-8", "replace").strip(),
            )
        return result.stdout.decode("utf-8", "replace")
