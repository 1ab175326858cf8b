"""
Plaintext diffs from the git history of an encrypted file.

For each commit that touched a ciphertext, the committed blobs before and
after the commit are decrypted into private scratch files, diffed, and the
scratch files are removed again before the next commit is looked at.
Decrypted history never outlives a single iteration.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .errors import AgentUnavailable, CapabilityFailure, SealsyncError
from .paths import to_plaintext
from .utils import scratch_file, short_rev

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitRevisionPair:
    commit: str

    @property
    def parent(self) -> str:
        return f"{self.commit}^"


@dataclass
class DiffReport:
    commit: str
    message: str = ""
    diff: str = ""
    error: Optional[SealsyncError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class HistoryReconstructor:
    def __init__(self, gpg, git, differ, settings=None, scratch_dir: Optional[Path] = None):
        self.gpg = gpg
        self.git = git
        self.differ = differ
        self.settings = settings
        self.scratch_dir = scratch_dir

    def reconstruct(self, ciphertext: str | Path) -> Iterator[DiffReport]:
        """
        Yield one DiffReport per commit that touched ``ciphertext``, newest first.

        A commit that cannot be reconstructed yields a report carrying the
        error; the remaining commits are still processed.

        Raises:
            AgentUnavailable: if no gpg agent session is running
            InvalidName: if the name does not follow the convention
        """

        ciphertext = Path(ciphertext)
        if not self.gpg.session_available():
            helper = self.settings.agent_helper if self.settings else "gpg agent helper"
            raise AgentUnavailable(helper)

        label = to_plaintext(ciphertext).name

        for commit in self.git.revisions(ciphertext):
            pair = CommitRevisionPair(commit)
            try:
                report = self._reconstruct_commit(ciphertext, pair, label)
            except SealsyncError as e:
                logger.debug("commit %s of %s failed: %s", commit, ciphertext, e)
                report = DiffReport(commit=commit, error=e)
            yield report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reconstruct_commit(self, ciphertext: Path, pair: CommitRevisionPair, label: str) -> DiffReport:
        prefix = f"{ciphertext.name}.{short_rev(pair.commit)}."

        with ExitStack() as stack:
            post = self._decrypted(stack, ciphertext, pair.commit, prefix + "post.")
            pre = self._decrypted(stack, ciphertext, pair.parent, prefix + "pre.")

            message = self.git.log_message(pair.commit, cwd=ciphertext.parent)
            diff = self.differ.diff(pre, post, label)

        return DiffReport(commit=pair.commit, message=message, diff=diff)

    def _decrypted(self, stack: ExitStack, ciphertext: Path, rev: str, prefix: str) -> Path:
        """
        Decrypt the blob of ``ciphertext`` at ``rev`` into a scratch file
        registered on ``stack``. An absent blob gives an empty file.
        """

        blob = self.git.blob_at(ciphertext, rev)
        plain = stack.enter_context(scratch_file(prefix=prefix, suffix=".plain", directory=self.scratch_dir))
        if not blob:
            return plain

        encrypted = stack.enter_context(
            scratch_file(prefix=prefix, suffix=".encrypted", directory=self.scratch_dir, data=blob)
        )
        status = self.gpg.decrypt(encrypted, plain)
        if status != 0:
            raise CapabilityFailure("decrypt", Path(f"{rev}:{ciphertext.name}"), status)
        return plain
