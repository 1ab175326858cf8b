"""
Content transformation: encryption and decryption of file pairs.

This module drives gpg for a single plaintext/ciphertext pair and applies
the post-transform policy (private permissions, backdated plaintext).
It is intentionally dumb about which files to process and how to report
results to the user.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import Settings
from .errors import AgentUnavailable, CapabilityFailure, InvalidName, NotFound
from .ledger import Ledger
from .paths import is_ciphertext_name, to_ciphertext, to_plaintext
from .staleness import Decision, decide
from .utils import backdate, make_private, scratch_file

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    ENCRYPTED = "encrypted"
    DECRYPTED = "decrypted"
    UP_TO_DATE = "up to date"
    KEPT_LOCAL = "kept local plaintext"


@dataclass
class TransformResult:
    plaintext: Path
    ciphertext: Path
    outcome: Outcome
    warnings: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.outcome in (Outcome.ENCRYPTED, Outcome.DECRYPTED)


class Transformer:
    def __init__(self, gpg, git, settings: Optional[Settings] = None, ledger: Optional[Ledger] = None):
        self.gpg = gpg
        self.git = git
        self.settings = settings or Settings()
        self.ledger = ledger if ledger is not None else Ledger()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encrypt(self, plaintext: str | Path, force: bool = False) -> TransformResult:
        """
        Encrypt a plaintext into its '.<name>.encrypted' sibling.

        Raises:
            NotFound: if the plaintext does not exist
            CapabilityFailure: if gpg exits non-zero; nothing is modified
        """

        plaintext = Path(plaintext)
        if not plaintext.is_file():
            raise NotFound(plaintext)

        ciphertext = to_ciphertext(plaintext)

        if decide(plaintext, ciphertext, force) is Decision.SKIP:
            return TransformResult(plaintext, ciphertext, Outcome.UP_TO_DATE)

        if not force and self.ledger.matches(plaintext, ciphertext):
            logger.debug("%s unchanged since last encryption", plaintext)
            return TransformResult(plaintext, ciphertext, Outcome.UP_TO_DATE)

        with scratch_file(prefix=ciphertext.name + ".", suffix=".tmp", directory=ciphertext.parent) as scratch:
            status = self.gpg.encrypt(plaintext, scratch, self.settings.recipient)
            if status != 0:
                raise CapabilityFailure("encrypt", plaintext, status)
            os.replace(scratch, ciphertext)

        make_private(plaintext)
        self.ledger.record(plaintext, ciphertext)

        result = TransformResult(plaintext, ciphertext, Outcome.ENCRYPTED)
        self._check_ignored(result)
        return result

    def decrypt(self, ciphertext: str | Path, force: bool = False) -> TransformResult:
        """
        Decrypt a '.<name>.encrypted' file into its plaintext sibling.

        An existing plaintext at least as new as the ciphertext may hold
        local edits; it is left alone unless ``force`` is set.

        Raises:
            AgentUnavailable: if no gpg agent session is running
            InvalidName: if the name does not follow the convention
            NotFound: if the ciphertext does not exist
            CapabilityFailure: if gpg exits non-zero; nothing is modified
        """

        ciphertext = Path(ciphertext)
        if not self.gpg.session_available():
            raise AgentUnavailable(self.settings.agent_helper)

        if not is_ciphertext_name(ciphertext.name):
            raise InvalidName(ciphertext)

        if not ciphertext.is_file():
            raise NotFound(ciphertext)

        plaintext = to_plaintext(ciphertext)

        if decide(ciphertext, plaintext, force) is Decision.SKIP:
            return TransformResult(
                plaintext,
                ciphertext,
                Outcome.KEPT_LOCAL,
                [
                    f"{plaintext} is newer than {ciphertext}; it may contain "
                    "local changes. Not overwriting (use --force to overwrite)"
                ],
            )

        with scratch_file(prefix=plaintext.name + ".", suffix=".tmp", directory=plaintext.parent) as scratch:
            status = self.gpg.decrypt(ciphertext, scratch)
            if status != 0:
                raise CapabilityFailure("decrypt", ciphertext, status)
            make_private(scratch)
            os.replace(scratch, plaintext)

        backdate(plaintext, ciphertext)
        self.ledger.record(plaintext, ciphertext)

        result = TransformResult(plaintext, ciphertext, Outcome.DECRYPTED)
        self._check_ignored(result)
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_ignored(self, result: TransformResult) -> None:
        try:
            ignored = self.git.is_ignored(result.plaintext)
        except Exception as e:  # advisory only
            logger.debug("ignore check failed for %s: %s", result.plaintext, e)
            return

        if ignored is False:
            result.warnings.append(
                f"{result.plaintext} is not ignored by git; add it to .gitignore"
            )
