"""
Global configuration and environment handling.

This module is responsible for:
- Defining the naming convention and other global constants
- Resolving per-run settings (recipient identity, agent helper)
  from the environment, the repository configuration and built-in
  defaults, in that order

Nothing in this file should depend on:
- file contents
- the staleness policy
- CLI arguments

If something here changes, the *entire tool* behavior changes.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import Final, List, Mapping, Optional, Tuple

# ---------------------------------------------------------------------------
# Tool / format versioning
# ---------------------------------------------------------------------------

TOOL_VERSION: Final[str] = "0.1.0"
SUPPORTED_LEDGER_VERSION: Final[int] = 1

# ---------------------------------------------------------------------------
# Naming convention
# ---------------------------------------------------------------------------

# Ciphertext of "<dir>/<name>" lives at "<dir>/.<name>.encrypted".
CIPHERTEXT_EXT: Final[str] = "encrypted"
CIPHERTEXT_PREFIX: Final[str] = "."
CIPHERTEXT_SUFFIX: Final[str] = "." + CIPHERTEXT_EXT

# ---------------------------------------------------------------------------
# Transform policy
# ---------------------------------------------------------------------------

# A decrypted plaintext is made this much older than its ciphertext.
BACKDATE_NS: Final[int] = 1_000_000_000

PRIVATE_MODE: Final[int] = 0o600

# ---------------------------------------------------------------------------
# Environment variable names / repository config keys
# ---------------------------------------------------------------------------

ENV_RECIPIENT: Final[str] = "SEALSYNC_RECIPIENT"
ENV_AGENT_HELPER: Final[str] = "SEALSYNC_AGENT_HELPER"

GIT_KEY_RECIPIENT: Final[str] = "sealsync.recipient"
GIT_KEY_AGENT_HELPER: Final[str] = "sealsync.agentHelper"

# None means "encrypt to the default key of the local keyring".
DEFAULT_RECIPIENT: Final[Optional[str]] = None
DEFAULT_AGENT_HELPER: Final[str] = "gpg-connect-agent --no-autostart /bye"

LEDGER_DIRNAME: Final[str] = "sealsync"
LEDGER_FILENAME: Final[str] = "ledger.yml"

REQUIRED_TOOLS: Final[Tuple[str, ...]] = ("gpg", "git")
HISTORY_TOOLS: Final[Tuple[str, ...]] = ("gpg", "git", "diff")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Settings:
    """Identity and helper configuration, resolved once per run."""

    recipient: Optional[str] = DEFAULT_RECIPIENT
    agent_helper: str = DEFAULT_AGENT_HELPER

    @property
    def agent_helper_argv(self) -> List[str]:
        return shlex.split(self.agent_helper)

    @classmethod
    def resolve(
        cls,
        git=None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """
        Build settings from the environment, then the repository
        configuration, then the built-in defaults.

        Args:
            git: object exposing ``config_get(key) -> Optional[str]``;
                 when omitted the repository layer is skipped
            environ: mapping to read instead of ``os.environ``

        Returns:
            Settings
        """

        env = os.environ if environ is None else environ

        return cls(
            recipient=_lookup(env, ENV_RECIPIENT, git, GIT_KEY_RECIPIENT, DEFAULT_RECIPIENT),
            agent_helper=_lookup(
                env, ENV_AGENT_HELPER, git, GIT_KEY_AGENT_HELPER, DEFAULT_AGENT_HELPER
            ),
        )


def _lookup(env: Mapping[str, str], env_name: str, git, git_key: str, default):
    value = env.get(env_name)
    if value:
        return value

    if git is not None:
        value = git.config_get(git_key)
        if value:
            return value

    return default
