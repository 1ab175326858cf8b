"""
Command-line interface for sealsync.

This module orchestrates all other components and provides
the user-facing CLI commands:
- encrypt
- decrypt
- log
- status
- help
"""

from __future__ import annotations

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .config import (
    Settings,
    HISTORY_TOOLS,
    REQUIRED_TOOLS,
    TOOL_VERSION,
    ENV_RECIPIENT,
    ENV_AGENT_HELPER,
    GIT_KEY_RECIPIENT,
    GIT_KEY_AGENT_HELPER,
)
from .capabilities import Differ, Git, Gpg, require_tools
from .errors import SealsyncError, GENERIC_FAILURE
from .file_scanner import FileScanner
from .history import HistoryReconstructor
from .ledger import Ledger
from .paths import is_ciphertext_name, to_ciphertext, to_plaintext
from .staleness import Decision, decide
from .transformer import Transformer, TransformResult


# ---------------------------------------------------------------------------
# Color output helpers
# ---------------------------------------------------------------------------


class Colors:
    """ANSI color codes for terminal output."""
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def colored(text: str, color: str) -> str:
    """Return colored text for terminal output."""
    return f"{color}{text}{Colors.RESET}"


def print_error(msg: str) -> None:
    """Print error message to stderr."""
    print(colored(f"✗ Error: {msg}", Colors.RED), file=sys.stderr)


def print_success(msg: str) -> None:
    """Print success message."""
    print(colored(f"✓ {msg}", Colors.GREEN))


def print_warning(msg: str) -> None:
    """Print warning message to stderr."""
    print(colored(f"⚠ Warning: {msg}", Colors.YELLOW), file=sys.stderr)


def print_info(msg: str) -> None:
    """Print info message."""
    print(colored(f"ℹ {msg}", Colors.CYAN))


# ---------------------------------------------------------------------------
# CLI context
# ---------------------------------------------------------------------------


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        root: Optional[Path] = None,
        gpg=None,
        git=None,
        differ=None,
        settings: Optional[Settings] = None,
        ledger: Optional[Ledger] = None,
    ):
        self.verbose = verbose
        self.quiet = quiet
        self.root = Path(root) if root else Path.cwd()

        # Injected collaborators skip the PATH lookup
        self.check_tools = gpg is None and git is None and differ is None

        # Lazy-loaded
        self._git = git
        self._settings = settings
        self._gpg = gpg
        self._differ = differ
        self._ledger = ledger
        self._transformer: Optional[Transformer] = None

    @property
    def git(self):
        if self._git is None:
            self._git = Git(cwd=self.root)
        return self._git

    @property
    def settings(self) -> Settings:
        """Resolve settings lazily: environment, git config, defaults."""
        if self._settings is None:
            self._settings = Settings.resolve(self.git)
        return self._settings

    @property
    def gpg(self):
        if self._gpg is None:
            self._gpg = Gpg(agent_helper=self.settings.agent_helper_argv)
        return self._gpg

    @property
    def differ(self):
        if self._differ is None:
            self._differ = Differ()
        return self._differ

    @property
    def ledger(self) -> Ledger:
        if self._ledger is None:
            self._ledger = Ledger.for_git_dir(self.git.git_dir(), self.git.toplevel())
        return self._ledger

    @property
    def transformer(self) -> Transformer:
        """Create transformer lazily."""
        if self._transformer is None:
            self._transformer = Transformer(self.gpg, self.git, self.settings, self.ledger)
        return self._transformer

    def require(self, tools: Iterable[str]) -> None:
        if self.check_tools:
            require_tools(tools)

    def agent_helper_tool(self) -> Tuple[str, ...]:
        """Executable of the configured agent helper, as a one-element tuple."""
        return tuple(self.settings.agent_helper_argv[:1])

    def scanner(self) -> FileScanner:
        return FileScanner(self.root)

    def log(self, msg: str) -> None:
        """Log message if not quiet."""
        if not self.quiet:
            print(msg)

    def log_verbose(self, msg: str) -> None:
        """Log message if verbose."""
        if self.verbose:
            print(colored(f"  → {msg}", Colors.BLUE))

    def report(self, result: TransformResult) -> None:
        path = result.plaintext if result.changed else result.ciphertext
        if result.changed:
            self.log(f"  ✓ {path}: {result.outcome.value}")
        else:
            self.log(f"  · {path}: {result.outcome.value}")
        for warning in result.warnings:
            print_warning(warning)


# ---------------------------------------------------------------------------
# Command implementations
# ---------------------------------------------------------------------------


def cmd_encrypt(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Encrypt plaintext files into their '.<name>.encrypted' siblings.
    """
    ctx.require(REQUIRED_TOOLS)

    if args.paths:
        targets = [Path(p) for p in args.paths]
    else:
        targets = []
        skipped = 0
        for ciphertext in ctx.scanner().sorted_paths():
            plaintext = to_plaintext(ciphertext)
            if not plaintext.exists():
                ctx.log_verbose(f"Skipping {ciphertext} (no plaintext)")
                skipped += 1
                continue
            targets.append(plaintext)
        if skipped and not ctx.quiet:
            print_info(f"Skipped {skipped} encrypted file(s) without plaintext; run 'sealsync decrypt' first")

    if not targets:
        ctx.log(colored("No files to encrypt", Colors.YELLOW))
        return 0

    changed = 0
    for plaintext in targets:
        ctx.log_verbose(f"Encrypting: {plaintext}")
        result = ctx.transformer.encrypt(plaintext, force=args.force)
        ctx.report(result)
        changed += result.changed

    ctx.log("")
    print_success(f"Encrypted {changed} of {len(targets)} file(s)")
    return 0


def cmd_decrypt(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Decrypt '.<name>.encrypted' files into their plaintext siblings.
    """
    ctx.require(REQUIRED_TOOLS + ctx.agent_helper_tool())

    if args.paths:
        targets = [Path(p) for p in args.paths]
    else:
        targets = ctx.scanner().sorted_paths()

    if not targets:
        ctx.log(colored("No encrypted files found", Colors.YELLOW))
        return 0

    changed = 0
    for ciphertext in targets:
        ctx.log_verbose(f"Decrypting: {ciphertext}")
        result = ctx.transformer.decrypt(ciphertext, force=args.force)
        ctx.report(result)
        changed += result.changed

    ctx.log("")
    print_success(f"Decrypted {changed} of {len(targets)} file(s)")
    return 0


def cmd_log(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Show the decrypted history of encrypted files, newest commit first.
    """
    ctx.require(HISTORY_TOOLS + ctx.agent_helper_tool())

    targets = [Path(p) for p in args.paths] if args.paths else ctx.scanner().sorted_paths()
    if not targets:
        ctx.log(colored("No encrypted files found", Colors.YELLOW))
        return 0

    reconstructor = HistoryReconstructor(ctx.gpg, ctx.git, ctx.differ, ctx.settings)

    failed = 0
    for ciphertext in targets:
        ctx.log(colored(f"==> {ciphertext}", Colors.BOLD))
        for report in reconstructor.reconstruct(ciphertext):
            if not report.ok:
                print_error(f"commit {report.commit}: {report.error}")
                failed += 1
                continue
            print(colored(report.message.rstrip("\n"), Colors.YELLOW))
            print("")
            print(report.diff)

    if failed:
        print_warning(f"{failed} commit(s) could not be reconstructed")
        return GENERIC_FAILURE
    return 0


def _status_entry(ctx: CLIContext, ciphertext: Path) -> dict:
    plaintext = to_plaintext(ciphertext)
    entry = {
        "ciphertext": str(ciphertext),
        "plaintext": str(plaintext),
        "ciphertext_exists": ciphertext.exists(),
        "plaintext_exists": plaintext.exists(),
        "encrypt": None,
        "decrypt": None,
        "ignored": None,
    }

    if entry["plaintext_exists"]:
        entry["encrypt"] = decide(plaintext, ciphertext).value
        if entry["encrypt"] == Decision.TRANSFORM.value and ctx.ledger.matches(plaintext, ciphertext):
            entry["encrypt"] = Decision.SKIP.value
        entry["ignored"] = ctx.git.is_ignored(plaintext)
    if entry["ciphertext_exists"]:
        entry["decrypt"] = decide(ciphertext, plaintext).value

    return entry


def cmd_status(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Show the synchronization state of every plaintext/ciphertext pair.
    """
    if args.paths:
        targets = [
            Path(p) if is_ciphertext_name(Path(p).name) else to_ciphertext(p)
            for p in args.paths
        ]
    else:
        targets = ctx.scanner().sorted_paths()

    entries = [_status_entry(ctx, ciphertext) for ciphertext in targets]

    if args.json:
        print(json.dumps(entries, indent=2))
        return 0

    ctx.log(colored("Repository Status", Colors.BOLD))
    ctx.log("")
    if not entries:
        ctx.log(colored("  No encrypted files found", Colors.YELLOW))

    unignored = []
    for entry in entries:
        if not entry["plaintext_exists"]:
            state = colored("not decrypted", Colors.CYAN)
        elif entry["encrypt"] == Decision.TRANSFORM.value:
            state = colored("needs encrypt", Colors.YELLOW)
        else:
            state = colored("in sync", Colors.GREEN)
        ctx.log(f"  {entry['plaintext']:<40} {state}")
        if entry["ignored"] is False:
            unignored.append(entry["plaintext"])

    if unignored:
        ctx.log("")
        print_warning("Plaintext files not ignored by git:")
        for path in unignored:
            ctx.log(f"    - {path}")

    ctx.log("")
    return 0


def cmd_help(ctx: Optional[CLIContext], args: argparse.Namespace) -> int:
    """
    Show help message.
    """
    help_text = f"""
{colored('sealsync', Colors.BOLD)} — keep plaintext files and their encrypted siblings in sync

{colored('USAGE:', Colors.CYAN)}
  sealsync [options] <command> [paths...]

{colored('DESCRIPTION:', Colors.CYAN)}
  Every sensitive file "<dir>/<name>" is committed only as its gpg-encrypted
  sibling "<dir>/.<name>.encrypted". The plaintext must be git-ignored.

  Decrypted files are backdated one second behind their ciphertext so that
  an encrypt right after a decrypt does not re-encrypt anything.

{colored('COMMANDS:', Colors.CYAN)}
  encrypt [-f] [paths...]   Encrypt plaintext files (default: all known pairs)
  decrypt [-f] [paths...]   Decrypt encrypted files (default: all found)
  log [paths...]            Show decrypted diffs from git history
  status [--json] [paths]   Show synchronization state
  help                      Show this help message

{colored('GLOBAL OPTIONS:', Colors.CYAN)}
  -v, --verbose             Enable verbose output
  -q, --quiet               Suppress non-error output
  -h, --help                Show this help message and exit

{colored('ENVIRONMENT:', Colors.CYAN)}
  {ENV_RECIPIENT:<25} gpg recipient (git config: {GIT_KEY_RECIPIENT};
                            default: your own default key)
  {ENV_AGENT_HELPER:<25} command that succeeds when the gpg agent is live
                            (git config: {GIT_KEY_AGENT_HELPER})

{colored('EXAMPLES:', Colors.CYAN)}
  sealsync encrypt secrets.env
  sealsync decrypt
  sealsync log .secrets.env.encrypted
  sealsync status

{colored('VERSION:', Colors.CYAN)}
  {TOOL_VERSION}
"""
    print(help_text)
    return 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sealsync",
        description="Keep plaintext files and their encrypted siblings in sync",
        add_help=False,
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )
    parser.add_argument(
        "-h", "--help",
        action="store_true",
        help="Show help message",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    encrypt_parser = subparsers.add_parser("encrypt", help="Encrypt plaintext files")
    encrypt_parser.add_argument("paths", nargs="*", help="Plaintext files to encrypt")
    encrypt_parser.add_argument("-f", "--force", action="store_true", help="Encrypt even if up to date")

    decrypt_parser = subparsers.add_parser("decrypt", help="Decrypt encrypted files")
    decrypt_parser.add_argument("paths", nargs="*", help="Encrypted files to decrypt")
    decrypt_parser.add_argument("-f", "--force", action="store_true", help="Overwrite newer plaintext files")

    log_parser = subparsers.add_parser("log", help="Show decrypted history")
    log_parser.add_argument("paths", nargs="*", help="Encrypted files to show history for")

    status_parser = subparsers.add_parser("status", help="Show synchronization state")
    status_parser.add_argument("paths", nargs="*", help="Files to inspect")
    status_parser.add_argument("--json", action="store_true", help="Output status as JSON")

    subparsers.add_parser("help", help="Show help message")

    return parser


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[List[str]] = None, ctx: Optional[CLIContext] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Show help if requested or no command
    if args.help or not args.command:
        return cmd_help(None, args)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    # Build context
    if ctx is None:
        ctx = CLIContext(verbose=args.verbose, quiet=args.quiet)
    else:
        ctx.verbose = ctx.verbose or args.verbose
        ctx.quiet = ctx.quiet or args.quiet

    # Dispatch to command
    commands = {
        "encrypt": cmd_encrypt,
        "decrypt": cmd_decrypt,
        "log": cmd_log,
        "status": cmd_status,
        "help": cmd_help,
    }

    cmd_func = commands.get(args.command)
    if not cmd_func:
        print_error(f"Unknown command: {args.command}")
        return GENERIC_FAILURE

    try:
        return cmd_func(ctx, args)
    except SealsyncError as e:
        print_error(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        print_error("Interrupted")
        return 130
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return GENERIC_FAILURE


if __name__ == "__main__":
    sys.exit(main())
