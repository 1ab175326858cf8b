"""Tests for the fingerprint ledger."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from sealsync import ledger as ledger_module
from sealsync.ledger import Ledger


@pytest.fixture
def pair(tmp_path: Path):
    plaintext = tmp_path / "notes"
    ciphertext = tmp_path / ".notes.encrypted"
    plaintext.write_text("hello\n")
    ciphertext.write_bytes(b"ENCRYPTED")
    return plaintext, ciphertext


class TestLedger:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        ledger = Ledger.load(tmp_path / "nope.yml")
        assert ledger.entries == {}

    def test_outside_repository_is_in_memory(self, pair) -> None:
        ledger = Ledger.for_git_dir(None)
        ledger.record(*pair)
        assert ledger.path is None
        assert ledger.matches(*pair)

    def test_for_git_dir_location(self, tmp_path: Path) -> None:
        ledger = Ledger.for_git_dir(tmp_path / ".git")
        assert ledger.path == tmp_path / ".git" / "sealsync" / "ledger.yml"

    def test_record_and_reload(self, pair, tmp_path: Path) -> None:
        path = tmp_path / "state" / "ledger.yml"
        Ledger.load(path).record(*pair)

        raw = yaml.safe_load(path.read_text())
        assert raw["version"] == 1
        assert len(raw["entries"]) == 1
        assert Ledger.load(path).matches(*pair)

    def test_content_change_breaks_match(self, pair) -> None:
        plaintext, ciphertext = pair
        ledger = Ledger()
        ledger.record(plaintext, ciphertext)

        ciphertext.write_bytes(b"ENCRYPTED AGAIN")
        assert not ledger.matches(plaintext, ciphertext)

    def test_missing_file_breaks_match(self, pair) -> None:
        plaintext, ciphertext = pair
        ledger = Ledger()
        ledger.record(plaintext, ciphertext)

        plaintext.unlink()
        assert not ledger.matches(plaintext, ciphertext)

    def test_unknown_pair(self, pair) -> None:
        assert not Ledger().matches(*pair)

    def test_unsupported_version(self, tmp_path: Path) -> None:
        path = tmp_path / "ledger.yml"
        path.write_text("version: 7\nentries: {}\n")
        with pytest.raises(RuntimeError, match="Unsupported ledger version"):
            Ledger.load(path)

    def test_malformed_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "ledger.yml"
        path.write_text("version: 1\nentries:\n  /x: {plaintext: abc}\n")
        with pytest.raises(RuntimeError, match="missing a fingerprint"):
            Ledger.load(path)

    def test_keys_relative_to_worktree(self, pair, tmp_path: Path) -> None:
        path = tmp_path / ".git" / "sealsync" / "ledger.yml"
        Ledger.load(path, worktree=tmp_path).record(*pair)

        raw = yaml.safe_load(path.read_text())
        assert list(raw["entries"]) == [".notes.encrypted"]
        assert Ledger.load(path, worktree=tmp_path).matches(*pair)

    def test_moved_checkout_keeps_entries(self, pair, tmp_path: Path) -> None:
        old = tmp_path
        Ledger.for_git_dir(old / ".git").record(*pair)

        new = tmp_path.parent / (tmp_path.name + "-moved")
        new.mkdir()
        for name in ("notes", ".notes.encrypted"):
            (new / name).write_bytes((old / name).read_bytes())
        (new / ".git" / "sealsync").mkdir(parents=True)
        (new / ".git" / "sealsync" / "ledger.yml").write_bytes(
            (old / ".git" / "sealsync" / "ledger.yml").read_bytes()
        )

        assert Ledger.for_git_dir(new / ".git").matches(new / "notes", new / ".notes.encrypted")

    def test_removed_ciphertext_is_pruned(self, pair, tmp_path: Path) -> None:
        path = tmp_path / ".git" / "sealsync" / "ledger.yml"
        ledger = Ledger.load(path, worktree=tmp_path)
        ledger.record(*pair)

        other_plain = tmp_path / "todo"
        other_cipher = tmp_path / ".todo.encrypted"
        other_plain.write_text("buy milk\n")
        other_cipher.write_bytes(b"ENCRYPTED TODO")
        pair[1].unlink()
        ledger.record(other_plain, other_cipher)

        raw = yaml.safe_load(path.read_text())
        assert list(raw["entries"]) == [".todo.encrypted"]

    def test_save_leaves_no_temp_files(self, pair, tmp_path: Path) -> None:
        path = tmp_path / "state" / "ledger.yml"
        Ledger.load(path).record(*pair)
        assert [p.name for p in path.parent.iterdir()] == ["ledger.yml"]

    def test_failed_save_keeps_previous_file(self, pair, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "state" / "ledger.yml"
        Ledger.load(path).record(*pair)
        before = path.read_bytes()

        def interrupted(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(ledger_module.os, "replace", interrupted)
        pair[0].write_text("changed\n")
        with pytest.raises(OSError, match="disk full"):
            Ledger.load(path).record(*pair)

        assert path.read_bytes() == before
        assert [p.name for p in path.parent.iterdir()] == ["ledger.yml"]
