"""Tests for encrypted file discovery."""

from __future__ import annotations

from pathlib import Path

from sealsync.file_scanner import FileScanner


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x")
    return path


class TestFileScanner:
    def test_finds_nested_and_hidden(self, tmp_path: Path) -> None:
        expected = {
            touch(tmp_path / ".top.encrypted"),
            touch(tmp_path / "a" / "b" / ".deep.txt.encrypted"),
            touch(tmp_path / ".config" / ".hidden.encrypted"),
        }
        touch(tmp_path / "plain.txt")
        touch(tmp_path / "a" / "no-dot.encrypted")
        touch(tmp_path / "a" / ".encrypted")

        assert set(FileScanner(tmp_path).scan()) == expected

    def test_skips_git_directory(self, tmp_path: Path) -> None:
        touch(tmp_path / ".git" / "objects" / ".x.encrypted")
        found = touch(tmp_path / ".x.encrypted")
        assert list(FileScanner(tmp_path)) == [found]

    def test_ignores_directories_named_like_ciphertext(self, tmp_path: Path) -> None:
        (tmp_path / ".dir.encrypted").mkdir()
        assert list(FileScanner(tmp_path).scan()) == []

    def test_scan_is_restartable(self, tmp_path: Path) -> None:
        touch(tmp_path / ".one.encrypted")
        touch(tmp_path / "sub" / ".two.encrypted")
        scanner = FileScanner(tmp_path)
        assert sorted(scanner.scan()) == sorted(scanner.scan())
        assert len(list(scanner.scan())) == 2

    def test_sorted_paths(self, tmp_path: Path) -> None:
        paths = [touch(tmp_path / name) for name in (".c.encrypted", ".a.encrypted", ".b.encrypted")]
        assert FileScanner(tmp_path).sorted_paths() == sorted(paths)

    def test_empty_tree(self, tmp_path: Path) -> None:
        assert FileScanner(tmp_path).sorted_paths() == []
