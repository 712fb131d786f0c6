"""Tests for session-relative filesystem helpers."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from shellscope import fs
from shellscope.session import SessionContext


@pytest.fixture
def workdir(sh: SessionContext, tmp_path: Path) -> Path:
    """Session directory moved to a fresh subdirectory of tmp_path."""
    work = tmp_path / "work"
    work.mkdir()
    sh.cd(work)
    return work


class TestPaths:
    def test_relative_paths_use_session_directory(self, sh: SessionContext, workdir: Path):
        fs.writefile(sh, "note.txt", "hello")
        assert (workdir / "note.txt").read_text() == "hello"
        assert Path(os.getcwd()) != workdir

    def test_canonic_resolves_symlinks(self, sh: SessionContext, workdir: Path):
        (workdir / "real").mkdir()
        if sys.platform != "win32":
            (workdir / "link").symlink_to(workdir / "real")
            assert fs.canonic(sh, "link") == (workdir / "real").resolve()
        assert fs.path(sh, "real") == (workdir / "real").resolve()


class TestListing:
    def test_ls_includes_hidden_and_sorted(self, sh: SessionContext, workdir: Path):
        (workdir / "b").touch()
        (workdir / ".hidden").touch()
        (workdir / "a").mkdir()
        assert fs.ls(sh) == [workdir / ".hidden", workdir / "a", workdir / "b"]

    def test_find_recurses(self, sh: SessionContext, workdir: Path):
        fs.mkdir_p(sh, "x/y")
        fs.writefile(sh, "x/y/z.txt", "")
        assert fs.find(sh, "x") == [workdir / "x" / "y", workdir / "x" / "y" / "z.txt"]


class TestPredicates:
    def test_file_and_directory_checks(self, sh: SessionContext, workdir: Path):
        fs.writefile(sh, "f", "data")
        fs.mkdir(sh, "d")
        (workdir / "empty").touch()
        assert fs.test_e(sh, "f") and fs.test_e(sh, "d")
        assert fs.test_f(sh, "f") and not fs.test_f(sh, "d")
        assert fs.test_d(sh, "d") and not fs.test_d(sh, "f")
        assert not fs.test_e(sh, "missing")
        assert not fs.test_s(sh, "f")


class TestModification:
    def test_mkdir_fails_if_exists(self, sh: SessionContext, workdir: Path):
        fs.mkdir(sh, "d")
        with pytest.raises(FileExistsError):
            fs.mkdir(sh, "d")
        fs.mkdir_p(sh, "d")

    def test_rm_f_missing_ok(self, sh: SessionContext, workdir: Path):
        fs.rm_f(sh, "missing")
        fs.writefile(sh, "f", "")
        fs.rm_f(sh, "f")
        assert not (workdir / "f").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_rm_rf_read_only_tree(self, sh: SessionContext, workdir: Path):
        fs.mkdir_p(sh, "tree/inner")
        fs.writefile(sh, "tree/inner/file", "x")
        (workdir / "tree" / "inner").chmod(0o500)
        fs.rm_rf(sh, "tree")
        assert not (workdir / "tree").exists()
        fs.rm_rf(sh, "tree")

    def test_cp_into_directory(self, sh: SessionContext, workdir: Path):
        fs.writefile(sh, "src.txt", "content")
        fs.mkdir(sh, "dest")
        fs.cp(sh, "src.txt", "dest")
        assert fs.readfile(sh, "dest/src.txt") == "content"

    def test_cp_r_tree(self, sh: SessionContext, workdir: Path):
        fs.mkdir_p(sh, "a/b")
        fs.writefile(sh, "a/b/c", "deep")
        fs.cp_r(sh, "a", "copy")
        assert fs.readfile(sh, "copy/b/c") == "deep"

    def test_mv(self, sh: SessionContext, workdir: Path):
        fs.writefile(sh, "old", "x")
        fs.mv(sh, "old", "new")
        assert not fs.test_e(sh, "old")
        assert fs.readfile(sh, "new") == "x"

    def test_appendfile(self, sh: SessionContext, workdir: Path):
        fs.writefile(sh, "log", "a\n")
        fs.appendfile(sh, "log", "b\n")
        assert fs.readfile(sh, "log") == "a\nb\n"


class TestTmpDir:
    def test_removed_after_use(self, sh: SessionContext):
        with fs.with_tmp_dir(sh) as tmp:
            (tmp / "file").write_text("x")
            assert tmp.is_dir()
        assert not tmp.exists()

    def test_removed_after_error(self, sh: SessionContext):
        with pytest.raises(RuntimeError):
            with fs.with_tmp_dir(sh) as tmp:
                raise RuntimeError("inside")
        assert not tmp.exists()
