"""Filesystem helpers that work relative to a session's directory.

Every relative path is resolved against the session's working directory,
never the host process's, so these are safe to use from concurrent
sessions.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shellscope.session.context import PathLike, SessionContext

_log = logging.getLogger("shellscope.fs")


def canonic(sh: SessionContext, path: PathLike) -> Path:
    """Absolute path with symlinks resolved."""
    return sh.abs_path(path).resolve()


path = canonic


def ls(sh: SessionContext, directory: PathLike = ".") -> list[Path]:
    """Directory entries, excluding "." and ".." but including hidden files."""
    return sorted(sh.abs_path(directory).iterdir())


def find(sh: SessionContext, directory: PathLike = ".") -> list[Path]:
    """All entries below directory, recursively; symlinked dirs are not followed."""
    found: list[Path] = []
    for entry in ls(sh, directory):
        found.append(entry)
        if entry.is_dir() and not entry.is_symlink():
            found.extend(find(sh, entry))
    return found


def test_e(sh: SessionContext, target: PathLike) -> bool:
    """Does target exist (file or directory)?"""
    return sh.abs_path(target).exists()


def test_f(sh: SessionContext, target: PathLike) -> bool:
    return sh.abs_path(target).is_file()


def test_d(sh: SessionContext, target: PathLike) -> bool:
    return sh.abs_path(target).is_dir()


def test_s(sh: SessionContext, target: PathLike) -> bool:
    return sh.abs_path(target).is_symlink()


def mkdir(sh: SessionContext, directory: PathLike) -> None:
    """Create a directory; fails if it exists."""
    sh.abs_path(directory).mkdir()


def mkdir_p(sh: SessionContext, directory: PathLike) -> None:
    """Create a directory and its parents; succeeds if it exists."""
    sh.abs_path(directory).mkdir(parents=True, exist_ok=True)


def rm_f(sh: SessionContext, target: PathLike) -> None:
    """Remove a file; a missing file is not an error."""
    sh.abs_path(target).unlink(missing_ok=True)


def _make_removable(entry: Path) -> None:
    mode = entry.lstat().st_mode
    if not stat.S_ISLNK(mode):
        os.chmod(entry, mode | stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR)


def rm_rf(sh: SessionContext, target: PathLike) -> None:
    """Remove a file or directory tree, fixing permissions we own first."""
    resolved = sh.abs_path(target)
    if resolved.is_dir() and not resolved.is_symlink():
        for entry in [resolved, *find(sh, resolved)]:
            try:
                _make_removable(entry)
            except OSError as e:
                _log.debug("Could not fix permissions on %s: %s", entry, e)
        shutil.rmtree(resolved)
    elif resolved.exists() or resolved.is_symlink():
        resolved.unlink()


def cp(sh: SessionContext, source: PathLike, dest: PathLike) -> None:
    """Copy a file; if dest is a directory the file keeps its name."""
    src = sh.abs_path(source)
    dst = sh.abs_path(dest)
    if dst.is_dir():
        dst = dst / src.name
    shutil.copyfile(src, dst)


def cp_r(sh: SessionContext, source: PathLike, dest: PathLike) -> None:
    """Copy a file or a directory tree."""
    src = sh.abs_path(source)
    dst = sh.abs_path(dest)
    if src.is_dir():
        shutil.copytree(src, dst, symlinks=True)
    else:
        cp(sh, src, dst)


def mv(sh: SessionContext, source: PathLike, dest: PathLike) -> None:
    """Move a file or directory (works across filesystems)."""
    shutil.move(sh.abs_path(source), sh.abs_path(dest))


def readfile(sh: SessionContext, target: PathLike) -> str:
    return sh.abs_path(target).read_text(encoding="utf-8")


def writefile(sh: SessionContext, target: PathLike, text: str) -> None:
    sh.abs_path(target).write_text(text, encoding="utf-8")


def appendfile(sh: SessionContext, target: PathLike, text: str) -> None:
    with open(sh.abs_path(target), "a", encoding="utf-8") as f:
        f.write(text)


@contextmanager
def with_tmp_dir(sh: SessionContext) -> Iterator[Path]:
    """Create a temporary directory, removed again on every exit path."""
    directory = Path(tempfile.mkdtemp(prefix="shellscope-"))
    try:
        yield directory
    finally:
        rm_rf(sh, directory)
