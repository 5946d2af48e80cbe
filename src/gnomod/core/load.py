"""Discovery of Gno source files, package directories and command targets."""

import os
import re
from collections.abc import Callable, Iterator
from pathlib import Path

from gnomod.config import SOURCE_EXTENSION


def is_gno_file(path: str | Path) -> bool:
    p = Path(path)
    return not p.name.startswith(".") and p.name.endswith(SOURCE_EXTENSION) and not p.is_dir()


def ensure_path_prefix(path: str) -> str:
    """Return ``path`` unchanged if absolute, else prefixed with ``./``."""
    if os.path.isabs(path):
        return path
    if path.startswith("." + os.sep):
        return path
    return "." + os.sep + path


def _stat_arg(arg: str) -> bool:
    """Return whether ``arg`` is a directory; raise if it does not exist."""
    if not os.path.exists(arg):
        raise FileNotFoundError(f"invalid file or package path: {arg}")
    return os.path.isdir(arg)


def _walk_files(root: str) -> Iterator[str]:
    # Lexical order, descending into a directory where its name sorts.
    # Symlinks are reported as entries and never followed.
    for name in sorted(os.listdir(root)):
        path = os.path.join(root, name)
        if os.path.isdir(path) and not os.path.islink(path):
            yield from _walk_files(path)
        else:
            yield path


def _walk_dir_for_gno_dirs(root: str, add_path: Callable[[str], None]) -> None:
    """Call ``add_path`` once for every directory under ``root`` holding a Gno file."""
    visited: set[str] = set()
    for path in _walk_files(root):
        if not is_gno_file(path):
            continue
        parent = os.path.dirname(path)
        if parent in visited:
            continue
        visited.add(parent)
        add_path(parent)


def _gno_files_in(directory: str) -> list[str]:
    return [
        ensure_path_prefix(os.path.normpath(os.path.join(directory, name)))
        for name in sorted(os.listdir(directory))
        if is_gno_file(os.path.join(directory, name))
    ]


def gno_files_from_args(args: list[str]) -> list[str]:
    paths: list[str] = []
    for arg in args:
        if not _stat_arg(arg):
            if is_gno_file(arg):
                paths.append(ensure_path_prefix(arg))
            continue
        paths.extend(_gno_files_in(arg))
    return paths


def gno_files_from_args_recursively(args: list[str]) -> list[str]:
    paths: list[str] = []
    for arg in args:
        if not _stat_arg(arg):
            if is_gno_file(arg):
                paths.append(ensure_path_prefix(arg))
            continue
        _walk_dir_for_gno_dirs(arg, lambda d: paths.extend(_gno_files_in(ensure_path_prefix(d))))
    return paths


def gno_dirs_from_args_recursively(args: list[str]) -> list[str]:
    paths: list[str] = []
    for arg in args:
        if not _stat_arg(arg):
            if is_gno_file(arg):
                paths.append(ensure_path_prefix(arg))
            continue
        _walk_dir_for_gno_dirs(arg, lambda d: paths.append(ensure_path_prefix(d)))
    return paths


def gno_packages_from_args_recursively(args: list[str]) -> list[str]:
    """Like ``gno_dirs_from_args_recursively``, but any file argument is kept as is."""
    paths: list[str] = []
    for arg in args:
        if not _stat_arg(arg):
            paths.append(ensure_path_prefix(arg))
            continue
        _walk_dir_for_gno_dirs(arg, lambda d: paths.append(ensure_path_prefix(d)))
    return paths


def match_pattern(pattern: str) -> Callable[[str], bool]:
    """Return a predicate matching names against ``pattern``, where ``...`` matches any string.

    ``foo/...`` also matches ``foo`` itself.
    """
    expr = re.escape(pattern).replace(re.escape("..."), ".*")
    if expr.endswith("/.*"):
        expr = expr[: -len("/.*")] + "(/.*)?"
    regex = re.compile("^" + expr + "$", re.DOTALL)
    return lambda name: regex.match(name) is not None


def targets_from_patterns(patterns: list[str]) -> list[str]:
    """Expand ``/...`` patterns into the matching package directories.

    Other patterns (plain files and directories) are returned unchanged.
    """
    paths: list[str] = []
    for pattern in patterns:
        directory = pattern
        match: Callable[[str], bool] | None = None
        if "/..." in pattern:
            directory = pattern[: pattern.index("/...")]
            match = match_pattern(pattern.removeprefix("./"))

        is_dir = _stat_arg(directory)
        if not is_dir or match is None:
            paths.append(pattern)
            continue

        def add(d: str, match: Callable[[str], bool] = match) -> None:
            if match(d):
                paths.append(d)

        _walk_dir_for_gno_dirs(directory, add)
    return paths
