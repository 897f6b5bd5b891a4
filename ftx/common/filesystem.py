"""Filesystem helpers for FTX."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List, Tuple

_SEPARATORS = ("/", "\\")


def normalize_file_path(path: str, sep: str = os.sep) -> str:
    """Rewrite both ``/`` and ``\\`` to *sep*."""

    opposite = "\\" if sep == "/" else "/"
    return path.replace(opposite, sep)


def normalize_dir_path(path: str, sep: str = os.sep) -> str:
    """Normalize separators and make sure *path* ends with one."""

    path = normalize_file_path(path, sep)
    if not path.endswith(sep):
        path += sep
    return path


def join_remote_path(root: str, parts: Tuple[str, ...]) -> str:
    """Join *parts* under *root* for a peer whose separator is unknown.

    The receiving side normalizes separators, so ``/`` is used for the joins
    while the separators already present in *root* are left untouched.
    """

    if not parts:
        return root
    base = root.rstrip("/\\")
    if not base:
        # filesystem root such as "/", or an empty relative root
        return root[:1] + "/".join(parts)
    return base + "/" + "/".join(parts)


def list_directory(root: Path) -> List[Path]:
    """Return the direct children of *root* sorted by name."""

    if not root.exists():
        raise FileNotFoundError(f"Root path {root} does not exist")
    return sorted(root.iterdir(), key=lambda child: child.name)


def walk_tree(root: Path, *, recursive: bool = True) -> Iterator[Tuple[Path, Tuple[str, ...]]]:
    """Yield ``(path, relative_parts)`` for everything below *root*.

    Containers are yielded before their contents. Without *recursive* only
    the direct children are yielded (subdirectories included, their contents
    not).
    """

    for child in list_directory(root):
        yield child, (child.name,)
        if recursive and child.is_dir():
            for nested, parts in walk_tree(child, recursive=True):
                yield nested, (child.name,) + parts


def ensure_directory(path: Path) -> None:
    """Create *path* and any missing ancestors; existing directories are left alone."""

    if path.is_dir():
        return
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OSError(f"Could not create all directories for path '{path}': {exc}") from exc


def construct_destination_file_path(src_file_name: str, dst_file_path: str) -> str:
    """Resolve where a copied file named *src_file_name* should land.

    An existing file is overwritten, an existing directory receives the file
    under its original name. A missing destination must have an existing
    parent directory and must not look like a directory itself.
    """

    dst = Path(dst_file_path)
    if dst.exists():
        if dst.is_file():
            return dst_file_path
        if dst.is_dir():
            return str((dst / src_file_name).absolute())
        raise ValueError(f"File '{dst_file_path}' is neither file nor directory")

    if dst_file_path.endswith(_SEPARATORS):
        raise FileNotFoundError(f"File path '{dst_file_path}' points to a non-existing directory")
    parent = dst.absolute().parent
    if not parent.is_dir():
        raise FileNotFoundError(f"Directory '{parent}' does not exist or is a regular file")
    return dst_file_path


def directory_size(root: Path, *, recursive: bool = True) -> int:
    """Return the combined size in bytes of the files a send of *root* would stream."""

    return sum(path.stat().st_size for path, _ in walk_tree(root, recursive=recursive) if path.is_file())
