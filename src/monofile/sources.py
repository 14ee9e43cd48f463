"""Raw inputs accepted by the Source Reader.

A raw input is one of three shapes, modelled as a closed union:

- ``LooseFiles``: a flat batch of file handles, each with an optional relative path
  hint (like files picked in a browser or listed on a command line);
- ``DirectoryForest``: one or more directory-entry trees to walk recursively;
- ``ArchiveBytes``: the bytes of a zip archive.

File handles and directory entries are small protocols so that hosts other than the
local filesystem can feed the reader. ``LocalFile``/``entry_from_path`` cover the
local filesystem and ``MemoryFile`` covers in-memory data.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from monofile.config import IGNORED_DIRS
from monofile.file_manipulation import relpath

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Sequence


class FileHandle(Protocol):
    """A readable file as exposed by the host."""

    @property
    def name(self) -> str: ...

    @property
    def size(self) -> int: ...

    @property
    def relative_path(self) -> str | None: ...

    def read_bytes(self) -> bytes: ...


@dataclass(frozen=True)
class LocalFile:
    """A file on the local filesystem."""

    path: Path
    relative_path: str | None = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError:
            return 0

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


@dataclass(frozen=True)
class MemoryFile:
    """A file whose bytes are already in memory."""

    name: str
    data: bytes
    relative_path: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    def read_bytes(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class FileEntry:
    """Leaf of a directory-entry tree."""

    name: str
    file: FileHandle


@dataclass(frozen=True)
class DirEntry:
    """Container of a directory-entry tree.

    ``children`` is either the children themselves or a callable enumerating them, so
    a host can defer listing a directory until the reader descends into it.
    """

    name: str
    children: Sequence[DirectoryEntry] | Callable[[], Iterable[DirectoryEntry]] = field(default=())

    def list_children(self) -> list[DirectoryEntry]:
        if callable(self.children):
            return list(self.children())
        return list(self.children)


type DirectoryEntry = FileEntry | DirEntry


@dataclass(frozen=True)
class LooseFiles:
    files: Sequence[FileHandle]


@dataclass(frozen=True)
class DirectoryForest:
    roots: Sequence[DirectoryEntry]


@dataclass(frozen=True)
class ArchiveBytes:
    data: bytes
    name: str = "archive.zip"


type RawInput = LooseFiles | DirectoryForest | ArchiveBytes


def is_archive_name(name: str) -> bool:
    return name.lower().endswith(".zip")


def _scan_dir(path: Path) -> list[DirectoryEntry]:
    children: list[DirectoryEntry] = []
    with os.scandir(path) as it:
        for e in it:
            # Symlinked directories are not followed.
            if e.is_dir(follow_symlinks=False):
                children.append(entry_from_path(Path(e.path)))
            elif e.is_file():
                children.append(FileEntry(name=e.name, file=LocalFile(path=Path(e.path))))
    return children


def entry_from_path(path: Path) -> DirectoryEntry:
    """Build a lazy directory-entry tree for a local file or directory.

    Args:
        path (Path): the file or directory to expose

    Returns:
        DirectoryEntry: a ``FileEntry`` for a file, a ``DirEntry`` listing its children
            on demand for a directory
    """
    if path.is_dir():
        return DirEntry(name=path.name, children=lambda: _scan_dir(path))
    return FileEntry(name=path.name, file=LocalFile(path=path))


def input_from_paths(paths: Sequence[Path], ignored_dirs: Collection[str] = IGNORED_DIRS) -> RawInput:
    """Choose the raw input shape for a list of local paths.

    - only directories: a ``DirectoryForest`` rooted at each directory;
    - a single zip file: ``ArchiveBytes`` holding its bytes;
    - anything else: ``LooseFiles`` (directories are expanded to their files with a
      path hint relative to the directory's parent, skipping ``ignored_dirs``; zip
      files named directly are kept as handles and expanded by the reader).

    Args:
        paths (Sequence[Path]): files and/or directories given by the user
        ignored_dirs (Collection[str]): directory names not descended into when walking

    Raises:
        FileNotFoundError: if a path does not exist

    Returns:
        RawInput: the input to hand to the reader
    """
    for p in paths:
        if not p.exists():
            msg = f"No such file or directory: {p}"
            raise FileNotFoundError(msg)

    if paths and all(p.is_dir() for p in paths):
        return DirectoryForest(roots=[entry_from_path(p.resolve()) for p in paths])
    if len(paths) == 1 and is_archive_name(paths[0].name):
        return ArchiveBytes(data=paths[0].read_bytes(), name=paths[0].name)

    handles: list[FileHandle] = []
    for p in paths:
        if p.is_dir():
            root = p.resolve()
            for dirpath, dirs, files in os.walk(root):
                dirs[:] = sorted(d for d in dirs if d not in ignored_dirs)
                for f in files:
                    fp = Path(dirpath) / f
                    rel = f"{root.name}/{relpath(fp, root)}"
                    handles.append(LocalFile(path=fp, relative_path=rel))
        else:
            handles.append(LocalFile(path=p))
    return LooseFiles(files=handles)
