from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from monofile.sources import (
    ArchiveBytes,
    DirectoryForest,
    DirEntry,
    FileEntry,
    LocalFile,
    LooseFiles,
    MemoryFile,
    entry_from_path,
    input_from_paths,
    is_archive_name,
)


def make_project(root: Path) -> Path:
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
    (root / "README.md").write_text("# Demo\n", encoding="utf-8")
    return root


@pytest.mark.unit
def test_memory_file_exposes_size_and_bytes() -> None:
    handle = MemoryFile(name="a.txt", data=b"abc", relative_path="x/a.txt")

    assert handle.size == 3
    assert handle.read_bytes() == b"abc"
    assert handle.relative_path == "x/a.txt"


@pytest.mark.unit
def test_local_file_reports_missing_file_as_empty(tmp_path: Path) -> None:
    handle = LocalFile(path=tmp_path / "gone.bin")

    assert handle.name == "gone.bin"
    assert handle.size == 0


@pytest.mark.unit
def test_dir_entry_lists_static_or_lazy_children() -> None:
    leaf = FileEntry(name="a.py", file=MemoryFile(name="a.py", data=b""))

    assert DirEntry(name="static", children=[leaf]).list_children() == [leaf]
    assert DirEntry(name="lazy", children=lambda: iter([leaf])).list_children() == [leaf]
    assert DirEntry(name="empty").list_children() == []


@pytest.mark.unit
def test_entry_from_path_builds_lazy_tree(tmp_path: Path) -> None:
    root = make_project(tmp_path / "demo")

    entry = entry_from_path(root)

    assert isinstance(entry, DirEntry)
    assert entry.name == "demo"
    children = {child.name: child for child in entry.list_children()}
    assert set(children) == {"src", "README.md"}
    assert isinstance(children["src"], DirEntry)
    assert isinstance(children["README.md"], FileEntry)


@pytest.mark.unit
def test_entry_from_path_for_a_file(tmp_path: Path) -> None:
    target = tmp_path / "one.py"
    target.write_text("x = 1\n", encoding="utf-8")

    entry = entry_from_path(target)

    assert isinstance(entry, FileEntry)
    assert entry.file.read_bytes() == b"x = 1\n"


@pytest.mark.unit
def test_input_from_paths_prefers_directory_forest(tmp_path: Path) -> None:
    first = make_project(tmp_path / "one")
    second = make_project(tmp_path / "two")

    source = input_from_paths([first, second])

    assert isinstance(source, DirectoryForest)
    assert [root.name for root in source.roots] == ["one", "two"]


@pytest.mark.unit
def test_input_from_paths_reads_single_archive(tmp_path: Path) -> None:
    archive = tmp_path / "bundle.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("a.py", "print(1)\n")

    source = input_from_paths([archive])

    assert isinstance(source, ArchiveBytes)
    assert source.name == "bundle.zip"
    assert source.data == archive.read_bytes()


@pytest.mark.unit
def test_input_from_paths_mixes_files_and_directories(tmp_path: Path) -> None:
    root = make_project(tmp_path / "demo")
    loose = tmp_path / "notes.txt"
    loose.write_text("hello", encoding="utf-8")

    source = input_from_paths([root, loose])

    assert isinstance(source, LooseFiles)
    hints = sorted(handle.relative_path or handle.name for handle in source.files)
    assert hints == ["demo/README.md", "demo/src/app.py", "notes.txt"]


@pytest.mark.unit
def test_input_from_paths_rejects_missing_path(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="No such file or directory"):
        input_from_paths([tmp_path / "missing"])


@pytest.mark.unit
@pytest.mark.parametrize(("name", "expected"), [("a.zip", True), ("A.ZIP", True), ("a.zip.txt", False)])
def test_is_archive_name(name: str, expected: bool) -> None:
    assert is_archive_name(name) is expected


@pytest.mark.unit
def test_input_from_paths_does_not_walk_ignored_dirs(tmp_path: Path) -> None:
    root = make_project(tmp_path / "demo")
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "node_modules" / "pkg" / "index.js").write_text("1", encoding="utf-8")
    (root / "generated").mkdir()
    (root / "generated" / "out.py").write_text("x = 1\n", encoding="utf-8")
    loose = tmp_path / "notes.txt"
    loose.write_text("hello", encoding="utf-8")

    default = input_from_paths([root, loose])
    custom = input_from_paths([root, loose], ignored_dirs={"generated"})

    assert isinstance(default, LooseFiles)
    assert isinstance(custom, LooseFiles)
    assert sorted(h.relative_path or h.name for h in default.files) == [
        "demo/README.md",
        "demo/generated/out.py",
        "demo/src/app.py",
        "notes.txt",
    ]
    assert sorted(h.relative_path or h.name for h in custom.files) == [
        "demo/README.md",
        "demo/node_modules/pkg/index.js",
        "demo/src/app.py",
        "notes.txt",
    ]
