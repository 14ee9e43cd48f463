from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from monofile.config import BINARY_MARKER, split_path

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return str(path.relative_to(root)).replace("\\", "/")
    except ValueError:
        return str(path).replace("\\", "/")


def split_dir_and_name(path: str) -> tuple[list[str], str]:
    """Split a record path into its directory segments and its basename.

    Args:
        path (str): a relative path such as ``src/app/main.py``

    Returns:
        tuple[list[str], str]: ``(["src", "app"], "main.py")``
    """
    parts = split_path(path)
    if not parts:
        return [], path
    return parts[:-1], parts[-1]


def decode_text(data: bytes) -> str:
    """Decode bytes as UTF-8, replacing invalid sequences.

    A leading byte order mark is dropped so it does not leak into the document.
    """
    return data.decode("utf-8-sig", errors="replace")


def loose_binary_placeholder(name: str, size: int) -> str:
    return f"{BINARY_MARKER} METADATA: {name} | Size: {size} bytes]"


def archive_binary_placeholder(entry_path: str) -> str:
    return f"{BINARY_MARKER} IN ZIP: {entry_path}]"


def is_env_file(name: str) -> bool:
    return name == ".env" or name.startswith(".env.")


def redact_env(text: str) -> str:
    """Redact environment variable values from the text of a ``.env`` file.

    Only the variable names (keys) are kept, sorted case-insensitively. Lines that are
    empty, start with ``#``, or do not contain ``=`` are ignored; an ``export`` prefix
    is dropped.

    Args:
        text (str): the raw content of the file

    Returns:
        str: the redacted content, one variable name per line
    """
    keys: list[str] = []
    for ln in text.splitlines():
        s = ln.strip()
        if not s or s.startswith("#") or "=" not in s:
            continue
        k = s.split("=", 1)[0].strip().removeprefix("export ").strip()
        if k:
            keys.append(k)
    keys = sorted(set(keys), key=str.lower)
    return "\n".join(keys)


def build_tree_lines(root_name: str, rel_paths: Sequence[str]) -> list[str]:
    """Build a visual tree representation of file paths.

    Directories come before files at each level; both are ordered by ordinal comparison,
    matching the order of the flattened sections.

    Args:
        root_name (str): the name to use for the root of the tree
        rel_paths (Sequence[str]): the list of file paths relative to the root, using POSIX separators (e.g. "src/main.py")

    Returns:
        list[str]: a list of strings representing the tree structure, suitable for printing
    """
    tree: dict[str, Any] = {}
    for rp in sorted({"/".join(split_path(p)) for p in rel_paths if split_path(p)}):
        cur = tree
        parts = rp.split("/")
        for i, part in enumerate(parts):
            if i == len(parts) - 1:
                cur.setdefault("__files__", set()).add(part)
            else:
                cur = cur.setdefault(part, {})

    lines: list[str] = [root_name]

    def walk(node: dict[str, Any], prefix: str) -> None:
        dirs = sorted(k for k in node if k != "__files__")
        files = sorted(node.get("__files__", set()))
        entries: list[tuple[str, str, Any]] = []
        entries.extend(("dir", d, node[d]) for d in dirs)
        entries.extend(("file", f, None) for f in files)
        for idx, (kind, name, child) in enumerate(entries):
            last = idx == len(entries) - 1
            branch = "└── " if last else "├── "
            lines.append(prefix + branch + name + ("/" if kind == "dir" else ""))
            if kind == "dir":
                ext = "    " if last else "│   "
                walk(child, prefix + ext)

    walk(tree, "")
    return lines


def now_iso(moment: datetime | None = None) -> str:
    """Format a moment as an ISO 8601 UTC timestamp with millisecond precision.

    Args:
        moment (datetime | None): the moment to format; defaults to now

    Returns:
        str: a timestamp such as ``2024-05-01T12:30:00.000Z``
    """
    moment = moment or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
