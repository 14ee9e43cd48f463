from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

from monofile.file_manipulation import build_tree_lines, now_iso, split_dir_and_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from datetime import datetime

    from monofile.config import FileRecord

BANNER = "# MONOFILE GENERATED CODEBASE"
HEAVY_RULE = "=" * 80
LIGHT_RULE = "-" * 80
ROOT_MARKER = "(root)"


def flatten(
    records: Iterable[FileRecord],
    *,
    generated_at: datetime | None = None,
    include_tree: bool = False,
    root_name: str = ".",
) -> str:
    """Serialize records into one human-readable document.

    The document starts with a banner, the generation timestamp and the file count.
    Each record then gets a ``PATH`` header (directory segments joined with `` / ``,
    or ``(root)``), a ``FILE`` header with the basename, a fenced block tagged with the
    extension holding the content verbatim, and a separator line.

    Args:
        records (Iterable[FileRecord]): the records, in the order they must appear
            (a RecordSet is already sorted by path)
        generated_at (datetime | None): timestamp to embed; defaults to now
        include_tree (bool): add a ``## Structure`` tree after the preamble
        root_name (str): label of the tree root when ``include_tree`` is set

    Returns:
        str: the flattened document
    """
    recs = list(records)
    out = io.StringIO()
    out.write(f"{BANNER}\n")
    out.write(f"# Generated at: {now_iso(generated_at)}\n")
    out.write(f"# File Count: {len(recs)}\n")
    out.write(f"{HEAVY_RULE}\n\n")

    if include_tree:
        out.write("## Structure\n")
        out.write("```text\n")
        out.write("\n".join(build_tree_lines(root_name, [r.path for r in recs])))
        out.write("\n```\n")

    for rec in recs:
        dirs, filename = split_dir_and_name(rec.path)
        out.write("\n")
        out.write(f"### PATH: {' / '.join(dirs) or ROOT_MARKER}\n")
        out.write(f"## FILE: {filename}\n")
        out.write(f"```{rec.extension}\n")
        out.write(rec.content)
        out.write("\n```\n")
        out.write(f"\n{LIGHT_RULE}\n")

    return out.getvalue()


def chunk_content(text: str, chunk_chars: int) -> Iterator[tuple[int, int, str]]:
    """Chunk a text string into pieces of at most `chunk_chars` characters, splitting on line boundaries.

    Args:
        text (str): the text to chunk
        chunk_chars (int): the maximum number of characters in each chunk

    Yields:
        Iterator[tuple[int, int, str]]: an iterator of tuples containing the start line number,
            end line number, and chunk text for each chunk
    """
    if not text:
        yield (0, 0, "")
        return
    lines = text.splitlines()
    buf: list[str] = []
    cur = 0
    start_line = 1
    for i, ln in enumerate(lines, start=1):
        ln2 = ln + "\n"
        if cur + len(ln2) > chunk_chars and buf:
            yield (start_line, i - 1, "".join(buf))
            buf = []
            cur = 0
            start_line = i
        buf.append(ln2)
        cur += len(ln2)
    if buf:
        yield (start_line, start_line + len(buf) - 1, "".join(buf))


def build_jsonl(
    records: Iterable[FileRecord],
    *,
    chunk_chars: int,
    include_binary: bool = False,
) -> str:
    """Export records as JSON lines, one object per line-bounded chunk.

    Args:
        records (Iterable[FileRecord]): the records to export
        chunk_chars (int): the maximum number of characters per chunk
        include_binary (bool): also emit binary placeholders

    Returns:
        str: the JSONL text
    """
    buf = io.StringIO()
    for rec in records:
        if rec.is_binary and not include_binary:
            continue
        for start, end, chunk in chunk_content(rec.content, chunk_chars=chunk_chars):
            item = {
                "path": rec.path,
                "extension": rec.extension,
                "kind": str(rec.kind),
                "size": rec.size,
                "start_line": start,
                "end_line": end,
                "text": chunk,
            }
            buf.write(json.dumps(item, ensure_ascii=False) + "\n")
    return buf.getvalue()
