from __future__ import annotations

from typing import TYPE_CHECKING

from monofile.config import ProcessingStats, RecordKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from monofile.config import FileRecord

UNKNOWN_TYPE = "UNKNOWN"


def count_lines(content: str) -> int:
    """Count newline-delimited lines the way a plain split does.

    An empty string counts as one line and a trailing newline adds an empty last line.
    """
    return len(content.split("\n"))


def compute_stats(records: Iterable[FileRecord]) -> ProcessingStats:
    """Compute summary statistics in a single pass over the records.

    Args:
        records (Iterable[FileRecord]): the record set (or any iterable of records)

    Returns:
        ProcessingStats: file, line and byte totals plus an extension histogram.
            Binary placeholders count as files and bytes but not as lines.
    """
    total_files = 0
    total_lines = 0
    total_size = 0
    file_types: dict[str, int] = {}
    for rec in records:
        total_files += 1
        total_size += rec.size
        if rec.kind is RecordKind.TEXT:
            total_lines += count_lines(rec.content)
        key = rec.extension.upper() or UNKNOWN_TYPE
        file_types[key] = file_types.get(key, 0) + 1
    return ProcessingStats(
        total_files=total_files,
        total_lines=total_lines,
        total_size=total_size,
        file_types=file_types,
    )
