from __future__ import annotations

import asyncio
import io
import zipfile
from typing import TYPE_CHECKING

from monofile.classifier import Classifier
from monofile.config import FileRecord, RecordKind, RecordSet, split_path
from monofile.exceptions import (
    ArchiveDecodeError,
    EmptyResultError,
    FileReadError,
    IngestCancelledError,
    IngestInProgressError,
)
from monofile.file_manipulation import (
    archive_binary_placeholder,
    decode_text,
    is_env_file,
    loose_binary_placeholder,
    redact_env,
)
from monofile.logging import logger
from monofile.sources import ArchiveBytes, DirectoryForest, DirEntry, FileEntry, LooseFiles, is_archive_name

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from monofile.sources import DirectoryEntry, FileHandle, RawInput

    YieldFn = Callable[[], Awaitable[None]]

LOOSE_BATCH_SIZE = 10
ARCHIVE_BATCH_SIZE = 20


async def yield_to_event_loop() -> None:
    """Let the running event loop service other pending work before resuming."""
    await asyncio.sleep(0)


class CancellationToken:
    """Cooperative cancellation flag checked by the reader at every suspension point."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise IngestCancelledError


def normalize_path(path: str) -> str:
    return "/".join(split_path(path))


class SourceReader:
    """Turn a raw input into a sorted RecordSet.

    The reader runs in a single task and suspends itself every ``loose_batch`` files
    (or ``archive_batch`` archive entries) through ``yield_control``, so that a large
    tree does not starve the host event loop. One reader handles one ingestion at a
    time; per-file read failures of the last run are kept in ``failures``.
    """

    def __init__(
        self,
        classifier: Classifier | None = None,
        *,
        yield_control: YieldFn | None = None,
        loose_batch: int = LOOSE_BATCH_SIZE,
        archive_batch: int = ARCHIVE_BATCH_SIZE,
        redact_env: bool = False,
    ) -> None:
        if loose_batch < 1 or archive_batch < 1:
            msg = "batch sizes must be positive"
            raise ValueError(msg)
        self.classifier = classifier or Classifier()
        self.yield_control = yield_control or yield_to_event_loop
        self.loose_batch = loose_batch
        self.archive_batch = archive_batch
        self.redact_env = redact_env
        self.failures: list[FileReadError] = []
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def ingest(self, source: RawInput, *, cancel_token: CancellationToken | None = None) -> RecordSet:
        """Ingest one raw input.

        Args:
            source (RawInput): loose files, a directory forest, or archive bytes
            cancel_token (CancellationToken | None): optional cooperative cancellation flag

        Raises:
            IngestInProgressError: if this reader is already ingesting
            ArchiveDecodeError: if an archive cannot be opened
            EmptyResultError: if no file survived filtering
            IngestCancelledError: if the token was cancelled during the run

        Returns:
            RecordSet: the records, sorted by path
        """
        if self._in_flight:
            raise IngestInProgressError
        self._in_flight = True
        self.failures = []
        token = cancel_token or CancellationToken()
        records: list[FileRecord] = []
        try:
            match source:
                case LooseFiles(files=files):
                    await self._read_loose(files, records, token)
                case DirectoryForest(roots=roots):
                    await self._read_forest(roots, records, token)
                case ArchiveBytes(data=data, name=name):
                    await self._read_archive(data, name, records, token)
                case _:
                    msg = f"Unsupported input: {type(source).__name__}"
                    raise TypeError(msg)
        finally:
            self._in_flight = False

        if not records:
            raise EmptyResultError
        logger.info("Ingested %d files (%d skipped)", len(records), len(self.failures))
        return RecordSet.of(records)

    async def _suspend(self, counter: int, batch: int, token: CancellationToken) -> None:
        if counter % batch == 0:
            await self.yield_control()
            token.raise_if_cancelled()

    def _skip(self, error: FileReadError) -> None:
        logger.warning("Skipping %s: %s", error.path, error.reason)
        self.failures.append(error)

    def _record_from_handle(self, handle: FileHandle, path: str) -> FileRecord | None:
        if self.classifier.should_ignore(path):
            return None
        if self.classifier.is_binary(path):
            return FileRecord(
                path=path,
                content=loose_binary_placeholder(handle.name, handle.size),
                kind=RecordKind.BINARY_PLACEHOLDER,
                size=handle.size,
            )
        try:
            data = handle.read_bytes()
        except Exception as e:  # noqa: BLE001
            self._skip(FileReadError(path=path, reason=str(e) or type(e).__name__))
            return None
        return FileRecord(path=path, content=self._text_of(path, data), size=len(data))

    def _text_of(self, path: str, data: bytes) -> str:
        text = decode_text(data)
        if self.redact_env and is_env_file(split_path(path)[-1]):
            return redact_env(text)
        return text

    async def _read_loose(
        self,
        files: Sequence[FileHandle],
        records: list[FileRecord],
        token: CancellationToken,
    ) -> None:
        archives: list[FileHandle] = []
        for i, handle in enumerate(files):
            await self._suspend(i, self.loose_batch, token)
            path = normalize_path(handle.relative_path or handle.name)
            if self.classifier.should_ignore(path):
                continue
            # Zips nested under a folder are recorded as binaries, not expanded.
            if is_archive_name(handle.name) and "/" not in path:
                archives.append(handle)
                continue
            record = self._record_from_handle(handle, path)
            if record is not None:
                records.append(record)

        for handle in archives:
            try:
                data = handle.read_bytes()
            except Exception as e:
                raise ArchiveDecodeError(archive=handle.name, reason=str(e)) from e
            await self._read_archive(data, handle.name, records, token)

    async def _read_forest(
        self,
        roots: Sequence[DirectoryEntry],
        records: list[FileRecord],
        token: CancellationToken,
    ) -> None:
        # Explicit stack keeps the depth-first order without recursion limits.
        stack: list[tuple[DirectoryEntry, str]] = [(root, "") for root in reversed(roots)]
        visited = 0
        while stack:
            entry, prefix = stack.pop()
            await self._suspend(visited, self.loose_batch, token)
            visited += 1
            match entry:
                case FileEntry(name=name, file=handle):
                    record = self._record_from_handle(handle, normalize_path(prefix + name))
                    if record is not None:
                        records.append(record)
                case DirEntry(name=name):
                    if self.classifier.is_ignored_dir(name):
                        continue
                    try:
                        children = entry.list_children()
                    except OSError as e:
                        self._skip(FileReadError(path=prefix + name + "/", reason=str(e)))
                        continue
                    child_prefix = prefix + name + "/"
                    stack.extend((child, child_prefix) for child in reversed(children))

    async def _read_archive(
        self,
        data: bytes,
        name: str,
        records: list[FileRecord],
        token: CancellationToken,
    ) -> None:
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
            logger.error("Error unzipping %s: %s", name, e)
            raise ArchiveDecodeError(archive=name, reason=str(e)) from e

        with archive:
            for j, info in enumerate(archive.infolist()):
                await self._suspend(j, self.archive_batch, token)
                if info.is_dir():
                    continue
                path = normalize_path(info.filename)
                if not path or self.classifier.should_ignore(path):
                    continue
                if self.classifier.is_binary(path):
                    records.append(
                        FileRecord(
                            path=path,
                            content=archive_binary_placeholder(path),
                            kind=RecordKind.BINARY_PLACEHOLDER,
                            size=0,
                        ),
                    )
                    continue
                try:
                    raw = archive.read(info)
                except Exception as e:  # noqa: BLE001
                    self._skip(FileReadError(path=path, reason=str(e) or type(e).__name__))
                    continue
                records.append(FileRecord(path=path, content=self._text_of(path, raw), size=info.file_size))
