from __future__ import annotations

import asyncio
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ConfigDict, Field

from monofile.config import ProcessingStats, RecordSet, split_path
from monofile.exceptions import (
    ArchiveDecodeError,
    EmptyResultError,
    IngestCancelledError,
    PipelineBusyError,
)
from monofile.logging import logger
from monofile.output_construction import flatten
from monofile.reader import SourceReader
from monofile.stats import compute_stats

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from monofile.reader import CancellationToken
    from monofile.sources import RawInput

    LogFn = Callable[[str], None]


class PipelineStatus(StrEnum):
    IDLE = auto()
    READING = auto()
    AGGREGATING = auto()
    COMPLETE = auto()
    ERROR = auto()


class ErrorKind(StrEnum):
    ARCHIVE_DECODE = auto()
    EMPTY_RESULT = auto()
    CANCELLED = auto()
    UNEXPECTED = auto()


class PipelineError(BaseModel):
    """What went wrong, with a message a host can show as is."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str


class PipelineResult(BaseModel):
    """Terminal outcome of one pipeline run.

    On ``COMPLETE`` the records, stats and document are set; on ``ERROR`` only
    ``error`` is. ``skipped`` lists the paths whose content could not be read; they
    never turn a run into an error. ``enrichment`` / ``enrichment_error`` hold the
    outcome of the optional enrichment step.
    """

    model_config = ConfigDict(frozen=True)

    status: PipelineStatus
    project_name: str = ""
    records: RecordSet | None = None
    stats: ProcessingStats | None = None
    document: str = ""
    skipped: list[str] = Field(default_factory=list)
    error: PipelineError | None = None
    enrichment: str | None = None
    enrichment_error: str | None = None


class Enricher(Protocol):
    """Downstream consumer of a completed run (e.g. a remote summarizer)."""

    async def enrich(self, document: str, records: RecordSet, stats: ProcessingStats) -> str: ...


def derive_project_name(records: RecordSet, fallback: str) -> str:
    """Name a project after the top-level folder of its first record.

    Args:
        records (RecordSet): the ingested records
        fallback (str): name used when the first record sits at the root

    Returns:
        str: the project name
    """
    if not len(records):
        return fallback
    parts = split_path(records[0].path)
    return parts[0] if len(parts) > 1 else fallback


def describe_error(exc: Exception) -> PipelineError:
    """Map an ingestion failure to a kind and a user-facing message."""
    match exc:
        case ArchiveDecodeError():
            return PipelineError(kind=ErrorKind.ARCHIVE_DECODE, message=str(exc))
        case EmptyResultError():
            return PipelineError(kind=ErrorKind.EMPTY_RESULT, message=str(exc))
        case IngestCancelledError():
            return PipelineError(kind=ErrorKind.CANCELLED, message=str(exc))
        case _:
            return PipelineError(kind=ErrorKind.UNEXPECTED, message=f"Unexpected error: {exc}")


class ProcessingPipeline:
    """Sequence reading, aggregation and flattening for one input at a time.

    States go ``IDLE -> READING -> AGGREGATING -> COMPLETE``; any failure while
    reading moves to ``ERROR``. Each transition emits a progress line through
    ``on_log`` (and the package logger).
    """

    def __init__(
        self,
        reader: SourceReader | None = None,
        *,
        on_log: LogFn | None = None,
        enricher: Enricher | None = None,
        include_tree: bool = False,
        fallback_name: str = "project",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.reader = reader or SourceReader()
        self.on_log = on_log
        self.enricher = enricher
        self.include_tree = include_tree
        self.fallback_name = fallback_name
        self.clock = clock
        self._status = PipelineStatus.IDLE
        self._running = False

    @property
    def status(self) -> PipelineStatus:
        return self._status

    def _emit(self, message: str) -> None:
        logger.info(message)
        if self.on_log is not None:
            self.on_log(message)

    def _transition(self, status: PipelineStatus) -> None:
        logger.debug("pipeline %s -> %s", self._status, status)
        self._status = status

    async def run(self, source: RawInput, *, cancel_token: CancellationToken | None = None) -> PipelineResult:
        """Ingest ``source`` and produce the stats and flattened document.

        Args:
            source (RawInput): the raw input to process
            cancel_token (CancellationToken | None): optional cooperative cancellation flag

        Raises:
            PipelineBusyError: if a previous run (enrichment included) has not finished

        Returns:
            PipelineResult: a ``COMPLETE`` or ``ERROR`` result
        """
        if self._running:
            raise PipelineBusyError
        self._running = True
        try:
            return await self._run(source, cancel_token)
        finally:
            self._running = False

    async def _run(self, source: RawInput, cancel_token: CancellationToken | None) -> PipelineResult:
        self._transition(PipelineStatus.READING)
        self._emit("Initializing codebase ingestion...")
        try:
            records = await self.reader.ingest(source, cancel_token=cancel_token)
        except asyncio.CancelledError:
            self._emit("FATAL: Ingestion cancelled.")
            self._transition(PipelineStatus.ERROR)
            raise
        except Exception as e:
            error = describe_error(e)
            self._emit(f"FATAL: {error.message}")
            self._transition(PipelineStatus.ERROR)
            return PipelineResult(status=PipelineStatus.ERROR, error=error)

        skipped = [failure.path for failure in self.reader.failures]
        self._transition(PipelineStatus.AGGREGATING)
        self._emit(f"Indexing {len(records)} nodes...")
        if skipped:
            self._emit(f"Skipped {len(skipped)} unreadable files")
        project_name = derive_project_name(records, self.fallback_name)
        stats = compute_stats(records)
        self._emit("Generating blueprint...")
        document = flatten(
            records,
            generated_at=self.clock() if self.clock else None,
            include_tree=self.include_tree,
        )
        self._transition(PipelineStatus.COMPLETE)
        self._emit("Blueprint ready.")

        enrichment, enrichment_error = await self._enrich(document, records, stats)
        return PipelineResult(
            status=PipelineStatus.COMPLETE,
            project_name=project_name,
            records=records,
            stats=stats,
            document=document,
            skipped=skipped,
            enrichment=enrichment,
            enrichment_error=enrichment_error,
        )

    async def _enrich(
        self,
        document: str,
        records: RecordSet,
        stats: ProcessingStats,
    ) -> tuple[str | None, str | None]:
        if self.enricher is None:
            return None, None
        self._emit("Running enrichment...")
        try:
            text = await self.enricher.enrich(document, records, stats)
        except Exception as e:  # noqa: BLE001
            self._emit(f"! Enrichment Error: {e}")
            return None, str(e) or type(e).__name__
        self._emit("Enrichment successful.")
        return text, None
