from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class MonofileError(Exception):
    """Base exception for errors in the monofile package."""


@dataclass(frozen=True)
class ConfigError(MonofileError):
    """Raised when a classifier configuration file cannot be used."""

    source: Path
    message: str

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


@dataclass(frozen=True)
class IngestError(MonofileError):
    """Base exception for failures while ingesting a raw input."""


@dataclass(frozen=True)
class ArchiveDecodeError(IngestError):
    """Raised when archive bytes cannot be decompressed or enumerated."""

    archive: str
    reason: str

    def __str__(self) -> str:
        return f"Failed to process ZIP file ({self.archive}): {self.reason}"


@dataclass(frozen=True)
class EmptyResultError(IngestError):
    """Raised when no file survived filtering."""

    message: str = "No valid files found."

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class FileReadError(IngestError):
    """Raised when the content of a single file cannot be materialized."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"Failed to read file {self.path}: {self.reason}"


@dataclass(frozen=True)
class IngestCancelledError(IngestError):
    """Raised at a suspension point once the cancellation token is set."""

    message: str = "Ingestion cancelled."

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class IngestInProgressError(IngestError):
    """Raised when a reader is asked to ingest while a previous call is still running."""

    message: str = "An ingestion is already in progress for this reader."

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class PipelineBusyError(MonofileError):
    """Raised when a pipeline is asked to run while it is already running."""

    message: str = "The pipeline is already processing an input."

    def __str__(self) -> str:
        return self.message
