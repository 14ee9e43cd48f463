from __future__ import annotations

from pathlib import Path

from dotenv import find_dotenv
from pydantic import BaseModel, ConfigDict, Field

ENV_FILE = find_dotenv(usecwd=True)

ENV_CONFIG = "MONOFILE_CONFIG"
ENV_LOG_FILE = "MONOFILE_LOG_FILE"


class Settings(BaseModel):
    """Configuration settings for one monofile run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    inputs: list[Path] = Field(..., min_length=1, description="Files, folders or zip archives.")
    output: Path = Field(..., description="Output file (.md or .jsonl).")
    format: str = Field(default="", description="Force format.")
    log_file: str = Field(default="", description="Log file path.")
    config: str = Field(default="", description="YAML file overriding the classifier tables.")

    ignore_dir: list[str] = Field(
        default_factory=list,
        description="Extra directory names to ignore.",
    )
    include_tree: bool = Field(default=False, description="Add a structure tree to the document.")
    redact_env: bool = Field(default=False, description="Keep only variable names of .env files.")
    include_binary: bool = Field(
        default=False,
        description="Include binary placeholders in jsonl.",
    )
    chunk_chars: int = Field(default=24_000, gt=0, description="Chunk size for jsonl.")
    project_name: str = Field(default="project", description="Fallback project name.")
    stats_json: bool = Field(default=False, description="Print stats as JSON on stdout.")

    def resolved_format(self) -> str:
        """Return the explicit format, or infer it from the output suffix."""
        fmt = (self.format or "").strip().lower()
        if fmt:
            return fmt
        return "jsonl" if self.output.suffix.lower() == ".jsonl" else "md"
