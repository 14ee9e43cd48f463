"""
monofile: flatten a project folder or zip archive into one document for an LLM.

Overview
--------
The tool walks the given folders (or zip archives, or loose files), drops noise
such as dependency caches, lockfiles and OS metadata, replaces binaries with short
placeholders, and writes:

1) **Markdown-like text (`--format md`)**: a banner, then one `PATH` / `FILE`
   section with a fenced block per file, ordered by path.
2) **JSONL (`--format jsonl`)**: line-bounded chunks of each file, for RAG pipelines.

Usage
-----
    - Flatten a folder:
        monofile ./my-project --output my-project.md

    - Flatten a zip archive with a structure tree:
        monofile release.zip --output release.md --include-tree

    - Custom ignore tables and a log file:
        monofile . --output out.md --config monofile.yaml --log-file monofile.log
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from pydantic import ValidationError

from monofile import __version__
from monofile.classifier import Classifier
from monofile.config import ClassifierConfig
from monofile.exceptions import ConfigError
from monofile.logging import logger, setup_logging
from monofile.output_construction import build_jsonl
from monofile.pipeline import PipelineResult, PipelineStatus, ProcessingPipeline
from monofile.reader import SourceReader
from monofile.settings import ENV_CONFIG, ENV_FILE, ENV_LOG_FILE, Settings
from monofile.sources import input_from_paths

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser, taking defaults from the environment.

    Returns:
        argparse.ArgumentParser: the parser
    """
    p = argparse.ArgumentParser(
        prog="monofile",
        description="Flatten a codebase (folder, files or zip) into one LLM-ready document.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("inputs", nargs="+", type=Path, help="Folders, files or zip archives.")
    p.add_argument("--output", type=Path, required=True, help="Output file (.md or .jsonl).")
    p.add_argument("--format", type=str, choices=["md", "jsonl"], default="", help="Force format.")
    p.add_argument(
        "--log-file",
        type=str,
        default=os.environ.get(ENV_LOG_FILE, ""),
        help=f"Log file path (env: {ENV_LOG_FILE}).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=os.environ.get(ENV_CONFIG, ""),
        help=f"YAML file overriding the classifier tables (env: {ENV_CONFIG}).",
    )
    p.add_argument(
        "--ignore-dir",
        action="append",
        default=[],
        help="Extra directory name to ignore (repeatable).",
    )
    p.add_argument("--include-tree", action="store_true", help="Add a structure tree to the document.")
    p.add_argument("--redact-env", action="store_true", help="Keep only variable names of .env files.")
    p.add_argument(
        "--include-binary",
        action="store_true",
        help="Include binary placeholders in jsonl.",
    )
    p.add_argument("--chunk-chars", type=int, default=24_000, help="Chunk size for jsonl.")
    p.add_argument("--project-name", type=str, default="project", help="Fallback project name.")
    p.add_argument("--stats-json", action="store_true", help="Print stats as JSON on stdout.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse CLI arguments into settings.

    The nearest ``.env`` file is loaded first so that its ``MONOFILE_*`` variables act
    as defaults.

    Args:
        argv (Sequence[str] | None): Optional CLI args.

    Returns:
        Settings: Parsed settings.
    """
    if ENV_FILE:
        load_dotenv(ENV_FILE, override=False)
    args = build_parser().parse_args(argv)
    return Settings(**vars(args))


def load_classifier(settings: Settings) -> Classifier:
    """Build the classifier from the optional YAML file and ``--ignore-dir`` values.

    Args:
        settings (Settings): the run settings

    Raises:
        ConfigError: if the YAML file is invalid

    Returns:
        Classifier: the classifier to use for this run
    """
    config = ClassifierConfig.from_yaml(Path(settings.config)) if settings.config else ClassifierConfig()
    return Classifier(config.with_extra_ignored_dirs(settings.ignore_dir))


def build_pipeline(settings: Settings, classifier: Classifier) -> ProcessingPipeline:
    reader = SourceReader(classifier, redact_env=settings.redact_env)
    return ProcessingPipeline(
        reader,
        on_log=lambda msg: sys.stderr.write(f"{msg}\n"),
        include_tree=settings.include_tree,
        fallback_name=settings.project_name,
    )


def render(result: PipelineResult, settings: Settings) -> str:
    """Render a completed result in the requested format.

    Args:
        result (PipelineResult): a ``COMPLETE`` result
        settings (Settings): the run settings

    Returns:
        str: the text to write to the output file
    """
    if settings.resolved_format() == "jsonl" and result.records is not None:
        return build_jsonl(
            result.records,
            chunk_chars=settings.chunk_chars,
            include_binary=settings.include_binary,
        )
    return result.document


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except ValidationError as e:
        sys.stderr.write(f"error: {e}\n")
        return 2
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        classifier = load_classifier(settings)
        source = input_from_paths(settings.inputs, classifier.config.ignored_dirs)
    except (ConfigError, FileNotFoundError) as e:
        logger.error("Invalid input: %s", e)
        sys.stderr.write(f"error: {e}\n")
        return 2

    pipeline = build_pipeline(settings, classifier)
    result = asyncio.run(pipeline.run(source))
    if result.status is not PipelineStatus.COMPLETE or result.stats is None:
        message = result.error.message if result.error else "unknown failure"
        sys.stderr.write(f"error: {message}\n")
        return 1

    out_path = settings.output
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(render(result, settings), encoding="utf-8")

    stats = result.stats
    if settings.stats_json:
        sys.stdout.write(json.dumps(stats.model_dump(by_alias=True), ensure_ascii=False) + "\n")
    else:
        print(
            f"Wrote {out_path} format={settings.resolved_format()} project={result.project_name} "
            f"files={stats.total_files} lines={stats.total_lines} bytes={stats.total_size}",
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
