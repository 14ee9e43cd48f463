from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from monofile.settings import Settings


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings(inputs=[Path()], output=Path("out.md"))

    assert settings.output == Path("out.md")
    assert not settings.format
    assert settings.ignore_dir == []
    assert settings.include_tree is False
    assert settings.redact_env is False
    assert settings.chunk_chars == 24_000
    assert settings.project_name == "project"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("output", "fmt", "expected"),
    [
        ("out.md", "", "md"),
        ("out.jsonl", "", "jsonl"),
        ("OUT.JSONL", "", "jsonl"),
        ("out.txt", "", "md"),
        ("out.md", "jsonl", "jsonl"),
        ("out.jsonl", " MD ", "md"),
    ],
)
def test_resolved_format(output: str, fmt: str, expected: str) -> None:
    settings = Settings(inputs=[Path()], output=Path(output), format=fmt)

    assert settings.resolved_format() == expected


@pytest.mark.unit
def test_settings_require_an_input() -> None:
    with pytest.raises(ValidationError):
        Settings(inputs=[], output=Path("out.md"))


@pytest.mark.unit
def test_settings_reject_non_positive_chunk_size() -> None:
    with pytest.raises(ValidationError):
        Settings(inputs=[Path()], output=Path("out.md"), chunk_chars=0)
