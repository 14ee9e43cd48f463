from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from monofile.config import FileRecord, RecordKind, RecordSet
from monofile.output_construction import build_jsonl, chunk_content, flatten

GENERATED_AT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)


def sample_records() -> RecordSet:
    return RecordSet.of(
        [
            FileRecord(path="src/app/main.py", content="print('ok')", size=11),
            FileRecord(path="README.md", content="# Demo\n", size=7),
            FileRecord(
                path="assets/logo.png",
                content="[INGESTED BINARY METADATA: logo.png | Size: 5 bytes]",
                kind=RecordKind.BINARY_PLACEHOLDER,
                size=5,
            ),
        ],
    )


@pytest.mark.unit
def test_flatten_renders_exact_layout_for_one_record() -> None:
    records = RecordSet.of([FileRecord(path="src/a.py", content="print(1)")])

    output = flatten(records, generated_at=GENERATED_AT)

    assert output == (
        "# MONOFILE GENERATED CODEBASE\n"
        "# Generated at: 2024-01-02T03:04:05.000Z\n"
        "# File Count: 1\n"
        f"{'=' * 80}\n\n"
        "\n"
        "### PATH: src\n"
        "## FILE: a.py\n"
        "```py\n"
        "print(1)\n"
        "```\n"
        f"\n{'-' * 80}\n"
    )


@pytest.mark.unit
def test_flatten_uses_root_marker_and_joined_segments() -> None:
    output = flatten(sample_records(), generated_at=GENERATED_AT)

    assert "### PATH: (root)\n## FILE: README.md\n```md\n# Demo\n\n```" in output
    assert "### PATH: src / app\n## FILE: main.py\n```py\nprint('ok')\n```" in output
    assert "```png\n[INGESTED BINARY METADATA: logo.png | Size: 5 bytes]\n```" in output
    assert "# File Count: 3\n" in output


@pytest.mark.unit
def test_flatten_follows_record_set_order() -> None:
    output = flatten(sample_records(), generated_at=GENERATED_AT)

    assert output.index("README.md") < output.index("logo.png") < output.index("main.py")


@pytest.mark.unit
def test_flatten_is_deterministic_apart_from_timestamp() -> None:
    records = sample_records()

    first = flatten(records)
    second = flatten(records)

    def strip_timestamp(text: str) -> list[str]:
        return [ln for ln in text.splitlines() if not ln.startswith("# Generated at:")]

    assert strip_timestamp(first) == strip_timestamp(second)
    assert flatten(records, generated_at=GENERATED_AT) == flatten(records, generated_at=GENERATED_AT)


@pytest.mark.unit
def test_flatten_can_include_structure_tree() -> None:
    output = flatten(sample_records(), generated_at=GENERATED_AT, include_tree=True, root_name="demo")

    assert "## Structure\n```text\ndemo\n" in output
    assert "├── assets/" in output
    assert "│   └── logo.png" in output
    assert "└── README.md" in output


@pytest.mark.unit
def test_chunk_content_handles_empty_text() -> None:
    chunks = list(chunk_content("", chunk_chars=10))

    assert chunks == [(0, 0, "")]


@pytest.mark.unit
def test_chunk_content_splits_on_lines() -> None:
    text = "a\nbb\nccc\n"

    chunks = list(chunk_content(text, chunk_chars=4))

    assert chunks == [
        (1, 1, "a\n"),
        (2, 2, "bb\n"),
        (3, 3, "ccc\n"),
    ]


@pytest.mark.unit
def test_build_jsonl_skips_binary_placeholders_by_default() -> None:
    lines = build_jsonl(sample_records(), chunk_chars=1_000).splitlines()

    items = [json.loads(ln) for ln in lines]
    assert [i["path"] for i in items] == ["README.md", "src/app/main.py"]
    assert items[1]["text"] == "print('ok')\n"
    assert items[1]["kind"] == "text"
    assert items[1]["extension"] == "py"


@pytest.mark.unit
def test_build_jsonl_can_include_binary_placeholders() -> None:
    lines = build_jsonl(sample_records(), chunk_chars=1_000, include_binary=True).splitlines()

    kinds = [json.loads(ln)["kind"] for ln in lines]
    assert kinds == ["text", "binary_placeholder", "text"]
