from __future__ import annotations

from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from monofile import cli
from monofile.sources import LooseFiles, MemoryFile


@pytest.mark.integration
def test_main_feeds_the_selected_input_to_the_pipeline(
    tmp_path: Path,
    mocker: MockerFixture,
) -> None:
    source = LooseFiles(
        files=[
            MemoryFile(name="app.py", data=b"print('hi')\n", relative_path="svc/app.py"),
            MemoryFile(name="logo.png", data=b"\x89PNG" + b"\x00" * 6, relative_path="svc/logo.png"),
        ],
    )
    from_paths = mocker.patch.object(cli, "input_from_paths", return_value=source)
    output = tmp_path / "out.md"

    exit_code = cli.main(["anything", "--output", str(output)])

    assert exit_code == 0
    from_paths.assert_called_once()
    assert from_paths.call_args.args[0] == [Path("anything")]
    text = output.read_text(encoding="utf-8")
    assert "## FILE: app.py" in text
    assert "[INGESTED BINARY METADATA: logo.png | Size: 10 bytes]" in text


@pytest.mark.integration
def test_main_configures_log_file(tmp_path: Path, mocker: MockerFixture) -> None:
    setup = mocker.patch.object(cli, "setup_logging")
    (tmp_path / "a.py").write_text("x = 1\n", encoding="utf-8")
    log_file = tmp_path / "run.log"

    exit_code = cli.main([str(tmp_path / "a.py"), "--output", str(tmp_path / "out.md"), "--log-file", str(log_file)])

    assert exit_code == 0
    setup.assert_called_once_with(str(log_file))


@pytest.mark.integration
def test_main_redacts_env_files(tmp_path: Path) -> None:
    root = tmp_path / "svc"
    root.mkdir()
    (root / ".env").write_text("API_KEY=secret\nDEBUG=1\n", encoding="utf-8")
    (root / "main.py").write_text("import os\n", encoding="utf-8")
    output = tmp_path / "out.md"

    exit_code = cli.main([str(root), "--output", str(output), "--redact-env"])

    assert exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert "## FILE: .env\n```env\nAPI_KEY\nDEBUG\n```" in text
    assert "secret" not in text


@pytest.mark.integration
def test_main_includes_structure_tree(tmp_path: Path) -> None:
    root = tmp_path / "svc"
    (root / "pkg").mkdir(parents=True)
    (root / "pkg" / "mod.py").write_text("pass\n", encoding="utf-8")
    output = tmp_path / "out.md"

    exit_code = cli.main([str(root), "--output", str(output), "--include-tree"])

    assert exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert "## Structure\n```text\n.\n└── svc/\n    └── pkg/\n        └── mod.py\n```\n" in text


@pytest.mark.integration
def test_main_passes_extra_ignored_dirs_to_the_walk(tmp_path: Path, mocker: MockerFixture) -> None:
    from_paths = mocker.patch.object(cli, "input_from_paths", wraps=cli.input_from_paths)
    root = tmp_path / "svc"
    (root / "generated").mkdir(parents=True)
    (root / "generated" / "big.py").write_text("x = 1\n", encoding="utf-8")
    (root / "main.py").write_text("pass\n", encoding="utf-8")
    notes = tmp_path / "notes.txt"
    notes.write_text("hi\n", encoding="utf-8")
    output = tmp_path / "out.md"

    exit_code = cli.main([str(root), str(notes), "--output", str(output), "--ignore-dir", "generated"])

    assert exit_code == 0
    ignored = from_paths.call_args.args[1]
    assert "generated" in ignored
    assert "node_modules" in ignored
    assert "big.py" not in output.read_text(encoding="utf-8")
