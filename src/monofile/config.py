from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator
from pydantic.alias_generators import to_camel

from monofile.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

BINARY_MARKER = "[INGESTED BINARY"

IGNORED_DIRS = frozenset(
    {
        ".git",
        "node_modules",
        "dist",
        "build",
        ".next",
        "coverage",
        "__pycache__",
        ".gradle",
        ".idea",
        "vendor",
        "Pods",
        "target",
        "venv",
        ".venv",
        ".vscode",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".tox",
    },
)

IGNORED_FILES = frozenset(
    {
        ".DS_Store",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "thumbs.db",
        "Thumbs.db",
        "poetry.lock",
        "uv.lock",
        "Cargo.lock",
        "composer.lock",
    },
)

ALLOWED_DOTFILES = frozenset(
    {
        ".env",
        ".env.local",
        ".env.example",
        ".env.development",
        ".env.production",
        ".env.test",
        ".gitignore",
        ".gitattributes",
        ".dockerignore",
        ".editorconfig",
        ".babelrc",
        ".eslintrc",
        ".eslintrc.json",
        ".eslintrc.js",
        ".prettierrc",
        ".prettierrc.json",
        ".npmrc",
        ".nvmrc",
        ".flake8",
        ".pylintrc",
        ".pre-commit-config.yaml",
    },
)

# Banned even when they would otherwise look like meaningful config.
BANNED_DOTFILES = frozenset({".DS_Store", ".gitkeep", ".git"})

TEXT_EXTENSIONS = frozenset(
    {
        "html", "css", "js", "mjs", "cjs", "ts", "tsx", "jsx", "json", "yaml", "yml", "xml",
        "md", "txt", "py", "rb", "php", "go", "rs", "java", "kt", "c", "cpp", "h", "hpp",
        "cs", "sh", "bash", "sol", "wasm", "abi", "contract", "dockerfile", "gradle",
        "properties", "toml", "env", "local", "dart", "swift", "m", "cmake", "makefile",
        "proto", "gitignore", "dockerignore", "editorconfig", "npmrc", "prettierrc",
        "eslintrc", "babelrc", "lock", "config", "rc",
    },
)  # fmt: skip

BINARY_EXTENSIONS = frozenset(
    {
        "apk", "aab", "ipa", "exe", "msi", "app", "dmg", "pkg", "deb", "rpm", "appimage",
        "png", "jpg", "jpeg", "gif", "ico", "pdf", "zip", "tar", "gz", "jar", "war", "node",
        "whl", "pb", "tflite", "bin", "dll", "so", "dylib", "wav", "mp3", "mp4", "mov", "pyc",
    },
)  # fmt: skip

_TABLE_KEYS = (
    "ignored_dirs",
    "ignored_files",
    "allowed_dotfiles",
    "banned_dotfiles",
    "text_extensions",
    "binary_extensions",
)


class RecordKind(StrEnum):
    """What the ``content`` of a FileRecord holds."""

    TEXT = auto()
    BINARY_PLACEHOLDER = auto()


def split_path(path: str) -> list[str]:
    """Split a path on both separators, keeping empty segments out.

    Args:
        path (str): a posix or windows style relative path

    Returns:
        list[str]: the path segments, in order
    """
    return [part for part in path.replace("\\", "/").split("/") if part]


def extension_of(name: str) -> str:
    """Return the lowercase suffix after the last dot of ``name``, or ``""``."""
    parts = split_path(name)
    base = parts[-1] if parts else name
    if "." not in base:
        return ""
    return base.rsplit(".", 1)[1].lower()


class FileRecord(BaseModel):
    """One ingested file.

    Attributes:
        path: Posix-style path relative to the ingested root.
        content: Full text, or a binary placeholder starting with ``BINARY_MARKER``.
        kind: Whether ``content`` is real text or a placeholder.
        size: Byte count, best effort (0 is valid for unknown sizes).
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Relative posix path")
    content: str = Field(..., description="Text content or binary placeholder")
    kind: RecordKind = Field(default=RecordKind.TEXT, description="Content kind")
    size: int = Field(default=0, ge=0, description="Size in bytes")

    @computed_field
    @property
    def name(self) -> str:
        """Basename of the record path."""
        parts = split_path(self.path)
        return parts[-1] if parts else self.path

    @computed_field
    @property
    def extension(self) -> str:
        """Lowercase extension of the basename, empty when there is none."""
        return extension_of(self.name)

    @property
    def is_binary(self) -> bool:
        return self.kind is RecordKind.BINARY_PLACEHOLDER


class RecordSet(BaseModel):
    """File records ordered by path (ordinal comparison, stable for duplicates)."""

    model_config = ConfigDict(frozen=True)

    records: tuple[FileRecord, ...] = ()

    @field_validator("records")
    @classmethod
    def _sort_by_path(cls, value: tuple[FileRecord, ...]) -> tuple[FileRecord, ...]:
        return tuple(sorted(value, key=lambda rec: rec.path))

    @classmethod
    def of(cls, records: Sequence[FileRecord]) -> Self:
        return cls(records=tuple(records))

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[FileRecord]:  # type: ignore[override]
        return iter(self.records)

    def __getitem__(self, index: int) -> FileRecord:
        return self.records[index]

    def paths(self) -> list[str]:
        return [rec.path for rec in self.records]


class ProcessingStats(BaseModel):
    """Summary statistics over a RecordSet.

    Dumped with ``by_alias=True`` the keys follow the camelCase shape consumed by
    downstream collaborators (``totalFiles``, ``totalLines``, ...).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_files: int = Field(default=0, ge=0)
    total_lines: int = Field(default=0, ge=0)
    total_size: int = Field(default=0, ge=0)
    file_types: dict[str, int] = Field(default_factory=dict)


class ClassifierConfig(BaseModel):
    """Static tables driving the Classifier.

    The defaults ship a sane list; every table can be replaced or extended, either in
    code or from a YAML file (see ``from_yaml``).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ignored_dirs: frozenset[str] = IGNORED_DIRS
    ignored_files: frozenset[str] = IGNORED_FILES
    allowed_dotfiles: frozenset[str] = ALLOWED_DOTFILES
    banned_dotfiles: frozenset[str] = BANNED_DOTFILES
    text_extensions: frozenset[str] = TEXT_EXTENSIONS
    binary_extensions: frozenset[str] = BINARY_EXTENSIONS

    @field_validator("text_extensions", "binary_extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(v).strip().lstrip(".").lower() for v in value if str(v).strip())
        return value

    def with_extra_ignored_dirs(self, names: Sequence[str]) -> ClassifierConfig:
        """Return a copy that also ignores the given directory names."""
        extra = {n.strip().strip("/\\") for n in names if n.strip()}
        if not extra:
            return self
        return self.model_copy(update={"ignored_dirs": self.ignored_dirs | extra})

    @classmethod
    def from_mapping(cls, data: dict[str, Any], *, source: Path) -> ClassifierConfig:
        """Build a config from a mapping of overrides.

        A table key (e.g. ``ignored_dirs``) replaces the default table, the same key
        prefixed with ``extra_`` extends it.

        Args:
            data (dict[str, Any]): the overrides
            source (Path): where the overrides come from, for error messages

        Raises:
            ConfigError: if a key is unknown or a value is not a list of strings

        Returns:
            ClassifierConfig: the resulting configuration
        """
        defaults = cls()
        values: dict[str, Any] = {}
        for key, raw in data.items():
            table = key.removeprefix("extra_")
            if table not in _TABLE_KEYS:
                raise ConfigError(source=source, message=f"unknown key {key!r}")
            if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
                raise ConfigError(source=source, message=f"{key!r} must be a list of strings")
            if key.startswith("extra_"):
                base = values.get(table, getattr(defaults, table))
                values[table] = [*base, *raw]
            else:
                values[table] = raw
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigError(source=source, message=str(e)) from e

    @classmethod
    def from_yaml(cls, path: Path) -> ClassifierConfig:
        """Load classifier overrides from a YAML file.

        Args:
            path (Path): the YAML file to read

        Raises:
            ConfigError: if the file cannot be parsed or holds invalid overrides

        Returns:
            ClassifierConfig: the configuration with the overrides applied
        """
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(source=path, message=str(e)) from e
        if not isinstance(data, dict):
            raise ConfigError(source=path, message="top level must be a mapping")
        return cls.from_mapping(data, source=path)
