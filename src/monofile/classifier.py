from __future__ import annotations

from monofile.config import ClassifierConfig, extension_of, split_path


class Classifier:
    """Decide which paths are noise and which files hold binary content.

    Both checks are pure functions of the ``ClassifierConfig`` given at construction,
    so tests can substitute custom tables without touching shared state.
    """

    def __init__(self, config: ClassifierConfig | None = None) -> None:
        self.config = config or ClassifierConfig()

    def should_ignore(self, path: str) -> bool:
        """Check whether a relative path must be left out of the ingestion.

        A path is ignored when any of its segments is an ignored directory, when its
        basename is an ignored file, or when its basename is a dotfile outside the
        allow-list. Banned dotfiles stay ignored even if allow-listed.

        Args:
            path (str): the relative path, with ``/`` or ``\\`` separators

        Returns:
            bool: True if the path should be skipped, False otherwise
        """
        parts = split_path(path)
        if not parts:
            return True
        cfg = self.config
        if any(part in cfg.ignored_dirs for part in parts):
            return True
        filename = parts[-1]
        if filename in cfg.ignored_files:
            return True
        if filename.startswith("."):
            if filename in cfg.banned_dotfiles:
                return True
            return filename not in cfg.allowed_dotfiles
        return False

    def is_ignored_dir(self, name: str) -> bool:
        """Check whether a directory name prunes its whole subtree."""
        return name in self.config.ignored_dirs

    def is_binary(self, filename: str) -> bool:
        """Check whether a file should be replaced by a binary placeholder.

        Unknown extensions are treated as text: decoding too much is better than
        silently dropping content.

        Args:
            filename (str): a file name or relative path

        Returns:
            bool: True only for extensions in the binary list and not in the text list
        """
        ext = extension_of(filename)
        if not ext:
            return False
        if ext in self.config.text_extensions:
            return False
        return ext in self.config.binary_extensions
