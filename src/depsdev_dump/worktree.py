"""
Project tree access.

A worktree is anything with ``read_text_file(path) -> str``. The command
surface receives one from its host; ``LocalWorktree`` is the filesystem
implementation used by the CLI and the tests.
"""

from pathlib import Path
from typing import Optional

from .cli_config import SecurityConfig
from .error_handling import ManifestUnavailableError


class LocalWorktree:
    """Read-only view of a project directory on disk."""

    def __init__(self, root: str, security: Optional[SecurityConfig] = None):
        self.root = Path(root).resolve()
        self.security = security or SecurityConfig()

    def __repr__(self) -> str:
        return f"LocalWorktree({str(self.root)!r})"

    def _validate_file_path(self, relative_path: str) -> Path:
        """
        Resolve a path inside the worktree and check it can be read.

        Args:
            relative_path: Path relative to the worktree root

        Returns:
            Path: Validated and resolved path object

        Raises:
            ManifestUnavailableError: If the path is unsafe, missing or too large
        """
        if not relative_path or not isinstance(relative_path, str):
            raise ManifestUnavailableError("File path must be a non-empty string")

        try:
            path = (self.root / relative_path).resolve()
        except (OSError, ValueError) as e:
            raise ManifestUnavailableError(f"Invalid file path: {e}")

        if self.root != path and self.root not in path.parents:
            raise ManifestUnavailableError(f"Path escapes the worktree: {relative_path}")

        if not path.exists():
            raise ManifestUnavailableError(f"File does not exist: {path}")

        if not path.is_file():
            raise ManifestUnavailableError(f"Path is not a file: {path}")

        try:
            file_size = path.stat().st_size
        except OSError as e:
            raise ManifestUnavailableError(f"Cannot access file: {e}")

        max_size = self.security.max_manifest_size_bytes
        if file_size > max_size:
            raise ManifestUnavailableError(
                f"File too large: {file_size} bytes (max: {max_size})"
            )

        return path

    def read_text_file(self, relative_path: str) -> str:
        """Read a file from the worktree in full as UTF-8 text."""
        path = self._validate_file_path(relative_path)

        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                return f.read()
        except PermissionError:
            raise ManifestUnavailableError("Permission denied reading file")
        except OSError as e:
            raise ManifestUnavailableError(f"Error reading file: {e}")
