"""Runtime settings for the preview server."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet

DEFAULT_PORT = 9099
DEFAULT_OUTPUT = "index.html"
DEFAULT_DEBOUNCE_SECONDS = 0.5
MARKDOWN_SUFFIX = ".md"
DEFAULT_TITLE = "Notes Preview"

# version control and dependency caches; hidden names are skipped separately
EXCLUDED_DIRS: FrozenSet[str] = frozenset({"node_modules", ".git", ".hg", ".svn", "__pycache__"})


@dataclass
class PreviewConfig:
    root: Path = field(default_factory=lambda: Path("."))
    output_name: str = DEFAULT_OUTPUT
    port: int = DEFAULT_PORT
    host: str = ""
    title: str = DEFAULT_TITLE
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    markdown_suffix: str = MARKDOWN_SUFFIX
    excluded_dirs: FrozenSet[str] = EXCLUDED_DIRS
    progress_every: int = 10
    watch: bool = True
    serve: bool = True
    open_browser: bool = False

    @property
    def output_path(self) -> Path:
        return self.root / self.output_name

    def is_markdown(self, name: str) -> bool:
        """Case-insensitive check of a file name against the markdown suffix."""
        return name.lower().endswith(self.markdown_suffix.lower())

    def is_excluded(self, name: str, is_dir: bool) -> bool:
        """Hidden entries and reserved directory names never enter the preview."""
        if name.startswith(".") and name != ".":
            return True
        return is_dir and name in self.excluded_dirs

    def validate(self) -> None:
        """Raise ValueError on settings the server cannot run with."""
        if self.debounce_seconds <= 0:
            raise ValueError(f"debounce must be positive, got {self.debounce_seconds}")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")
        if not self.output_name or "/" in self.output_name or "\\" in self.output_name:
            raise ValueError(f"output must be a plain file name: {self.output_name!r}")
        if self.progress_every < 1:
            raise ValueError(f"progress interval must be at least 1, got {self.progress_every}")
